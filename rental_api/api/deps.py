from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request) -> Generator[Session, None, None]:
    """One session per request, opened from the Database on app.state."""
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()

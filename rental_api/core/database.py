"""
Store handle for the rental database.

The engine and session factory are owned by a ``Database`` object that the
application creates in its lifespan (see ``rental_api.main``), keeps on
``app.state.db`` and disposes at shutdown. Request handlers get a session
through ``rental_api.api.deps.get_db``.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.endswith("://"))


class Database:
    """Engine + session factory with an explicit open/close lifecycle."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        if _is_memory_sqlite(url):
            # One shared connection so every session sees the same in-memory database
            self.engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(url, echo=echo, pool_pre_ping=True)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        """Create tables directly (tests and local sqlite). Production uses alembic."""
        import rental_api.models  # noqa: F401  registers every table on Base.metadata

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Unit of work for multi-entity mutations.

    Everything flushed inside the block is committed together. Any exception
    rolls the whole session back and is re-raised, so no partial write survives.

    Usage:
        with transaction(db):
            db.add(rental)
            reserve_unit(db, item_id)
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rental_api.api.deps import get_db
from rental_api.core.auth import create_access_token, get_current_user, require_admin
from rental_api.core.errors import Conflict, Unauthenticated
from rental_api.core.passwords import hash_password, verify_password
from rental_api.models.enums import UserRole
from rental_api.models.user import User
from rental_api.schemas.auth import LoginRequest, RegisterRequest, TokenOut, UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenOut)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email + password for a bearer token."""
    user = db.query(User).filter(User.email == payload.email).first()
    # Same message for unknown email and wrong password
    if not user or not verify_password(payload.password, user.password_hash, user.password_salt):
        raise Unauthenticated("Invalid credentials")

    logger.info("User %s logged in", user.id)
    return {"user": user, "token": create_access_token(user)}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/register", response_model=TokenOut, status_code=201)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Create a login for a new staff member (or another admin).
    Only administrators can add users.
    """
    if db.query(User).filter(User.email == payload.email).first():
        raise Conflict("User with this email already exists")

    password_hash, salt = hash_password(payload.password)
    user = User(
        email=payload.email,
        name=payload.name.strip(),
        password_hash=password_hash,
        password_salt=salt,
        role=payload.role or UserRole.STAFF,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("User %s (%s) registered by %s", user.id, user.role.value, current_user.id)
    return {"user": user, "token": create_access_token(user)}

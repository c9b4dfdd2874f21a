"""
Authentication utilities.

/auth/login issues an HS256 JWT carrying the user id; the dashboards send it in
the Authorization header. This module issues and verifies the JWT and exposes
the FastAPI dependencies that resolve the caller and check their role.
Password hashing lives in rental_api.core.passwords.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from rental_api.api.deps import get_db
from rental_api.core.config import settings
from rental_api.core.errors import Forbidden, Unauthenticated
from rental_api.models.enums import UserRole
from rental_api.models.user import User

# Security scheme for Bearer token. auto_error=False so a missing header
# becomes our own 401 instead of FastAPI's 403.
security = HTTPBearer(auto_error=False)


def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    """
    Issue a JWT for the given user.

    Payload: {"sub": "<user id>", "role": "ADMIN|STAFF", "exp": ...}. The role
    claim is informational only; get_current_user always reloads the role
    from the users table.
    """
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.JWT_EXPIRES_MINUTES
    )
    payload = {
        "sub": str(user.id),
        "role": user.role.value,
        "exp": expires,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify a JWT and return the decoded payload.

    Raises:
        Unauthenticated: If token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except JWTError:
        raise Unauthenticated("Invalid token")


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency to get current authenticated user from the JWT.

    Usage in route:
        @router.get("/protected")
        def protected_route(current_user: User = Depends(get_current_user)):
            return {"user_id": current_user.id, "role": current_user.role}

    Raises:
        Unauthenticated: If token is missing, invalid, expired, or the user is gone
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Authentication required")

    payload = verify_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        raise Unauthenticated("Invalid token")

    user = db.get(User, int(user_id))
    if user is None:
        raise Unauthenticated("User not found")
    return user


def require_role(*allowed_roles: UserRole):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/finances/summary")
        def summary(current_user: User = Depends(require_role(UserRole.ADMIN))):
            ...
    """
    allowed = set(allowed_roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            if allowed == {UserRole.ADMIN}:
                raise Forbidden("Admin access required")
            raise Forbidden("Staff access required")
        return current_user
    return role_checker


require_admin = require_role(UserRole.ADMIN)
require_staff = require_role(UserRole.ADMIN, UserRole.STAFF)

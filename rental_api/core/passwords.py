"""pbkdf2-sha256 password hashing with a per-user random salt."""
import hashlib
import hmac
import secrets
from typing import Tuple

PBKDF2_ITERATIONS = 120000


def _password_hash(password: str, salt: str) -> str:
    raw = hashlib.pbkdf2_hmac(
        "sha256",
        (password or "").encode("utf-8"),
        salt.encode("utf-8"),
        PBKDF2_ITERATIONS,
    )
    return raw.hex()


def hash_password(password: str) -> Tuple[str, str]:
    """Return (hash, salt) for a new password."""
    salt = secrets.token_hex(16)
    return _password_hash(password, salt), salt


def verify_password(password: str, password_hash: str, salt: str) -> bool:
    return hmac.compare_digest(_password_hash(password, salt), password_hash)

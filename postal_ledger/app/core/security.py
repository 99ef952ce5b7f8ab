"""
Secret hashing utilities.

Enrollment secrets are stored hashed, never in clear text.
"""

import secrets
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_secret_hash(secret: str) -> str:
    """Hash an enrollment secret for storage."""
    return pwd_context.hash(secret)


def verify_secret(plain_secret: str, hashed_secret: str) -> bool:
    """Check a presented enrollment secret against its stored hash."""
    return pwd_context.verify(plain_secret, hashed_secret)


def generate_enrollment_secret() -> str:
    """One-time secret returned by registration."""
    return secrets.token_urlsafe(18)

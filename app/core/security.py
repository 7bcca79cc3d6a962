"""Security utilities for admin session tokens and password handling."""

from datetime import UTC, datetime
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed or unrecognised hash in configuration
        return False


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_session_token(session_id: str, email: str, expires_at: datetime) -> str:
    """
    Create a signed token for an admin session.

    Args:
        session_id: Primary key of the admin_sessions row
        email: Admin email
        expires_at: Session expiry

    Returns:
        Encoded JWT token
    """
    to_encode = {
        "sub": email,
        "sid": session_id,
        "exp": expires_at,
        "iat": datetime.now(UTC),
        "type": "admin_session",
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_session_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate an admin session token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    # Verify token type
    if payload.get("type") != "admin_session" or not payload.get("sid"):
        return None

    return payload

"""Admin session service for the back office login flow."""

import secrets
from datetime import timedelta
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.clock import as_utc, utcnow
from app.core.exceptions import UnauthorizedException
from app.core.record_store import RecordStore
from app.core.security import create_session_token, decode_session_token, verify_password
from app.models.admin_sessions import admin_sessions
from app.schemas.admin import AdminContext, AdminSessionResponse

logger = structlog.get_logger()


class AdminAuthService:
    """Issues, validates and revokes admin sessions."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.store = RecordStore(db)

    async def login(self, email: str, password: str) -> AdminSessionResponse:
        """
        Verify admin credentials and open a session.

        Args:
            email: Admin email
            password: Plain text password

        Returns:
            Session token and expiry

        Raises:
            UnauthorizedException: If the credentials do not match
        """
        email_ok = secrets.compare_digest(
            email.strip().lower().encode(),
            settings.admin_email.strip().lower().encode(),
        )
        password_ok = verify_password(password, settings.admin_password_hash)
        if not (email_ok and password_ok):
            logger.warning("admin_login_failed", email=email)
            raise UnauthorizedException("Invalid email or password")

        now = utcnow()
        expires_at = now + timedelta(minutes=settings.admin_session_expire_minutes)
        row = await self.store.insert(
            admin_sessions,
            {
                "admin_email": settings.admin_email,
                "admin_name": settings.admin_name,
                "created_at": now,
                "expires_at": expires_at,
            },
        )

        logger.info("admin_login", email=settings.admin_email, session_id=str(row["id"]))

        return AdminSessionResponse(
            access_token=create_session_token(str(row["id"]), row["admin_email"], expires_at),
            expires_at=expires_at,
            email=row["admin_email"],
            name=row["admin_name"],
        )

    async def validate(self, token: str) -> AdminContext:
        """
        Resolve a session token into an authorization context.

        Expired sessions are removed.

        Raises:
            UnauthorizedException: If the token or its session is invalid
        """
        payload = decode_session_token(token)
        if payload is None:
            raise UnauthorizedException("Could not validate credentials")

        try:
            session_id = UUID(payload["sid"])
        except ValueError:
            raise UnauthorizedException("Invalid session ID format")

        row = await self.store.get_by_id(admin_sessions, session_id)
        if row is None:
            raise UnauthorizedException("Session not found")

        expires_at = as_utc(row["expires_at"])
        if expires_at <= utcnow():
            await self.store.delete_where(admin_sessions, session_id)
            logger.info("admin_session_expired", session_id=str(session_id))
            raise UnauthorizedException("Session expired")

        return AdminContext(
            session_id=session_id,
            email=row["admin_email"],
            name=row["admin_name"],
            expires_at=expires_at,
        )

    async def logout(self, context: AdminContext) -> None:
        """Close the session behind the given context."""
        await self.store.delete_where(admin_sessions, context.session_id)
        logger.info("admin_logout", email=context.email, session_id=str(context.session_id))

    async def purge_expired(self) -> int:
        """Remove every session past its expiry; returns how many were removed."""
        return await self.store.delete_many(
            admin_sessions,
            admin_sessions.c.expires_at <= utcnow(),
        )

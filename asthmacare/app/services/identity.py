"""
Identity collaborator.

Owns user accounts and sessions. A session is a signed access token whose
``jti`` is recorded in ``auth_sessions`` so sign-out can revoke it before
it expires.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from asthmacare.app.core.result import ServiceResult, normalize_errors
from asthmacare.app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from asthmacare.app.models.auth_session import AuthSession
from asthmacare.app.models.user import User
from asthmacare.app.schemas.user import SessionInfo, UserProfile

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid login credentials"
ALREADY_REGISTERED = "User already registered"
INVALID_SESSION = "Invalid or expired session"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class IdentityProvider:
    """Account and session store backed by SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @normalize_errors("identity.sign_up")
    async def sign_up(self, email: str, password: str, full_name: str) -> ServiceResult[UserProfile]:
        """Register a new account. Does not sign the user in."""
        email = _normalize_email(email)
        async with self.session_factory() as db:
            existing = await db.execute(select(User).where(User.email == email))
            if existing.scalar_one_or_none():
                return ServiceResult.fail(ALREADY_REGISTERED)

            user = User(
                email=email,
                full_name=full_name.strip(),
                password_hash=hash_password(password),
            )
            db.add(user)
            await db.commit()
            await db.refresh(user)

        logger.info(f"[AUTH] Registered user {user.id}")
        return ServiceResult.ok(UserProfile.model_validate(user))

    @normalize_errors("identity.sign_in")
    async def sign_in(self, email: str, password: str) -> ServiceResult[SessionInfo]:
        """Check credentials and open a new session."""
        email = _normalize_email(email)
        async with self.session_factory() as db:
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
            if not user or not verify_password(password, user.password_hash):
                return ServiceResult.fail(INVALID_CREDENTIALS)

            token, token_id, expires_at = create_access_token(user.id, user.email)
            db.add(AuthSession(id=token_id, user_id=user.id, expires_at=expires_at))
            await db.commit()

        logger.info(f"[AUTH] Session opened for user {user.id}")
        return ServiceResult.ok(
            SessionInfo(
                access_token=token,
                expires_at=expires_at,
                user=UserProfile.model_validate(user),
            )
        )

    async def _active_session(self, db: AsyncSession, token: str) -> AuthSession | None:
        claims = decode_access_token(token)
        if not claims or "jti" not in claims:
            return None
        auth_session = await db.get(AuthSession, claims["jti"])
        if not auth_session or not auth_session.is_active or auth_session.user_id != claims.get("sub"):
            return None
        return auth_session

    @normalize_errors("identity.get_user")
    async def get_user(self, token: str) -> ServiceResult[UserProfile]:
        """Resolve the user behind an access token."""
        async with self.session_factory() as db:
            auth_session = await self._active_session(db, token)
            if not auth_session:
                return ServiceResult.fail(INVALID_SESSION)
            user = await db.get(User, auth_session.user_id)
            if not user:
                return ServiceResult.fail(INVALID_SESSION)
            return ServiceResult.ok(UserProfile.model_validate(user))

    @normalize_errors("identity.get_session")
    async def get_session(self, token: str) -> ServiceResult[SessionInfo]:
        """Resolve an access token to the full session it belongs to."""
        async with self.session_factory() as db:
            auth_session = await self._active_session(db, token)
            if not auth_session:
                return ServiceResult.fail(INVALID_SESSION)
            user = await db.get(User, auth_session.user_id)
            if not user:
                return ServiceResult.fail(INVALID_SESSION)
            return ServiceResult.ok(
                SessionInfo(
                    access_token=token,
                    expires_at=auth_session.expires_at,
                    user=UserProfile.model_validate(user),
                )
            )

    @normalize_errors("identity.sign_out")
    async def sign_out(self, token: str) -> ServiceResult[None]:
        """Revoke the session of an access token. Unknown tokens are ignored."""
        claims = decode_access_token(token)
        if not claims or "jti" not in claims:
            return ServiceResult.ok()
        async with self.session_factory() as db:
            auth_session = await db.get(AuthSession, claims["jti"])
            if auth_session and auth_session.revoked_at is None:
                auth_session.revoked_at = datetime.utcnow()
                await db.commit()
                logger.info(f"[AUTH] Session revoked for user {auth_session.user_id}")
        return ServiceResult.ok()

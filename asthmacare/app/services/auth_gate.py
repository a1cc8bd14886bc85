"""
Auth gate.

Wraps the identity collaborator for one client: form validation, the
current-session reference and the session-changed event stream that the
report and chat controllers subscribe to.
"""

import inspect
import logging
from typing import Awaitable, Callable

from asthmacare.app.core.result import ServiceResult
from asthmacare.app.schemas.user import SessionInfo, UserProfile
from asthmacare.app.services.identity import IdentityProvider
from asthmacare.app.utils.validation import is_strong_password, is_valid_email

logger = logging.getLogger(__name__)

SessionCallback = Callable[[SessionInfo | None], Awaitable[None] | None]

FILL_ALL_FIELDS = "Please fill in all fields"
INVALID_EMAIL = "Please enter a valid email address"
WEAK_PASSWORD = "Password does not meet requirements"
PASSWORD_MISMATCH = "Passwords do not match"
TERMS_REQUIRED = "Please agree to the Terms of Service and Privacy Policy"
NO_SESSION = "No active session"


class Subscription:
    """Handle returned by ``SessionEvents.subscribe``."""

    def __init__(self, events: "SessionEvents", callback: SessionCallback):
        self._events = events
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._callback in self._events._subscribers

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        self._events._remove(self._callback)


class SessionEvents:
    """
    Observable stream of session changes.

    Every event carries the new session, or None when signed out. Callbacks
    run in subscription order; an exception in one callback is logged and
    does not stop delivery to the others.
    """

    def __init__(self):
        self._subscribers: list[SessionCallback] = []

    def subscribe(self, callback: SessionCallback) -> Subscription:
        self._subscribers.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback: SessionCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def emit(self, session: SessionInfo | None) -> None:
        for callback in list(self._subscribers):
            try:
                result = callback(session)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"[AUTH] Session subscriber failed: {e}", exc_info=True)


class AuthGate:
    """
    Sign-in state of one client.

    Holds at most one session at a time; a new sign-in replaces the previous
    one. Every operation returns a ``ServiceResult`` and never raises.
    """

    def __init__(self, identity: IdentityProvider, events: SessionEvents | None = None):
        self.identity = identity
        self.events = events or SessionEvents()
        self._session: SessionInfo | None = None

    @property
    def session(self) -> SessionInfo | None:
        return self._session

    @property
    def user(self) -> UserProfile | None:
        return self._session.user if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def subscribe(self, callback: SessionCallback) -> Subscription:
        return self.events.subscribe(callback)

    async def _set_session(self, session: SessionInfo | None) -> None:
        self._session = session
        await self.events.emit(session)

    async def sign_up(
        self,
        full_name: str,
        email: str,
        password: str,
        confirm_password: str,
        agree_terms: bool,
    ) -> ServiceResult[UserProfile]:
        """
        Validate the sign-up form and register the account.

        Args:
            full_name: Display name
            email: Login email
            password: Chosen password
            confirm_password: Repeated password
            agree_terms: Whether the terms were accepted

        Returns:
            ServiceResult with the new user's profile, or the first validation error
        """
        if not all(v and v.strip() for v in (full_name, email, password, confirm_password)):
            return ServiceResult.fail(FILL_ALL_FIELDS)
        if not is_valid_email(email.strip()):
            return ServiceResult.fail(INVALID_EMAIL)
        if not is_strong_password(password):
            return ServiceResult.fail(WEAK_PASSWORD)
        if password != confirm_password:
            return ServiceResult.fail(PASSWORD_MISMATCH)
        if not agree_terms:
            return ServiceResult.fail(TERMS_REQUIRED)

        return await self.identity.sign_up(email, password, full_name)

    async def sign_in(self, email: str, password: str) -> ServiceResult[SessionInfo]:
        """Validate the sign-in form and open a session."""
        if not email or not email.strip() or not password:
            return ServiceResult.fail(FILL_ALL_FIELDS)
        if not is_valid_email(email.strip()):
            return ServiceResult.fail(INVALID_EMAIL)

        result = await self.identity.sign_in(email, password)
        if result.success:
            await self._set_session(result.data)
        return result

    async def restore(self, access_token: str) -> ServiceResult[SessionInfo]:
        """Resume a session from a previously issued access token."""
        result = await self.identity.get_session(access_token)
        if result.success:
            await self._set_session(result.data)
        return result

    async def sign_out(self) -> ServiceResult[None]:
        """
        Close the current session.

        The local session is dropped and subscribers notified even when the
        identity provider fails to revoke the token.
        """
        if self._session is None:
            return ServiceResult.ok()

        result = await self.identity.sign_out(self._session.access_token)
        if not result.success:
            logger.warning(f"[AUTH] Token revocation failed: {result.error}")
        await self._set_session(None)
        return result

    async def get_current_user(self) -> ServiceResult[UserProfile]:
        """Current user, revalidated with the identity provider."""
        if self._session is None:
            return ServiceResult.fail(NO_SESSION)

        result = await self.identity.get_user(self._session.access_token)
        if not result.success:
            logger.info(f"[AUTH] Session no longer valid: {result.error}")
            await self._set_session(None)
        return result


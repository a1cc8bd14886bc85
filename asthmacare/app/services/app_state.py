"""
Application state.

One owned object holding the collaborators, the simulators and a patient
context (auth gate, report controller, chat controller) per signed-in
access token. Route handlers reach it through the ``get_app_state``
dependency.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from asthmacare.app.core.result import ServiceResult
from asthmacare.app.db.base import AsyncSessionLocal
from asthmacare.app.schemas.user import SessionInfo, UserProfile
from asthmacare.app.services.air_quality import AirQualitySimulator
from asthmacare.app.services.appointments import AppointmentService
from asthmacare.app.services.auth_gate import AuthGate, Subscription
from asthmacare.app.services.chat_session import ChatSessionController
from asthmacare.app.services.database import Database
from asthmacare.app.services.identity import IdentityProvider
from asthmacare.app.services.report_analysis import ReportAnalyzer
from asthmacare.app.services.report_lifecycle import ReportLifecycleController
from asthmacare.app.services.storage import LocalObjectStorage
from asthmacare.app.websocket.manager import ConnectionManager, manager

logger = logging.getLogger(__name__)


@dataclass
class PatientContext:
    """Controllers of one signed-in client."""

    gate: AuthGate
    reports: ReportLifecycleController
    chat: ChatSessionController
    subscriptions: list[Subscription] = field(default_factory=list)

    @property
    def user(self) -> UserProfile | None:
        return self.gate.user

    def close(self) -> None:
        self.reports.close()
        for subscription in self.subscriptions:
            subscription.unsubscribe()
        self.subscriptions.clear()


class AppState:
    """Single owner of the application's mutable state."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        storage: LocalObjectStorage | None = None,
        analyzer: ReportAnalyzer | None = None,
        air_quality: AirQualitySimulator | None = None,
        connections: ConnectionManager | None = None,
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self.identity = IdentityProvider(self.session_factory)
        self.database = Database(self.session_factory)
        self.appointments = AppointmentService(self.database)
        self.storage = storage or LocalObjectStorage()
        self.analyzer = analyzer or ReportAnalyzer()
        self.air_quality = air_quality or AirQualitySimulator()
        self.connections = connections or manager
        self.contexts: dict[str, PatientContext] = {}

    def new_context(self) -> PatientContext:
        """Build an unauthenticated context wired to the shared collaborators."""
        gate = AuthGate(self.identity)

        async def publish(event: str, data: dict[str, Any]) -> None:
            if gate.user:
                await self.connections.send_event(gate.user.id, event, data)

        return PatientContext(
            gate=gate,
            reports=ReportLifecycleController(
                gate, self.database, self.storage, self.analyzer, publish=publish
            ),
            chat=ChatSessionController(gate, self.database),
        )

    async def _drop(self, token: str, ctx: PatientContext, user_id: str) -> None:
        self.contexts.pop(token, None)
        ctx.close()
        await self.connections.send_session_changed(user_id, signed_in=False)
        logger.info(f"[AUTH] Context dropped for user {user_id}")

    def _register(self, token: str, ctx: PatientContext) -> None:
        user_id = ctx.user.id

        async def on_session(session: SessionInfo | None) -> None:
            if session is None or session.access_token != token:
                await self._drop(token, ctx, user_id)

        ctx.subscriptions.append(ctx.gate.subscribe(on_session))
        self.contexts[token] = ctx

    async def sign_up(self, **form: Any) -> ServiceResult[UserProfile]:
        return await AuthGate(self.identity).sign_up(**form)

    async def sign_in(self, email: str, password: str) -> ServiceResult[SessionInfo]:
        """Sign in and create the context for the new session."""
        await self.sweep_expired()
        ctx = self.new_context()
        result = await ctx.gate.sign_in(email, password)
        if not result.success:
            ctx.close()
            return result

        self._register(result.data.access_token, ctx)
        await self.connections.send_session_changed(ctx.user.id, signed_in=True)
        return result

    async def context_for_token(self, token: str) -> PatientContext | None:
        """
        Context of an access token, restoring it if needed.

        Returns:
            The context, or None if the token is invalid, expired or revoked
        """
        await self.sweep_expired()
        ctx = self.contexts.get(token)
        if ctx:
            return ctx

        ctx = self.new_context()
        result = await ctx.gate.restore(token)
        if not result.success:
            ctx.close()
            return None
        self._register(token, ctx)
        return ctx

    async def sweep_expired(self) -> int:
        """
        Drop every context whose session has expired, including contexts
        of tokens that are never presented again.

        Returns:
            Number of contexts dropped
        """
        now = datetime.utcnow()
        expired = [
            (token, ctx)
            for token, ctx in self.contexts.items()
            if ctx.gate.session and ctx.gate.session.expires_at <= now
        ]
        for token, ctx in expired:
            await self._drop(token, ctx, ctx.user.id)
        if expired:
            logger.info(f"[AUTH] Swept {len(expired)} expired context(s)")
        return len(expired)

    async def sign_out(self, token: str) -> ServiceResult[None]:
        ctx = self.contexts.get(token)
        if ctx:
            return await ctx.gate.sign_out()
        return await self.identity.sign_out(token)

    def shutdown(self) -> None:
        """Cancel background work of every context."""
        for ctx in list(self.contexts.values()):
            ctx.close()
        self.contexts.clear()


_app_state: AppState | None = None


def get_app_state() -> AppState:
    """Get or create the global application state."""
    global _app_state
    if _app_state is None:
        _app_state = AppState()
    return _app_state

"""Chat session controller: transcript, response engine call and persistence."""

import logging
from datetime import datetime

from asthmacare.app.core.config import settings
from asthmacare.app.schemas.chat import TranscriptEntry
from asthmacare.app.schemas.user import SessionInfo
from asthmacare.app.services.auth_gate import AuthGate
from asthmacare.app.services.database import Database
from asthmacare.app.services.response_engine import respond

logger = logging.getLogger(__name__)


class ChatSessionController:
    """
    Transcript of one client.

    Anyone can chat; exchanges are persisted only while a session is active,
    and a failed save never interrupts the conversation.
    """

    def __init__(self, gate: AuthGate, database: Database, max_message_length: int | None = None):
        self.gate = gate
        self.database = database
        self.max_message_length = max_message_length or settings.max_chat_message_length
        self.transcript: list[TranscriptEntry] = []
        self._subscription = gate.subscribe(self._on_session_changed)

    async def _on_session_changed(self, session: SessionInfo | None) -> None:
        self.transcript = []
        if session is not None:
            await self.load_history()

    async def load_history(self) -> None:
        """Rebuild the transcript from persisted exchanges."""
        user = self.gate.user
        if not user:
            return
        result = await self.database.get_chat_messages(user.id)
        if not result.success:
            logger.warning(f"[CHAT] Failed to load history for {user.id}: {result.error}")
            return

        transcript = []
        for row in result.data:
            transcript.append(TranscriptEntry(sender="user", text=row.message, timestamp=row.created_at))
            transcript.append(TranscriptEntry(sender="assistant", text=row.response, timestamp=row.created_at))
        self.transcript = transcript
        logger.info(f"[CHAT] Loaded {len(result.data)} exchanges for {user.id}")

    async def send(self, message: str) -> tuple[TranscriptEntry | None, bool]:
        """
        Handle one user message.

        Args:
            message: Text typed by the user

        Returns:
            Tuple of (assistant entry, saved). The entry is None for blank input.
        """
        text = (message or "").strip()
        if not text:
            return None, False
        text = text[: self.max_message_length]

        history = [{"sender": e.sender, "text": e.text} for e in self.transcript]
        self.transcript.append(TranscriptEntry(sender="user", text=text, timestamp=datetime.utcnow()))

        reply = TranscriptEntry(sender="assistant", text=respond(text, history), timestamp=datetime.utcnow())
        self.transcript.append(reply)

        saved = False
        user = self.gate.user
        if user:
            result = await self.database.save_chat_message(user.id, text, reply.text)
            if result.success:
                saved = True
            else:
                logger.error(f"[CHAT] Error saving chat message: {result.error}")
        return reply, saved

    def clear(self) -> None:
        self.transcript = []

"""Unit tests for the chat session controller."""

from unittest.mock import AsyncMock, patch

import pytest

from asthmacare.app.core.result import ServiceResult
from asthmacare.app.services.auth_gate import AuthGate
from asthmacare.app.services.chat_session import ChatSessionController
from asthmacare.app.services.response_engine import (
    FALLBACK_RESPONSE,
    SYMPTOMS_RESPONSE,
    TRIGGERS_RESPONSE,
)


class TestChatSession:
    """Test cases for ChatSessionController."""

    @pytest.mark.asyncio
    async def test_blank_message_ignored(self, identity, database):
        chat = ChatSessionController(AuthGate(identity), database)

        reply, saved = await chat.send("   ")

        assert reply is None
        assert not saved
        assert chat.transcript == []

    @pytest.mark.asyncio
    async def test_anonymous_chat_not_saved(self, identity, database):
        chat = ChatSessionController(AuthGate(identity), database)

        reply, saved = await chat.send("I have a cough at night")

        assert reply.text == SYMPTOMS_RESPONSE
        assert not saved
        assert [e.sender for e in chat.transcript] == ["user", "assistant"]
        assert chat.transcript[0].text == "I have a cough at night"

    @pytest.mark.asyncio
    async def test_signed_in_chat_saved(self, signed_in_gate, database):
        chat = ChatSessionController(signed_in_gate, database)

        reply, saved = await chat.send("  What are common asthma triggers?  ")

        assert saved
        assert reply.text == TRIGGERS_RESPONSE
        rows = (await database.get_chat_messages(signed_in_gate.user.id)).data
        assert len(rows) == 1
        assert rows[0].message == "What are common asthma triggers?"
        assert rows[0].response == TRIGGERS_RESPONSE

    @pytest.mark.asyncio
    async def test_save_failure_keeps_conversation(self, signed_in_gate, database, caplog):
        """A failed save is logged and the reply is still shown."""
        chat = ChatSessionController(signed_in_gate, database)
        failing = AsyncMock(return_value=ServiceResult.fail("db down"))

        with patch.object(database, "save_chat_message", failing):
            reply, saved = await chat.send("tell me a joke")

        assert reply.text == FALLBACK_RESPONSE
        assert not saved
        assert len(chat.transcript) == 2
        assert "Error saving chat message" in caplog.text

    @pytest.mark.asyncio
    async def test_long_message_truncated(self, identity, database):
        chat = ChatSessionController(AuthGate(identity), database, max_message_length=10)

        await chat.send("x" * 50)

        assert chat.transcript[0].text == "x" * 10

    @pytest.mark.asyncio
    async def test_history_loaded_on_sign_in_and_cleared_on_sign_out(self, signed_in_gate, database):
        first = ChatSessionController(signed_in_gate, database)
        await first.send("I have a cough")
        await first.send("tell me a joke")

        gate = AuthGate(signed_in_gate.identity)
        chat = ChatSessionController(gate, database)
        await gate.restore(signed_in_gate.session.access_token)

        assert [e.text for e in chat.transcript[::2]] == ["I have a cough", "tell me a joke"]
        assert [e.sender for e in chat.transcript] == ["user", "assistant", "user", "assistant"]

        await gate.sign_out()
        assert chat.transcript == []

    @pytest.mark.asyncio
    async def test_clear(self, identity, database):
        chat = ChatSessionController(AuthGate(identity), database)
        await chat.send("hello")

        chat.clear()

        assert chat.transcript == []

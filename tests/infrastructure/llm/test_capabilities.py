"""Tests for LLM-backed capability handlers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from switchboard.domain.entities import (
    Capability,
    CapabilityResponse,
    ExtractedEntity,
    ExtractedEntityKind,
)
from switchboard.infrastructure.llm import (
    GeneralCapability,
    LLMError,
    PromptedCapability,
)


class TestGeneralCapability:
    """GeneralCapability tests."""

    async def test_returns_llm_text(self, mock_client: MagicMock) -> None:
        handler = GeneralCapability(mock_client)

        response = await handler.handle("hello", [], ())

        assert response == CapabilityResponse(text="Hello!")

    async def test_system_prompt_lists_capabilities(
        self, mock_client: MagicMock
    ) -> None:
        handler = GeneralCapability(mock_client)

        await handler.handle("what can you do?", [], ())

        system_prompt = mock_client.complete.call_args.args[0][0]["content"]
        assert Capability.CONTENT.description in system_prompt
        assert Capability.CRM.description in system_prompt
        assert Capability.ISSUES.description in system_prompt
        assert Capability.GENERAL.description not in system_prompt

    async def test_history_is_not_duplicated(self, mock_client: MagicMock) -> None:
        """Test that the current message already in history is sent once."""
        handler = GeneralCapability(mock_client)
        history = [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "thanks"},
        ]

        await handler.handle("thanks", history, ())

        messages = mock_client.complete.call_args.args[0]
        assert messages[1:] == history

    async def test_appends_message_missing_from_history(
        self, mock_client: MagicMock
    ) -> None:
        handler = GeneralCapability(mock_client)
        history = [{"role": "user", "content": "hi"}]

        await handler.handle("thanks", history, ())

        messages = mock_client.complete.call_args.args[0]
        assert messages[-1] == {"role": "user", "content": "thanks"}
        assert len(messages) == 3

    async def test_llm_error_propagates(self, mock_client: MagicMock) -> None:
        mock_client.complete = AsyncMock(side_effect=LLMError("down"))
        handler = GeneralCapability(mock_client)

        with pytest.raises(LLMError):
            await handler.handle("hello", [], ())


class TestPromptedCapability:
    """PromptedCapability tests."""

    async def test_uses_default_instructions(self, mock_client: MagicMock) -> None:
        handler = PromptedCapability(Capability.CRM, mock_client)

        response = await handler.handle("show my deals", [], ())

        assert response.text == "Hello!"
        assert handler.capability is Capability.CRM
        system_prompt = mock_client.complete.call_args.args[0][0]["content"]
        assert "CRM assistant" in system_prompt

    async def test_custom_instructions(self, mock_client: MagicMock) -> None:
        handler = PromptedCapability(
            Capability.CONTENT, mock_client, instructions="Write like a pirate."
        )

        await handler.handle("write a post", [], ())

        system_prompt = mock_client.complete.call_args.args[0][0]["content"]
        assert system_prompt.startswith("Write like a pirate.")

    async def test_entities_in_system_prompt(self, mock_client: MagicMock) -> None:
        handler = PromptedCapability(Capability.CRM, mock_client)
        entities = (
            ExtractedEntity(
                kind=ExtractedEntityKind.CONTACT,
                value="her",
                resolved_id="c1",
                resolved_name="Maria Lopez",
            ),
            ExtractedEntity(kind=ExtractedEntityKind.DATE, value="Friday"),
        )

        await handler.handle("email her on Friday", [], entities)

        system_prompt = mock_client.complete.call_args.args[0][0]["content"]
        assert "- contact: Maria Lopez (id: c1)\n" in system_prompt
        assert "- date: Friday\n" in system_prompt

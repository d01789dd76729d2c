"""Tests for LLMIntentClassifier."""

import json
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from switchboard.config import LLMConfig
from switchboard.domain.entities import (
    Capability,
    ConversationContext,
    ConversationTurn,
    EntityKind,
    EntityRef,
    ExtractedEntityKind,
    TurnRole,
)
from switchboard.infrastructure.llm import (
    LLMClient,
    LLMIntentClassifier,
    LLMRateLimitError,
)
from switchboard.infrastructure.llm.intent_classifier import (
    FALLBACK_CONFIDENCE,
    extract_json_object,
)


@pytest.fixture
def classifier(mock_client: MagicMock) -> LLMIntentClassifier:
    """Create LLMIntentClassifier instance."""
    return LLMIntentClassifier(mock_client)


@pytest.fixture
def context(timestamp: datetime) -> ConversationContext:
    """Create a context with history and entities."""
    context = ConversationContext(
        id="ctx-1",
        channel_id="C123",
        thread_ts="111.222",
        user_id="U123",
        created_at=timestamp,
        last_activity_at=timestamp,
        expires_at=timestamp + timedelta(minutes=30),
        active_capability=Capability.CRM,
    )
    for index in range(6):
        context = context.with_turn(
            ConversationTurn(
                role=TurnRole.USER, content=f"turn {index}", timestamp=timestamp
            ),
            10,
        )
    context = context.with_turn(
        ConversationTurn(role=TurnRole.ASSISTANT, content="x" * 150, timestamp=timestamp),
        10,
    )
    for index in range(5):
        context = context.with_entity(
            EntityRef(
                kind=EntityKind.CONTACT,
                id=f"c{index}",
                name=f"Contact {index}",
                mentioned_at=timestamp,
            ),
            5,
        )
    return context


class TestExtractJsonObject:
    """extract_json_object tests."""

    def test_plain_object(self) -> None:
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_object_with_surrounding_text(self) -> None:
        text = 'Sure!\n```json\n{"capability": "crm", "entities": [{"type": "deal"}]}\n```'

        assert extract_json_object(text) == {
            "capability": "crm",
            "entities": [{"type": "deal"}],
        }

    def test_skips_invalid_braces(self) -> None:
        assert extract_json_object('{not json} then {"ok": true}') == {"ok": True}

    def test_no_object(self) -> None:
        assert extract_json_object("I cannot classify this") is None


class TestClassify:
    """classify tests."""

    async def test_parses_response(
        self, classifier: LLMIntentClassifier, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value=json.dumps(
                {
                    "capability": "crm",
                    "intent": "Add a contact",
                    "confidence": 0.9,
                    "entities": [
                        {"type": "contact", "value": "Maria Lopez"},
                        {"type": "amount", "value": "$50k"},
                    ],
                }
            )
        )

        result = await classifier.classify("Add Maria Lopez, deal worth $50k")

        assert result.capability is Capability.CRM
        assert result.intent == "Add a contact"
        assert result.confidence == 0.9
        assert [(e.kind, e.value) for e in result.entities] == [
            (ExtractedEntityKind.CONTACT, "Maria Lopez"),
            (ExtractedEntityKind.AMOUNT, "$50k"),
        ]

    async def test_unknown_capability_becomes_general(
        self, classifier: LLMIntentClassifier, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value='{"capability": "weather", "intent": "Forecast", "confidence": 0.7}'
        )

        result = await classifier.classify("Will it rain?")

        assert result.capability is Capability.GENERAL
        assert result.confidence == 0.7

    async def test_legacy_agent_key(
        self, classifier: LLMIntentClassifier, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value='{"agent": "linear", "intent": "Issue", "confidence": 0.8}'
        )

        result = await classifier.classify("File a bug")

        assert result.capability is Capability.ISSUES

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (1.7, 1.0),
            (-0.2, 0.0),
            ("high", 0.5),
            (True, 0.5),
            (None, 0.5),
            (float("nan"), 0.5),
            (float("inf"), 0.5),
        ],
    )
    async def test_confidence_is_normalized(
        self,
        classifier: LLMIntentClassifier,
        mock_client: MagicMock,
        raw: object,
        expected: float,
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value=json.dumps(
                {"capability": "content", "intent": "Post", "confidence": raw}
            )
        )

        result = await classifier.classify("LinkedIn stuff")

        assert result.confidence == expected

    async def test_invalid_entities_are_dropped(
        self, classifier: LLMIntentClassifier, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value=json.dumps(
                {
                    "capability": "crm",
                    "intent": "Update",
                    "confidence": 0.8,
                    "entities": [
                        {"type": "planet", "value": "Mars"},
                        {"type": "contact", "value": "  "},
                        "Maria",
                        {"type": "Contact", "value": "her"},
                    ],
                }
            )
        )

        result = await classifier.classify("Update her")

        assert len(result.entities) == 1
        assert result.entities[0].kind is ExtractedEntityKind.CONTACT
        assert result.entities[0].value == "her"

    async def test_unparseable_response_returns_fallback(
        self, classifier: LLMIntentClassifier, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(return_value="I think this is about CRM")

        result = await classifier.classify("Something odd")

        assert result.capability is Capability.GENERAL
        assert result.confidence == FALLBACK_CONFIDENCE
        assert result.confidence < 0.5

    async def test_llm_error_returns_fallback(
        self, classifier: LLMIntentClassifier, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(side_effect=LLMRateLimitError("slow down"))

        result = await classifier.classify("Something odd")

        assert result.capability is Capability.GENERAL
        assert result.confidence < 0.5

    async def test_malformed_provider_reply_returns_fallback(self) -> None:
        """A completion without choices is reported as the fallback result."""
        response = MagicMock()
        response.choices = []
        classifier = LLMIntentClassifier(LLMClient(LLMConfig(model="gpt-4o-mini")))

        with patch("litellm.acompletion", new=AsyncMock(return_value=response)):
            result = await classifier.classify("Something odd")

        assert result.capability is Capability.GENERAL
        assert result.confidence == FALLBACK_CONFIDENCE


class TestPromptDigest:
    """Prompt construction tests."""

    async def test_prompt_without_context(
        self, classifier: LLMIntentClassifier, mock_client: MagicMock
    ) -> None:
        await classifier.classify("Hello there")

        messages = mock_client.complete.call_args.args[0]
        assert messages[0]["role"] == "system"
        assert messages[1]["role"] == "user"
        assert 'User message: "Hello there"' in messages[1]["content"]
        assert "Context:" not in messages[1]["content"]

    async def test_prompt_includes_digest(
        self,
        classifier: LLMIntentClassifier,
        mock_client: MagicMock,
        context: ConversationContext,
    ) -> None:
        await classifier.classify("and her phone number?", context)

        prompt = mock_client.complete.call_args.args[0][1]["content"]
        assert "Current capability: crm" in prompt
        # Only the three most recent contacts
        assert "Contact: Contact 4" in prompt
        assert "Contact: Contact 2" in prompt
        assert "Contact: Contact 1" not in prompt
        # Only the four most recent turns, truncated
        assert "turn 5" in prompt
        assert "turn 3" in prompt
        assert "turn 2" not in prompt
        assert "x" * 100 + "..." in prompt
        assert "x" * 101 not in prompt

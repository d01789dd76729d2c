"""Slack event handlers."""

import logging
import re
from typing import Any

from slack_bolt.async_app import AsyncApp

from switchboard.application.services import Orchestrator
from switchboard.domain.services import MessagingService

logger = logging.getLogger(__name__)

HELP_MESSAGE = (
    "Hi! Tell me what you need: I can help with content, CRM records "
    "and issue tracking, or just answer a question."
)


def strip_bot_mention(text: str, bot_user_id: str) -> str:
    """Remove mentions of the bot and surrounding whitespace."""
    return re.sub(rf"<@{re.escape(bot_user_id)}>", "", text).strip()


def register_handlers(
    app: AsyncApp,
    orchestrator: Orchestrator,
    messaging_service: MessagingService,
    bot_user_id: str,
) -> None:
    """Register Slack event handlers.

    Args:
        app: AsyncApp instance.
        orchestrator: Routes messages to capabilities.
        messaging_service: Sends replies.
        bot_user_id: The bot's user ID.
    """

    async def respond(
        text: str,
        channel_id: str,
        thread_ts: str | None,
        user_id: str | None,
    ) -> None:
        if not text:
            await orchestrator.open_conversation(channel_id, thread_ts, user_id)
            await messaging_service.send_message(channel_id, HELP_MESSAGE, thread_ts)
            return

        response = await orchestrator.handle(text, channel_id, thread_ts, user_id)
        await messaging_service.send_message(channel_id, response.message, thread_ts)

    @app.event("app_mention")
    async def handle_app_mention(event: dict[str, Any]) -> None:
        """Answer a mention in the thread it was posted in.

        A top-level mention starts a thread keyed by its own timestamp.
        """
        channel_id = event.get("channel", "")
        thread_ts = event.get("thread_ts") or event.get("ts")
        text = strip_bot_mention(event.get("text", ""), bot_user_id)
        logger.info(
            "Received mention: channel=%s, thread_ts=%s", channel_id, thread_ts
        )

        try:
            await respond(text, channel_id, thread_ts, event.get("user"))
        except Exception:
            logger.exception("Error handling app_mention event")

    @app.event("message")
    async def handle_message(event: dict[str, Any]) -> None:
        """Answer direct messages and replies in threads the bot is part of."""
        if event.get("bot_id") or event.get("subtype"):
            return

        channel_id = event.get("channel", "")
        thread_ts = event.get("thread_ts")
        raw_text = event.get("text", "")

        if event.get("channel_type") != "im":
            if thread_ts is None or f"<@{bot_user_id}>" in raw_text:
                return
            context = await orchestrator.get_context(channel_id, thread_ts)
            if context is None:
                return

        logger.info(
            "Received message: channel=%s, thread_ts=%s", channel_id, thread_ts
        )
        text = strip_bot_mention(raw_text, bot_user_id)

        try:
            await respond(text, channel_id, thread_ts, event.get("user"))
        except Exception:
            logger.exception("Error handling message event")

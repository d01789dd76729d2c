"""Presentation layer."""

from switchboard.presentation.slack_handlers import (
    HELP_MESSAGE,
    register_handlers,
    strip_bot_mention,
)

__all__ = ["HELP_MESSAGE", "register_handlers", "strip_bot_mention"]

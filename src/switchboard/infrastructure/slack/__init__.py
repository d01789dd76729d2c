"""Slack integration."""

from switchboard.infrastructure.slack.client import SlackAppRunner, create_slack_app
from switchboard.infrastructure.slack.messaging import SlackMessagingService

__all__ = [
    "SlackAppRunner",
    "SlackMessagingService",
    "create_slack_app",
]

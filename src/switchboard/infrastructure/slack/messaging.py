"""Posting replies to Slack."""

import logging

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

logger = logging.getLogger(__name__)

UNREACHABLE_CHANNEL_ERRORS = frozenset(
    {"not_in_channel", "channel_not_found", "is_archived"}
)


class SlackMessagingService:
    """MessagingService backed by the Slack Web API."""

    def __init__(self, client: AsyncWebClient) -> None:
        self._client = client
        self._bot_user_id: str | None = None

    async def send_message(
        self,
        channel_id: str,
        text: str,
        thread_ts: str | None = None,
    ) -> None:
        """メッセージを投稿する

        thread_ts があればスレッドへの返信として投稿する。
        投稿できないチャンネル (未参加・削除済み・アーカイブ済み) は
        警告ログを出して無視し、それ以外の API エラーは送出する。

        Raises:
            SlackApiError: 上記以外の API エラー
        """
        try:
            await self._client.chat_postMessage(
                channel=channel_id, text=text, thread_ts=thread_ts
            )
        except SlackApiError as e:
            reason = e.response.get("error") if e.response is not None else None
            if reason not in UNREACHABLE_CHANNEL_ERRORS:
                raise
            logger.warning("Dropped reply to channel %s: %s", channel_id, reason)

    async def get_bot_user_id(self) -> str:
        """Bot user ID from auth.test, fetched once."""
        if self._bot_user_id is None:
            identity = await self._client.auth_test()
            self._bot_user_id = identity["user_id"]
        return self._bot_user_id

"""Slack Bolt app construction and the Socket Mode runner."""

import asyncio
import logging

from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from switchboard.config import SlackConfig

logger = logging.getLogger(__name__)


def create_slack_app(config: SlackConfig) -> AsyncApp:
    """Bot トークンで AsyncApp を生成する"""
    return AsyncApp(token=config.bot_token)


class SlackAppRunner:
    """Owns the Socket Mode connection for an AsyncApp.

    ``start()`` blocks for the lifetime of the connection, so it is run
    as a task and torn down with ``close()``.
    """

    def __init__(self, app: AsyncApp, app_token: str) -> None:
        """
        Args:
            app: イベントハンドラ登録済みの AsyncApp
            app_token: Socket Mode 用の App-Level Token (xapp-)
        """
        self._app = app
        self._app_token = app_token
        self._handler: AsyncSocketModeHandler | None = None

    @property
    def is_connected(self) -> bool:
        """True while the Socket Mode session is open and not stale."""
        if self._handler is None:
            return False
        socket_client = self._handler.client
        if socket_client.closed or socket_client.stale:
            return False
        session = socket_client.current_session
        return session is not None and not session.closed

    async def start(self) -> None:
        self._handler = AsyncSocketModeHandler(self._app, self._app_token)
        logger.info("Connecting to Slack over Socket Mode")
        await self._handler.start_async()

    async def stop(self) -> None:
        if self._handler is not None:
            await self._handler.close_async()

    async def close(self, timeout: float = 5.0) -> bool:
        """Socket Mode 接続を閉じる

        Returns:
            timeout 秒以内に閉じられれば True
        """
        if self._handler is None:
            return True
        try:
            await asyncio.wait_for(self.stop(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Slack connection did not close within %.1fs", timeout)
            return False
        return True

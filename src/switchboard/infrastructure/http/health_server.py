"""Liveness and readiness endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from aiohttp import web

if TYPE_CHECKING:
    from switchboard.application.services import ContextSweeper
    from switchboard.infrastructure.persistence import DatabaseManager
    from switchboard.infrastructure.slack import SlackAppRunner

logger = logging.getLogger(__name__)


class HealthServer:
    """Serves ``/live`` and ``/ready`` for process supervisors.

    ``/live`` follows the context sweeper loop. ``/ready`` also requires an
    open Slack session and a reachable database, and answers 503 otherwise.
    """

    def __init__(
        self,
        sweeper: ContextSweeper,
        slack_runner: SlackAppRunner,
        db_manager: DatabaseManager,
        port: int = 8080,
        host: str = "0.0.0.0",
    ) -> None:
        """
        Args:
            sweeper: 期限切れコンテキストの掃除タスク
            slack_runner: Socket Mode ランナー
            db_manager: データベース管理
            port: 待ち受けポート (0 なら空きポートを使う)
            host: 待ち受けアドレス
        """
        self._sweeper = sweeper
        self._slack_runner = slack_runner
        self._db_manager = db_manager
        self._host = host
        self._requested_port = port
        self._bound_port: int | None = None
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    @property
    def port(self) -> int:
        """Bound port once started, the requested port before that."""
        if self._bound_port is not None:
            return self._bound_port
        return self._requested_port

    async def check_liveness(self) -> dict[str, Any]:
        alive = self._sweeper.is_running
        return {
            "status": "alive" if alive else "dead",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def check_readiness(self) -> dict[str, Any]:
        """各コンポーネントの状態と全体の ready フラグを返す"""
        components = {
            "sweeper": self._sweeper.is_running,
            "slack": self._slack_runner.is_connected,
            "database": await self._db_manager.is_healthy(),
        }
        return {"ready": all(components.values()), **components}

    def _create_app(self) -> web.Application:
        async def live(request: web.Request) -> web.Response:
            return web.json_response(await self.check_liveness())

        async def ready(request: web.Request) -> web.Response:
            body = await self.check_readiness()
            return web.json_response(body, status=200 if body["ready"] else 503)

        app = web.Application()
        app.router.add_get("/live", live)
        app.router.add_get("/ready", ready)
        return app

    async def start(self) -> None:
        runner = web.AppRunner(self._create_app())
        await runner.setup()
        await web.TCPSite(runner, self._host, self._requested_port).start()

        bound = [addr for addr in runner.addresses if isinstance(addr, tuple)]
        self._bound_port = bound[0][1] if bound else self._requested_port
        self._runner = runner
        logger.info("Health server listening on %s:%d", self._host, self.port)

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            return
        await runner.cleanup()
        logger.info("Health server stopped")

"""Tests for ContextSweeper service."""

import asyncio
import logging
from unittest.mock import AsyncMock, Mock

import pytest

from switchboard.application.services import ContextSweeper
from switchboard.config import CleanupConfig


@pytest.fixture
def mock_orchestrator() -> Mock:
    """Create mock Orchestrator."""
    orchestrator = Mock()
    orchestrator.cleanup = AsyncMock(return_value=0)
    return orchestrator


@pytest.fixture
def sweeper(mock_orchestrator: Mock) -> ContextSweeper:
    """Create ContextSweeper instance."""
    return ContextSweeper(mock_orchestrator, CleanupConfig(interval_seconds=1))


class TestContextSweeperStart:
    """Tests for start method."""

    async def test_runs_cleanup(
        self, sweeper: ContextSweeper, mock_orchestrator: Mock
    ) -> None:
        task = asyncio.create_task(sweeper.start())
        await asyncio.sleep(0.05)

        await sweeper.stop()
        await task

        assert mock_orchestrator.cleanup.await_count >= 1

    async def test_continues_after_exception(
        self,
        sweeper: ContextSweeper,
        mock_orchestrator: Mock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        call_count = 0
        called_again = asyncio.Event()

        async def cleanup_with_error() -> int:
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise RuntimeError("Test error")
            called_again.set()
            return 0

        mock_orchestrator.cleanup = AsyncMock(side_effect=cleanup_with_error)

        task = asyncio.create_task(sweeper.start())
        try:
            await asyncio.wait_for(called_again.wait(), timeout=3.0)
        except asyncio.TimeoutError:
            pass

        await sweeper.stop()
        await task

        assert call_count >= 2
        assert any(
            record.levelno == logging.ERROR
            and "Context sweep failed" in record.getMessage()
            for record in caplog.records
        )

    async def test_start_while_running_is_ignored(
        self, sweeper: ContextSweeper, caplog: pytest.LogCaptureFixture
    ) -> None:
        task = asyncio.create_task(sweeper.start())
        await asyncio.sleep(0.05)

        await sweeper.start()

        await sweeper.stop()
        await task
        assert any("already running" in record.getMessage() for record in caplog.records)


class TestContextSweeperStop:
    """Tests for stop method."""

    async def test_not_running_initially(self, sweeper: ContextSweeper) -> None:
        assert not sweeper.is_running

    async def test_stop_during_wait_exits_immediately(
        self, mock_orchestrator: Mock
    ) -> None:
        sweeper = ContextSweeper(mock_orchestrator, CleanupConfig(interval_seconds=60))
        task = asyncio.create_task(sweeper.start())
        await asyncio.sleep(0.05)
        assert sweeper.is_running

        await sweeper.stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert not sweeper.is_running
        assert mock_orchestrator.cleanup.await_count == 1


class TestSweepOnce:
    """Tests for a single sweep."""

    async def test_returns_removed_count(
        self, sweeper: ContextSweeper, mock_orchestrator: Mock
    ) -> None:
        mock_orchestrator.cleanup = AsyncMock(return_value=3)

        assert await sweeper.sweep_once() == 3

    async def test_failure_is_logged_and_reported_as_none(
        self,
        sweeper: ContextSweeper,
        mock_orchestrator: Mock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        mock_orchestrator.cleanup = AsyncMock(side_effect=RuntimeError("db down"))

        assert await sweeper.sweep_once() is None
        assert any(
            record.levelno == logging.ERROR and record.exc_info is not None
            for record in caplog.records
        )

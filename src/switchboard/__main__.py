"""switchboard を Slack Socket Mode で起動する"""

import asyncio
import logging
import signal
import sys
from pathlib import Path

from switchboard.application.services import (
    ContextStore,
    ContextSweeper,
    IntentClassifier,
    Orchestrator,
)
from switchboard.config import Config, ConfigError, LoggingConfig, load_config
from switchboard.domain.entities import Capability
from switchboard.domain.services import CapabilityHandler, EntityResolver
from switchboard.infrastructure.http import HealthServer
from switchboard.infrastructure.llm import (
    GeneralCapability,
    LLMClient,
    LLMIntentClassifier,
    PromptedCapability,
)
from switchboard.infrastructure.persistence import (
    DatabaseManager,
    SQLiteConversationContextRepository,
)
from switchboard.infrastructure.slack import (
    SlackAppRunner,
    SlackMessagingService,
    create_slack_app,
)
from switchboard.presentation import register_handlers

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("config.yaml")


def configure_logging(config: LoggingConfig | None) -> None:
    """ルートロガーのレベルとフォーマット、個別ロガーのレベルを設定する"""
    if config is None:
        return

    root = logging.getLogger()
    root.setLevel(config.level.upper())
    formatter = logging.Formatter(config.format)
    for handler in root.handlers:
        handler.setFormatter(formatter)

    for name, level in (config.loggers or {}).items():
        logging.getLogger(name).setLevel(level.upper())
        logger.debug("Logger %s set to %s", name, level.upper())


def build_orchestrator(config: Config, db_manager: DatabaseManager) -> Orchestrator:
    """Wire the routing core with the LLM-backed default capabilities.

    The ``classifier`` model is optional and falls back to ``default``.
    """
    debug_llm_messages = bool(config.logging and config.logging.debug_llm_messages)
    default_llm = config.llm["default"]
    responder = LLMClient(default_llm)
    classifier_llm = LLMClient(config.llm.get("classifier", default_llm))

    capabilities: dict[Capability, CapabilityHandler] = {
        Capability.GENERAL: GeneralCapability(
            responder, debug_llm_messages=debug_llm_messages
        ),
    }
    for capability in (Capability.CONTENT, Capability.CRM, Capability.ISSUES):
        capabilities[capability] = PromptedCapability(
            capability, responder, debug_llm_messages=debug_llm_messages
        )

    return Orchestrator(
        context_store=ContextStore(
            SQLiteConversationContextRepository(db_manager.get_session),
            config.context,
        ),
        classifier=IntentClassifier(
            LLMIntentClassifier(classifier_llm, debug_llm_messages=debug_llm_messages),
            config.classifier,
        ),
        resolver=EntityResolver(),
        capabilities=capabilities,
    )


async def wait_for_shutdown_signal() -> None:
    """SIGINT か SIGTERM を受け取るまで待つ"""
    received = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, received.set)
    await received.wait()
    logger.info("Received shutdown signal")


async def main() -> None:
    try:
        config = load_config(CONFIG_PATH)
    except (FileNotFoundError, ConfigError) as e:
        logger.error("Failed to load %s: %s", CONFIG_PATH, e)
        sys.exit(1)
    configure_logging(config.logging)

    db_manager = DatabaseManager(config.database.database_path)
    await db_manager.create_tables()
    orchestrator = build_orchestrator(config, db_manager)

    app = create_slack_app(config.slack)
    messaging_service = SlackMessagingService(app.client)
    bot_user_id = await messaging_service.get_bot_user_id()
    logger.info("Bot user ID: %s", bot_user_id)
    register_handlers(app, orchestrator, messaging_service, bot_user_id)

    runner = SlackAppRunner(app, config.slack.app_token)
    sweeper = ContextSweeper(orchestrator, config.cleanup)
    health_server: HealthServer | None = None
    if config.health.enabled:
        health_server = HealthServer(
            sweeper=sweeper,
            slack_runner=runner,
            db_manager=db_manager,
            port=config.health.port,
        )
        await health_server.start()

    tasks = [
        asyncio.create_task(runner.start()),
        asyncio.create_task(sweeper.start()),
    ]
    await wait_for_shutdown_signal()

    if health_server is not None:
        await health_server.stop()
    await sweeper.stop()
    if not await runner.close(timeout=5.0):
        logger.warning("Slack runner did not close in time; cancelling")
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    await db_manager.close()
    logger.info("Shutdown complete")


def run() -> None:
    """Console script entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format=LoggingConfig().format,
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    run()

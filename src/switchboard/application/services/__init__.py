"""Application services."""

from switchboard.application.services.context_store import ContextStore
from switchboard.application.services.context_sweeper import ContextSweeper
from switchboard.application.services.intent_classifier import IntentClassifier
from switchboard.application.services.keyed_lock import KeyedLock
from switchboard.application.services.orchestrator import (
    APOLOGY_MESSAGE,
    Orchestrator,
    build_clarification_message,
)

__all__ = [
    "APOLOGY_MESSAGE",
    "ContextStore",
    "ContextSweeper",
    "IntentClassifier",
    "KeyedLock",
    "Orchestrator",
    "build_clarification_message",
]

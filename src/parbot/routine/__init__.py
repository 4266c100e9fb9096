"""Conversation routine package."""

from parbot.routine.phase import Phase
from parbot.routine.routine import (
    CLEAN_TICKS_TO_RECOVER,
    MAX_SELF_RESOLVING_TRIES,
    ProblemCallback,
    Routine,
    RoutineConfig,
)
from parbot.routine.state import ConversationState

__all__ = [
    "CLEAN_TICKS_TO_RECOVER",
    "MAX_SELF_RESOLVING_TRIES",
    "ConversationState",
    "Phase",
    "ProblemCallback",
    "Routine",
    "RoutineConfig",
]

"""Mutable bookkeeping owned by one routine."""

from __future__ import annotations

from dataclasses import dataclass

from parbot.ports import ConversationSession, Message
from parbot.routine.phase import Phase


@dataclass
class ConversationState:
    """State of the current conversation.

    ``session`` is only ever set while ``partner`` is set.
    """

    phase: Phase = Phase.SELECT_USER
    partner: str | None = None
    session: ConversationSession | None = None
    last_known_message: Message | None = None
    player_message: str | None = None
    reply: str | None = None
    no_message_elapsed: float = 0.0
    no_message_since: float | None = None
    retry_count: int = 0
    clean_streak: int = 0
    had_problem_last_tick: bool = False

    def reset_idle(self) -> None:
        self.no_message_elapsed = 0.0
        self.no_message_since = None

    def reset_retries(self) -> None:
        self.retry_count = 0
        self.clean_streak = 0

"""Interfaces of the collaborators the conversation core drives."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


class ChatType(StrEnum):
    """Chat channels a message can be posted to."""

    DIRECT = "direct"
    GLOBAL = "global"
    CLAN = "clan"
    GROUP = "group"


@dataclass(frozen=True)
class Message:
    """One chat line as seen by the bot."""

    sender: str | None
    content: str
    identity: str
    chat_type: ChatType = ChatType.GLOBAL


class ChatPort(Protocol):
    """Access to the game chat.

    Both calls may raise ``ChatAutomationError`` on transient failures.
    """

    def get_messages(self, chat_type: ChatType | None = None) -> list[Message]:
        """Return a fresh snapshot of the chat, oldest message first."""
        ...

    def submit_message(self, text: str, chat_type: ChatType | None = None) -> None: ...

    def close(self) -> None: ...


class ConversationSession(Protocol):
    """Stateful conversation with the backend, one per partner."""

    def ask(self, text: str) -> str | None: ...

    def close(self) -> None: ...


class ConversationPort(Protocol):
    def create_session(self) -> ConversationSession: ...

    def close(self) -> None: ...


class ProfanityFilter(Protocol):
    def is_profane(self, text: str) -> bool: ...

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import Any

import pytest

from parbot.errors import ConversationBackendError
from parbot.faults import Fault
from parbot.ports import ChatType, Message
from parbot.routine import Routine, RoutineConfig

BOT_NAME = "bot"


class FakeChat:
    def __init__(self, bot_name: str = BOT_NAME) -> None:
        self.bot_name = bot_name
        self.messages: list[Message] = []
        self.submitted: list[str] = []
        self.errors: list[BaseException] = []
        self.close_calls = 0
        self._ids = itertools.count()

    def say(self, sender: str | None, content: str) -> Message:
        message = Message(sender=sender, content=content, identity=f"m{next(self._ids)}")
        self.messages.append(message)
        return message

    def get_messages(self, chat_type: ChatType | None = None) -> list[Message]:
        if self.errors:
            raise self.errors.pop(0)
        return list(self.messages)

    def submit_message(self, text: str, chat_type: ChatType | None = None) -> None:
        self.submitted.append(text)
        self.say(self.bot_name, text)

    def close(self) -> None:
        self.close_calls += 1


class FakeSession:
    def __init__(self, replies: list[str | None]) -> None:
        self.replies = replies
        self.asked: list[str] = []
        self.close_calls = 0

    def ask(self, text: str) -> str | None:
        self.asked.append(text)
        if not self.replies:
            return "ok"
        reply = self.replies.pop(0)
        return reply

    def close(self) -> None:
        self.close_calls += 1


class FakeConversation:
    def __init__(self) -> None:
        self.replies: list[str | None] = []
        self.sessions: list[FakeSession] = []
        self.fail_create = 0
        self.close_calls = 0

    def create_session(self) -> FakeSession:
        if self.fail_create > 0:
            self.fail_create -= 1
            raise ConversationBackendError("backend down")
        session = FakeSession(self.replies)
        self.sessions.append(session)
        return session

    def close(self) -> None:
        self.close_calls += 1


class KeywordFilter:
    def __init__(self, *words: str) -> None:
        self.words = words or ("badword",)

    def is_profane(self, text: str) -> bool:
        lowered = text.lower()
        return any(word in lowered for word in self.words)


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def conversation() -> FakeConversation:
    return FakeConversation()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def problems() -> list[Fault]:
    return []


@pytest.fixture
def make_routine(
    chat: FakeChat, conversation: FakeConversation, clock: FakeClock, problems: list[Fault]
) -> Callable[..., Routine]:
    def _make(**overrides: Any) -> Routine:
        values: dict[str, Any] = {"chatbot_username": BOT_NAME, "focus_lost_timeout_seconds": 60.0}
        values.update(overrides)
        return Routine(
            chat,
            conversation,
            RoutineConfig(**values),
            on_problem=problems.append,
            profanity_filter=KeywordFilter(),
            clock=clock,
        )

    return _make

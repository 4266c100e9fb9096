"""Republic integration helpers."""

from __future__ import annotations

from typing import Any

from loguru import logger
from republic import LLM

from parbot.config import MODEL_NOT_CONFIGURED_ERROR, Settings
from parbot.errors import ConversationBackendError, ModelNotConfiguredError

MAX_HISTORY_MESSAGES = 20
DEFAULT_SYSTEM_PROMPT = (
    "You are {name}, a player of an online role-playing game chatting in the public game chat. "
    "Answer casually in one or two short sentences and in the language the other player writes in. "
    'Never use their name, call them "{guest}" instead.'
)


def build_llm(settings: Settings) -> LLM:
    """Build Republic LLM client configured for the conversation backend."""

    if not settings.model:
        raise ModelNotConfiguredError(MODEL_NOT_CONFIGURED_ERROR)
    return LLM(
        settings.model,
        api_key=settings.api_key,
        api_base=settings.api_base,
    )


def build_system_prompt(settings: Settings) -> str:
    if settings.system_prompt:
        return settings.system_prompt
    return DEFAULT_SYSTEM_PROMPT.format(name=settings.chatbot_username, guest=settings.guest_token)


def _extract_text(response: Any) -> str:
    if isinstance(response, str):
        return response
    choices = getattr(response, "choices", None)
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    if message is None:
        return ""
    return getattr(message, "content", "") or ""


class LLMSession:
    """One conversation with the model, keeping its own history."""

    def __init__(self, llm: LLM, *, system_prompt: str, max_tokens: int, session_id: int) -> None:
        self._llm = llm
        self._system_prompt = system_prompt
        self._max_tokens = max_tokens
        self._messages: list[dict[str, Any]] = []
        self._closed = False
        self.session_id = session_id

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def history(self) -> list[dict[str, Any]]:
        return list(self._messages)

    def ask(self, text: str) -> str | None:
        if self._closed:
            raise ConversationBackendError(f"session {self.session_id} is closed")

        self._messages.append({"role": "user", "content": text})
        messages = [{"role": "system", "content": self._system_prompt}, *self._messages[-MAX_HISTORY_MESSAGES:]]
        try:
            response = self._llm.chat.raw(messages=messages, max_tokens=self._max_tokens)
        except Exception as exc:
            self._messages.pop()
            raise ConversationBackendError(f"{exc!s}") from exc

        reply = _extract_text(response).strip()
        if not reply:
            self._messages.pop()
            return None
        self._messages.append({"role": "assistant", "content": reply})
        del self._messages[:-MAX_HISTORY_MESSAGES]
        return reply

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._messages.clear()
        logger.debug("conversation.session_closed id={}", self.session_id)


class LLMConversation:
    """Conversation backend handing out one LLM session per partner."""

    def __init__(self, settings: Settings, *, llm: LLM | None = None) -> None:
        self._llm = llm if llm is not None else build_llm(settings)
        self._system_prompt = build_system_prompt(settings)
        self._max_tokens = settings.max_tokens
        self._sessions_created = 0
        self._closed = False

    def create_session(self) -> LLMSession:
        if self._closed:
            raise ConversationBackendError("conversation backend is closed")
        self._sessions_created += 1
        logger.debug("conversation.session_created id={}", self._sessions_created)
        return LLMSession(
            self._llm,
            system_prompt=self._system_prompt,
            max_tokens=self._max_tokens,
            session_id=self._sessions_created,
        )

    def close(self) -> None:
        self._closed = True

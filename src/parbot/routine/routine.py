"""Conversation routine driven one phase step at a time."""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from dataclasses import dataclass, replace

from loguru import logger

from parbot.errors import ConversationBackendError, FetchAnswerNotPossibleError, UserSelectionNotPossibleError
from parbot.faults import Fault, FaultKind, classify
from parbot.ports import ChatPort, ChatType, ConversationPort, Message, ProfanityFilter
from parbot.profanity import load_profanity_filter
from parbot.routine.phase import Phase
from parbot.routine.state import ConversationState

MAX_SELF_RESOLVING_TRIES = 5
CLEAN_TICKS_TO_RECOVER = 3
DEFAULT_GUEST_TOKEN = "gast"
_IGNORED_ON_COMPARISON = re.compile(r"[^A-Za-z]")

ProblemCallback = Callable[[Fault], None]


@dataclass(frozen=True)
class RoutineConfig:
    """Bot settings the routine consumes."""

    chatbot_username: str
    focus_lost_timeout_seconds: float
    chat_type_restriction: ChatType | None = ChatType.GLOBAL
    guest_token: str = DEFAULT_GUEST_TOKEN


def messages_identical(first: str | None, second: str | None) -> bool:
    """Compare two messages lower-cased and reduced to ASCII letters."""
    if first is None or second is None:
        return False
    return _comparable(first) == _comparable(second)


def strip_name(text: str, name: str) -> str:
    if not name:
        return text
    return re.sub(re.escape(name), "", text, flags=re.IGNORECASE)


def replace_token(text: str, token: str, replacement: str) -> str:
    if not token:
        return text
    return re.sub(re.escape(token), lambda _match: replacement, text, flags=re.IGNORECASE)


def _comparable(text: str) -> str:
    return _IGNORED_ON_COMPARISON.sub("", text.lower())


class Routine:
    """Select a chat partner and keep a conversation with them going.

    Each call to :meth:`update` performs exactly one phase step and returns.
    Failures of a step are retried in place up to ``MAX_SELF_RESOLVING_TRIES``
    times; after that, or for failures that are not retryable, the fault is
    handed to ``on_problem``.
    """

    def __init__(
        self,
        chat: ChatPort,
        conversation: ConversationPort,
        config: RoutineConfig,
        *,
        on_problem: ProblemCallback,
        profanity_filter: ProfanityFilter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._chat = chat
        self._conversation = conversation
        self._config = config
        self._on_problem = on_problem
        self._clock = clock
        self._profanity = profanity_filter if profanity_filter is not None else load_profanity_filter()
        self._state = ConversationState()

    @property
    def config(self) -> RoutineConfig:
        return self._config

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def partner(self) -> str | None:
        return self._state.partner

    def snapshot(self) -> ConversationState:
        """Return a copy of the current conversation state."""
        return replace(self._state)

    def reset(self) -> None:
        """Close the open backend session and start over with partner selection."""
        self._close_session()
        self._state = ConversationState()
        logger.debug("routine.reset")

    def update(self) -> None:
        state = self._state
        state.had_problem_last_tick = False
        with logger.contextualize(partner=state.partner or "-"):
            try:
                self._step()
            except Exception as exc:
                self._handle_fault(classify(exc))
                return
            self._record_clean_tick()

    def _step(self) -> None:
        phase = self._state.phase
        logger.trace("routine.phase {}", phase.value)
        match phase:
            case Phase.SELECT_USER:
                self._select_user()
            case Phase.FETCH_PLAYER_MESSAGE:
                self._fetch_player_message()
            case Phase.FETCH_ANSWER:
                self._fetch_answer()
            case Phase.POST_ANSWER:
                self._post_answer()

    def _handle_fault(self, fault: Fault) -> None:
        state = self._state
        state.had_problem_last_tick = True
        state.clean_streak = 0
        if not fault.retryable or state.retry_count >= MAX_SELF_RESOLVING_TRIES:
            self._on_problem(fault)
            return

        state.retry_count += 1
        match fault.kind:
            case FaultKind.SEMANTIC_FAILURE:
                logger.opt(exception=fault.error).error(
                    "routine.fault phase={} try={}/{} {}",
                    state.phase.value,
                    state.retry_count,
                    MAX_SELF_RESOLVING_TRIES,
                    fault,
                )
            case _:
                logger.debug("routine.fault phase={} try={} {}", state.phase.value, state.retry_count, fault)

    def _record_clean_tick(self) -> None:
        state = self._state
        if state.retry_count == 0:
            return
        state.clean_streak += 1
        if state.clean_streak >= CLEAN_TICKS_TO_RECOVER:
            logger.debug("routine.recovered after_tries={}", state.retry_count)
            state.reset_retries()

    def _select_user(self) -> None:
        state = self._state
        self._close_session()
        state.partner = None
        state.last_known_message = None
        state.reset_idle()

        messages = self._chat.get_messages(self._config.chat_type_restriction)
        partner = self._find_partner(messages)
        if partner is None:
            return

        state.partner = partner
        try:
            session = self._conversation.create_session()
        except ConversationBackendError as exc:
            raise UserSelectionNotPossibleError(f"no backend session for {partner}") from exc
        if session is None:
            raise UserSelectionNotPossibleError(f"no backend session for {partner}")
        state.session = session
        state.reset_idle()
        logger.info("routine.partner_selected partner={}", partner)
        state.phase = Phase.FETCH_PLAYER_MESSAGE

    def _find_partner(self, messages: list[Message]) -> str | None:
        rejected: set[str] = set()
        for message in reversed(messages):
            sender = message.sender
            if sender is None or sender == self._config.chatbot_username or sender in rejected:
                continue
            if self._is_profane(message.content):
                rejected.add(sender)
                continue
            return sender
        return None

    def _fetch_player_message(self) -> None:
        state = self._state
        state.player_message = None
        partner = state.partner
        if partner is None:
            state.phase = Phase.SELECT_USER
            return

        messages = self._chat.get_messages(self._config.chat_type_restriction)
        for message in reversed(messages):
            if message == state.last_known_message:
                break
            if message.sender == partner and not self._is_profane(message.content):
                state.player_message = strip_name(message.content, self._config.chatbot_username)
                break
        if messages:
            state.last_known_message = messages[-1]
        self._account_idle(found=state.player_message is not None)

        if state.no_message_elapsed >= self._config.focus_lost_timeout_seconds:
            logger.info("routine.focus_lost partner={} idle={:.1f}s", partner, state.no_message_elapsed)
            state.phase = Phase.SELECT_USER
        elif state.player_message is None and self._focus_switch_requested():
            logger.info("routine.focus_switch from={} to={}", partner, state.last_known_message.sender)
            state.phase = Phase.SELECT_USER
        elif state.player_message is not None:
            state.phase = Phase.FETCH_ANSWER

    def _account_idle(self, *, found: bool) -> None:
        state = self._state
        if found:
            state.reset_idle()
            return
        now = self._clock()
        if state.no_message_since is None:
            state.no_message_since = now
            return
        state.no_message_elapsed += now - state.no_message_since
        state.no_message_since = now

    def _focus_switch_requested(self) -> bool:
        name = self._config.chatbot_username
        last = self._state.last_known_message
        if not name or last is None or last.sender is None:
            return False
        if last.sender in (self._state.partner, name):
            return False
        return name.lower() in last.content.lower()

    def _fetch_answer(self) -> None:
        state = self._state
        state.reply = None
        session = state.session
        if session is None or state.player_message is None:
            raise FetchAnswerNotPossibleError("no open conversation")

        try:
            reply = session.ask(state.player_message)
        except ConversationBackendError as exc:
            raise FetchAnswerNotPossibleError(str(exc)) from exc
        if not reply or not reply.strip():
            raise FetchAnswerNotPossibleError("empty reply")
        state.reply = reply
        state.phase = Phase.POST_ANSWER

    def _post_answer(self) -> None:
        state = self._state
        reply = state.reply
        partner = state.partner
        if reply is not None and partner is not None:
            adjusted = replace_token(reply, self._config.guest_token, partner)
            if self._is_profane(adjusted):
                logger.info("routine.reply_suppressed reason=profane")
            elif messages_identical(state.player_message, reply):
                logger.info("routine.reply_suppressed reason=echo")
            else:
                self._chat.submit_message(adjusted, self._config.chat_type_restriction)
                logger.info("routine.reply_posted partner={} text={!r}", partner, adjusted)
        state.phase = Phase.FETCH_PLAYER_MESSAGE

    def _is_profane(self, text: str) -> bool:
        profane = self._profanity.is_profane(text)
        if profane:
            logger.info("routine.profane_message text={!r}", text)
        return profane

    def _close_session(self) -> None:
        session = self._state.session
        if session is None:
            return
        self._state.session = None
        try:
            session.close()
        except Exception:
            logger.opt(exception=True).warning("routine.session_close_failed")

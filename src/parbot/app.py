"""Parent application that owns configuration and the service lifecycle."""

from __future__ import annotations

import atexit
import threading
import time
from collections.abc import Callable

from loguru import logger

from parbot.config import Settings, validate_settings
from parbot.integrations.republic_client import LLMConversation
from parbot.ports import ChatPort, ConversationPort, ProfanityFilter
from parbot.profanity import load_profanity_filter
from parbot.routine import ProblemCallback, Routine
from parbot.service import SERVICE_INTERVAL_SECONDS, RoutineFactory, Service

ChatFactory = Callable[[Settings], ChatPort]
ConversationFactory = Callable[[Settings], ConversationPort]


class Parbot:
    """Start, stop and restart the conversation service.

    The service asks for :meth:`shutdown` whenever it ends on its own, so an
    unrecoverable problem or an exhausted time window ends the application.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        chat_factory: ChatFactory,
        conversation_factory: ConversationFactory = LLMConversation,
        profanity_filter: ProfanityFilter | None = None,
        interval_seconds: float = SERVICE_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self._chat_factory = chat_factory
        self._conversation_factory = conversation_factory
        self._profanity_filter = profanity_filter
        self._interval = interval_seconds
        self._clock = clock
        self._service: Service | None = None
        self._lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._was_shutdown = False
        self._exit_hook_installed = False

    @property
    def service(self) -> Service | None:
        return self._service

    @property
    def was_shutdown(self) -> bool:
        return self._was_shutdown

    def install_exit_hook(self) -> None:
        """Shut down in a controlled way if the interpreter exits first."""
        if self._exit_hook_installed:
            return
        atexit.register(self._on_exit)
        self._exit_hook_installed = True

    def start(self) -> None:
        logger.info("parbot.start")
        chat: ChatPort | None = None
        conversation: ConversationPort | None = None
        try:
            validate_settings(self.settings)
            deadline = self.settings.termination_deadline(self._clock())
            chat = self._chat_factory(self.settings)
            conversation = self._conversation_factory(self.settings)
            service = Service(
                self._routine_factory(chat, conversation),
                chat,
                conversation,
                termination_deadline=deadline,
                on_abnormal_exit=self.shutdown,
                interval_seconds=self._interval,
            )
            self._service = service
            service.start()
        except Exception:
            logger.exception("parbot.start_failed shutting down")
            _release(chat, "chat")
            _release(conversation, "conversation")
            self.shutdown()
            raise

    def stop(self) -> None:
        service = self._service
        if service is None or not service.is_active:
            return
        logger.info("parbot.stop")
        service.stop()
        service.join()

    def restart(self) -> None:
        logger.info("parbot.restart")
        self.stop()
        self.start()

    def shutdown(self) -> None:
        with self._lock:
            if self._was_shutdown:
                return
            self._was_shutdown = True
        logger.debug("parbot.shutdown")
        try:
            self.stop()
        except Exception:
            logger.exception("parbot.stop_failed")
        self._shutdown_event.set()
        logger.info("parbot.shutdown complete")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the application was shut down."""
        return self._shutdown_event.wait(timeout)

    def _routine_factory(self, chat: ChatPort, conversation: ConversationPort) -> RoutineFactory:
        config = self.settings.routine_config()
        wordlist = self.settings.profanity_wordlist

        def build(on_problem: ProblemCallback) -> Routine:
            profanity_filter = self._profanity_filter or load_profanity_filter(wordlist)
            return Routine(chat, conversation, config, on_problem=on_problem, profanity_filter=profanity_filter)

        return build

    def _on_exit(self) -> None:
        if not self._was_shutdown:
            self.shutdown()


def _release(port: ChatPort | ConversationPort | None, name: str) -> None:
    if port is None:
        return
    try:
        port.close()
    except Exception:
        logger.exception("parbot.release_failed port={}", name)

"""Supervising service loop that drives one conversation routine."""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from parbot.faults import Fault
from parbot.ports import ChatPort, ConversationPort
from parbot.routine import ProblemCallback, Routine

SERVICE_INTERVAL_SECONDS = 0.2

RoutineFactory = Callable[[ProblemCallback], Routine]


class ExitReason(Enum):
    """Why the service left its loop."""

    STOPPED = "stopped"
    PROBLEM = "problem"
    DEADLINE = "deadline"
    CRASHED = "crashed"
    START_FAILED = "start_failed"

    @property
    def abnormal(self) -> bool:
        return self is not ExitReason.STOPPED


@dataclass(frozen=True)
class Problem:
    """Last unresolved fault reported by the routine."""

    fault: Fault
    timestamp: float


class _Signal(Enum):
    STOP = "stop"
    PROBLEM = "problem"


class Service:
    """Run the routine on a worker thread until stopped, broken or out of time.

    Stop requests and problem reports travel through a control queue and are
    observed at the top of the next tick, never while a routine step runs.
    Leaving the loop always resets the routine and releases both ports; if the
    exit was not requested, ``on_abnormal_exit`` asks the parent to shut down.
    """

    def __init__(
        self,
        routine_factory: RoutineFactory,
        chat: ChatPort,
        conversation: ConversationPort,
        *,
        termination_deadline: float | None = None,
        on_abnormal_exit: Callable[[], None] | None = None,
        interval_seconds: float = SERVICE_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._routine_factory = routine_factory
        self._chat = chat
        self._conversation = conversation
        self._deadline = termination_deadline
        self._on_abnormal_exit = on_abnormal_exit
        self._interval = interval_seconds
        self._clock = clock
        self._control: queue.Queue[_Signal] = queue.Queue()
        self._lock = threading.Lock()
        self._problem: Problem | None = None
        self._stop_requested = False
        self._routine: Routine | None = None
        self._exit_reason: ExitReason | None = None
        self._released = False
        self._done = threading.Event()
        self._worker = threading.Thread(target=self.run, name="parbot-service", daemon=True)

    @property
    def routine(self) -> Routine | None:
        return self._routine

    @property
    def problem(self) -> Problem | None:
        with self._lock:
            return self._problem

    @property
    def has_problem(self) -> bool:
        return self.problem is not None

    @property
    def exit_reason(self) -> ExitReason | None:
        return self._exit_reason

    @property
    def is_active(self) -> bool:
        return not self._done.is_set()

    @property
    def in_worker_thread(self) -> bool:
        return threading.current_thread() is self._worker

    def start(self) -> None:
        if not self._worker.is_alive():
            self._worker.start()

    def stop(self) -> None:
        """Request the loop to end at its next tick."""
        self._control.put(_Signal.STOP)

    def join(self, timeout: float | None = None) -> None:
        if self._worker.ident is None or self.in_worker_thread:
            return
        self._worker.join(timeout)

    def set_problem(self, fault: Fault) -> None:
        """Record an unresolved fault; the loop ends at its next tick."""
        with self._lock:
            self._problem = Problem(fault=fault, timestamp=self._clock())
        logger.opt(exception=fault.error).error("service.problem_registered {}", fault)
        self._control.put(_Signal.PROBLEM)

    def run(self) -> None:
        """Service body; runs on the worker thread after :meth:`start`."""
        reason = self._loop()
        self._shutdown()
        self._exit_reason = reason
        self._done.set()
        logger.info("service.stopped reason={}", reason.value)
        if reason.abnormal and self._on_abnormal_exit is not None:
            try:
                self._on_abnormal_exit()
            except Exception:
                logger.exception("service.parent_shutdown_failed")

    def _loop(self) -> ExitReason:
        try:
            routine = self._routine_factory(self.set_problem)
        except Exception:
            logger.exception("service.start_failed not entering loop")
            return ExitReason.START_FAILED
        self._routine = routine
        logger.info("service.started deadline={}", self._deadline)

        while True:
            try:
                self._drain_control()
                if self._stop_requested:
                    return ExitReason.STOPPED
                if self.has_problem:
                    return ExitReason.PROBLEM
                if self._deadline is not None and self._clock() >= self._deadline:
                    logger.info("service.time_window_exceeded")
                    return ExitReason.DEADLINE
                routine.update()
                self._wait_next_tick()
            except Exception:
                logger.exception("service.crashed")
                return ExitReason.CRASHED

    def _drain_control(self) -> None:
        while True:
            try:
                signal = self._control.get_nowait()
            except queue.Empty:
                return
            self._apply(signal)

    def _wait_next_tick(self) -> None:
        try:
            signal = self._control.get(timeout=self._interval)
        except queue.Empty:
            return
        self._apply(signal)

    def _apply(self, signal: _Signal) -> None:
        if signal is _Signal.STOP:
            self._stop_requested = True

    def _shutdown(self) -> None:
        logger.info("service.shutdown")
        if self._routine is not None:
            try:
                self._routine.reset()
            except Exception:
                logger.exception("service.routine_reset_failed")
        self._release_ports()

    def _release_ports(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self._chat.close()
        except Exception:
            logger.exception("service.release_failed port=chat")
        try:
            self._conversation.close()
        except Exception:
            logger.exception("service.release_failed port=conversation")

"""Classification of failures raised while running a conversation phase."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from parbot.errors import ChatAutomationError, FetchAnswerNotPossibleError, UserSelectionNotPossibleError


class FaultKind(Enum):
    TRANSIENT_AUTOMATION = "transient_automation"
    SEMANTIC_FAILURE = "semantic_failure"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Fault:
    """A classified failure."""

    kind: FaultKind
    error: BaseException

    @property
    def retryable(self) -> bool:
        return self.kind is not FaultKind.UNEXPECTED

    @property
    def name(self) -> str:
        return type(self.error).__name__

    def __str__(self) -> str:
        detail = str(self.error)
        if not detail:
            return f"{self.kind.value}: {self.name}"
        return f"{self.kind.value}: {self.name}: {detail}"


def classify(error: BaseException) -> Fault:
    """Wrap an exception into a fault with its kind resolved."""
    if isinstance(error, ChatAutomationError):
        return Fault(FaultKind.TRANSIENT_AUTOMATION, error)
    if isinstance(error, (UserSelectionNotPossibleError, FetchAnswerNotPossibleError)):
        return Fault(FaultKind.SEMANTIC_FAILURE, error)
    return Fault(FaultKind.UNEXPECTED, error)

"""Application-level exception types for Parbot."""

from __future__ import annotations


class ParbotError(Exception):
    """Base exception for Parbot."""


class ConfigurationError(ParbotError):
    """Base exception for configuration and startup validation errors."""


class EmptyChatbotNameError(ConfigurationError):
    """Raised when no chat-bot display name is configured."""


class ModelNotConfiguredError(ConfigurationError):
    """Raised when the conversation backend model is missing."""


class ProfanityFilterNoDatabaseError(ParbotError):
    """Raised when the profanity word list can not be loaded."""


class ChatAutomationError(ParbotError):
    """Transient failure of the game chat automation.

    Raised by chat ports; the routine retries the current phase in place.
    """


class StaleSessionError(ChatAutomationError):
    """The automated game session went stale."""


class ElementNotFoundError(ChatAutomationError):
    """An expected chat element was not present."""


class OperationTimeoutError(ChatAutomationError):
    """A chat operation did not finish in time."""


class ConversationBackendError(ParbotError):
    """The conversation backend could not serve a request."""


class RoutineError(ParbotError):
    """Base exception for failures of a conversation phase."""


class UserSelectionNotPossibleError(RoutineError):
    """A partner was found but no backend session could be opened."""


class FetchAnswerNotPossibleError(RoutineError):
    """The backend returned no usable reply."""

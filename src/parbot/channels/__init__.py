"""Chat port adapters."""

from parbot.channels.console import ConsoleChat

__all__ = ["ConsoleChat"]

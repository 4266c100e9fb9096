"""Parbot - keep a game chat conversation going."""

from .app import Parbot
from .routine import Phase, Routine, RoutineConfig
from .service import ExitReason, Service

__version__ = "0.1.0"

__all__ = ["ExitReason", "Parbot", "Phase", "Routine", "RoutineConfig", "Service"]

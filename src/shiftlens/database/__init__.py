"""Database layer for SHIFTLENS."""

from shiftlens.database.engine import create_engine
from shiftlens.database.frigate import FrigateEventSource
from shiftlens.database.source import EventSource

__all__ = [
    "EventSource",
    "FrigateEventSource",
    "create_engine",
]

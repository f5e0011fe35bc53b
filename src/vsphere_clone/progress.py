"""
Progress reporting sinks.

Builders report human-readable progress through a sink supplied by the
caller. Reporting never raises.
"""

from typing import List, Protocol

from .logging import logger


class ProgressSink(Protocol):
    """Receives progress notifications."""

    def report(self, message: str) -> None: ...


class LoggingProgressSink:
    """Forwards progress messages to the structured logger."""

    def report(self, message: str) -> None:
        logger.info(message, event="progress")


class RecordingProgressSink:
    """Keeps every reported message in order."""

    def __init__(self) -> None:
        self.messages: List[str] = []

    def report(self, message: str) -> None:
        self.messages.append(message)

"""Forwards notable session events to the application log and an optional sink."""

import asyncio
import inspect
import logging
from typing import Optional

from .models.messages import LogEvent
from .types import LogSink

logger = logging.getLogger(__name__)

# Relay level -> stdlib logging level
_LOGGING_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "SUCCESS": logging.INFO,
}


class LogRelay:
    """
    Emits log events.

    Every event is written to the module logger. When a sink is attached
    (e.g. the dashboard broadcaster) it receives the event as a dict; a
    failing sink never interrupts the caller.
    """

    def __init__(self, sink: Optional[LogSink] = None, log: Optional[logging.Logger] = None):
        self.sink = sink
        self.logger = log or logger
        self._pending: set = set()

    def emit(self, level: str, message: str) -> LogEvent:
        event = LogEvent(level=level, message=message)
        self.logger.log(_LOGGING_LEVELS.get(level, logging.INFO), message)

        if self.sink is None:
            return event
        try:
            result = self.sink(event.model_dump())
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._on_sink_done)
        except Exception as e:
            self.logger.debug(f"Log sink failed: {e}")
        return event

    def _on_sink_done(self, task: "asyncio.Future") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.debug(f"Log sink failed: {error}")

    def debug(self, message: str) -> LogEvent:
        return self.emit("DEBUG", message)

    def info(self, message: str) -> LogEvent:
        return self.emit("INFO", message)

    def warning(self, message: str) -> LogEvent:
        return self.emit("WARN", message)

    def error(self, message: str) -> LogEvent:
        return self.emit("ERROR", message)

    def success(self, message: str) -> LogEvent:
        return self.emit("SUCCESS", message)

#!/usr/bin/env python3
"""Leveled event sinks handed to the comment-building core.

The core never logs directly; callers inject a sink. The CLI forwards events
to the standard logging module, tests record them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List

EventSink = Callable[[str, str], None]

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def null_sink(level: str, message: str) -> None:
    return None


def logging_sink(logger: logging.Logger) -> EventSink:
    def _emit(level: str, message: str) -> None:
        logger.log(_LEVELS.get(level, logging.INFO), message)

    return _emit


@dataclass(frozen=True)
class Event:
    level: str
    message: str


@dataclass
class RecordingSink:
    events: List[Event] = field(default_factory=list)

    def __call__(self, level: str, message: str) -> None:
        self.events.append(Event(level, message))

    def messages(self, level: str) -> List[str]:
        return [e.message for e in self.events if e.level == level]

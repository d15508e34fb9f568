"""Execution application package."""

from .service import DEFAULT_LIST_MAX, DEFAULT_MAX_LINES, ExecutionService
from .streamer import DEFAULT_TAIL, POLL_INTERVAL, ExecutionOutputStreamer, StreamOutcome

__all__ = [
    "DEFAULT_LIST_MAX",
    "DEFAULT_MAX_LINES",
    "DEFAULT_TAIL",
    "POLL_INTERVAL",
    "ExecutionOutputStreamer",
    "ExecutionService",
    "StreamOutcome",
]

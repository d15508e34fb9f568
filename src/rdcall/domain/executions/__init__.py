"""Execution domain exports."""

from .models import (
    EXEC_STATE_SUCCEEDED,
    AbortResult,
    DateInfo,
    ExecOutput,
    Execution,
    ExecutionHandle,
    ExecutionList,
    LogEntry,
)

__all__ = [
    "EXEC_STATE_SUCCEEDED",
    "AbortResult",
    "DateInfo",
    "ExecOutput",
    "Execution",
    "ExecutionHandle",
    "ExecutionList",
    "LogEntry",
]

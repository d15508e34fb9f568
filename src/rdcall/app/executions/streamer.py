"""Follow the console log of a running execution until it completes."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable

from rdcall.app.executions.service import DEFAULT_MAX_LINES, ExecutionService
from rdcall.domain.executions import EXEC_STATE_SUCCEEDED, ExecOutput, ExecutionHandle
from rdcall.utils.output import CommandOutput

POLL_INTERVAL = 2.0
DEFAULT_TAIL = 1


@dataclass(frozen=True)
class StreamOutcome:
    execution_id: str
    exec_state: str | None
    completed: bool
    cancelled: bool = False
    batches: int = 0
    lines: int = 0

    @property
    def succeeded(self) -> bool:
        return not self.cancelled and self.completed and self.exec_state == EXEC_STATE_SUCCEEDED

    def __bool__(self) -> bool:
        return self.succeeded


class ExecutionOutputStreamer:
    """Polls execution output with server-issued cursors.

    The wait between polls goes through ``sleep`` (``interval`` seconds). A
    ``KeyboardInterrupt`` raised while waiting, or a call to :meth:`cancel`,
    ends the stream early without error.
    """

    def __init__(
        self,
        service: ExecutionService,
        output: CommandOutput,
        *,
        sleep: Callable[[float], object] | None = None,
        interval: float = POLL_INTERVAL,
    ) -> None:
        self._service = service
        self._output = output
        self._cancelled = threading.Event()
        self._sleep = sleep or self._cancelled.wait
        self._interval = interval

    def cancel(self) -> None:
        self._cancelled.set()

    def stream(
        self,
        execution_id: str,
        *,
        restart: bool = False,
        tail: int = DEFAULT_TAIL,
        max_lines: int = DEFAULT_MAX_LINES,
        progress: bool = False,
        quiet: bool = False,
    ) -> StreamOutcome:
        handle = ExecutionHandle(execution_id)
        if restart:
            batch = self._service.fetch_output(execution_id, offset=0, last_modified=0, max_lines=max_lines)
        else:
            batch = self._service.fetch_tail(execution_id, tail=tail)

        cancelled = False
        batches = 0
        lines = 0
        marked = False
        while True:
            handle.advance(batch)
            batches += 1
            lines += len(batch.entries)
            marked = self._render(batch, progress=progress, quiet=quiet) or marked
            if handle.completed:
                break
            if not self._pause():
                cancelled = True
                break
            batch = self._service.fetch_output(
                execution_id,
                offset=handle.offset,
                last_modified=handle.last_modified,
                max_lines=max_lines,
            )
        if marked:
            self._output.marker("\n")
        return StreamOutcome(
            execution_id=execution_id,
            exec_state=handle.exec_state,
            completed=handle.completed,
            cancelled=cancelled,
            batches=batches,
            lines=lines,
        )

    def _pause(self) -> bool:
        if self._cancelled.is_set():
            return False
        try:
            self._sleep(self._interval)
        except KeyboardInterrupt:
            return False
        return not self._cancelled.is_set()

    def _render(self, batch: ExecOutput, *, progress: bool, quiet: bool) -> bool:
        """Print the batch; returns True when a progress marker was written."""

        if not quiet and not progress:
            for entry in batch.entries:
                self._output.output(entry.log)
        if progress and batch.entries:
            self._output.marker(".")
            return True
        return False

from __future__ import annotations

import io
import json
from typing import Any, Mapping

import pytest

from rdcall.app.executions import ExecutionOutputStreamer, ExecutionService
from rdcall.ports.api import ApiGateway, ApiRequestError, ApiResponse
from rdcall.utils.output import CommandOutput


def _batch(
    *,
    offset: int,
    lastmod: int,
    lines: list[str] | None = None,
    completed: bool = False,
    state: str = "running",
) -> ApiResponse:
    payload = {
        "offset": offset,
        "lastModified": lastmod,
        "completed": completed,
        "execCompleted": completed,
        "execState": state,
        "entries": [{"log": line} for line in lines or []],
    }
    return ApiResponse(status_code=200, reason="OK", content=json.dumps(payload).encode("utf-8"))


class DummyGateway(ApiGateway):
    def __init__(self, responses: list[ApiResponse]) -> None:
        self._responses = responses
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        data: bytes | None = None,
        content_type: str | None = None,
    ) -> ApiResponse:
        self.calls.append((method, path, dict(params or {})))
        if not self._responses:
            raise AssertionError("no more responses queued")
        return self._responses.pop(0)


def _streamer(gateway: DummyGateway, sleep: Any = None) -> tuple[ExecutionOutputStreamer, io.StringIO, list[float]]:
    stdout = io.StringIO()
    waits: list[float] = []
    output = CommandOutput(stdout=stdout, stderr=io.StringIO())
    streamer = ExecutionOutputStreamer(
        ExecutionService(gateway),
        output,
        sleep=sleep or waits.append,
    )
    return streamer, stdout, waits


def test_restart_fetches_from_beginning_regardless_of_tail() -> None:
    gateway = DummyGateway([_batch(offset=100, lastmod=7, lines=["one"], completed=True, state="succeeded")])
    streamer, _, _ = _streamer(gateway)
    outcome = streamer.stream("42", restart=True, tail=25, max_lines=50)
    method, path, params = gateway.calls[0]
    assert (method, path) == ("GET", "execution/42/output")
    assert params == {"offset": 0, "lastmod": 0, "maxlines": 50}
    assert outcome


def test_tail_uses_lastlines_then_server_cursor() -> None:
    gateway = DummyGateway(
        [
            _batch(offset=10, lastmod=100, lines=["a"]),
            _batch(offset=25, lastmod=200, lines=["b", "c"]),
            _batch(offset=30, lastmod=300, lines=["d"], completed=True, state="succeeded"),
        ]
    )
    streamer, stdout, waits = _streamer(gateway)
    outcome = streamer.stream("42", tail=5)

    assert gateway.calls[0][2] == {"lastlines": 5}
    assert gateway.calls[1][2] == {"offset": 10, "lastmod": 100, "maxlines": 500}
    assert gateway.calls[2][2] == {"offset": 25, "lastmod": 200, "maxlines": 500}
    assert stdout.getvalue().splitlines() == ["a", "b", "c", "d"]
    assert waits == [2.0, 2.0]
    assert outcome.succeeded
    assert (outcome.batches, outcome.lines) == (3, 4)


@pytest.mark.parametrize("state", ["failed", "aborted"])
def test_completed_without_success_is_falsy(state: str) -> None:
    gateway = DummyGateway([_batch(offset=1, lastmod=1, completed=True, state=state)])
    streamer, _, _ = _streamer(gateway)
    outcome = streamer.stream("9", restart=True)
    assert outcome.completed
    assert not outcome


def test_keyboard_interrupt_during_wait_stops_quietly() -> None:
    gateway = DummyGateway([_batch(offset=1, lastmod=1, lines=["x"])])

    def interrupt(_: float) -> None:
        raise KeyboardInterrupt

    streamer, stdout, _ = _streamer(gateway, sleep=interrupt)
    outcome = streamer.stream("9", restart=True)
    assert outcome.cancelled
    assert not outcome
    assert len(gateway.calls) == 1
    assert stdout.getvalue() == "x\n"


def test_cancel_stops_before_next_fetch() -> None:
    gateway = DummyGateway([_batch(offset=1, lastmod=1)])
    streamer, _, _ = _streamer(gateway)
    streamer.cancel()
    outcome = streamer.stream("9")
    assert outcome.cancelled
    assert len(gateway.calls) == 1


def test_progress_prints_dots_instead_of_lines() -> None:
    gateway = DummyGateway(
        [
            _batch(offset=1, lastmod=1, lines=["a"]),
            _batch(offset=1, lastmod=1),
            _batch(offset=2, lastmod=2, lines=["b"], completed=True, state="succeeded"),
        ]
    )
    streamer, stdout, _ = _streamer(gateway)
    streamer.stream("9", progress=True)
    assert stdout.getvalue() == "..\n"


def test_quiet_prints_nothing() -> None:
    gateway = DummyGateway([_batch(offset=1, lastmod=1, lines=["a", "b"], completed=True, state="succeeded")])
    streamer, stdout, _ = _streamer(gateway)
    outcome = streamer.stream("9", quiet=True)
    assert stdout.getvalue() == ""
    assert outcome.lines == 2


def test_quiet_with_progress_still_marks_batches() -> None:
    gateway = DummyGateway([_batch(offset=1, lastmod=1, lines=["a"], completed=True, state="succeeded")])
    streamer, stdout, _ = _streamer(gateway)
    streamer.stream("9", quiet=True, progress=True)
    assert stdout.getvalue() == ".\n"


def test_fetch_error_propagates() -> None:
    gateway = DummyGateway([ApiResponse(status_code=404, reason="Not Found", content=b"")])
    streamer, _, _ = _streamer(gateway)
    with pytest.raises(ApiRequestError) as excinfo:
        streamer.stream("404")
    assert excinfo.value.status_code == 404


@pytest.mark.parametrize(
    "field, value",
    [("offset", "abc"), ("lastModified", "yesterday"), ("percentLoaded", "half")],
)
def test_malformed_output_field_is_request_error(field: str, value: str) -> None:
    payload = {"offset": 1, "lastModified": 1, "completed": True, "execState": "succeeded", "entries": [], field: value}
    gateway = DummyGateway([ApiResponse(status_code=200, reason="OK", content=json.dumps(payload).encode("utf-8"))])
    streamer, _, _ = _streamer(gateway)
    with pytest.raises(ApiRequestError) as excinfo:
        streamer.stream("5", restart=True)
    assert excinfo.value.status_code == 200
    assert "Output for execution 5 failed: unexpected response body" in str(excinfo.value)

"""JSONL event log for rdcall commands and API calls (opt-out via ``RDCALL_TELEMETRY``).

Two event families are written:

* ``<component>.<command>`` lifecycle events from the CLI, one ``start`` record
  and one closing record (``success``, ``failure``, ``invalid``, ``error``,
  ``config_error`` or ``interrupted``);
* ``api.request`` records from the HTTP gateway, one per round trip.

Writing is best-effort: a log directory that cannot be created or appended to
never interrupts the command being described.
"""

from __future__ import annotations

import json
import os
import time
from collections import deque
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Iterator

import jsonschema

from rdcall.settings import RuntimeSettings

LOG_FILENAME = "telemetry.jsonl"
API_REQUEST_EVENT = "api.request"

_DISABLE_VALUES = {"0", "false", "no", "off"}
_VALIDATOR: jsonschema.Draft202012Validator | None = None


def telemetry_enabled() -> bool:
    return os.getenv("RDCALL_TELEMETRY", "1").lower() not in _DISABLE_VALUES


def log_path(settings: RuntimeSettings) -> Path:
    return settings.log_dir / LOG_FILENAME


@dataclass(frozen=True)
class TelemetryEvent:
    event: str
    status: str
    component: str
    level: str = "info"
    duration_ms: float | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    ts: float = field(default_factory=time.time)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "ts": float(self.ts),
            "event": self.event,
            "status": self.status,
            "component": self.component,
            "level": self.level,
            "payload": dict(self.payload),
        }
        if self.duration_ms is not None:
            record["durationMs"] = round(self.duration_ms, 3)
        return record


def _validator() -> jsonschema.Draft202012Validator:
    global _VALIDATOR
    if _VALIDATOR is None:
        schema_resource = resources.files("rdcall.resources") / "telemetry.schema.json"
        _VALIDATOR = jsonschema.Draft202012Validator(json.loads(schema_resource.read_text(encoding="utf-8")))
    return _VALIDATOR


def emit(settings: RuntimeSettings, event: TelemetryEvent) -> bool:
    """Append ``event`` to the log; returns False when disabled or not writable.

    Malformed events raise ``jsonschema.ValidationError``.
    """

    if not telemetry_enabled():
        return False
    record = event.to_record()
    _validator().validate(record)
    path = log_path(settings)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False) + "\n")
    except OSError:
        return False
    return True


def command_started(settings: RuntimeSettings, component: str, command: str) -> float:
    """Record the start of a CLI command; returns the ``perf_counter`` start mark."""

    emit(settings, TelemetryEvent(event=f"{component}.{command}", status="start", component=component))
    return time.perf_counter()


def command_finished(
    settings: RuntimeSettings,
    component: str,
    command: str,
    *,
    status: str,
    started: float,
    level: str = "info",
    payload: dict[str, Any] | None = None,
) -> None:
    emit(
        settings,
        TelemetryEvent(
            event=f"{component}.{command}",
            status=status,
            component=component,
            level=level,
            duration_ms=(time.perf_counter() - started) * 1000,
            payload=payload or {},
        ),
    )


def api_request(
    settings: RuntimeSettings,
    method: str,
    path: str,
    *,
    status_code: int | None,
    started: float,
    error: str | None = None,
) -> None:
    payload: dict[str, Any] = {"method": method, "path": path, "status": status_code}
    if error:
        payload["error"] = error
    failed = status_code is None or status_code >= 400
    emit(
        settings,
        TelemetryEvent(
            event=API_REQUEST_EVENT,
            status="error" if failed else "success",
            component="api",
            level="warn" if failed else "info",
            duration_ms=(time.perf_counter() - started) * 1000,
            payload=payload,
        ),
    )


def iter_events(settings: RuntimeSettings) -> Iterator[dict[str, Any]]:
    path = log_path(settings)
    if not path.is_file():
        return
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                continue


def tail_events(settings: RuntimeSettings, limit: int) -> list[dict[str, Any]]:
    if limit <= 0:
        return []
    return list(deque(iter_events(settings), maxlen=limit))


def summarize(events: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Counts per event and status, plus API error rate and mean durations per event."""

    total = 0
    by_event: dict[str, int] = {}
    by_status: dict[str, int] = {}
    durations: dict[str, list[float]] = {}
    api_calls = api_errors = 0
    for evt in events:
        total += 1
        name = evt.get("event", "unknown")
        by_event[name] = by_event.get(name, 0) + 1
        status = evt.get("status", "unknown")
        by_status[status] = by_status.get(status, 0) + 1
        if isinstance(evt.get("durationMs"), (int, float)):
            durations.setdefault(name, []).append(float(evt["durationMs"]))
        if name == API_REQUEST_EVENT:
            api_calls += 1
            api_errors += status == "error"
    return {
        "total": total,
        "by_event": by_event,
        "by_status": by_status,
        "mean_duration_ms": {name: round(sum(vals) / len(vals), 3) for name, vals in durations.items()},
        "api": {"requests": api_calls, "errors": api_errors},
    }


def clear(settings: RuntimeSettings) -> None:
    path = log_path(settings)
    if path.is_file():
        path.unlink()

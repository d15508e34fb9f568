"""Execution records and incremental log output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

EXEC_STATE_SUCCEEDED = "succeeded"


def _as_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(float(value))


def _optional_str(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return None if value is None else str(value)


@dataclass(frozen=True)
class LogEntry:
    log: str
    level: str | None = None
    time: str | None = None
    node: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LogEntry":
        return cls(
            log=str(payload.get("log", "")),
            level=_optional_str(payload, "level"),
            time=_optional_str(payload, "time"),
            node=_optional_str(payload, "node"),
        )


@dataclass(frozen=True)
class ExecOutput:
    """One batch of output returned by the execution output endpoint."""

    entries: Tuple[LogEntry, ...]
    offset: int
    last_modified: int
    completed: bool
    exec_completed: bool = False
    exec_state: str | None = None
    has_failed_nodes: bool = False
    percent_loaded: float | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExecOutput":
        raw_entries = payload.get("entries")
        entries = tuple(
            LogEntry.from_dict(entry)
            for entry in (raw_entries if isinstance(raw_entries, list) else [])
            if isinstance(entry, Mapping)
        )
        percent = payload.get("percentLoaded")
        return cls(
            entries=entries,
            offset=_as_int(payload.get("offset")),
            last_modified=_as_int(payload.get("lastModified")),
            completed=bool(payload.get("completed", False)),
            exec_completed=bool(payload.get("execCompleted", False)),
            exec_state=_optional_str(payload, "execState"),
            has_failed_nodes=bool(payload.get("hasFailedNodes", False)),
            percent_loaded=float(percent) if percent is not None else None,
        )


@dataclass
class ExecutionHandle:
    """Cursor state for a single streaming session."""

    id: str
    offset: int = 0
    last_modified: int = 0
    completed: bool = False
    exec_state: str | None = None

    def advance(self, batch: ExecOutput) -> None:
        self.offset = batch.offset
        self.last_modified = batch.last_modified
        self.completed = batch.completed
        self.exec_state = batch.exec_state


@dataclass(frozen=True)
class DateInfo:
    """Timestamp pair as reported by the server (``unixtime`` in milliseconds)."""

    unixtime: int
    date: str | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> "DateInfo | None":
        if not isinstance(payload, Mapping):
            return None
        return cls(unixtime=_as_int(payload.get("unixtime")), date=_optional_str(payload, "date"))

    def to_dict(self) -> Dict[str, Any]:
        return {"unixtime": self.unixtime, "date": self.date}


def _node_names(value: Any) -> Tuple[str, ...]:
    return tuple(str(node) for node in value) if isinstance(value, list) else ()


@dataclass(frozen=True)
class Execution:
    id: str
    status: str | None = None
    project: str | None = None
    user: str | None = None
    description: str | None = None
    permalink: str | None = None
    href: str | None = None
    argstring: str | None = None
    server_uuid: str | None = None
    date_started: DateInfo | None = None
    date_ended: DateInfo | None = None
    successful_nodes: Tuple[str, ...] = ()
    failed_nodes: Tuple[str, ...] = ()
    job_id: str | None = None
    job_name: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Execution":
        job = payload.get("job") if isinstance(payload.get("job"), Mapping) else {}
        return cls(
            id=str(payload.get("id", "")),
            status=_optional_str(payload, "status"),
            project=_optional_str(payload, "project"),
            user=_optional_str(payload, "user"),
            description=_optional_str(payload, "description"),
            permalink=_optional_str(payload, "permalink"),
            href=_optional_str(payload, "href"),
            argstring=_optional_str(payload, "argstring"),
            server_uuid=_optional_str(payload, "serverUUID"),
            date_started=DateInfo.from_dict(payload.get("date-started")),
            date_ended=DateInfo.from_dict(payload.get("date-ended")),
            successful_nodes=_node_names(payload.get("successfulNodes")),
            failed_nodes=_node_names(payload.get("failedNodes")),
            job_id=_optional_str(job, "id"),
            job_name=_optional_str(job, "name"),
        )

    def to_basic_string(self) -> str:
        return f"[{self.id}] {self.description} <{self.permalink}>"

    def to_status_string(self) -> str:
        return f"[{self.id}] {self.status}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "project": self.project,
            "user": self.user,
            "description": self.description,
            "permalink": self.permalink,
            "href": self.href,
            "argstring": self.argstring,
            "serverUUID": self.server_uuid,
            "date-started": self.date_started.to_dict() if self.date_started else None,
            "date-ended": self.date_ended.to_dict() if self.date_ended else None,
            "successfulNodes": list(self.successful_nodes),
            "failedNodes": list(self.failed_nodes),
            "job": {"id": self.job_id, "name": self.job_name} if self.job_id else None,
        }


@dataclass(frozen=True)
class ExecutionList:
    executions: Tuple[Execution, ...]
    count: int
    total: int
    offset: int = 0
    limit: int = 0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExecutionList":
        raw = payload.get("executions")
        executions = tuple(
            Execution.from_dict(entry)
            for entry in (raw if isinstance(raw, list) else [])
            if isinstance(entry, Mapping)
        )
        paging = payload.get("paging") if isinstance(payload.get("paging"), Mapping) else {}
        return cls(
            executions=executions,
            count=_as_int(paging.get("count", len(executions))),
            total=_as_int(paging.get("total", len(executions))),
            offset=_as_int(paging.get("offset")),
            limit=_as_int(paging.get("max")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paging": {"count": self.count, "total": self.total, "offset": self.offset, "max": self.limit},
            "executions": [execution.to_dict() for execution in self.executions],
        }


@dataclass(frozen=True)
class AbortResult:
    abort_status: str | None
    reason: str | None = None
    execution: Execution | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AbortResult":
        abort = payload.get("abort") if isinstance(payload.get("abort"), Mapping) else {}
        execution = payload.get("execution")
        return cls(
            abort_status=_optional_str(abort, "status"),
            reason=_optional_str(abort, "reason"),
            execution=Execution.from_dict(execution) if isinstance(execution, Mapping) else None,
        )

    @property
    def failed(self) -> bool:
        return self.abort_status == "failed"

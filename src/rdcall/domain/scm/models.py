"""Domain models for project SCM integrations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from rdcall.domain.project import InputError, parse_key_value_pairs, resolve_project

SYNCH_STATE_CLEAN = "CLEAN"


class IntegrationKind(str, Enum):
    IMPORT = "import"
    EXPORT = "export"

    @classmethod
    def parse(cls, raw: str | None) -> "IntegrationKind":
        for kind in cls:
            if kind.value == raw:
                return kind
        choices = ", ".join(kind.value for kind in cls)
        raise InputError(f"--integration/-i must be one of: {choices}")


@dataclass(frozen=True)
class ScmTarget:
    """Project and integration an SCM command operates on."""

    project: str
    integration: IntegrationKind

    @classmethod
    def resolve(
        cls,
        integration: str | None,
        project: str | None,
        *,
        default_project: str | None = None,
    ) -> "ScmTarget":
        kind = IntegrationKind.parse(integration)
        return cls(project=resolve_project(project, default_project), integration=kind)

    def path(self, *parts: str) -> str:
        tail = "/".join(parts)
        base = f"project/{self.project}/scm/{self.integration.value}"
        return f"{base}/{tail}" if tail else base


def unique_ids(values: Iterable[str] | None) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for value in values or ():
        seen.setdefault(str(value), None)
    return tuple(seen)


def _optional_str(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return None if value is None else str(value)


@dataclass(frozen=True)
class ScmJobRef:
    job_id: str
    job_name: str | None = None
    group_path: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "ScmJobRef | None":
        if not isinstance(payload, Mapping) or not payload.get("jobId"):
            return None
        return cls(
            job_id=str(payload["jobId"]),
            job_name=_optional_str(payload, "jobName"),
            group_path=_optional_str(payload, "groupPath"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"jobId": self.job_id, "jobName": self.job_name, "groupPath": self.group_path}


@dataclass(frozen=True)
class ExportItem:
    item_id: str
    deleted: bool = False
    item_path: str | None = None
    status: str | None = None
    original_id: str | None = None
    renamed: bool = False
    job: ScmJobRef | None = None

    kind = IntegrationKind.EXPORT

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExportItem":
        return cls(
            item_id=str(payload.get("itemId", "")),
            deleted=bool(payload.get("deleted", False)),
            item_path=_optional_str(payload, "itemPath"),
            status=_optional_str(payload, "status"),
            original_id=_optional_str(payload, "originalId"),
            renamed=bool(payload.get("renamed", False)),
            job=ScmJobRef.from_dict(payload.get("job")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemId": self.item_id,
            "itemPath": self.item_path,
            "status": self.status,
            "deleted": self.deleted,
            "renamed": self.renamed,
            "originalId": self.original_id,
            "job": self.job.to_dict() if self.job else None,
        }


@dataclass(frozen=True)
class ImportItem:
    item_id: str
    tracked: bool = False
    deleted: bool = False
    status: str | None = None
    job: ScmJobRef | None = None

    kind = IntegrationKind.IMPORT

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ImportItem":
        return cls(
            item_id=str(payload.get("itemId", "")),
            tracked=bool(payload.get("tracked", False)),
            deleted=bool(payload.get("deleted", False)),
            status=_optional_str(payload, "status"),
            job=ScmJobRef.from_dict(payload.get("job")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemId": self.item_id,
            "tracked": self.tracked,
            "deleted": self.deleted,
            "status": self.status,
            "job": self.job.to_dict() if self.job else None,
        }


ScmItem = Union[ExportItem, ImportItem]


@dataclass(frozen=True)
class ScmInputField:
    name: str
    title: str | None = None
    description: str | None = None
    type: str | None = None
    required: bool = False
    default_value: str | None = None
    values: List[str] | None = None
    scope: str | None = None
    rendering_options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ScmInputField":
        values = payload.get("values")
        options = payload.get("renderingOptions")
        return cls(
            name=str(payload.get("name", "")),
            title=_optional_str(payload, "title"),
            description=_optional_str(payload, "description"),
            type=_optional_str(payload, "type"),
            required=bool(payload.get("required", False)),
            default_value=_optional_str(payload, "defaultValue"),
            values=[str(value) for value in values] if isinstance(values, list) else None,
            scope=_optional_str(payload, "scope"),
            rendering_options=dict(options) if isinstance(options, Mapping) else {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "required": self.required,
            "defaultValue": self.default_value,
            "values": self.values,
            "scope": self.scope,
            "renderingOptions": self.rendering_options,
        }


@dataclass(frozen=True)
class ScmConfig:
    project: str | None
    plugin_type: str | None
    integration: str | None
    enabled: bool
    config: Dict[str, Any]

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ScmConfig":
        config = payload.get("config")
        return cls(
            project=_optional_str(payload, "project"),
            plugin_type=_optional_str(payload, "type"),
            integration=_optional_str(payload, "integration"),
            enabled=bool(payload.get("enabled", False)),
            config=dict(config) if isinstance(config, Mapping) else {},
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "Project": self.project,
            "SCM Plugin type": self.plugin_type,
            "SCM Plugin integration": self.integration,
        }


@dataclass(frozen=True)
class ScmProjectStatus:
    project: str | None
    integration: str | None
    synch_state: str | None
    message: str | None = None
    actions: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ScmProjectStatus":
        actions = payload.get("actions")
        return cls(
            project=_optional_str(payload, "project"),
            integration=_optional_str(payload, "integration"),
            synch_state=_optional_str(payload, "synchState"),
            message=_optional_str(payload, "message"),
            actions=tuple(str(action) for action in actions) if isinstance(actions, list) else (),
        )

    @property
    def clean(self) -> bool:
        return self.synch_state == SYNCH_STATE_CLEAN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": self.project,
            "integration": self.integration,
            "synchState": self.synch_state,
            "message": self.message,
            "actions": list(self.actions),
        }


@dataclass(frozen=True)
class ScmPlugin:
    type: str
    title: str | None = None
    description: str | None = None
    configured: bool = False
    enabled: bool = False

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ScmPlugin":
        return cls(
            type=str(payload.get("type", "")),
            title=_optional_str(payload, "title"),
            description=_optional_str(payload, "description"),
            configured=bool(payload.get("configured", False)),
            enabled=bool(payload.get("enabled", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "configured": self.configured,
            "enabled": self.enabled,
        }


@dataclass(frozen=True)
class ScmActionInputs:
    action_id: str | None
    title: str | None
    description: str | None
    integration: IntegrationKind
    fields: Tuple[ScmInputField, ...] = ()
    items: Tuple[ScmItem, ...] = ()

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], integration: IntegrationKind) -> "ScmActionInputs":
        raw_fields = payload.get("fields")
        fields = tuple(
            ScmInputField.from_dict(entry)
            for entry in (raw_fields if isinstance(raw_fields, list) else [])
            if isinstance(entry, Mapping)
        )
        if integration is IntegrationKind.EXPORT:
            raw_items = payload.get("exportItems")
            factory = ExportItem.from_dict
        else:
            raw_items = payload.get("importItems")
            factory = ImportItem.from_dict
        items = tuple(
            factory(entry)
            for entry in (raw_items if isinstance(raw_items, list) else [])
            if isinstance(entry, Mapping)
        )
        return cls(
            action_id=_optional_str(payload, "actionId"),
            title=_optional_str(payload, "title"),
            description=_optional_str(payload, "description"),
            integration=integration,
            fields=fields,
            items=items,
        )

    def to_dict(self) -> Dict[str, Any]:
        key = "exportItems" if self.integration is IntegrationKind.EXPORT else "importItems"
        return {
            "actionId": self.action_id,
            "title": self.title,
            "description": self.description,
            "integration": self.integration.value,
            "fields": [entry.to_dict() for entry in self.fields],
            key: [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class ScmActionRequest:
    """Body of a perform call; built from flags and optionally from live inputs."""

    input: Dict[str, str] = field(default_factory=dict)
    items: Tuple[str, ...] = ()
    jobs: Tuple[str, ...] = ()
    deleted_items: Tuple[str, ...] = ()
    deleted_jobs: Tuple[str, ...] = ()

    @classmethod
    def from_options(
        cls,
        *,
        fields: Iterable[str] | None = None,
        items: Iterable[str] | None = None,
        jobs: Iterable[str] | None = None,
        delete: Iterable[str] | None = None,
    ) -> "ScmActionRequest":
        return cls(
            input=parse_key_value_pairs(fields),
            items=unique_ids(items),
            jobs=unique_ids(jobs),
            deleted_items=unique_ids(delete),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input": dict(self.input),
            "items": list(self.items),
            "jobs": list(self.jobs),
            "deleted": list(self.deleted_items),
            "deletedJobs": list(self.deleted_jobs),
        }


@dataclass(frozen=True)
class ScmActionResult:
    success: bool
    message: str | None = None
    next_action: str | None = None
    validation_errors: Dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ScmActionResult":
        errors = payload.get("validationErrors")
        return cls(
            success=bool(payload.get("success", False)),
            message=_optional_str(payload, "message"),
            next_action=_optional_str(payload, "nextAction"),
            validation_errors=dict(errors) if isinstance(errors, Mapping) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "nextAction": self.next_action,
            "validationErrors": self.validation_errors,
        }

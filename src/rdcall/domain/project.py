"""Project naming rules and user input errors."""

from __future__ import annotations

import re
from typing import Iterable

PROJECT_NAME_PATTERN = re.compile(r"^[-_a-zA-Z0-9+][-._a-zA-Z0-9+]*$")


class InputError(ValueError):
    """Raised when command input is invalid; detected before any API call."""


def validate_project_name(name: str) -> str:
    if not PROJECT_NAME_PATTERN.match(name):
        raise InputError(
            f"invalid project name {name!r}: must match {PROJECT_NAME_PATTERN.pattern}"
        )
    return name


def resolve_project(explicit: str | None, default: str | None) -> str:
    """Return the explicit project (validated) or the configured default."""

    if explicit is not None:
        return validate_project_name(explicit)
    if default:
        return default
    raise InputError("-p/--project is required, or set RD_PROJECT")


def parse_key_value_pairs(values: Iterable[str] | None, *, separator: str = "=") -> dict[str, str]:
    result: dict[str, str] = {}
    for raw in values or ():
        if separator not in raw:
            raise InputError(f"expected key{separator}value, got {raw!r}")
        key, value = raw.split(separator, 1)
        key = key.strip()
        if not key:
            raise InputError(f"missing key in {raw!r}")
        result[key] = value
    return result

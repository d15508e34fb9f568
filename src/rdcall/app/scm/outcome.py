"""Classify SCM action responses into success, validation failure or transport error."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from importlib import resources
from typing import Any, Dict

import jsonschema

from rdcall.domain.scm import ScmActionResult
from rdcall.ports.api import ApiRequestError, ApiResponse, error_message
from rdcall.utils.output import CommandOutput

_RESULT_VALIDATOR: jsonschema.Draft202012Validator | None = None


class OutcomeKind(str, Enum):
    OK = "ok"
    VALIDATION = "validation"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class ActionOutcome:
    kind: OutcomeKind
    name: str
    result: ScmActionResult | None = None
    body: Dict[str, Any] | None = None
    error: ApiRequestError | None = None

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.OK and self.result is not None and self.result.success

    def raise_for_transport(self) -> "ActionOutcome":
        if self.kind is OutcomeKind.TRANSPORT and self.error is not None:
            raise self.error
        return self


def _result_validator() -> jsonschema.Draft202012Validator:
    global _RESULT_VALIDATOR
    if _RESULT_VALIDATOR is None:
        schema_resource = resources.files("rdcall.resources") / "scm_action_result.schema.json"
        schema = json.loads(schema_resource.read_text(encoding="utf-8"))
        _RESULT_VALIDATOR = jsonschema.Draft202012Validator(schema)
    return _RESULT_VALIDATOR


def decode_action_body(response: ApiResponse) -> Dict[str, Any] | None:
    """Decoded body when it has the action-result shape, else ``None``."""

    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    if not _result_validator().is_valid(payload):
        return None
    return payload


def classify_action_response(response: ApiResponse, name: str) -> ActionOutcome:
    if response.ok:
        body = decode_action_body(response)
        if body is None:
            error = ApiRequestError(
                f"{name} failed: unexpected response body ({response.status_code} {response.reason})",
                status_code=response.status_code,
                body=response.text,
            )
            return ActionOutcome(OutcomeKind.TRANSPORT, name, error=error)
        return ActionOutcome(OutcomeKind.OK, name, result=ScmActionResult.from_dict(body), body=body)

    if response.status_code == 400:
        body = decode_action_body(response)
        if body is not None:
            return ActionOutcome(
                OutcomeKind.VALIDATION,
                name,
                result=ScmActionResult.from_dict(body),
                body=body,
            )
        message = response.reason or error_message(response)
        error = ApiRequestError(
            f"{name} failed: (error: {response.status_code} {message})",
            status_code=response.status_code,
            body=response.text,
        )
        return ActionOutcome(OutcomeKind.TRANSPORT, name, error=error)

    error = ApiRequestError(
        f"{name} failed: (error: {response.status_code} {error_message(response)})",
        status_code=response.status_code,
        body=response.text,
    )
    return ActionOutcome(OutcomeKind.TRANSPORT, name, error=error)


def report_action_outcome(output: CommandOutput, outcome: ActionOutcome) -> bool:
    """Render an OK or VALIDATION outcome and return whether the action succeeded."""

    outcome.raise_for_transport()
    if outcome.kind is OutcomeKind.VALIDATION:
        output.error(f"{outcome.name} failed")
        if outcome.result is not None and outcome.result.message:
            output.warning(outcome.result.message)
        if outcome.body:
            output.output(outcome.body, colorize=True)
        return False

    result = outcome.result
    if result is None:
        return False
    if result.success:
        output.info(f"{outcome.name} was successful.")
    else:
        output.warning(f"{outcome.name} was not successful.")
    if result.message is not None:
        output.info(f"Result: {result.message}")
    if result.next_action is not None:
        output.output(f"Next Action: {result.next_action}", style="green")
    return result.success

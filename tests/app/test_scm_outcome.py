from __future__ import annotations

import io
import json
from typing import Any

import pytest

from rdcall.app.scm import OutcomeKind, classify_action_response, report_action_outcome
from rdcall.ports.api import ApiRequestError, ApiResponse
from rdcall.utils.output import CommandOutput


def _response(status: int, payload: Any, reason: str = "OK") -> ApiResponse:
    content = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return ApiResponse(status_code=status, reason=reason, content=content)


def _output(*, as_json: bool = False) -> tuple[CommandOutput, io.StringIO, io.StringIO]:
    stdout, stderr = io.StringIO(), io.StringIO()
    return CommandOutput(as_json=as_json, stdout=stdout, stderr=stderr), stdout, stderr


def test_success_body_reports_message_and_next_action() -> None:
    outcome = classify_action_response(
        _response(200, {"success": True, "message": "Committed", "nextAction": "project-push"}),
        "Action project-commit",
    )
    assert outcome.kind is OutcomeKind.OK
    output, stdout, _ = _output()
    assert report_action_outcome(output, outcome) is True
    lines = stdout.getvalue().splitlines()
    assert lines == [
        "Action project-commit was successful.",
        "Result: Committed",
        "Next Action: project-push",
    ]


def test_unsuccessful_body_is_false_with_warning() -> None:
    outcome = classify_action_response(_response(200, {"success": False, "message": "Nothing to do"}), "Action x")
    output, stdout, stderr = _output()
    assert report_action_outcome(output, outcome) is False
    assert "Action x was not successful." in stderr.getvalue()
    assert "Result: Nothing to do" in stdout.getvalue()


def test_validation_400_is_rendered_not_raised() -> None:
    body = {
        "success": False,
        "message": "Some input values were not valid.",
        "validationErrors": {"message": "required"},
    }
    outcome = classify_action_response(_response(400, body, reason="Bad Request"), "Action project-commit")
    assert outcome.kind is OutcomeKind.VALIDATION
    output, stdout, stderr = _output()
    assert report_action_outcome(output, outcome) is False
    assert "Action project-commit failed" in stderr.getvalue()
    assert "Some input values were not valid." in stderr.getvalue()
    assert "validationErrors:" in stdout.getvalue()
    assert "message: required" in stdout.getvalue()


def test_undecodable_400_raises_with_status() -> None:
    outcome = classify_action_response(_response(400, b"<html>bad</html>", reason="Bad Request"), "Action y")
    assert outcome.kind is OutcomeKind.TRANSPORT
    with pytest.raises(ApiRequestError) as excinfo:
        outcome.raise_for_transport()
    assert excinfo.value.status_code == 400
    assert str(excinfo.value) == "Action y failed: (error: 400 Bad Request)"


def test_400_with_wrong_shape_is_transport() -> None:
    outcome = classify_action_response(_response(400, {"success": "nope"}, reason="Bad Request"), "Action y")
    assert outcome.kind is OutcomeKind.TRANSPORT


def test_server_error_is_fatal() -> None:
    outcome = classify_action_response(
        _response(500, {"error": True, "message": "boom"}, reason="Server Error"), "Action z"
    )
    with pytest.raises(ApiRequestError) as excinfo:
        report_action_outcome(_output()[0], outcome)
    assert excinfo.value.status_code == 500
    assert "boom" in str(excinfo.value)


def test_success_with_garbage_body_is_transport() -> None:
    outcome = classify_action_response(_response(200, b"not json"), "Setup")
    assert outcome.kind is OutcomeKind.TRANSPORT
    assert outcome.error is not None and outcome.error.status_code == 200


def test_json_mode_keeps_stdout_clean() -> None:
    outcome = classify_action_response(_response(200, {"success": True, "message": "ok"}), "Action a")
    output, stdout, stderr = _output(as_json=True)
    report_action_outcome(output, outcome)
    assert "was successful" in stderr.getvalue()
    assert "was successful" not in stdout.getvalue()

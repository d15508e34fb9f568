"""Execution API calls: output fetches, abort and running-execution listing."""

from __future__ import annotations

from rdcall.domain.executions import AbortResult, ExecOutput, ExecutionList
from rdcall.domain.project import InputError
from rdcall.ports.api import ApiGateway, decode_mapping

DEFAULT_MAX_LINES = 500
DEFAULT_LIST_MAX = 20


def _require_id(execution_id: str | None) -> str:
    if not execution_id:
        raise InputError("-e/--id is required")
    return execution_id


class ExecutionService:
    def __init__(self, gateway: ApiGateway) -> None:
        self._gateway = gateway

    def fetch_output(
        self,
        execution_id: str,
        *,
        offset: int,
        last_modified: int,
        max_lines: int = DEFAULT_MAX_LINES,
    ) -> ExecOutput:
        response = self._gateway.get(
            f"execution/{execution_id}/output",
            offset=offset,
            lastmod=last_modified,
            maxlines=max_lines,
        )
        return decode_mapping(response, f"Output for execution {execution_id}", ExecOutput.from_dict)

    def fetch_tail(self, execution_id: str, *, tail: int) -> ExecOutput:
        response = self._gateway.get(f"execution/{execution_id}/output", lastlines=tail)
        return decode_mapping(response, f"Output for execution {execution_id}", ExecOutput.from_dict)

    def abort(self, execution_id: str | None) -> AbortResult:
        execution_id = _require_id(execution_id)
        response = self._gateway.post(f"execution/{execution_id}/abort")
        return decode_mapping(response, f"Kill execution {execution_id}", AbortResult.from_dict)

    def list_running(self, project: str, *, offset: int = 0, max_items: int = DEFAULT_LIST_MAX) -> ExecutionList:
        response = self._gateway.get(f"project/{project}/executions/running", offset=offset, max=max_items)
        return decode_mapping(response, f"List executions for {project}", ExecutionList.from_dict)

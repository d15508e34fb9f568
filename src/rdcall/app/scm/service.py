"""Application service driving project SCM integrations over the API."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List

from rdcall.app.scm.outcome import ActionOutcome, OutcomeKind, classify_action_response
from rdcall.domain.project import InputError
from rdcall.domain.scm import (
    ItemSelection,
    ScmActionInputs,
    ScmActionRequest,
    ScmConfig,
    ScmInputField,
    ScmPlugin,
    ScmProjectStatus,
    ScmTarget,
    SelectionFlags,
    select_items,
)
from rdcall.ports.api import MEDIA_TYPE_JSON, ApiGateway, check_mapping, decode_mapping


@dataclass(frozen=True)
class PerformResult:
    request: ScmActionRequest
    selection: ItemSelection
    outcome: ActionOutcome


class ScmService:
    def __init__(self, gateway: ApiGateway) -> None:
        self._gateway = gateway

    def get_config(self, target: ScmTarget) -> ScmConfig:
        return decode_mapping(self._gateway.get(target.path("config")), "Get SCM config", ScmConfig.from_dict)

    def setup(self, target: ScmTarget, plugin_type: str, config_file: Path) -> ActionOutcome:
        try:
            body = config_file.read_bytes()
        except OSError as exc:
            raise InputError(f"unable to read config file {config_file}: {exc}") from exc
        response = self._gateway.post(
            target.path("plugin", plugin_type, "setup"),
            data=body,
            content_type=MEDIA_TYPE_JSON,
        )
        name = f"Setup config Validation for file: {config_file.resolve()}"
        outcome = classify_action_response(response, name).raise_for_transport()
        if outcome.kind is OutcomeKind.OK:
            outcome = replace(outcome, name="Setup")
        return outcome

    def status(self, target: ScmTarget) -> ScmProjectStatus:
        return decode_mapping(self._gateway.get(target.path("status")), "Get SCM status", ScmProjectStatus.from_dict)

    def enable(self, target: ScmTarget, plugin_type: str) -> None:
        check_mapping(self._gateway.post(target.path("plugin", plugin_type, "enable")), "Enable SCM plugin")

    def disable(self, target: ScmTarget, plugin_type: str) -> None:
        check_mapping(self._gateway.post(target.path("plugin", plugin_type, "disable")), "Disable SCM plugin")

    def setup_inputs_raw(self, target: ScmTarget, plugin_type: str) -> Dict[str, Any]:
        return check_mapping(
            self._gateway.get(target.path("plugin", plugin_type, "input")),
            "Get SCM setup inputs",
        )

    def setup_inputs(self, target: ScmTarget, plugin_type: str) -> List[ScmInputField]:
        payload = self.setup_inputs_raw(target, plugin_type)
        fields = payload.get("fields")
        return [
            ScmInputField.from_dict(entry)
            for entry in (fields if isinstance(fields, list) else [])
            if isinstance(entry, dict)
        ]

    def get_action_inputs_raw(self, target: ScmTarget, action_id: str) -> Dict[str, Any]:
        return check_mapping(
            self._gateway.get(target.path("action", action_id, "input")),
            f"Get inputs for action {action_id}",
        )

    def get_action_inputs(self, target: ScmTarget, action_id: str) -> ScmActionInputs:
        payload = self.get_action_inputs_raw(target, action_id)
        return ScmActionInputs.from_dict(payload, target.integration)

    def perform(
        self,
        target: ScmTarget,
        action_id: str,
        request: ScmActionRequest,
        flags: SelectionFlags,
    ) -> PerformResult:
        """Run an action, recomputing selected items from live inputs when select-all flags are set."""

        selection = ItemSelection()
        if flags.requires_inputs(target.integration):
            inputs = self.get_action_inputs(target, action_id)
            selection = select_items(target.integration, inputs.items, flags)
            request = selection.apply(request)
        response = self._gateway.post(target.path("action", action_id), json_body=request.to_dict())
        outcome = classify_action_response(response, f"Action {action_id}").raise_for_transport()
        return PerformResult(request=request, selection=selection, outcome=outcome)

    def list_plugins(self, target: ScmTarget) -> List[ScmPlugin]:
        payload = check_mapping(self._gateway.get(target.path("plugins")), "List SCM plugins")
        plugins = payload.get("plugins")
        return [
            ScmPlugin.from_dict(entry)
            for entry in (plugins if isinstance(plugins, list) else [])
            if isinstance(entry, dict)
        ]

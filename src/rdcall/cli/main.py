#!/usr/bin/env python3
"""Entry point for the rdcall CLI."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from textwrap import dedent
from typing import Any, Callable

from rdcall import __version__
from rdcall.adapters.api.http_gateway import RundeckHttpGateway
from rdcall.app.executions import (
    DEFAULT_LIST_MAX,
    DEFAULT_MAX_LINES,
    DEFAULT_TAIL,
    ExecutionOutputStreamer,
    ExecutionService,
)
from rdcall.app.scm import ScmService, report_action_outcome
from rdcall.domain.project import InputError, resolve_project
from rdcall.domain.scm import ScmActionRequest, ScmTarget, SelectionFlags
from rdcall.ports.api import ApiGateway, ApiRequestError
from rdcall.settings import SETTINGS, ClientConfig, ConfigError, load_client_config
from rdcall.utils.output import CommandOutput
from rdcall.utils import telemetry

HELP_OVERVIEW = dedent(
    """
    Connection:
      - RD_URL        server base url (e.g. https://rundeck.example.com)
      - RD_TOKEN      API token (or RD_TOKEN_ENV naming another variable)
      - RD_PROJECT    default project for -p/--project
      - RD_API_VERSION, RD_COLOR
      Values may also live in ~/.rdcall/config.yaml (url, token, project, api_version, color).

    Commands:
      - rdcall scm ...          - project SCM integration (import/export)
      - rdcall executions ...   - follow, kill and list executions
      - rdcall telemetry ...    - inspect local telemetry events
    """
)

INTEGRATION_METAVAR = "{import,export}"

CommandHandler = Callable[[argparse.Namespace, ClientConfig, CommandOutput], "bool | None"]


def _client_config() -> ClientConfig:
    return load_client_config(SETTINGS)


def _build_gateway(config: ClientConfig) -> ApiGateway:
    return RundeckHttpGateway(config, settings=SETTINGS)


def _build_output(args: argparse.Namespace, config: ClientConfig | None = None) -> CommandOutput:
    ansi = bool(config.ansi) if config is not None else False
    if getattr(args, "no_color", False):
        ansi = False
    return CommandOutput(as_json=bool(getattr(args, "json", False)), ansi=ansi)


def _run(component: str, command: str, args: argparse.Namespace, handler: CommandHandler) -> int:
    """Run a command handler, mapping its result and errors to an exit code."""

    started = telemetry.command_started(SETTINGS, component, command)
    payload: dict[str, Any] = {}
    level = "info"
    try:
        config = _client_config()
        output = _build_output(args, config)
        result = handler(args, config, output)
    except InputError as exc:
        print(str(exc), file=sys.stderr)
        exit_code, status, level = 2, "invalid", "warn"
        payload["message"] = str(exc)
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        exit_code, status, level = 1, "config_error", "error"
        payload["message"] = str(exc)
    except ApiRequestError as exc:
        print(str(exc), file=sys.stderr)
        exit_code, status, level = 1, "error", "error"
        payload["message"] = str(exc)
        if exc.status_code is not None:
            payload["status_code"] = exc.status_code
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        exit_code, status, level = 130, "interrupted", "warn"
    else:
        exit_code = 1 if result is False else 0
        status = "failure" if result is False else "success"
    telemetry.command_finished(
        SETTINGS,
        component,
        command,
        status=status,
        started=started,
        level=level,
        payload=payload,
    )
    return exit_code


# --- scm ---------------------------------------------------------------------


def _scm_context(args: argparse.Namespace, config: ClientConfig) -> tuple[ScmTarget, ScmService]:
    target = ScmTarget.resolve(
        getattr(args, "integration", None),
        getattr(args, "project", None),
        default_project=config.project,
    )
    return target, ScmService(_build_gateway(config))


def _scm_config(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> None:
    target, service = _scm_context(args, config)
    scm_config = service.get_config(target)
    output.info(scm_config.summary())
    payload = {"config": scm_config.config}
    file_arg = getattr(args, "file", None)
    if file_arg:
        path = Path(file_arg).expanduser()
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
        output.info(f"Wrote config to file: {path}")
    else:
        output.output(payload)


def _scm_setup(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> bool:
    target, service = _scm_context(args, config)
    outcome = service.setup(target, args.type, Path(args.file).expanduser())
    return report_action_outcome(output, outcome)


def _scm_status(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> bool:
    target, service = _scm_context(args, config)
    status = service.status(target)
    output.output(status.to_dict())
    return status.clean


def _scm_enable(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> None:
    target, service = _scm_context(args, config)
    service.enable(target, args.type)


def _scm_disable(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> None:
    target, service = _scm_context(args, config)
    service.disable(target, args.type)


def _scm_setupinputs(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> None:
    target, service = _scm_context(args, config)
    if getattr(args, "verbose", False):
        output.output(service.setup_inputs_raw(target, args.type))
        return
    output.output([field.to_dict() for field in service.setup_inputs(target, args.type)])


def _scm_inputs(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> None:
    target, service = _scm_context(args, config)
    if getattr(args, "verbose", False):
        output.output(service.get_action_inputs_raw(target, args.action))
        return
    inputs = service.get_action_inputs(target, args.action)
    if output.as_json:
        output.output(inputs.to_dict())
        return
    output.output(f"{inputs.title}: {inputs.description}")
    output.output("Fields:")
    output.output([field.to_dict() for field in inputs.fields])
    output.output("Items:")
    output.output([item.to_dict() for item in inputs.items])


def _scm_perform(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> bool:
    request = ScmActionRequest.from_options(
        fields=getattr(args, "fields", None),
        items=getattr(args, "items", None),
        jobs=getattr(args, "jobs", None),
        delete=getattr(args, "delete", None),
    )
    flags = SelectionFlags(
        all_items=bool(getattr(args, "all_items", False)),
        all_modified=bool(getattr(args, "all_modified", False)),
        all_deleted=bool(getattr(args, "all_deleted", False)),
        all_tracked=bool(getattr(args, "all_tracked", False)),
        all_untracked=bool(getattr(args, "all_untracked", False)),
    )
    target, service = _scm_context(args, config)
    result = service.perform(target, args.action, request, flags)
    return report_action_outcome(output, result.outcome)


def _scm_plugins(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> None:
    target, service = _scm_context(args, config)
    output.output([plugin.to_dict() for plugin in service.list_plugins(target)])


SCM_HANDLERS: dict[str, CommandHandler] = {
    "config": _scm_config,
    "setup": _scm_setup,
    "status": _scm_status,
    "enable": _scm_enable,
    "disable": _scm_disable,
    "setupinputs": _scm_setupinputs,
    "inputs": _scm_inputs,
    "perform": _scm_perform,
    "plugins": _scm_plugins,
}


def _scm_cmd(args: argparse.Namespace) -> int:
    command = args.scm_command
    handler = SCM_HANDLERS.get(command)
    if handler is None:
        print("Unsupported scm command", file=sys.stderr)
        return 2
    return _run("scm", command, args, handler)


# --- executions --------------------------------------------------------------


def _execution_service(config: ClientConfig) -> ExecutionService:
    return ExecutionService(_build_gateway(config))


def _executions_kill(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> bool:
    result = _execution_service(config).abort(args.id)
    output.output(f"Kill [{args.id}] result: {result.abort_status}")
    if result.execution is not None:
        output.output(f"Execution [{args.id}] status: {result.execution.status}")
    if result.failed:
        output.output(f"Kill request failed: {result.reason}")
    return not result.failed


def _executions_follow(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> bool:
    if not getattr(args, "id", None):
        raise InputError("-e/--id is required")
    if args.max_lines < 1:
        raise InputError("--max-lines must be positive")
    streamer = ExecutionOutputStreamer(_execution_service(config), output)
    outcome = streamer.stream(
        args.id,
        restart=bool(args.restart),
        tail=args.tail,
        max_lines=args.max_lines,
        progress=bool(args.progress),
        quiet=bool(args.quiet),
    )
    if outcome.cancelled:
        output.info(f"Stopped following execution {args.id} (state: {outcome.exec_state})")
    return outcome.succeeded


def _executions_list(args: argparse.Namespace, config: ClientConfig, output: CommandOutput) -> None:
    project = resolve_project(getattr(args, "project", None), config.project)
    listing = _execution_service(config).list_running(project, offset=args.offset, max_items=args.max)
    if output.as_json:
        output.output(listing.to_dict())
        return
    noun = "item" if listing.count == 1 else "items"
    output.output(f"Running executions: {listing.count} {noun}")
    for execution in listing.executions:
        output.output(execution.to_basic_string())


EXECUTIONS_HANDLERS: dict[str, CommandHandler] = {
    "kill": _executions_kill,
    "follow": _executions_follow,
    "list": _executions_list,
}


def _executions_cmd(args: argparse.Namespace) -> int:
    command = args.executions_command
    handler = EXECUTIONS_HANDLERS.get(command)
    if handler is None:
        print("Unsupported executions command", file=sys.stderr)
        return 2
    return _run("executions", command, args, handler)


# --- telemetry ---------------------------------------------------------------


def _telemetry_cmd(args: argparse.Namespace) -> int:
    if args.telemetry_command == "report":
        recent = getattr(args, "recent", 0)
        if recent and recent > 0:
            events = telemetry.tail_events(SETTINGS, recent)
        else:
            events = list(telemetry.iter_events(SETTINGS))
        summary = telemetry.summarize(events)
        print(json.dumps(summary, indent=2, ensure_ascii=False))
        return 0
    if args.telemetry_command == "clear":
        telemetry.clear(SETTINGS)
        print("Telemetry log cleared")
        return 0
    if args.telemetry_command == "tail":
        for evt in telemetry.tail_events(SETTINGS, args.limit):
            print(json.dumps(evt, ensure_ascii=False))
        return 0
    print("Unsupported telemetry command", file=sys.stderr)
    return 2


# --- parser ------------------------------------------------------------------


def _add_scm_base(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-p", "--project", help="Project name (default: RD_PROJECT)")
    parser.add_argument(
        "-i",
        "--integration",
        required=True,
        metavar=INTEGRATION_METAVAR,
        help="Integration type: import, export",
    )
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON")


def _add_scm_parsers(sub: argparse._SubParsersAction) -> None:
    scm_cmd = sub.add_parser("scm", help="Manage project SCM")
    scm_sub = scm_cmd.add_subparsers(dest="scm_command", required=True)

    scm_config = scm_sub.add_parser("config", help="Get SCM config for a project")
    _add_scm_base(scm_config)
    scm_config.add_argument("-f", "--file", help="Write config to a file (json format)")
    scm_config.set_defaults(func=_scm_cmd)

    scm_setup = scm_sub.add_parser("setup", help="Setup SCM config for a project")
    _add_scm_base(scm_setup)
    scm_setup.add_argument("-t", "--type", required=True, help="Plugin type")
    scm_setup.add_argument("-f", "--file", required=True, help="Config file (json format)")
    scm_setup.set_defaults(func=_scm_cmd)

    scm_status = scm_sub.add_parser("status", help="Get SCM status for a project")
    _add_scm_base(scm_status)
    scm_status.set_defaults(func=_scm_cmd)

    for name, help_text in (("enable", "Enable plugin"), ("disable", "Disable plugin")):
        toggle = scm_sub.add_parser(name, help=help_text)
        _add_scm_base(toggle)
        toggle.add_argument("-t", "--type", required=True, help="Plugin type")
        toggle.set_defaults(func=_scm_cmd)

    scm_setupinputs = scm_sub.add_parser("setupinputs", help="Get SCM setup inputs")
    _add_scm_base(scm_setupinputs)
    scm_setupinputs.add_argument("-t", "--type", required=True, help="Plugin type")
    scm_setupinputs.add_argument("-v", "--verbose", action="store_true", help="Print the full response")
    scm_setupinputs.set_defaults(func=_scm_cmd)

    scm_inputs = scm_sub.add_parser("inputs", help="Get SCM action inputs")
    _add_scm_base(scm_inputs)
    scm_inputs.add_argument("-a", "--action", required=True, help="Action ID")
    scm_inputs.add_argument("-v", "--verbose", action="store_true", help="Print the full response")
    scm_inputs.set_defaults(func=_scm_cmd)

    scm_perform = scm_sub.add_parser("perform", help="Perform SCM action")
    _add_scm_base(scm_perform)
    scm_perform.add_argument("-a", "--action", required=True, help="Action ID")
    scm_perform.add_argument(
        "-f", "--field", dest="fields", nargs="+", action="extend", help="Field input values, key=value list"
    )
    scm_perform.add_argument("-I", "--item", dest="items", nargs="+", action="extend", help="Items to include")
    scm_perform.add_argument("-j", "--job", dest="jobs", nargs="+", action="extend", help="Job IDs to include")
    scm_perform.add_argument(
        "-d", "--delete", dest="delete", nargs="+", action="extend", help="Job IDs or item IDs to delete"
    )
    scm_perform.add_argument(
        "-A", "--allitems", dest="all_items", action="store_true", help="Include all items from the action inputs"
    )
    scm_perform.add_argument(
        "-M",
        "--allmodified",
        dest="all_modified",
        action="store_true",
        help="Include all modified (not deleted) items (export only)",
    )
    scm_perform.add_argument(
        "-D", "--alldeleted", dest="all_deleted", action="store_true", help="Include all deleted items (export only)"
    )
    scm_perform.add_argument(
        "-T",
        "--alltracked",
        dest="all_tracked",
        action="store_true",
        help="Include all tracked (not new) items (import only)",
    )
    scm_perform.add_argument(
        "-U",
        "--alluntracked",
        dest="all_untracked",
        action="store_true",
        help="Include all untracked (new) items (import only)",
    )
    scm_perform.set_defaults(func=_scm_cmd)

    scm_plugins = scm_sub.add_parser("plugins", help="List SCM plugins")
    _add_scm_base(scm_plugins)
    scm_plugins.set_defaults(func=_scm_cmd)


def _add_executions_parsers(sub: argparse._SubParsersAction) -> None:
    executions_cmd = sub.add_parser("executions", help="Follow, kill and list executions")
    executions_sub = executions_cmd.add_subparsers(dest="executions_command", required=True)

    kill_cmd = executions_sub.add_parser("kill", help="Attempt to kill an execution by ID")
    kill_cmd.add_argument("-e", "--id", help="Execution ID")
    kill_cmd.set_defaults(func=_executions_cmd)

    follow_cmd = executions_sub.add_parser("follow", help="Follow the output of an execution")
    follow_cmd.add_argument("-e", "--id", help="Execution ID")
    follow_cmd.add_argument("-r", "--restart", action="store_true", help="Output from the beginning")
    follow_cmd.add_argument(
        "-T", "--tail", type=int, default=DEFAULT_TAIL, help=f"Number of lines to tail (default: {DEFAULT_TAIL})"
    )
    follow_cmd.add_argument("-q", "--quiet", action="store_true", help="Do not echo log text")
    follow_cmd.add_argument("--progress", action="store_true", help="Print '.' for each batch of output")
    follow_cmd.add_argument(
        "--max-lines",
        type=int,
        default=DEFAULT_MAX_LINES,
        help=f"Maximum log lines per fetch (default: {DEFAULT_MAX_LINES})",
    )
    follow_cmd.set_defaults(func=_executions_cmd)

    list_cmd = executions_sub.add_parser("list", help="List running executions for a project")
    list_cmd.add_argument("-p", "--project", help="Project name (default: RD_PROJECT)")
    list_cmd.add_argument("-o", "--offset", type=int, default=0, help="Offset of the first result")
    list_cmd.add_argument(
        "-m", "--max", type=int, default=DEFAULT_LIST_MAX, help=f"Maximum results (default: {DEFAULT_LIST_MAX})"
    )
    list_cmd.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    list_cmd.set_defaults(func=_executions_cmd)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rdcall",
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"rdcall {__version__}")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colour output")

    sub = parser.add_subparsers(dest="command", required=True)
    _add_scm_parsers(sub)
    _add_executions_parsers(sub)

    telemetry_cmd = sub.add_parser("telemetry", help="Inspect local telemetry logs")
    telemetry_sub = telemetry_cmd.add_subparsers(dest="telemetry_command", required=True)

    telemetry_report = telemetry_sub.add_parser("report", help="Print aggregated telemetry stats")
    telemetry_report.add_argument(
        "--recent",
        type=int,
        default=0,
        help="Limit aggregation to the last N telemetry events",
    )
    telemetry_report.set_defaults(func=_telemetry_cmd)

    telemetry_clear_cmd = telemetry_sub.add_parser("clear", help="Remove telemetry log file")
    telemetry_clear_cmd.set_defaults(func=_telemetry_cmd)

    telemetry_tail_cmd = telemetry_sub.add_parser("tail", help="Print last N telemetry events")
    telemetry_tail_cmd.add_argument("--limit", type=int, default=20)
    telemetry_tail_cmd.set_defaults(func=_telemetry_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

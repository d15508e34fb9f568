"""Plain, JSON and colourised output for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any, List, Mapping, TextIO, Tuple

from rich.console import Console
from rich.text import Text

_Line = Tuple[str, "str | None"]


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_nested(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple)) and bool(value)


def format_lines(value: Any, indent: int = 0) -> List[_Line]:
    """Flatten maps and lists into ``(prefix, value)`` display lines."""

    pad = "  " * indent
    lines: List[_Line] = []
    if isinstance(value, Mapping):
        for key, item in value.items():
            if _is_nested(item):
                lines.append((f"{pad}{key}:", None))
                lines.extend(format_lines(item, indent + 1))
            else:
                lines.append((f"{pad}{key}: ", _scalar(item)))
        return lines
    if isinstance(value, (list, tuple)):
        for item in value:
            if _is_nested(item):
                nested = format_lines(item, indent + 1)
                first_prefix, first_value = nested[0]
                nested[0] = (pad + "- " + first_prefix[len(pad) + 2 :], first_value)
                lines.extend(nested)
            else:
                lines.append((f"{pad}- ", _scalar(item)))
        return lines
    return [(pad, _scalar(value))]


class CommandOutput:
    """Renders messages and structured payloads at four severities."""

    def __init__(
        self,
        *,
        as_json: bool = False,
        ansi: bool = False,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.as_json = as_json
        self.ansi = ansi
        self._stdout = stdout
        self._stderr = stderr

    @property
    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    def info(self, message: Any) -> None:
        # keep stdout machine-readable in JSON mode
        self._emit(message, self.stderr if self.as_json else self.stdout)

    def warning(self, message: Any) -> None:
        self._emit(message, self.stderr, style="yellow")

    def error(self, message: Any) -> None:
        self._emit(message, self.stderr, style="red")

    def output(self, message: Any, *, style: str | None = None, colorize: bool = False) -> None:
        self._emit(message, self.stdout, style=style, colorize=colorize)

    def marker(self, text: str = ".") -> None:
        stream = self.stdout
        stream.write(text)
        stream.flush()

    def _emit(self, message: Any, stream: TextIO, *, style: str | None = None, colorize: bool = False) -> None:
        structured = isinstance(message, (Mapping, list, tuple))
        if self.as_json and structured:
            print(json.dumps(message, ensure_ascii=False, indent=2, default=str), file=stream)
            return
        if not structured:
            self._write_line(stream, "", str(message), style if self.ansi else None)
            return
        value_style = "yellow" if colorize and self.ansi else None
        for prefix, value in format_lines(message):
            self._write_line(stream, prefix, value, value_style)

    def _write_line(self, stream: TextIO, prefix: str, value: str | None, style: str | None) -> None:
        if style is None:
            print(f"{prefix}{value or ''}", file=stream)
            return
        console = Console(
            file=stream,
            force_terminal=True,
            color_system="standard",
            highlight=False,
            soft_wrap=True,
        )
        console.print(Text.assemble(prefix, (value or "", style)))

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from ..core.errors import ToolFailure
from .filters import Filter, apply_filters
from .full_log import FullLog, resolve_sink


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    command_str: str
    exit_code: int
    output_lines: list[str] | None = None


@dataclass(frozen=True)
class Tool:
    """One external process to run.

    Arguments are passed verbatim; nothing goes through a shell unless the
    tool was built with `Tool.shell`.
    """

    command: str
    arguments: Sequence[str] = ()
    filters: Sequence[Filter] = ()
    allow_failure: bool = False
    cwd: str | None = None
    env_overrides: Mapping[str, str] | None = field(default=None, compare=False)

    @classmethod
    def shell(
        cls,
        command_line: str,
        *,
        filters: Sequence[Filter] = (),
        allow_failure: bool = False,
        cwd: str | None = None,
    ) -> "Tool":
        return cls("/bin/sh", ["-c", command_line], filters=filters, allow_failure=allow_failure, cwd=cwd)

    @property
    def command_str(self) -> str:
        return " ".join(shlex.quote(p) for p in [self.command, *self.arguments])

    def run(self, *, include_stderr: bool = True, capture_output: bool = False, sink: FullLog | None = None) -> RunResult:
        return run(self, include_stderr=include_stderr, capture_output=capture_output, sink=sink)

    def run_and_get_output(self, *, include_stderr: bool = True, sink: FullLog | None = None) -> str:
        return run_and_get_output(self, include_stderr=include_stderr, sink=sink)


def _write_invocation_header(tool: Tool, sink: FullLog) -> None:
    sink.write(f"➤ Command {tool.command}")
    if tool.arguments:
        sink.write("\n".join(f"  ➤ {arg}" for arg in tool.arguments))
    sink.write("")


def run(
    tool: Tool,
    *,
    include_stderr: bool = True,
    capture_output: bool = False,
    sink: FullLog | None = None,
) -> RunResult:
    """Run *tool*, streaming its output through the filters into *sink*.

    Raises ToolFailure when the process cannot be started, or when it exits
    non-zero and the tool does not allow failure.
    """

    sink = resolve_sink(sink)
    _write_invocation_header(tool, sink)

    env = {**os.environ, **tool.env_overrides} if tool.env_overrides else None
    output: list[str] | None = [] if capture_output else None

    logger.debug("Running %s", tool.command_str)
    try:
        proc = subprocess.Popen(
            [tool.command, *tool.arguments],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if include_stderr else subprocess.DEVNULL,
            cwd=tool.cwd,
            env=env,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise ToolFailure(
            f"Failed to execute tool '{tool.command}': {e}",
            command=tool.command,
            started=False,
        ) from e

    with proc:
        assert proc.stdout is not None
        for raw in proc.stdout:
            line = raw.rstrip("\r\n")
            sink.write(line)
            if output is not None:
                output.append(line)
            shown = apply_filters(tool.filters, line)
            if shown is not None:
                sink.console(shown)
        exit_code = proc.wait()

    if exit_code != 0 and not tool.allow_failure:
        raise ToolFailure(
            f"Tool exited with code {exit_code}.",
            command=tool.command,
            exit_code=exit_code,
        )

    return RunResult(command_str=tool.command_str, exit_code=exit_code, output_lines=output)


def run_and_get_output(tool: Tool, *, include_stderr: bool = True, sink: FullLog | None = None) -> str:
    result = run(tool, include_stderr=include_stderr, capture_output=True, sink=sink)
    return "\n".join(result.output_lines or [])


def python_exe() -> str:
    return sys.executable

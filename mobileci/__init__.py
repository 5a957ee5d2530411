"""mobileci: step-based build scripts for mobile CI pipelines.

A script registers commands, each made of ordered steps that run external
tools. Tool output is filtered for the console and kept in full in a log file
per command run.

    from mobileci import CI, Command, StepWhen, Tool

    def build(ctx):
        ctx.step("compile", lambda: Tool("make", ["all"]).run())
        ctx.step("notify", notify, StepWhen.ALWAYS)

    raise SystemExit(CI([Command("build", build)]).main())
"""

from __future__ import annotations

from .core.dispatcher import (
    CI,
    EXIT_BUILD_FAILURE,
    EXIT_OK,
    EXIT_STALE,
    EXIT_UNEXPECTED,
    EXIT_UNKNOWN_COMMAND,
)
from .core.errors import BuildError, Failure, ToolFailure
from .core.model import Command, CommandContext, StepOutcome, StepWhen
from .core.runner import run_step, step
from .utils.filters import LiteralFilter, PatternFilter, apply_filters, re_filter, text_filter
from .utils.full_log import FullLog, default_sink
from .utils.paths import TemporaryDirectory
from .utils.subproc import RunResult, Tool, run, run_and_get_output


__all__ = [
    "CI",
    "EXIT_OK",
    "EXIT_BUILD_FAILURE",
    "EXIT_UNEXPECTED",
    "EXIT_UNKNOWN_COMMAND",
    "EXIT_STALE",
    "BuildError",
    "ToolFailure",
    "Failure",
    "Command",
    "CommandContext",
    "StepOutcome",
    "StepWhen",
    "run_step",
    "step",
    "LiteralFilter",
    "PatternFilter",
    "apply_filters",
    "text_filter",
    "re_filter",
    "FullLog",
    "default_sink",
    "TemporaryDirectory",
    "Tool",
    "RunResult",
    "run",
    "run_and_get_output",
]

#!/usr/bin/env python3
"""mobileci's own CI script.

Usage:
  python3 scripts/ci.py check
  python3 scripts/ci.py info
  python3 scripts/ci.py --list-commands
"""

from __future__ import annotations

from pathlib import Path

from mobileci import CI, Command, CommandContext, StepWhen, Tool, default_sink, re_filter, text_filter
from mobileci.tools import git
from mobileci.utils import env
from mobileci.utils.subproc import python_exe


REPO_ROOT = Path(__file__).resolve().parents[1]

PYTEST_FILTERS = [
    re_filter(r"^$"),
    text_filter("platform "),
    re_filter(r"^(cachedir|rootdir|configfile|plugins): "),
    re_filter(r"=+ (\d+ passed.*) =+$", lambda m: f"✔︎ {m.group(1)}"),
]


def _python(*args: str, filters=()) -> Tool:
    return Tool(python_exe(), list(args), filters=list(filters), cwd=str(REPO_ROOT))


def check(ctx: CommandContext) -> None:
    ctx.step("compile", lambda: _python("-m", "compileall", "-q", "mobileci").run())
    ctx.step("pytest", lambda: _python("-m", "pytest", "-q", "-o", "addopts=", filters=PYTEST_FILTERS).run())
    ctx.step(
        "report failure",
        lambda: default_sink().log_warning(f"Check failed; full log: {default_sink().path}"),
        StepWhen.ON_FAILURE,
    )


def info(ctx: CommandContext) -> None:
    def _describe() -> None:
        sink = default_sink()
        sink.log_completion(f"Commit: {git.commit_hash(cwd=str(REPO_ROOT))}")
        sink.log_completion(f"Tag:    {git.commit_tag(cwd=str(REPO_ROOT)) or '(none)'}")

    ctx.step("describe", _describe)
    ctx.step("environment", lambda: env.write_to_log() if env.optional("MOBILECI_DEBUG") else None, StepWhen.ALWAYS)


ci = CI([Command("check", check), Command("info", info)])


if __name__ == "__main__":
    raise SystemExit(ci.main())

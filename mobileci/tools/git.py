from __future__ import annotations

from ..utils.filters import re_filter
from ..utils.subproc import Tool


def commit_hash(*, cwd: str | None = None) -> str:
    tool = Tool("git", ["rev-parse", "--short", "HEAD"], cwd=cwd)
    return tool.run_and_get_output().strip()


def commit_tag(*, cwd: str | None = None) -> str | None:
    """Tag pointing exactly at HEAD, or None when HEAD is untagged."""
    tool = Tool(
        "git",
        ["describe", "--tags", "--exact-match"],
        filters=[re_filter(r"^fatal:")],
        allow_failure=True,
        cwd=cwd,
    )
    result = tool.run_and_get_output().strip()
    if not result or result.startswith("fatal:"):
        return None
    return result

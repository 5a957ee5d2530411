from __future__ import annotations

import os

from ..core.errors import BuildError
from .full_log import FullLog, resolve_sink


def required(key: str) -> str:
    value = os.environ.get(key, "")
    if not value:
        raise BuildError(f"Required environment variable {key} was not set.")
    return value


def optional(key: str, fallback: str | None = None) -> str | None:
    return os.environ.get(key, fallback)


def all_vars() -> list[tuple[str, str]]:
    return sorted(os.environ.items())


def write_to_log(sink: FullLog | None = None) -> None:
    """Print every environment variable to the console, sorted by name."""
    sink = resolve_sink(sink)
    for key, value in all_vars():
        sink.console(f"{key}: {value}")

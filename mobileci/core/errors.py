from __future__ import annotations

from dataclasses import dataclass


class BuildError(Exception):
    """A classified build failure carrying a human-readable message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ToolFailure(BuildError):
    """An external tool could not be started or exited with a non-zero code."""

    def __init__(
        self,
        message: str,
        *,
        command: str,
        exit_code: int | None = None,
        started: bool = True,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code
        self.started = started


@dataclass(frozen=True)
class Failure:
    """Failure returned (instead of raised) from a step body."""

    kind: str  # build|unexpected
    message: str

    @classmethod
    def build(cls, message: str) -> "Failure":
        return cls(kind="build", message=message)

    @classmethod
    def unexpected(cls, message: str) -> "Failure":
        return cls(kind="unexpected", message=message)

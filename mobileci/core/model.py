from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from .runner import StepBody
    from ..utils.full_log import FullLog


class StepWhen(Enum):
    ON_SUCCESS = "on_success"
    ON_FAILURE = "on_failure"
    ALWAYS = "always"


@dataclass(frozen=True)
class StepOutcome:
    name: str
    status: str  # success|failure|skipped
    duration_s: float
    message: str = ""


class CommandContext:
    """Execution handle for one run of one command.

    The failure flag is latched: once recorded it stays set for the rest of
    the run.
    """

    def __init__(self, name: str, *, sink: "FullLog | None" = None) -> None:
        self.name = name
        self.sink = sink
        self.outcomes: list[StepOutcome] = []
        self._failed = False

    def has_failed(self) -> bool:
        return self._failed

    def record_failure(self) -> None:
        self._failed = True

    def step(self, name: str, body: "StepBody", when: StepWhen = StepWhen.ON_SUCCESS) -> StepOutcome:
        from .runner import run_step

        return run_step(self, name, body, when, sink=self.sink)


def _accepts_context(perform: Callable[..., Any]) -> bool:
    try:
        params = inspect.signature(perform).parameters.values()
    except (TypeError, ValueError):
        return True
    required = [
        p
        for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    ]
    return bool(required)


@dataclass(frozen=True)
class Command:
    """A named top-level unit of CI work.

    `perform` receives the CommandContext of the run; a zero-argument callable
    is accepted too.
    """

    name: str
    perform: Callable[..., Any] = field(compare=False)

    def run(self, ctx: CommandContext) -> None:
        if _accepts_context(self.perform):
            self.perform(ctx)
        else:
            self.perform()

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from .errors import BuildError, Failure
from .model import CommandContext, StepOutcome, StepWhen
from ..utils import log_format
from ..utils.full_log import FullLog, resolve_sink


logger = logging.getLogger(__name__)

StepBody = Callable[[], Any]


def _write_durable(write: Callable[[str], None], line: str, sink: FullLog) -> None:
    # A broken durable log must not change the outcome of the step.
    try:
        write(line)
    except BuildError as e:
        sink.log_warning(e.message)


def _should_skip(when: StepWhen, failed: bool) -> bool:
    return (when is StepWhen.ON_SUCCESS and failed) or (when is StepWhen.ON_FAILURE and not failed)


def _call_body(body: StepBody) -> Optional[Failure]:
    try:
        result = body()
    except BuildError as e:
        return Failure.build(e.message)
    except Exception as e:
        logger.debug("Step body raised an unexpected error", exc_info=True)
        return Failure.unexpected(f"{type(e).__name__}: {e}")
    if isinstance(result, Failure):
        return result
    return None


def _record(ctx: CommandContext | None, outcome: StepOutcome) -> StepOutcome:
    if ctx is not None:
        ctx.outcomes.append(outcome)
    return outcome


def run_step(
    ctx: CommandContext | None,
    name: str,
    body: StepBody,
    when: StepWhen = StepWhen.ON_SUCCESS,
    *,
    sink: FullLog | None = None,
) -> StepOutcome:
    """Run *body* as step *name* under the *when* policy.

    Without a context the step behaves as if the command already failed.
    Errors raised by the body are logged and latched on *ctx*; they are never
    re-raised.
    """

    if sink is None and ctx is not None:
        sink = ctx.sink
    sink = resolve_sink(sink)

    failed = ctx.has_failed() if ctx is not None else True
    if _should_skip(when, failed):
        console, durable = log_format.skipped_step(name)
        sink.console("")
        sink.console(console)
        _write_durable(sink.write_header, durable, sink)
        return _record(ctx, StepOutcome(name=name, status="skipped", duration_s=0.0))

    console, durable = log_format.entering_step(name)
    sink.console("")
    sink.console(console)
    _write_durable(sink.write_header, durable, sink)

    start = time.monotonic()
    failure = _call_body(body)
    duration = time.monotonic() - start

    if failure is None:
        console, durable = log_format.finished_step(name, duration)
        sink.console(console)
        _write_durable(sink.write, durable, sink)
        return _record(ctx, StepOutcome(name=name, status="success", duration_s=duration))

    if ctx is not None:
        ctx.record_failure()

    if failure.kind == "build":
        message = failure.message
    else:
        message = f"Unexpected error occurred: {failure.message}"
    sink.log_error(message)

    console, durable = log_format.failed_step(name)
    sink.console(console)
    _write_durable(sink.write, durable, sink)
    return _record(ctx, StepOutcome(name=name, status="failure", duration_s=duration, message=message))


def step(
    ctx: CommandContext | None,
    name: str,
    when: StepWhen = StepWhen.ON_SUCCESS,
) -> Callable[[StepBody], StepOutcome]:
    """Decorator form: the decorated function runs immediately as a step.

        @step(ctx, "compile")
        def _():
            ...
    """

    def decorate(body: StepBody) -> StepOutcome:
        return run_step(ctx, name, body, when)

    return decorate

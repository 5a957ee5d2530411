from __future__ import annotations

import itertools

import pytest

from mobileci.core.errors import BuildError, Failure
from mobileci.core.model import CommandContext, StepWhen
from mobileci.core.runner import run_step, step
from mobileci.utils.full_log import FullLog


def _ok():
    return None


def _fail():
    raise BuildError("nope")


def test_on_success_step_runs_and_logs(sink: FullLog, capsys) -> None:
    path = sink.open("build")
    capsys.readouterr()
    ctx = CommandContext("build", sink=sink)

    outcome = run_step(ctx, "compile", _ok)
    sink.close()

    assert outcome.status == "success"
    out = capsys.readouterr().out.splitlines()
    assert out[0] == ""
    assert out[1] == "Entering step [compile]"
    assert out[2].startswith("Finished step [compile] in ")
    assert out[2].endswith(" seconds")

    log = path.read_text(encoding="utf-8").splitlines()
    rule = "=" * len("Entering step [compile]")
    assert log[:3] == [rule, "Entering step [compile]", rule]
    assert log[3].startswith("Finished step [compile] in ")


def test_duration_has_one_decimal(sink: FullLog, capsys, monkeypatch) -> None:
    import mobileci.core.runner as runner

    ticks = [10.0, 12.345]

    def _monotonic():
        return ticks.pop(0) if len(ticks) > 1 else ticks[0]

    monkeypatch.setattr(runner.time, "monotonic", _monotonic)

    run_step(CommandContext("c", sink=sink), "wait", _ok)
    assert "Finished step [wait] in 2.3 seconds" in capsys.readouterr().out


def test_build_error_latches_failure_and_is_not_raised(sink: FullLog, capsys) -> None:
    path = sink.open("build")
    capsys.readouterr()
    ctx = CommandContext("build", sink=sink)

    outcome = run_step(ctx, "compile", _fail)
    sink.close()

    assert ctx.has_failed()
    assert outcome.status == "failure"
    assert outcome.message == "nope"
    out = capsys.readouterr().out.splitlines()
    assert "<Error> nope" in out
    assert out[-1] == "Step [compile] failed"
    assert path.read_text(encoding="utf-8").splitlines()[-1] == "Step [compile] failed"


def test_unexpected_error_is_tagged(sink: FullLog, capsys) -> None:
    ctx = CommandContext("build", sink=sink)

    def _bug():
        raise KeyError("missing")

    outcome = run_step(ctx, "script", _bug)

    assert ctx.has_failed()
    assert outcome.message.startswith("Unexpected error occurred: KeyError")
    assert "<Error> Unexpected error occurred: KeyError: 'missing'" in capsys.readouterr().out


def test_returned_failure_is_handled_like_raised(sink: FullLog, capsys) -> None:
    ctx = CommandContext("build", sink=sink)
    outcome = run_step(ctx, "lint", lambda: Failure.build("3 issues"))
    assert ctx.has_failed()
    assert outcome.status == "failure"
    assert "<Error> 3 issues" in capsys.readouterr().out

    ctx = CommandContext("build", sink=sink)
    outcome = run_step(ctx, "lint", lambda: Failure.unexpected("odd"))
    assert outcome.message == "Unexpected error occurred: odd"


def test_keyboard_interrupt_is_not_swallowed(sink: FullLog) -> None:
    def _interrupt():
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        run_step(CommandContext("c", sink=sink), "wait", _interrupt)


@pytest.mark.parametrize(
    "when,failed,runs",
    [
        (StepWhen.ON_SUCCESS, False, True),
        (StepWhen.ON_SUCCESS, True, False),
        (StepWhen.ON_FAILURE, False, False),
        (StepWhen.ON_FAILURE, True, True),
        (StepWhen.ALWAYS, False, True),
        (StepWhen.ALWAYS, True, True),
    ],
)
def test_policy_table(sink: FullLog, when: StepWhen, failed: bool, runs: bool) -> None:
    ctx = CommandContext("c", sink=sink)
    if failed:
        ctx.record_failure()
    calls = []
    outcome = run_step(ctx, "s", lambda: calls.append(1), when)
    assert bool(calls) is runs
    assert outcome.status == ("success" if runs else "skipped")


def test_skipped_step_logs_both_sinks(sink: FullLog, capsys) -> None:
    path = sink.open("build")
    capsys.readouterr()
    ctx = CommandContext("build", sink=sink)
    ctx.record_failure()

    run_step(ctx, "package", _ok)
    sink.close()

    assert capsys.readouterr().out.splitlines() == ["", "Step [package] was skipped"]
    assert "Step [package] was skipped" in path.read_text(encoding="utf-8").splitlines()


def test_missing_context_fails_closed(sink: FullLog) -> None:
    calls = []
    assert run_step(None, "orphan", lambda: calls.append("s"), sink=sink).status == "skipped"
    assert run_step(None, "orphan", lambda: calls.append("f"), StepWhen.ON_FAILURE, sink=sink).status == "success"
    assert run_step(None, "orphan", lambda: calls.append("a"), StepWhen.ALWAYS, sink=sink).status == "success"
    assert calls == ["f", "a"]


def test_failure_flag_is_monotonic_over_any_sequence(sink: FullLog) -> None:
    bodies = [_ok, _fail]
    policies = list(StepWhen)
    for combo in itertools.product(itertools.product(bodies, policies), repeat=3):
        ctx = CommandContext("c", sink=sink)
        seen_failed = False
        for body, when in combo:
            before = ctx.has_failed()
            outcome = run_step(ctx, "s", body, when)
            if seen_failed:
                assert ctx.has_failed()
            if when is StepWhen.ON_SUCCESS and before:
                assert outcome.status == "skipped"
            if when is StepWhen.ON_FAILURE and not before:
                assert outcome.status == "skipped"
            seen_failed = seen_failed or ctx.has_failed()


def test_outcomes_are_recorded_in_order(sink: FullLog) -> None:
    ctx = CommandContext("c", sink=sink)
    ctx.step("a", _ok)
    ctx.step("b", _fail)
    ctx.step("c", _ok)
    ctx.step("d", _ok, StepWhen.ON_FAILURE)
    assert [(o.name, o.status) for o in ctx.outcomes] == [
        ("a", "success"),
        ("b", "failure"),
        ("c", "skipped"),
        ("d", "success"),
    ]


def test_decorator_form_runs_immediately(sink: FullLog) -> None:
    ctx = CommandContext("c", sink=sink)
    calls = []

    @step(ctx, "compile")
    def compiled():
        calls.append("ran")

    assert calls == ["ran"]
    assert compiled.status == "success"


def test_broken_durable_log_only_warns(sink: FullLog, capsys) -> None:
    sink.open("build")
    sink._file.close()  # type: ignore[union-attr]

    outcome = run_step(CommandContext("c", sink=sink), "s", _ok)

    assert outcome.status == "success"
    assert "<Warning> Failed to write into build log" in capsys.readouterr().out
    sink._file = None

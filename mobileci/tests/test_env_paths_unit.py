from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest

from mobileci.core.errors import BuildError
from mobileci.utils import env, log_format
from mobileci.utils.logging_utils import log_once
from mobileci.utils.paths import TemporaryDirectory, log_root


def test_required_env_raises_build_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MOBILECI_TOKEN", raising=False)
    with pytest.raises(BuildError, match="Required environment variable MOBILECI_TOKEN was not set."):
        env.required("MOBILECI_TOKEN")

    monkeypatch.setenv("MOBILECI_TOKEN", "")
    with pytest.raises(BuildError):
        env.required("MOBILECI_TOKEN")

    monkeypatch.setenv("MOBILECI_TOKEN", "abc")
    assert env.required("MOBILECI_TOKEN") == "abc"


def test_optional_env_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MOBILECI_SCHEME", raising=False)
    assert env.optional("MOBILECI_SCHEME") is None
    assert env.optional("MOBILECI_SCHEME", "App") == "App"
    monkeypatch.setenv("MOBILECI_SCHEME", "Beta")
    assert env.optional("MOBILECI_SCHEME", "App") == "Beta"


def test_write_to_log_prints_sorted(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setattr(env.os, "environ", {"B": "2", "A": "1"})
    env.write_to_log()
    assert capsys.readouterr().out.splitlines() == ["A: 1", "B: 2"]


def test_log_root_prefers_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MOBILECI_LOG_DIR", str(tmp_path))
    assert log_root() == tmp_path
    monkeypatch.delenv("MOBILECI_LOG_DIR")
    assert log_root().name == "mobileci"


def test_temporary_directory_placeholders(tmp_path: Path) -> None:
    tmp = TemporaryDirectory("archive_$DATE", root=tmp_path)
    assert tmp.path.is_dir()
    assert re.fullmatch(r"archive_\d{8}_\d{6}", tmp.path.name)

    child = tmp.child_path("$UUID.xcconfig")
    assert child.parent == tmp.path
    assert re.fullmatch(r"[0-9A-F-]{36}\.xcconfig", child.name)


def test_log_once_only_logs_first_time(caplog) -> None:
    logger = logging.getLogger("mobileci.test")
    with caplog.at_level(logging.INFO, logger="mobileci.test"):
        assert log_once(logger, "k", level=logging.INFO, msg="first") is True
        assert log_once(logger, "k", level=logging.INFO, msg="second") is False
    assert [r.getMessage() for r in caplog.records] == ["first"]


def test_colors_follow_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("MOBILECI_COLOR", "1")
    assert log_format.error("x") == "\033[31;1m<Error>\033[0m x"

    monkeypatch.setenv("MOBILECI_COLOR", "0")
    assert log_format.error("x") == "<Error> x"

    monkeypatch.setenv("MOBILECI_COLOR", "1")
    monkeypatch.setenv("NO_COLOR", "1")
    assert log_format.warning("x") == "<Warning> x"


def test_durable_step_lines_are_never_decorated(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("MOBILECI_COLOR", "1")
    console, durable = log_format.failed_step("compile")
    assert "\033[" in console
    assert durable == "Step [compile] failed"

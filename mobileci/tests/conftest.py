from __future__ import annotations

from pathlib import Path

import pytest

from mobileci.utils import full_log
from mobileci.utils.full_log import FullLog
from mobileci.utils.logging_utils import reset_log_once


@pytest.fixture
def log_root(tmp_path: Path) -> Path:
    root = tmp_path / "logs"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, log_root: Path):
    """Keep logs out of the real temp dir and console lines free of ANSI codes."""

    monkeypatch.setenv("MOBILECI_LOG_DIR", str(log_root))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("MOBILECI_COLOR", raising=False)

    default = FullLog(root=log_root)
    monkeypatch.setattr(full_log, "_DEFAULT", default)
    reset_log_once()
    yield
    default.close()


@pytest.fixture
def sink() -> FullLog:
    return full_log.default_sink()


@pytest.fixture
def python_tool():
    """Factory for a Tool running an inline Python script."""

    import sys

    from mobileci.utils.subproc import Tool

    def _make(code: str, **kwargs) -> Tool:
        return Tool(sys.executable, ["-c", code], **kwargs)

    return _make

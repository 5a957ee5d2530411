"""Dual console + durable log sink.

Console lines are printed and flushed immediately so they interleave with the
child process timing. Durable lines are the unfiltered transcript of one
command run, written to `<log root>/<uuid>/<command>.log`.

Only one durable file is open per sink; the module-level default sink is the
process-wide one used by tool adapters, and `installed()` swaps it for a run.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from ..core.errors import BuildError
from . import log_format
from .paths import TemporaryDirectory


logger = logging.getLogger(__name__)


class FullLog:
    def __init__(self, root: Path | None = None) -> None:
        self.root = root
        self._file: IO[str] | None = None
        self._path: Path | None = None

    @property
    def path(self) -> Path | None:
        """Path of the open (or most recently opened) durable log."""
        return self._path

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self, name: str) -> Path:
        try:
            path = TemporaryDirectory(root=self.root).child_path(f"{name}.log")
        except OSError as e:
            raise BuildError(f"Failed to create build log directory: {e}") from e

        self.console(f"Saving full log to {path}")
        self.close()

        try:
            self._file = open(path, "w", encoding="utf-8")
        except OSError as e:
            raise BuildError(f"Failed to write build log to '{path}'") from e

        self._path = path
        logger.debug("Opened build log %s", path)
        return path

    def close(self) -> None:
        f = self._file
        self._file = None
        if f is None:
            return
        try:
            f.close()
        except Exception as e:
            logger.debug("Closing build log failed: %s", e)
            self.console(log_format.error("Failed to close build log"))

    @contextmanager
    def session(self, name: str) -> Iterator[Path]:
        path = self.open(name)
        try:
            yield path
        finally:
            self.close()

    def write(self, line: str) -> None:
        if self._file is None:
            return
        try:
            self._file.write(line)
            self._file.write("\n")
            self._file.flush()
        except (OSError, ValueError) as e:
            raise BuildError("Failed to write into build log") from e

    def write_header(self, line: str) -> None:
        divider = "=" * len(line)
        self.write(f"{divider}\n{line}\n{divider}")

    def console(self, line: str) -> None:
        print(line, flush=True)

    # Console helpers mirroring the log_format markers.

    def log_success(self, line: str) -> None:
        self.console(log_format.success(line))

    def log_completion(self, line: str) -> None:
        self.console(log_format.completion(line))

    def log_warning(self, line: str) -> None:
        self.console(log_format.warning(line))

    def log_error(self, line: str) -> None:
        self.console(log_format.error(line))

    def log_lines(self, title: str, lines: str | list[str]) -> None:
        if isinstance(lines, str):
            lines = lines.splitlines()
        self.log_completion(title)
        self.console("")
        for line in lines:
            self.console(line)
        self.console("")


_DEFAULT = FullLog()


def default_sink() -> FullLog:
    return _DEFAULT


def resolve_sink(sink: FullLog | None) -> FullLog:
    return sink if sink is not None else _DEFAULT


@contextmanager
def installed(sink: FullLog) -> Iterator[FullLog]:
    """Make *sink* the default sink until the block exits."""
    global _DEFAULT
    previous = _DEFAULT
    _DEFAULT = sink
    try:
        yield sink
    finally:
        _DEFAULT = previous

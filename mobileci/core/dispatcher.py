from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Iterable

from .errors import BuildError
from .model import Command, CommandContext
from .summary import summarize, write_summary
from ..utils.full_log import FullLog, default_sink, installed


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_BUILD_FAILURE = 1
EXIT_UNEXPECTED = 2
EXIT_UNKNOWN_COMMAND = 64
EXIT_STALE = 222  # reserved: executable older than its sources


class CI:
    """Registry of commands plus the entry point that runs one of them."""

    def __init__(
        self,
        commands: Iterable[Command] | None = None,
        *,
        log_root: str | Path | None = None,
        sink: FullLog | None = None,
    ) -> None:
        self.commands: list[Command] = list(commands or [])
        self.log_root = Path(log_root) if log_root is not None else None
        self.sink = sink if sink is not None else default_sink()

    def command(self, command: Command) -> "CI":
        self.commands.append(command)
        return self

    def register(self, name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator registering a function as command *name*."""

        def decorate(perform: Callable[..., Any]) -> Callable[..., Any]:
            self.command(Command(name, perform))
            return perform

        return decorate

    def find(self, name: str | None) -> Command | None:
        for command in self.commands:
            if command.name == name:
                return command
        return None

    def dispatch(self, argument: str | None) -> int | None:
        """Run the first command named *argument*; None when nothing matches."""
        command = self.find(argument)
        if command is None:
            return None
        return self.run_command(command)

    def run_command(self, command: Command) -> int:
        # Tools resolve the default sink, so ours is installed for the run.
        previous_root = self.sink.root
        if self.log_root is not None:
            self.sink.root = self.log_root

        started = time.monotonic()
        ctx = CommandContext(command.name, sink=self.sink)
        try:
            with installed(self.sink), self.sink.session(command.name) as log_path:
                exit_code = self._perform(command, ctx)
                self._write_summary(ctx, exit_code, time.monotonic() - started, log_path)
        except BuildError as e:
            self.sink.log_error(e.message)
            return EXIT_BUILD_FAILURE
        finally:
            self.sink.root = previous_root
        return exit_code

    def _perform(self, command: Command, ctx: CommandContext) -> int:
        try:
            command.run(ctx)
        except BuildError as e:
            self.sink.log_error(e.message)
            return EXIT_BUILD_FAILURE
        except Exception as e:
            logger.debug("Command %s raised", command.name, exc_info=True)
            self.sink.log_error(f"Unexpected error occurred: {type(e).__name__}: {e}")
            return EXIT_UNEXPECTED

        return EXIT_BUILD_FAILURE if ctx.has_failed() else EXIT_OK

    def _write_summary(self, ctx: CommandContext, exit_code: int, duration_s: float, log_path: Path) -> None:
        summary = summarize(
            ctx.name,
            ctx.outcomes,
            exit_code=exit_code,
            total_duration_s=duration_s,
            log_file=log_path,
        )
        try:
            write_summary(log_path.parent, summary)
        except OSError as e:
            logger.warning("Failed to write step summary: %s", e)

    def main(self, argv: Iterable[str] | None = None) -> int:
        from .cli import main

        return main(self, argv)

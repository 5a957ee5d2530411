from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import cached_property
from typing import Callable, Optional, Sequence, Union

from .logging_utils import log_once


logger = logging.getLogger(__name__)


Replacement = Union[None, str, Callable[["re.Match[str]"], str]]


@dataclass(frozen=True)
class LiteralFilter:
    """Suppress lines containing `needle`, or rewrite them.

    A rewrite substitutes each occurrence of `needle` and keeps the rest of the
    line, the same way `PatternFilter` treats its matches. To replace the whole
    line use `re_filter(r"^.*needle.*$", replacement)`.
    """

    needle: str
    replacement: Optional[str] = None

    def apply(self, line: str) -> Optional[str]:
        if self.needle not in line:
            return line
        if self.replacement is None:
            return None
        return line.replace(self.needle, self.replacement)


@dataclass(frozen=True)
class PatternFilter:
    """Regex filter.

    A matching line is suppressed when `replacement` is None. Otherwise every
    match is substituted with the fixed string, or with `replacement(match)`
    when it is callable.
    """

    pattern: str
    replacement: Replacement = None
    flags: int = 0

    @cached_property
    def regex(self) -> Optional["re.Pattern[str]"]:
        try:
            return re.compile(self.pattern, self.flags)
        except re.error as e:
            log_once(
                logger,
                f"filter-pattern:{self.pattern}",
                level=logging.WARNING,
                msg=f"Ignoring output filter with invalid pattern {self.pattern!r}: {e}",
            )
            return None

    def apply(self, line: str) -> Optional[str]:
        regex = self.regex
        if regex is None or regex.search(line) is None:
            return line
        if self.replacement is None:
            return None
        if callable(self.replacement):
            return regex.sub(self.replacement, line)
        fixed = self.replacement
        return regex.sub(lambda _m: fixed, line)


Filter = Union[LiteralFilter, PatternFilter]


def text_filter(needle: str, replacement: Optional[str] = None) -> LiteralFilter:
    return LiteralFilter(needle, replacement)


def re_filter(pattern: str, replacement: Replacement = None, flags: int = 0) -> PatternFilter:
    return PatternFilter(pattern, replacement, flags)


def apply_filters(chain: Sequence[Filter], line: str) -> Optional[str]:
    """Fold *line* through *chain*, stopping at the first suppression."""

    current: Optional[str] = line
    for f in chain:
        if current is None:
            break
        current = f.apply(current)
    return current

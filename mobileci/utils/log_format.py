from __future__ import annotations

import os
import sys
from datetime import datetime, timezone


_RESET = "\033[0m"
_CODES = {
    "bold": "1",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "cyan": "36",
    "dark_gray": "90",
}


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def colors_enabled() -> bool:
    """Whether console lines get ANSI decoration.

    Priority:
    - NO_COLOR (any value disables)
    - MOBILECI_COLOR=0/1
    - stdout is a TTY
    """

    if os.environ.get("NO_COLOR"):
        return False
    forced = os.environ.get("MOBILECI_COLOR")
    if forced is not None:
        return forced.strip() not in {"", "0", "false", "no"}
    try:
        return sys.stdout.isatty()
    except Exception:
        return False


def style(text: str, *names: str) -> str:
    if not names or not colors_enabled():
        return text
    codes = ";".join(_CODES[n] for n in names)
    return f"\033[{codes}m{text}{_RESET}"


def success(text: str) -> str:
    return f"{style('✔︎', 'green')} {text}"


def completion(text: str) -> str:
    return f"{style('▸', 'yellow')} {text}"


def warning(text: str) -> str:
    return f"{style('<Warning>', 'yellow', 'bold')} {text}"


def error(text: str) -> str:
    return f"{style('<Error>', 'red', 'bold')} {text}"


# Step lines: (console, durable). The durable variant is never decorated.


def entering_step(name: str) -> tuple[str, str]:
    return f"Entering step [{style(name, 'cyan')}]", f"Entering step [{name}]"


def skipped_step(name: str) -> tuple[str, str]:
    return f"Step [{style(name, 'yellow')}] was skipped", f"Step [{name}] was skipped"


def finished_step(name: str, duration_s: float) -> tuple[str, str]:
    d = f"{duration_s:.1f}"
    return (
        f"Finished step [{style(name, 'cyan')}] in {d} seconds",
        f"Finished step [{name}] in {d} seconds",
    )


def failed_step(name: str) -> tuple[str, str]:
    return f"Step [{style(name, 'red', 'bold')}] failed", f"Step [{name}] failed"

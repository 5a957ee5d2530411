from __future__ import annotations

import logging
import os
import threading


_logged_keys: set[str] = set()
_lock = threading.Lock()


def log_once(
    logger,
    key: str,
    *,
    level: int,
    msg: str,
    exc: BaseException | None = None,
) -> bool:
    """Log at most once per process for a given *key*.

    Returns True if the message was logged.
    """

    with _lock:
        if key in _logged_keys:
            return False
        _logged_keys.add(key)

    if exc is not None:
        logger.log(level, msg, exc_info=exc)
        return True

    logger.log(level, msg)
    return True


def reset_log_once() -> None:
    with _lock:
        _logged_keys.clear()


def configure_logging(*, debug: bool = False) -> None:
    """Configure root logging for CI scripts.

    If callers already configured logging handlers, we don't override them.
    """

    if logging.getLogger().handlers:
        return

    level = logging.DEBUG if (debug or os.environ.get("MOBILECI_DEBUG")) else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

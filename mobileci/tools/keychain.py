from __future__ import annotations

from ..utils.full_log import resolve_sink
from ..utils.subproc import Tool


SECURITY = "/usr/bin/security"


def unlock(name: str, password: str) -> None:
    Tool(SECURITY, ["unlock-keychain", "-p", password, f"{name}.keychain"]).run()
    resolve_sink(None).log_success(f"Unlocked keychain '{name}'.")

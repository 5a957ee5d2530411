from __future__ import annotations

import os
import plistlib
import tempfile
from pathlib import Path
from typing import Any

from ..core.errors import BuildError


def read_plist(path: str | Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            data = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException, ValueError) as e:
        raise BuildError(f"Failed to read plist file at '{path}'.") from e
    if not isinstance(data, dict):
        raise BuildError(f"Failed to read plist file at '{path}'.")
    return data


def save_plist(path: str | Path, contents: dict[str, Any]) -> list[str]:
    """Write *contents* as an XML plist atomically; return the written lines."""

    path = Path(path)
    try:
        data = plistlib.dumps(contents, fmt=plistlib.FMT_XML)
        tmp_fd, tmp_path = tempfile.mkstemp(prefix=f"{path.name}.", suffix=".tmp", dir=str(path.parent))
        try:
            with os.fdopen(tmp_fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
    except (OSError, TypeError, OverflowError) as e:
        raise BuildError(f"Failed to write file '{path}'. Details: {e}") from e
    return data.decode("utf-8").splitlines()


class Plist:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get_string(self, key: str, fallback: str | None = None) -> str:
        value = read_plist(self.path).get(key)
        if isinstance(value, str):
            return value
        if fallback is not None:
            return fallback
        raise BuildError(f"Failed to read key '{key}' from Plist file at '{self.path}'.")

    def set(self, key: str, value: str) -> None:
        try:
            data = read_plist(self.path)
        except BuildError as e:
            raise BuildError(f"Failed to write key '{key}' to Plist file at '{self.path}'.") from e
        data[key] = value
        save_plist(self.path, data)

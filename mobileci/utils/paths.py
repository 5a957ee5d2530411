from __future__ import annotations

import os
import tempfile
import uuid
from datetime import datetime
from pathlib import Path


def log_root() -> Path:
    """Return the directory under which durable logs are created.

    Priority:
    - MOBILECI_LOG_DIR
    - <system temp dir>/mobileci
    """

    p = os.environ.get("MOBILECI_LOG_DIR")
    if p:
        return Path(p)
    return Path(tempfile.gettempdir()) / "mobileci"


def _replace_placeholders(text: str) -> str:
    if "$DATE" in text:
        text = text.replace("$DATE", datetime.now().strftime("%Y%m%d_%H%M%S"))
    if "$UUID" in text:
        text = text.replace("$UUID", str(uuid.uuid4()).upper())
    return text


class TemporaryDirectory:
    """A freshly created directory under the log root.

    `$UUID` and `$DATE` in names are replaced with a random UUID and a
    `YYYYmmdd_HHMMSS` timestamp.
    """

    def __init__(self, name: str = "$UUID", *, root: Path | None = None) -> None:
        base = Path(root) if root is not None else log_root()
        self.path = base / _replace_placeholders(name)
        self.path.mkdir(parents=True, exist_ok=True)

    def child_path(self, name: str) -> Path:
        return self.path / _replace_placeholders(name)

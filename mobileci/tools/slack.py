from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from ..utils.full_log import FullLog, resolve_sink


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Field:
    title: str
    text: str

    @property
    def title_json(self) -> dict[str, str]:
        return {"text": f"*{self.title}*", "type": "mrkdwn"}

    @property
    def text_json(self) -> dict[str, str]:
        return {"text": self.text, "type": "mrkdwn"}


@dataclass(frozen=True)
class Button:
    text: str
    url: str

    @property
    def json(self) -> dict[str, Any]:
        return {
            "type": "button",
            "text": {"type": "plain_text", "text": self.text, "emoji": True},
            "url": self.url,
        }


def header_block(text: str) -> dict[str, Any]:
    return {"type": "header", "text": {"type": "plain_text", "text": text, "emoji": True}}


def section_block(text: str, fields: list[Field]) -> dict[str, Any]:
    # Slack lays fields out in two columns: titles of a pair, then their texts.
    ordered: list[dict[str, str]] = []
    texts: list[dict[str, str]] = []
    for idx, f in enumerate(fields, start=1):
        ordered.append(f.title_json)
        texts.append(f.text_json)
        if idx % 2 == 0:
            ordered.extend(texts)
            texts = []
    ordered.extend(texts)

    block: dict[str, Any] = {"type": "section", "fields": ordered}
    if text:
        block["text"] = {"text": text, "type": "mrkdwn"}
    return block


def actions_block(buttons: list[Button]) -> dict[str, Any]:
    return {"type": "actions", "elements": [b.json for b in buttons]}


class Slack:
    def __init__(self, webhook_url: str, *, timeout_s: float = 30.0, sink: FullLog | None = None) -> None:
        self.webhook_url = webhook_url
        self.timeout_s = timeout_s
        self.sink = sink

    def build_message(
        self,
        *,
        header: str = "",
        text: str = "",
        fields: list[Field] | None = None,
        buttons: list[Button] | None = None,
    ) -> dict[str, Any]:
        blocks = [section_block(text, list(fields or [])), actions_block(list(buttons or []))]
        if header:
            blocks.insert(0, header_block(header))
        return {"blocks": blocks}

    def send(
        self,
        *,
        header: str = "",
        text: str = "",
        fields: list[Field] | None = None,
        buttons: list[Button] | None = None,
    ) -> bool:
        """Post a message to the webhook. Delivery problems only warn."""
        return self.send_message(self.build_message(header=header, text=text, fields=fields, buttons=buttons))

    def send_message(self, message: dict[str, Any]) -> bool:
        sink = resolve_sink(self.sink)

        parsed = urlparse(self.webhook_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            sink.log_warning("Invalid Slack webhook URL")
            return False

        body = json.dumps(message, indent=2)
        sink.log_lines("Slack webhook request", body)

        request = urllib.request.Request(
            self.webhook_url,
            data=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_s) as response:  # nosec: B310 - validated scheme
                reply = response.read().decode("utf-8", errors="replace")
        except (urllib.error.URLError, OSError) as e:
            logger.debug("Slack webhook failed: %s", e)
            sink.log_warning("Failed to call Slack webhook.")
            return False

        sink.log_completion(f"Slack webhook response: {reply}")
        return True

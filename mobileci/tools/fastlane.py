from __future__ import annotations

from enum import Enum

from ..utils.subproc import Tool


class MatchType(Enum):
    APPSTORE = "appstore"
    ADHOC = "adhoc"
    ENTERPRISE = "enterprise"


def _match(match_type: MatchType, app_identifier: str, team_id: str, mode: str) -> None:
    Tool(
        "fastlane",
        ["match", match_type.value, mode, "--app_identifier", app_identifier, "--team_id", team_id],
    ).run()


def match(match_type: MatchType, app_identifier: str, team_id: str) -> None:
    """Install the existing signing certificates and profiles without touching the repo."""
    _match(match_type, app_identifier, team_id, "--readonly")


def match_update(match_type: MatchType, app_identifier: str, team_id: str) -> None:
    """Regenerate the profiles and push them to the match repo."""
    _match(match_type, app_identifier, team_id, "--force")

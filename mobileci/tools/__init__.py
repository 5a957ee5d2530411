"""Tool adapters built on top of `mobileci.utils.subproc.Tool`.

`icon` needs Pillow and is imported explicitly by callers
(`from mobileci.tools import icon`).
"""

from __future__ import annotations

from . import fastlane, git, keychain
from .fastlane import MatchType
from .plist import Plist, read_plist, save_plist
from .slack import Button, Field, Slack
from .xcode import XCODE_FILTERS, ArchiveInfo, BuildSettings, ExportMethod, Xcode, parse_build_settings


__all__ = [
    "git",
    "fastlane",
    "keychain",
    "MatchType",
    "Plist",
    "read_plist",
    "save_plist",
    "Slack",
    "Field",
    "Button",
    "Xcode",
    "XCODE_FILTERS",
    "BuildSettings",
    "ArchiveInfo",
    "ExportMethod",
    "parse_build_settings",
]

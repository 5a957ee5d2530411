"""xcodebuild adapter.

Every invocation goes through `Tool` with `XCODE_FILTERS`, so the console only
shows warnings, errors and phase results while the full log keeps everything.
"""

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from ..core.errors import BuildError
from ..utils import log_format
from ..utils.filters import Filter, re_filter, text_filter
from ..utils.full_log import resolve_sink
from ..utils.paths import TemporaryDirectory
from ..utils.subproc import Tool
from .plist import read_plist, save_plist


_BUILD_ACTIONS = (
    "SymLink", "CreateBuildDirectory", "CodeSign", "SetMode", "CompileXIB", "MkDir",
    "ProcessXCFramework", "WriteAuxiliaryFile", "CompileAssetCatalog", "Copying",
    "Codesigning", "CopySwiftLibs", "GenerateDSYMFile", "CompileStoryboard",
    "LinkStoryboards", "Touch", "Copy", "CopyStringsFile", "SwiftCodeGeneration", "Ld",
    "CompileSwift", "CompileSwiftSources", "RegisterExecutionPolicyException",
    "PhaseScriptExecution", "ProcessProductPackaging", "ProcessInfoPlistFile",
    "CpResource", "SetOwnerAndGroup", "SwiftMergeGeneratedHeaders", "Validate",
    "CompileC", "CreateUniversalBinary", "Strip",
)

_BUILTINS = (
    "create-build-directory", "process-xcframework", "copy", "swiftStdLibTool",
    "infoPlistUtility", "copyStrings", "productPackagingUtility",
    "RegisterExecutionPolicyException", "swiftHeaderTool", "validationUtility",
)


def _highlight_warning(m) -> str:
    return log_format.warning(f"{m.group(1)} {m.group(2)}")


def _highlight_error(m) -> str:
    return log_format.error(f"{m.group(1)} {m.group(2)}")


# Noise reduction first; a suppressed line never reaches the highlighting rules.
XCODE_FILTERS: list[Filter] = [
    text_filter("both /usr/lib/libauthinstall.dylib"),
    re_filter(r"^ *$"),
    text_filter("Requested but did not find extension point with identifier"),
    text_filter("detected encoding of input file as Unicode (UTF-8)"),
    # Build phases
    re_filter(r"^Resolve Package Graph$"),
    re_filter(r"^Analyze workspace$"),
    re_filter(r"^Create build description$"),
    re_filter(r"^Build description signature:"),
    re_filter(r"^Build description path"),
    # Package resolution
    re_filter(r"^Resolved source packages:$"),
    re_filter(r"  ([\w\-]+): (https|git|/)"),
    re_filter(r"^resolved source packages: .+$", log_format.success("PACKAGE RESOLUTION finished")),
    # Command line tools
    re_filter(r"^ *(cd|/bin/chmod|/bin/ln|/bin/mkdir|/usr/bin/touch|/usr/bin/codesign|/bin/sh|/usr/sbin/chown|export) "),
    re_filter(r"/bin/(actool|ibtool|strip|dsymutil|clang|swiftc|swift-frontend|lipo) "),
    text_filter("/* com.apple.actool.compilation-results */"),
    text_filter("/* com.apple.actool.document.notices */"),
    text_filter("/* com.apple.ibtool.document.notices */"),
    re_filter(r"\.build/assetcatalog_generated_info\.plist$"),
    re_filter(r"\.bundle/Assets\.car$"),
    # Entitlements
    re_filter(r"^ *Entitlements:$"),
    re_filter(r"^ *\{$"),
    re_filter(r'^ *"[^"]+" = .+?;'),
    re_filter(r"^\}$"),
    text_filter(" IBAgent-iOS["),
    # Signing
    re_filter(r'^ *Signing Identity: *"([^"]+)"'),
    re_filter(r'^ *Provisioning Profile: *"([^"]+)"'),
    re_filter(r"^ *\([0-9a-f-]+\)$"),
    text_filter("DEBUG: Added to environment"),
    re_filter(r'^ *TMPDIR = "/'),
    re_filter(r"^ *builtin-(" + "|".join(_BUILTINS) + r") "),
    re_filter(r"^ *write-file "),
    re_filter(r"^remark: "),
    re_filter(r"^note: "),
    re_filter(r"^Probing signature of "),
    re_filter(r"^(" + "|".join(_BUILD_ACTIONS) + r") "),
    # Highlighting
    re_filter(r"^(/.+?:\d+:\d+): warning: (.*)$", _highlight_warning),
    re_filter(r"^(ld: )warning: (.*)$", _highlight_warning),
    re_filter(r"^(/.+?:\d+:\d+): error: (.*)$", _highlight_error),
    re_filter(r"^\*\* (\w+) SUCCEEDED \*\*", lambda m: log_format.success(f"{m.group(1)} SUCCEEDED")),
    re_filter(r"^\*\* (\w+) FAILED \*\*", lambda m: log_format.error(f"{m.group(1)} FAILED")),
]


class ExportMethod(Enum):
    APPSTORE = "app-store"
    ADHOC = "ad-hoc"
    DEVELOPMENT = "development"
    ENTERPRISE = "enterprise"


@dataclass(frozen=True)
class BuildSettings:
    all: dict[str, str] = field(default_factory=dict)

    def get(self, key: str, fallback: str | None = None) -> str:
        value = self.all.get(key, fallback)
        if value is None:
            raise BuildError(f"Failed to find {key} build setting")
        return value

    @property
    def marketing_version(self) -> str:
        return self.get("MARKETING_VERSION")

    @property
    def provisioning_profile_specifier(self) -> str:
        return self.get("PROVISIONING_PROFILE_SPECIFIER")

    @property
    def built_products_dir(self) -> str:
        return self.get("BUILT_PRODUCTS_DIR")


def parse_build_settings(text: str) -> BuildSettings:
    """Parse `xcodebuild -showBuildSettings -json` output.

    The first target's settings are returned.
    """

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise BuildError(f"Failed to parse build settings: {e}") from e

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise BuildError("Failed to parse build settings: no targets in output")

    settings = data[0].get("buildSettings")
    if not isinstance(settings, dict):
        raise BuildError("Failed to parse build settings: missing 'buildSettings'")
    return BuildSettings(all={str(k): str(v) for k, v in settings.items()})


@dataclass(frozen=True)
class ArchiveInfo:
    bundle_identifier: str
    signing_identity: str
    team_identifier: str

    @classmethod
    def from_plist(cls, plist: dict[str, Any]) -> "ArchiveInfo":
        props = plist.get("ApplicationProperties")
        try:
            return cls(
                bundle_identifier=str(props["CFBundleIdentifier"]),
                signing_identity=str(props["SigningIdentity"]),
                team_identifier=str(props["Team"]),
            )
        except (KeyError, TypeError) as e:
            raise BuildError("Failed to read archive information") from e


@dataclass
class Xcode:
    project: str | None = None
    scheme: str | None = None
    configuration: str | None = None
    destination: str | None = "generic/platform=iOS"
    xcconfig: dict[str, str] = field(default_factory=lambda: {"COMPILER_INDEX_STORE_ENABLE": "NO"})
    xcodebuild: str = "/usr/bin/xcodebuild"

    def make_arguments(self, base: list[str], *, use_scheme: bool = True) -> list[str]:
        args = list(base)
        if self.project:
            args += ["-project", self.project]
        if use_scheme and self.scheme:
            args += ["-scheme", self.scheme]
        if self.destination:
            args += ["-destination", self.destination]
        if self.configuration:
            args += ["-configuration", self.configuration]
        if self.xcconfig:
            args += ["-xcconfig", str(self._write_xcconfig())]
        return args

    def _write_xcconfig(self) -> Path:
        path = TemporaryDirectory().child_path("$UUID.xcconfig")
        text = "\n".join(f"{k} = {v}" for k, v in sorted(self.xcconfig.items()))
        try:
            path.write_text(text + "\n", encoding="utf-8")
        except OSError as e:
            raise BuildError(f"Failed to write file '{path}'. Details: {e}") from e
        return path

    def _tool(self, base: list[str], *, use_scheme: bool = True) -> Tool:
        return Tool(self.xcodebuild, self.make_arguments(base, use_scheme=use_scheme), filters=XCODE_FILTERS)

    def clean(self) -> None:
        self._tool(["clean"]).run()

    def build(self) -> None:
        self._tool(["build"]).run()

    def resolve_packages(self) -> None:
        self._tool(["-resolvePackageDependencies"]).run()

    def build_settings(self) -> BuildSettings:
        tool = Tool(
            self.xcodebuild,
            self.make_arguments(["-showBuildSettings", "-json"]),
            filters=[re_filter(".")],
        )
        return parse_build_settings(tool.run_and_get_output(include_stderr=False))

    def archive(self, archive_path: Path) -> ArchiveInfo:
        self._tool(["archive", "-archivePath", str(archive_path)]).run()

        info = ArchiveInfo.from_plist(read_plist(Path(archive_path) / "Info.plist"))
        sink = resolve_sink(None)
        sink.log_completion("Archive information:")
        sink.console(f"    Bundle identifier: {info.bundle_identifier}")
        sink.console(f"    Signing identity : {info.signing_identity}")
        sink.console(f"    Team identifier  : {info.team_identifier}")
        return info

    def docbuild(self, hosting_base_path: str | None = None) -> list[Path]:
        """Build DocC documentation and return the produced `.doccarchive` bundles."""
        output_dir = Path(self.build_settings().built_products_dir)
        resolve_sink(None).log_completion(f"Documentation output path: {output_dir}")

        base = ["docbuild"]
        if hosting_base_path:
            base.append(f"OTHER_DOCC_FLAGS=--hosting-base-path {hosting_base_path}")
        self._tool(base).run()

        return sorted(p for p in output_dir.glob("*.doccarchive") if p.exists())

    def export_archive(self, archive_path: Path, export_path: Path, export_options: Path) -> None:
        self._tool(
            [
                "-exportArchive",
                "-archivePath", str(archive_path),
                "-exportPath", str(export_path),
                "-exportOptionsPlist", str(export_options),
            ],
            use_scheme=False,
        ).run()

    def archive_and_export(
        self,
        ipa_file_name: str,
        output_path: str | Path,
        *,
        method: ExportMethod = ExportMethod.ADHOC,
    ) -> ArchiveInfo:
        temp_dir = TemporaryDirectory("archiveAndExport_$DATE")
        archive_path = temp_dir.child_path(f"{ipa_file_name}.xcarchive")
        export_path = temp_dir.child_path("export")
        export_options = temp_dir.child_path("export_options.plist")

        info = self.archive(archive_path)
        settings = self.build_settings()

        lines = save_plist(
            export_options,
            {
                "compileBitcode": False,
                "distributionBundleIdentifier": info.bundle_identifier,
                "method": method.value,
                "provisioningProfiles": {info.bundle_identifier: settings.provisioning_profile_specifier},
                "signingCertificate": info.signing_identity,
                "teamID": info.team_identifier,
            },
        )
        resolve_sink(None).log_lines(f"Contents of generated '{export_options}' file:", lines)

        self.export_archive(archive_path, export_path, export_options)
        copy_exported_ipa(export_path, Path(output_path), ipa_file_name)
        return info


def copy_exported_ipa(source_dir: Path, target_dir: Path, ipa_file_name: str) -> Path:
    ipas = sorted(p for p in source_dir.glob("*.ipa") if p.is_file()) if source_dir.is_dir() else []
    if not ipas:
        raise BuildError(f"Failed to find IPA file in '{source_dir}'")

    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"{ipa_file_name}.ipa"

    sink = resolve_sink(None)
    sink.log_completion("Copying IPA File")
    sink.console(f"    From: {ipas[0]}")
    sink.console(f"    To:   {target}")
    shutil.copyfile(ipas[0], target)
    return target

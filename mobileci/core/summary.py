from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path

from .model import StepOutcome
from ..utils.log_format import iso_now


@dataclass(frozen=True)
class StepSummary:
    name: str
    status: str  # success|failure|skipped
    duration_s: float
    message: str = ""


@dataclass(frozen=True)
class CommandSummary:
    command: str
    passed: bool
    exit_code: int
    total_duration_s: float
    log_file: str
    finished_at: str
    steps: list[StepSummary]


def summarize(
    command: str,
    outcomes: list[StepOutcome],
    *,
    exit_code: int,
    total_duration_s: float,
    log_file: Path | None,
) -> CommandSummary:
    return CommandSummary(
        command=command,
        passed=exit_code == 0,
        exit_code=exit_code,
        total_duration_s=total_duration_s,
        log_file=str(log_file) if log_file is not None else "",
        finished_at=iso_now(),
        steps=[StepSummary(name=o.name, status=o.status, duration_s=o.duration_s, message=o.message) for o in outcomes],
    )


def write_summary(out_dir: Path, summary: CommandSummary) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)

    json_path = out_dir / "step-summary.json"
    md_path = out_dir / "step-summary.md"

    json_path.write_text(json.dumps(asdict(summary), indent=2) + "\n", encoding="utf-8")

    lines: list[str] = []
    lines.append(f"# {summary.command}")
    lines.append("")
    lines.append(f"- Passed: {'yes' if summary.passed else 'no'}")
    lines.append(f"- Exit code: {summary.exit_code}")
    lines.append(f"- Duration: {summary.total_duration_s:.1f}s")
    lines.append(f"- Finished: {summary.finished_at}")
    lines.append("")
    lines.append("| # | Step | Status | Duration |")
    lines.append("|---:|---|---|---:|")

    for idx, s in enumerate(summary.steps, start=1):
        lines.append(f"| {idx} | {s.name} | {s.status} | {s.duration_s:.1f}s |")

    md_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return json_path

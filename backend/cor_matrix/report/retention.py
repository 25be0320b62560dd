"""Retention arithmetic and the plain-text report."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Sequence

LABEL_WIDTH = 32
DIVIDER = "-" * 96

INTERPRETATION = (
    "- This report estimates the proportion of lines originally authored by an AI model vs. a human.\n"
    '- "AI-written lines" were completely generated by AI tools.\n'
    '- "Human-written lines" include code fully written by developers or AI generated code modified by\n'
    "  developers."
)


@dataclass(slots=True)
class RetentionMetrics:
    ai_generated_lines_count: int
    ai_generated_lines_retained_count: int
    ai_generated_lines_removed_count: int
    ai_generated_lines_percent: str
    ai_generated_lines_retained_percent: str
    ai_generated_lines_removed_percent: str
    total_files_count: int
    total_lines_count: int
    ai_lines_count: int
    percent_ai: str
    human_lines_count: int
    percent_human: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class UniqueOverlap:
    """Distinct recorded signatures that still occur somewhere locally."""

    unique_recorded_count: int
    unique_retained_count: int
    retained_percent: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _percent(numerator: int, denominator: int, places: int) -> str:
    if denominator <= 0:
        return f"{0:.{places}f}"
    return f"{numerator / denominator * 100:.{places}f}"


def compute_metrics(
    local_signatures: Sequence[str],
    remote_signatures: Sequence[str],
    total_files: int,
) -> RetentionMetrics:
    """Compare the current codebase with every recorded AI-authored line.

    Retention is counted per local line: each local line whose signature was
    ever recorded counts once, so a recorded line duplicated locally is
    counted for every occurrence.
    """
    remote_set = set(remote_signatures)
    total_lines = len(local_signatures)
    ai_generated = len(remote_signatures)
    retained = sum(1 for sig in local_signatures if sig in remote_set)
    removed = max(0, ai_generated - retained)
    human = total_lines - retained if total_lines > 0 else 0
    ai_lines = retained if total_lines > 0 else 0

    return RetentionMetrics(
        ai_generated_lines_count=ai_generated,
        ai_generated_lines_retained_count=retained,
        ai_generated_lines_removed_count=removed,
        ai_generated_lines_percent=_percent(ai_generated, total_lines, 2),
        ai_generated_lines_retained_percent=_percent(retained, ai_generated, 2),
        ai_generated_lines_removed_percent=_percent(removed, ai_generated, 2),
        total_files_count=total_files,
        total_lines_count=total_lines,
        ai_lines_count=ai_lines,
        percent_ai=_percent(ai_lines, total_lines, 3),
        human_lines_count=human,
        percent_human=_percent(human, total_lines, 3),
    )


def compute_unique_overlap(local_signatures: Sequence[str], remote_signatures: Sequence[str]) -> UniqueOverlap:
    remote_unique = set(remote_signatures)
    retained = len(remote_unique & set(local_signatures))
    return UniqueOverlap(
        unique_recorded_count=len(remote_unique),
        unique_retained_count=retained,
        retained_percent=_percent(retained, len(remote_unique), 2),
    )


def _row(label: str, value: str) -> str:
    return f"{label.ljust(LABEL_WIDTH)}{value}"


def _report_time(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    return f"{moment:%B} {moment.day}, {moment.year} at {hour}:{moment:%M} {moment:%p}"


def format_report(
    metrics: RetentionMetrics,
    project_path: str,
    generated_at: datetime | None = None,
    overlap: UniqueOverlap | None = None,
) -> str:
    generated_at = generated_at or datetime.now()
    total = f"{metrics.total_lines_count:,}"
    ai_lines = f"{metrics.ai_lines_count:,}"
    human_lines = f"{metrics.human_lines_count:,}"

    parts = [
        " COR-Matrix Report ",
        DIVIDER,
        _row("Codebase Path", project_path),
        _row("Report Time", _report_time(generated_at)),
        _row("Total Files", f"{metrics.total_files_count:,}"),
        _row("Total Lines", total),
        _row("AI Generated Lines", f"{ai_lines} ({metrics.percent_ai}%)"),
        _row("Human Written / Modified Lines", f"{human_lines} ({metrics.percent_human}%)"),
        DIVIDER,
        _row("AI + Human", f"{ai_lines} + {human_lines} = {total} (100%)"),
        DIVIDER,
        _row(
            "AI Generated Lines Recorded",
            f"{metrics.ai_generated_lines_count:,} ({metrics.ai_generated_lines_percent}% of total lines)",
        ),
        _row(
            "  Retained",
            f"{metrics.ai_generated_lines_retained_count:,} ({metrics.ai_generated_lines_retained_percent}%)",
        ),
        _row(
            "  Removed",
            f"{metrics.ai_generated_lines_removed_count:,} ({metrics.ai_generated_lines_removed_percent}%)",
        ),
    ]
    if overlap is not None:
        parts.append(
            _row(
                "Unique Recorded Lines Retained",
                f"{overlap.unique_retained_count:,} of {overlap.unique_recorded_count:,} "
                f"({overlap.retained_percent}%)",
            )
        )
    parts.extend([DIVIDER, "", "Interpretation:", INTERPRETATION, ""])
    return "\n".join(parts)


__all__ = ["RetentionMetrics", "UniqueOverlap", "compute_metrics", "compute_unique_overlap", "format_report"]

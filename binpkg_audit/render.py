"""
Report line formatting.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .pipeline import AuditRecord


def format_duration(seconds: int) -> str:
    """Format seconds as "59s" below a minute, otherwise "2′5″"."""
    minutes, rest = divmod(seconds, 60)
    if minutes:
        return f"{minutes}′{rest}″"
    return f"{seconds}s"


def render_report(
    records: Sequence[AuditRecord],
    show_time: bool = False,
    show_files: bool = False,
) -> list[str]:
    """
    Render report lines for audited packages.

    Each package gets "{package}" or "{package}: {duration}", followed
    by its binary paths (one per line, unindented) when show_files is set.
    """
    lines = []
    for record in records:
        if show_time:
            lines.append(f"{record.package}: {format_duration(record.duration)}")
        else:
            lines.append(record.package)
        if show_files:
            lines.extend(record.files)
    return lines

"""Human-readable formatting for validation results and repository listings."""

from __future__ import annotations

from typing import Sequence

from .models import ValidationReport
from .repository import RoundSummary

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_bytes(size: int) -> str:
    """Return ``size`` scaled to binary units, e.g. ``2468 -> "2.41 KB"``."""

    if size == 0:
        return "0 Bytes"

    value = float(size)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1

    rendered = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{rendered} {_SIZE_UNITS[index]}"


def format_validation_report(report: ValidationReport) -> str:
    """Return the itemised report printed by the validator CLI.

    Totals come first, then every error, then every warning.
    """

    lines = [
        "Validation Results",
        "==================",
        f"Errors: {len(report.errors)}",
        f"Warnings: {len(report.warnings)}",
    ]

    if report.errors:
        lines.append("")
        lines.append("Errors:")
        lines.extend(f"- {issue}" for issue in report.errors)

    if report.warnings:
        lines.append("")
        lines.append("Warnings:")
        lines.extend(f"- {issue}" for issue in report.warnings)

    lines.append("")
    if report.passed:
        lines.append("Validation successful!")
        if not report.warnings:
            lines.append("No errors or warnings found.")
    else:
        lines.append(f"Validation failed with {len(report.errors)} error(s).")

    return "\n".join(lines)


def format_round_table(summaries: Sequence[RoundSummary]) -> str:
    """Return a fixed-width table describing the available rounds."""

    if not summaries:
        return "No rounds found."

    rows = [("ID", "Name", "Categories", "Path")]
    rows.extend(
        (summary.id, summary.name, str(summary.category_count), str(summary.path))
        for summary in summaries
    )
    widths = [max(len(row[column]) for row in rows) for column in range(4)]

    lines = []
    for position, row in enumerate(rows):
        lines.append(
            "  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip()
        )
        if position == 0:
            lines.append("  ".join("-" * width for width in widths))
    return "\n".join(lines)


__all__ = ["format_bytes", "format_round_table", "format_validation_report"]

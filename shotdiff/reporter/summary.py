"""Terminal summary of a run."""

from __future__ import annotations

import os

from rich.table import Table

from shotdiff.models.result import ScreenshotResult

STATUS_STYLES = {
    "ok": "[green]ok[/green]",
    "changed": "[red]changed[/red]",
    "captured": "[blue]captured[/blue]",
    "skipped": "[yellow]skipped[/yellow]",
    "failed": "[red]failed[/red]",
}


def result_status(result: ScreenshotResult, with_reference: bool) -> str:
    if result.difference is not None:
        return "ok" if result.difference.passed else "changed"
    if not result.filename or result.failed:
        return "failed"
    if with_reference and (not result.ref_filename or result.ref_failed):
        return "failed"
    if result.skipped and (not with_reference or result.ref_skipped):
        return "skipped"
    return "captured"


def count_regressions(results: dict[str, ScreenshotResult]) -> int:
    return sum(1 for r in results.values() if r.difference is not None and not r.difference.passed)


def _display_path(path: str | None) -> str:
    if not path:
        return "-"
    try:
        return os.path.relpath(path)
    except ValueError:
        return path


def build_summary_table(
    results: dict[str, ScreenshotResult], threshold: float, with_reference: bool = False
) -> Table:
    table = Table(title="Screenshot Summary")
    table.add_column("URL", style="bold")
    table.add_column("File")
    if with_reference:
        table.add_column("Mismatch", justify="right")
    table.add_column("Status")

    for result in results.values():
        status = STATUS_STYLES[result_status(result, with_reference)]
        row = [result.url or result.ref_url or "-", _display_path(result.filename)]
        if with_reference:
            diff = result.difference
            row.append(f"{diff.mismatch_percentage:.2f}%" if diff else "-")
        row.append(status)
        table.add_row(*row)

    if with_reference:
        table.caption = f"Threshold: {threshold:g}%"
    return table

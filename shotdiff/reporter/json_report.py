"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from shotdiff.models.config import Job
from shotdiff.models.result import ScreenshotResult

from .summary import count_regressions


def generate_json_report(
    job: Job,
    results: dict[str, ScreenshotResult],
    output_path: Path,
) -> None:
    """Write a machine-readable JSON report of one run."""
    report = {
        "exec_time": job.exec_time.isoformat(),
        "folder": str(job.folder),
        "reference": job.reference,
        "threshold": job.threshold,
        "total_urls": len(job.urls),
        "regressions": count_regressions(results),
        "results": {page_id: r.model_dump() for page_id, r in results.items()},
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)

"""Job runner — captures screenshots with Playwright, then diffs them against references."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, async_playwright

from shotdiff.models.config import Job
from shotdiff.models.result import CaptureContext, ScreenshotResult
from shotdiff.url_utils import filename_for, stable_id_for, swap_origin

from .comparator import compare_images, diff_filename_for
from .onload import OnloadHook, load_onload_script
from .throttle import DomainThrottle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureTask:
    url: str
    context: CaptureContext = "primary"


class JobRunner:
    """Runs every capture for a Job, then compares primary/reference pairs.

    Results are keyed by the URL's stable ID so a page and its reference
    counterpart end up in the same record, whichever finishes first.
    """

    def __init__(self, job: Job, onload: Optional[OnloadHook] = None):
        self.job = job
        self.onload = onload if onload is not None else load_onload_script(job.onload_script)
        self.results: dict[str, ScreenshotResult] = {}
        self.throttle = DomainThrottle(job.same_domain_delay)

    def run_sync(self) -> dict[str, ScreenshotResult]:
        return asyncio.run(self.run())

    async def run(self) -> dict[str, ScreenshotResult]:
        if not self.job.urls:
            raise ValueError("Job has no URLs to capture")

        start = time.time()
        tasks = self.build_tasks()
        logger.info("Capturing %d screenshot(s) with %d parallel page(s)",
                    len(tasks), self.job.parallel)

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                semaphore = asyncio.Semaphore(self.job.parallel)

                async def _run_one(task: CaptureTask) -> None:
                    async with semaphore:
                        await self._run_task(browser, task)

                await asyncio.gather(*(_run_one(t) for t in tasks))
            finally:
                await browser.close()

        logger.info("Capture phase complete in %.1fs", time.time() - start)

        if self.job.reference:
            self.compare_all()

        return self.results

    def build_tasks(self) -> list[CaptureTask]:
        tasks = []
        for url in self.job.urls:
            tasks.append(CaptureTask(url))
            if self.job.reference:
                tasks.append(CaptureTask(url, "reference"))
        return tasks

    def target_for(self, task: CaptureTask) -> tuple[str, Path]:
        """Resolve the URL to load and the file to write for a task."""
        if task.context == "reference":
            return (
                swap_origin(task.url, self.job.reference),
                self.job.reference_folder / filename_for(task.url),
            )
        return task.url, self.job.folder / filename_for(task.url)

    def _record(self, task: CaptureTask, target_url: str, output: Path,
                title: Optional[str], skipped: bool = False, failed: bool = False) -> None:
        entry = self.results.setdefault(stable_id_for(task.url), ScreenshotResult())
        entry.record(task.context, target_url, str(output), title,
                     skipped=skipped, failed=failed)

    async def _run_task(self, browser: Browser, task: CaptureTask) -> None:
        target_url, output = self.target_for(task)

        if output.exists():
            logger.info("Skipping %s, %s already exists", target_url, output)
            self._record(task, target_url, output, None, skipped=True)
            return

        try:
            title = await asyncio.wait_for(
                self._capture(browser, target_url, output), timeout=self.job.timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Timed out after %.0fs capturing %s", self.job.timeout, target_url)
            self._record(task, target_url, output, None, failed=True)
            return
        except Exception as e:
            logger.warning("Capture failed for %s: %s", target_url, e)
            self._record(task, target_url, output, None, failed=True)
            return

        self._record(task, target_url, output, title)
        logger.info("Captured %s -> %s", target_url, output)

    async def _capture(self, browser: Browser, url: str, output: Path) -> str:
        page = await browser.new_page(
            viewport={"width": self.job.viewport_width, "height": self.job.viewport_height}
        )
        try:
            await self.throttle.wait(url)
            await page.goto(url)
            if self.onload:
                await self.onload(page)
            await page.wait_for_timeout(self.job.wait * 1000)
            await page.screenshot(path=str(output), full_page=True)
            return await page.title()
        finally:
            await page.close()

    def compare_all(self) -> None:
        """Diff every record that has both a primary and a reference image."""
        for page_id, entry in self.results.items():
            if not entry.has_pair:
                logger.warning("No screenshot pair for %s, skipping diff",
                               entry.url or entry.ref_url or page_id)
                continue
            if not (Path(entry.filename).exists() and Path(entry.ref_filename).exists()):
                logger.warning("Missing image file for %s, skipping diff", entry.url)
                continue
            try:
                entry.difference = compare_images(
                    entry.filename,
                    entry.ref_filename,
                    diff_filename_for(entry.ref_filename),
                    threshold=self.job.threshold,
                )
            except OSError as e:
                logger.warning("Could not compare %s: %s", entry.url, e)
                continue
            logger.info("Diff %s: %.2f%% mismatch", entry.url, entry.difference.mismatch_percentage)

"""On-load hooks — user scripts run in the page before the screenshot is taken."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, Optional

from playwright.async_api import Page

logger = logging.getLogger(__name__)

OnloadHook = Callable[[Page], Awaitable[None]]


def script_hook(source: str) -> OnloadHook:
    """Wrap JavaScript source in a hook; function expressions are invoked by Playwright."""

    async def _hook(page: Page) -> None:
        await page.evaluate(source)

    return _hook


def load_onload_script(path: str | Path | None) -> Optional[OnloadHook]:
    """Load a JavaScript file as an on-load hook, or None if it can't be read."""
    if not path:
        return None
    path = Path(path)
    if not path.is_file() or not os.access(path, os.R_OK):
        logger.debug("No on-load script at %s", path)
        return None
    source = path.read_text(encoding="utf-8").strip()
    if not source:
        return None
    logger.info("Using on-load script %s", path)
    return script_hook(source)

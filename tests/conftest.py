"""Pytest configuration and shared fixtures."""

from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from PIL import Image

from shotdiff.models.config import Job, JobDefaults


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def defaults() -> JobDefaults:
    """Defaults with no config file lookup."""
    return JobDefaults(config=None)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "shots"
    folder.mkdir()
    return folder


def make_job(folder: Path, **kwargs) -> Job:
    """Build a valid Job rooted at ``folder``; keyword args override fields."""
    fields = dict(
        urls=["https://live.example.com/", "https://live.example.com/about?tab=1"],
        folder=folder,
        viewport_width=800,
        viewport_height=600,
        wait=0,
        timeout=5,
        parallel=2,
        same_domain_delay=0,
        threshold=5.0,
        exec_time=datetime(2024, 3, 9, 14, 5, 7),
    )
    fields.update(kwargs)
    return Job(**fields)


@pytest.fixture
def job(output_dir: Path) -> Job:
    return make_job(output_dir)


@pytest.fixture
def reference_job(output_dir: Path) -> Job:
    (output_dir / "reference").mkdir()
    return make_job(output_dir, reference="https://ref.example.com")


# ============================================================================
# Image Helpers
# ============================================================================


def create_png(path: Path, size=(20, 10), color=(255, 255, 255)) -> Path:
    """Write a solid-colour PNG."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path)
    return path


@pytest.fixture
def create_png_helper():
    return create_png


# ============================================================================
# Playwright Fixtures
# ============================================================================


def make_mock_page(title: str = "Example Page", color=(255, 255, 255)) -> AsyncMock:
    """Page whose screenshot() writes a real PNG to the requested path."""
    page = AsyncMock()
    page.goto = AsyncMock()
    page.evaluate = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.title = AsyncMock(return_value=title)
    page.close = AsyncMock()

    async def _screenshot(path: str, full_page: bool = False):
        create_png(Path(path), color=color)

    page.screenshot = AsyncMock(side_effect=_screenshot)
    return page


def make_mock_playwright(pages: list | None = None, page_factory=None):
    """Return (async_playwright replacement, browser, created pages)."""
    created: list = []

    async def _new_page(**kwargs):
        if pages:
            page = pages.pop(0)
        else:
            page = (page_factory or make_mock_page)()
        created.append(page)
        return page

    browser = AsyncMock()
    browser.new_page = AsyncMock(side_effect=_new_page)
    browser.close = AsyncMock()

    pw = Mock()
    pw.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=pw)
    manager.__aexit__ = AsyncMock(return_value=False)
    factory = Mock(return_value=manager)
    return factory, browser, created


@pytest.fixture
def mock_playwright():
    return make_mock_playwright()

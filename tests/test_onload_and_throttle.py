"""Tests for on-load hooks and same-domain pacing."""

import asyncio
import time
from unittest.mock import AsyncMock

import pytest

from shotdiff.runner.onload import load_onload_script, script_hook
from shotdiff.runner.throttle import DomainThrottle


class TestLoadOnloadScript:

    def test_missing_file(self, tmp_path):
        assert load_onload_script(tmp_path / "missing.js") is None

    def test_none(self):
        assert load_onload_script(None) is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "onload.js"
        path.write_text("   \n")
        assert load_onload_script(path) is None

    @pytest.mark.asyncio
    async def test_evaluates_source_in_page(self, tmp_path):
        path = tmp_path / "onload.js"
        path.write_text("() => { document.querySelector('#cookie-banner')?.remove(); }\n")
        hook = load_onload_script(path)

        page = AsyncMock()
        await hook(page)

        page.evaluate.assert_awaited_once_with(
            "() => { document.querySelector('#cookie-banner')?.remove(); }"
        )

    @pytest.mark.asyncio
    async def test_script_hook(self):
        page = AsyncMock()
        await script_hook("window.scrollTo(0, 0)")(page)
        page.evaluate.assert_awaited_once_with("window.scrollTo(0, 0)")


class TestDomainThrottle:

    @pytest.mark.asyncio
    async def test_same_host_is_spaced(self):
        throttle = DomainThrottle(0.1)
        start = time.monotonic()
        await throttle.wait("https://a.com/1")
        await throttle.wait("https://a.com/2")
        assert time.monotonic() - start >= 0.09

    @pytest.mark.asyncio
    async def test_different_hosts_not_delayed(self):
        throttle = DomainThrottle(5)
        start = time.monotonic()
        await asyncio.gather(
            throttle.wait("https://a.com/"),
            throttle.wait("https://b.com/"),
        )
        assert time.monotonic() - start < 1

    @pytest.mark.asyncio
    async def test_zero_delay(self):
        throttle = DomainThrottle(0)
        start = time.monotonic()
        for i in range(5):
            await throttle.wait(f"https://a.com/{i}")
        assert time.monotonic() - start < 1

    def test_negative_delay_clamped(self):
        assert DomainThrottle(-1).delay == 0.0

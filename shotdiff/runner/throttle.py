"""Per-domain request pacing."""

from __future__ import annotations

import asyncio
import time
from urllib.parse import urlparse


class DomainThrottle:
    """Spaces out request starts to the same host by at least ``delay`` seconds."""

    def __init__(self, delay: float):
        self.delay = max(delay, 0.0)
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_start: dict[str, float] = {}

    async def wait(self, url: str) -> None:
        """Block until a request to ``url``'s host may start."""
        host = urlparse(url).netloc
        lock = self._locks.setdefault(host, asyncio.Lock())
        async with lock:
            last = self._last_start.get(host)
            if last is not None and self.delay:
                remaining = last + self.delay - time.monotonic()
                if remaining > 0:
                    await asyncio.sleep(remaining)
            self._last_start[host] = time.monotonic()

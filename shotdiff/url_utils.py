"""Shared URL utilities — derive filenames, stable result IDs and output subfolders."""

from __future__ import annotations

import hashlib
import re
from datetime import datetime
from urllib.parse import urlparse, urlunparse

ABSOLUTE_URL_RE = re.compile(r"^https?://[^/]+")
_UNSAFE_CHARS_RE = re.compile(r"[^a-z0-9\-_]")

HOMEPAGE_NAME = "_homepage"


def is_absolute_url(value: str) -> bool:
    return bool(ABSOLUTE_URL_RE.match(value))


def normalized_path(url: str) -> str:
    """Reduce a URL's path + query to a filesystem-safe name.

    Scheme and host are dropped, so a live URL and its reference
    counterpart normalize to the same value.
    """
    parsed = urlparse(url)
    raw = parsed.path + (f"?{parsed.query}" if parsed.query else "")
    name = raw[1:] if raw.startswith("/") else raw
    return _UNSAFE_CHARS_RE.sub("_", (name or HOMEPAGE_NAME).lower())


def filename_for(url: str, extension: str = "png") -> str:
    """Filename used to store the screenshot of a URL."""
    return f"{normalized_path(url)}.{extension}"


def stable_id_for(url: str) -> str:
    """Generate a stable result ID from the normalized path + query."""
    return hashlib.md5(normalized_path(url).encode()).hexdigest()


def date_subfolder_for(timestamp: datetime | None = None) -> str:
    """Format a timestamp as a ``/YYYYMMDD/HHMMSS`` folder segment."""
    timestamp = timestamp or datetime.now()
    return timestamp.strftime("/%Y%m%d/%H%M%S")


def join_domain(domain: str, path: str) -> str:
    """Join a relative path onto a domain; absolute URLs pass through."""
    if is_absolute_url(path):
        return path
    separator = "" if domain.endswith("/") or path.startswith("/") else "/"
    return f"{domain}{separator}{path}"


def swap_origin(url: str, reference: str) -> str:
    """Point a URL at the reference domain, keeping path, query and fragment."""
    parsed = urlparse(url)
    rest = urlunparse(("", "", parsed.path, parsed.params, parsed.query, parsed.fragment))
    return f"{reference.rstrip('/')}{rest}"

"""Config resolver — merges defaults, config file and overrides into a Job."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from shotdiff.models.config import (
    DEFAULTS,
    FieldError,
    Job,
    JobDefaults,
    JobSettings,
    Resolution,
)
from shotdiff.url_utils import date_subfolder_for, is_absolute_url, join_domain

from .readers import read_config, read_sitemap

logger = logging.getLogger(__name__)

# Checked in this order; each must be set (None means unset, 0 is fine).
REQUIRED_FIELDS: list[FieldError] = [
    FieldError.SAME_DOMAIN_DELAY,
    FieldError.OUTPUT_FOLDER,
    FieldError.PARALLEL,
    FieldError.THRESHOLD,
    FieldError.TIMEOUT,
    FieldError.VIEWPORT_HEIGHT,
    FieldError.VIEWPORT_WIDTH,
    FieldError.WAIT,
]

# Sources of the URL list. One given in a higher layer replaces them all below it.
INPUT_KEYS = ("urls", "paths", "xml")


def _settings_from(data: dict, source: str) -> dict:
    """Validate one layer of settings and return only the keys it sets."""
    data = {k: v for k, v in data.items() if isinstance(k, str)}
    try:
        settings = JobSettings.model_validate(data)
    except ValidationError as e:
        bad = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
        logger.warning("Ignoring invalid settings %s from %s", sorted(bad), source)
        cleaned = {
            k: v for k, v in data.items()
            if k not in bad and _snake(k) not in bad
        }
        settings = JobSettings.model_validate(cleaned)
    return settings.model_dump(exclude_none=True)


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def _absolute(path: str, cwd: Path) -> Path:
    return Path(path) if path.startswith("/") else cwd / path


def merge_settings(
    overrides: dict[str, Any],
    defaults: JobDefaults = DEFAULTS,
    cwd: Path | None = None,
) -> JobSettings:
    """Merge defaults < config file < overrides into one JobSettings."""
    cwd = cwd or Path.cwd()
    merged: dict[str, Any] = defaults.model_dump(exclude={"config"}, exclude_none=True)

    config_path = overrides.get("config") or defaults.config
    if config_path:
        file_data = read_config(_absolute(str(config_path), cwd))
        if file_data:
            merged.update(_settings_from(file_data, str(config_path)))

    explicit = {k: v for k, v in overrides.items() if k != "config" and v is not None}
    explicit_settings = _settings_from(explicit, "overrides")
    if any(key in explicit_settings for key in INPUT_KEYS):
        for key in INPUT_KEYS:
            merged.pop(key, None)
    merged.update(explicit_settings)
    return JobSettings.model_validate(merged)


def derive_urls(settings: JobSettings, cwd: Path | None = None) -> list[str]:
    """Work out the final URL list; the first applicable source wins."""
    cwd = cwd or Path.cwd()

    if settings.urls and all(is_absolute_url(u) for u in settings.urls):
        return list(settings.urls)

    if settings.domain:
        paths = settings.paths if settings.paths is not None else settings.urls
        if paths is not None:
            return [join_domain(settings.domain, p) for p in paths]

    if settings.xml:
        xml_path = _absolute(settings.xml, cwd)
        if xml_path.exists():
            return read_sitemap(xml_path)
        logger.warning("Sitemap not found: %s", xml_path)

    return []


def build_output_folder(
    settings: JobSettings, exec_time: datetime, cwd: Path | None = None
) -> Optional[Path]:
    """Compose <output_folder>[/<label>][/<date>/<time>] as a normalized path."""
    if settings.folder:
        return Path(os.path.normpath(_absolute(settings.folder, cwd or Path.cwd())))
    if settings.output_folder is None:
        return None

    folder = str(_absolute(settings.output_folder, cwd or Path.cwd()))
    if settings.label:
        folder = f"{folder}/{settings.label}"
    if settings.date_subfolder:
        folder = f"{folder}{date_subfolder_for(exec_time)}"
    return Path(os.path.normpath(folder))


def _is_writable_dir(path: Path) -> bool:
    return path.is_dir() and os.access(path, os.W_OK)


def init_output_folder(folder: Path, with_reference: bool) -> bool:
    """Create the output (and reference) folder; report whether both are usable."""
    targets = [folder, folder / "reference"] if with_reference else [folder]
    for target in targets:
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Error creating the output folder %s: %s", target, e)
    return all(_is_writable_dir(t) for t in targets)


def validate(
    settings: JobSettings, urls: list[str], folder: Optional[Path], folder_ok: bool
) -> list[FieldError]:
    """Collect every failing field instead of stopping at the first."""
    errors = [f for f in REQUIRED_FIELDS if getattr(settings, f.value) is None]
    if not urls or not all(is_absolute_url(u) for u in urls):
        errors.append(FieldError.URLS)
    if folder is None or not folder_ok:
        errors.append(FieldError.FOLDER)
    return errors


def resolve(
    overrides: dict[str, Any] | None = None,
    defaults: JobDefaults = DEFAULTS,
    cwd: Path | None = None,
) -> Resolution:
    """Resolve overrides into a validated Job, or the list of failing fields.

    Never raises for configuration problems. Creates the output folder as a
    side effect.
    """
    cwd = cwd or Path.cwd()
    settings = merge_settings(overrides or {}, defaults, cwd)
    exec_time = datetime.now()

    urls = derive_urls(settings, cwd)
    folder = build_output_folder(settings, exec_time, cwd)
    folder_ok = folder is not None and init_output_folder(folder, bool(settings.reference))

    errors = validate(settings, urls, folder, folder_ok)
    if errors:
        logger.debug("Configuration rejected: %s", [e.value for e in errors])
        return Resolution(errors=errors)

    onload_script = (
        _absolute(settings.onload_script, cwd) if settings.onload_script else None
    )
    try:
        job = Job(
            urls=urls,
            folder=folder,
            domain=settings.domain,
            reference=settings.reference,
            label=settings.label,
            date_subfolder=bool(settings.date_subfolder),
            onload_script=onload_script,
            viewport_width=settings.viewport_width,
            viewport_height=settings.viewport_height,
            wait=settings.wait,
            timeout=settings.timeout,
            parallel=settings.parallel,
            same_domain_delay=settings.same_domain_delay,
            threshold=settings.threshold,
            exec_time=exec_time,
        )
    except ValidationError as e:
        names = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
        return Resolution(errors=[f for f in FieldError if f.value in names])

    logger.info("Resolved %d URL(s), output folder %s", len(job.urls), job.folder)
    return Resolution(job=job)

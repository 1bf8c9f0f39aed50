"""Pixel comparison between a screenshot and its reference."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from PIL import Image, ImageChops

from shotdiff.models.result import DiffBounds, DiffResult, DimensionDifference

logger = logging.getLogger(__name__)

# Per-channel delta below which a pixel counts as unchanged; absorbs
# anti-aliasing and font rendering noise.
ANTIALIAS_TOLERANCE = 40

HIGHLIGHT_COLOR = (255, 0, 255)
FADE = 0.7


def diff_filename_for(ref_filename: str | Path) -> Path:
    """<ref>.png -> <ref>-diff.png, next to the reference image."""
    ref = Path(ref_filename)
    return ref.with_name(f"{ref.stem}-diff{ref.suffix or '.png'}")


def _mismatch_mask(first: Image.Image, second: Image.Image, tolerance: int) -> Image.Image:
    """Single-band mask: 255 where any channel differs by more than ``tolerance``."""
    diff = ImageChops.difference(first, second)
    red, green, blue = diff.split()
    largest = ImageChops.lighter(ImageChops.lighter(red, green), blue)
    return largest.point(lambda v: 255 if v > tolerance else 0)


def compare_images(
    filename: str | Path,
    ref_filename: str | Path,
    diff_path: str | Path | None = None,
    threshold: float = 0.0,
    tolerance: int = ANTIALIAS_TOLERANCE,
) -> DiffResult:
    """Compare two screenshots and write a diff image highlighting changed pixels.

    The reference is scaled to the primary's size when they differ.
    ``threshold`` is the mismatch percentage (0-100) still considered a pass.
    """
    start = time.perf_counter()
    diff_path = Path(diff_path) if diff_path else diff_filename_for(ref_filename)

    with Image.open(filename) as raw_first, Image.open(ref_filename) as raw_second:
        first = raw_first.convert("RGB")
        second = raw_second.convert("RGB")

    same_size = first.size == second.size
    dimension_difference = DimensionDifference(
        width=first.width - second.width,
        height=first.height - second.height,
    )
    if not same_size:
        logger.debug("Scaling %s from %s to %s", ref_filename, second.size, first.size)
        second = second.resize(first.size)

    mask = _mismatch_mask(first, second, tolerance)
    total = first.width * first.height
    mismatched = mask.histogram()[255] if total else 0
    mismatch_percentage = round(mismatched / total * 100, 2) if total else 0.0

    bbox = mask.getbbox()
    bounds = DiffBounds(left=bbox[0], top=bbox[1], right=bbox[2], bottom=bbox[3]) if bbox else None

    faded = Image.blend(first, Image.new("RGB", first.size, (255, 255, 255)), FADE)
    highlight = Image.new("RGB", first.size, HIGHLIGHT_COLOR)
    diff_path.parent.mkdir(parents=True, exist_ok=True)
    Image.composite(highlight, faded, mask).save(diff_path)

    result = DiffResult(
        mismatch_percentage=mismatch_percentage,
        is_same_dimensions=same_size,
        dimension_difference=dimension_difference,
        diff_bounds=bounds,
        diff_filename=str(diff_path),
        analysis_time_ms=int((time.perf_counter() - start) * 1000),
        passed=mismatch_percentage <= threshold,
    )
    logger.debug("Diff %s vs %s: %.2f%%", filename, ref_filename, mismatch_percentage)
    return result

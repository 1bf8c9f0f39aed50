"""Screenshot and diff result data structures."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

CaptureContext = Literal["primary", "reference"]


class DimensionDifference(BaseModel):
    width: int = 0
    height: int = 0


class DiffBounds(BaseModel):
    left: int
    top: int
    right: int
    bottom: int


class DiffResult(BaseModel):
    mismatch_percentage: float
    is_same_dimensions: bool
    dimension_difference: DimensionDifference = Field(default_factory=DimensionDifference)
    diff_bounds: Optional[DiffBounds] = None
    diff_filename: str
    analysis_time_ms: int = 0
    passed: bool = True


class ScreenshotResult(BaseModel):
    """One page, keyed by stable ID; primary and reference fields are filled independently."""

    url: Optional[str] = None
    filename: Optional[str] = None
    title: Optional[str] = None
    skipped: bool = False
    failed: bool = False

    ref_url: Optional[str] = None
    ref_filename: Optional[str] = None
    ref_title: Optional[str] = None
    ref_skipped: bool = False
    ref_failed: bool = False

    difference: Optional[DiffResult] = None

    @property
    def has_pair(self) -> bool:
        return bool(
            self.filename and self.ref_filename and not (self.failed or self.ref_failed)
        )

    def record(
        self,
        context: CaptureContext,
        url: str,
        filename: str,
        title: Optional[str],
        skipped: bool = False,
        failed: bool = False,
    ) -> None:
        if context == "reference":
            self.ref_url = url
            self.ref_filename = filename
            self.ref_title = title
            self.ref_skipped = skipped
            self.ref_failed = failed
        else:
            self.url = url
            self.filename = filename
            self.title = title
            self.skipped = skipped
            self.failed = failed

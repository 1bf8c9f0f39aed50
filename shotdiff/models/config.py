"""Configuration models for screenshot jobs."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, AliasGenerator, BaseModel, ConfigDict, Field, field_validator

from shotdiff.url_utils import is_absolute_url


def _camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


class JobDefaults(BaseModel):
    """Built-in defaults, injected into the resolver.

    Any field may be set to None to leave it without a default.
    """

    model_config = ConfigDict(frozen=True)

    config: Optional[str] = "config.yaml"
    date_subfolder: Optional[bool] = False
    onload_script: Optional[str] = "onload.js"
    output_folder: Optional[str] = "screenshots"
    parallel: Optional[int] = 4
    same_domain_delay: Optional[float] = 1.0  # seconds
    threshold: Optional[float] = 5.0  # percent
    timeout: Optional[float] = 60.0  # seconds
    viewport_height: Optional[int] = 720
    viewport_width: Optional[int] = 1280
    wait: Optional[float] = 1.0  # seconds


DEFAULTS = JobDefaults()


class FieldError(str, Enum):
    SAME_DOMAIN_DELAY = "same_domain_delay"
    OUTPUT_FOLDER = "output_folder"
    PARALLEL = "parallel"
    THRESHOLD = "threshold"
    TIMEOUT = "timeout"
    VIEWPORT_HEIGHT = "viewport_height"
    VIEWPORT_WIDTH = "viewport_width"
    WAIT = "wait"
    URLS = "urls"
    FOLDER = "folder"


class JobSettings(BaseModel):
    """Merged but unvalidated settings; every field may still be unset.

    Keys are accepted in snake_case or camelCase (``sameDomainDelay``).
    """

    model_config = ConfigDict(
        alias_generator=AliasGenerator(
            validation_alias=lambda name: AliasChoices(name, _camel(name)),
        ),
        populate_by_name=True,
        extra="ignore",
    )

    # Input
    domain: Optional[str] = None
    paths: Optional[list[str]] = None
    urls: Optional[list[str]] = None
    xml: Optional[str] = None

    # Output
    date_subfolder: Optional[bool] = None
    folder: Optional[str] = None
    label: Optional[str] = None
    onload_script: Optional[str] = None
    output_folder: Optional[str] = None
    reference: Optional[str] = None

    # Processing
    parallel: Optional[int] = None
    same_domain_delay: Optional[float] = None
    threshold: Optional[float] = None
    timeout: Optional[float] = None
    viewport_height: Optional[int] = None
    viewport_width: Optional[int] = None
    wait: Optional[float] = None

    @field_validator("paths", "urls", mode="before")
    @classmethod
    def coerce_list(cls, v):
        if isinstance(v, str):
            return [v]
        return v


class Job(BaseModel):
    """A fully resolved, validated screenshot run."""

    model_config = ConfigDict(frozen=True)

    urls: list[str]
    folder: Path
    domain: Optional[str] = None
    reference: Optional[str] = None
    label: Optional[str] = None
    date_subfolder: bool = False
    onload_script: Optional[Path] = None

    viewport_width: int
    viewport_height: int
    wait: float
    timeout: float
    parallel: int = Field(ge=1)
    same_domain_delay: float
    threshold: float

    exec_time: datetime = Field(default_factory=datetime.now)

    @field_validator("urls")
    @classmethod
    def urls_must_be_absolute(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one URL is required")
        bad = [u for u in v if not is_absolute_url(u)]
        if bad:
            raise ValueError(f"Not an absolute http(s) URL: {bad[0]}")
        return v

    @property
    def reference_folder(self) -> Path:
        return self.folder / "reference"


class Resolution(BaseModel):
    """Outcome of config resolution: a Job, or the fields that failed."""

    job: Optional[Job] = None
    errors: list[FieldError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.job is not None and not self.errors

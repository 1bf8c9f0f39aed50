"""Readers for local config files, input lists and XML sitemaps.

Missing or unreadable files are treated as absent rather than as errors;
an unusable input only shows up later as an empty URL list.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from xml.etree import ElementTree as ET

import yaml

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def _readable(path: str | Path | None) -> Path | None:
    if not path:
        return None
    path = Path(path)
    if not path.is_file() or not os.access(path, os.R_OK):
        return None
    return path


def _load_structured(path: Path):
    """Parse a JSON or YAML file, chosen by extension."""
    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        if suffix in YAML_SUFFIXES:
            return yaml.safe_load(f)
        if suffix == ".json":
            return json.load(f)
    raise ValueError(f"Unsupported file type: {path.suffix}")


def read_config(path: str | Path | None) -> dict | None:
    """Load a JSON or YAML config file into a dict, or None if unavailable."""
    path = _readable(path)
    if path is None:
        logger.debug("No readable config file, using defaults")
        return None
    if path.suffix.lower() not in YAML_SUFFIXES + (".json",):
        logger.debug("Ignoring config file with unknown extension: %s", path)
        return None
    try:
        data = _load_structured(path)
    except (yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Failed to parse config file %s: %s. Ignoring it.", path, e)
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s does not contain a mapping. Ignoring it.", path)
        return None
    logger.debug("Loaded config from %s", path)
    return data


def read_sitemap(path: str | Path | None) -> list[str]:
    """Extract every <loc> value from a local XML sitemap."""
    path = _readable(path)
    if path is None:
        return []
    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        logger.warning("Failed to parse sitemap %s: %s", path, e)
        return []

    urls = []
    for el in tree.iter():
        # Sitemaps are usually namespaced: {http://www.sitemaps.org/...}loc
        if el.tag.rsplit("}", 1)[-1] == "loc" and el.text and el.text.strip():
            urls.append(el.text.strip())
    logger.debug("Read %d URLs from sitemap %s", len(urls), path)
    return urls


def read_input_list(path: str | Path | None) -> list[str]:
    """Read a list of URLs or paths from a text, XML, JSON or YAML file."""
    readable = _readable(path)
    if readable is None:
        logger.warning("Input file not found or not readable: %s", path)
        return []

    suffix = readable.suffix.lower()
    if suffix == ".xml":
        return read_sitemap(readable)

    if suffix in YAML_SUFFIXES + (".json",):
        try:
            data = _load_structured(readable)
        except (yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Failed to parse input file %s: %s", readable, e)
            return []
        if not isinstance(data, list):
            logger.warning("Input file %s does not contain a list", readable)
            return []
        return [str(item).strip() for item in data if item and str(item).strip()]

    with open(readable, encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]

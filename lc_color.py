"""Colour metadata normalisation."""

from __future__ import annotations

from typing import Mapping

from lc_logging import LOG
from lc_types import COLOR_KEYS, UNKNOWN, ColorMetadata

DEFAULT_TAG = "bt709"


def normalize_color_metadata(meta: Mapping[str, str], default: str = DEFAULT_TAG) -> ColorMetadata:
    """Return a copy of ``meta`` with every unknown colour tag set to ``default``."""
    out: ColorMetadata = dict(meta)
    for key in COLOR_KEYS:
        value = (out.get(key) or UNKNOWN).strip()
        if value.lower() == UNKNOWN:
            LOG.info("[color] %s is unknown, defaulting to %s", key, default)
            value = default
        out[key] = value
    return out

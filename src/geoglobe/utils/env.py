# SPDX-License-Identifier: Apache-2.0
"""Environment-backed settings.

Every key is read as ``GEOGLOBE_<KEY>`` so callers only pass the short name.
"""

from __future__ import annotations

import logging
import os

PREFIX = "GEOGLOBE_"

LOGGER = logging.getLogger(__name__)


def env(key: str, default: str | None = None) -> str | None:
    value = os.environ.get(f"{PREFIX}{key}")
    if value is None or value.strip() == "":
        return default
    return value.strip()


def env_int(key: str, default: int) -> int:
    """Return ``GEOGLOBE_<key>`` as an int, falling back to ``default``."""

    raw = env(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-integer %s%s=%r", PREFIX, key, raw)
        return default


def env_float(key: str, default: float) -> float:
    raw = env(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s%s=%r", PREFIX, key, raw)
        return default

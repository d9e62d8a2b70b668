# SPDX-License-Identifier: Apache-2.0
"""Shared CLI plumbing."""

from __future__ import annotations

import logging

from geoglobe.utils.env import env

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "quiet": logging.ERROR,
}


def configure_logging_from_env(default: str = "info") -> int:
    """Configure root logging from ``GEOGLOBE_VERBOSITY``.

    Returns the level that was applied so callers can echo it in debug output.
    """

    verbosity = (env("VERBOSITY", default) or default).lower()
    level = _LEVELS.get(verbosity, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
    root.setLevel(level)
    return level

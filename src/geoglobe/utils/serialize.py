# SPDX-License-Identifier: Apache-2.0
"""JSON-friendly conversion of compositor objects (dataclasses, numpy values)."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Iterable

import numpy as np


def to_obj(x: Any) -> Any:
    """Convert a value to a JSON-serializable object when possible.

    - Dataclasses → dict of converted fields (fields with ``repr=False`` are
      skipped, which keeps raster payloads out of the output)
    - numpy arrays/scalars → lists/Python scalars
    - Mappings and sequences are converted recursively
    - Anything else is returned as-is
    """
    if is_dataclass(x) and not isinstance(x, type):
        return {f.name: to_obj(getattr(x, f.name)) for f in fields(x) if f.repr}
    if isinstance(x, np.ndarray):
        return x.tolist()
    if isinstance(x, np.generic):
        return x.item()
    if isinstance(x, dict):
        return {str(k): to_obj(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [to_obj(v) for v in x]
    return x


def to_list(items: Iterable[Any]) -> list[Any]:
    """Convert an iterable of values via to_obj, returning a list."""
    return [to_obj(i) for i in items]

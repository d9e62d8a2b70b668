# SPDX-License-Identifier: Apache-2.0
"""Sun light placement for the shaded globe."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as date_parser

from .defaults import is_value_none
from .resolver import ConfigResolver

LOGGER = logging.getLogger(__name__)


@dataclass
class LightSettings:
    enable: bool = False
    sun_intensity: float = 1.0
    ambient_intensity: float = 0.1
    sun_direction: tuple[float, float, float] = (0.0, 0.0, 1.0)
    height_image: Any = field(default=None, repr=False)


def parse_light_time(value: Any, *, now: datetime | None = None) -> datetime:
    """Return ``value`` as an aware UTC datetime; unset or invalid means now."""
    if isinstance(value, datetime):
        dt = value
    elif is_value_none(value):
        dt = now or datetime.now(timezone.utc)
    else:
        try:
            dt = date_parser.parse(str(value))
        except (ValueError, OverflowError) as exc:
            LOGGER.warning("Invalid light.time %r: %s", value, exc)
            dt = now or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def subsolar_point(when: datetime) -> tuple[float, float]:
    """Longitude/latitude (degrees) where the sun is at zenith.

    Uses the NOAA fractional-year approximation for declination and the
    equation of time.
    """
    when = parse_light_time(when)
    hours = when.hour + when.minute / 60.0 + when.second / 3600.0
    day_of_year = when.timetuple().tm_yday
    gamma = 2.0 * math.pi / 365.0 * (day_of_year - 1 + (hours - 12.0) / 24.0)
    eqtime = 229.18 * (
        0.000075
        + 0.001868 * math.cos(gamma)
        - 0.032077 * math.sin(gamma)
        - 0.014615 * math.cos(2 * gamma)
        - 0.040849 * math.sin(2 * gamma)
    )
    decl = (
        0.006918
        - 0.399912 * math.cos(gamma)
        + 0.070257 * math.sin(gamma)
        - 0.006758 * math.cos(2 * gamma)
        + 0.000907 * math.sin(2 * gamma)
        - 0.002697 * math.cos(3 * gamma)
        + 0.00148 * math.sin(3 * gamma)
    )
    lon = -15.0 * (hours - 12.0 + eqtime / 60.0)
    lon = (lon + 180.0) % 360.0 - 180.0
    return lon, math.degrees(decl)


def geo_to_direction(lon: float, lat: float) -> tuple[float, float, float]:
    """Unit vector in globe space for a geographic point."""
    lon_r = math.radians(lon)
    lat_r = math.radians(lat)
    r0 = math.cos(lat_r)
    return (
        -r0 * math.cos(lon_r + math.pi),
        math.sin(lat_r),
        r0 * math.sin(lon_r + math.pi),
    )


def sun_direction(when: Any = None) -> tuple[float, float, float]:
    return geo_to_direction(*subsolar_point(parse_light_time(when)))


def resolve_light(resolver: ConfigResolver) -> LightSettings:
    enable = bool(resolver.query("light.enable"))
    if not enable:
        return LightSettings(enable=False)
    height_image = resolver.query("baseLayer.heightImage")
    return LightSettings(
        enable=True,
        sun_intensity=float(resolver.query("light.sunIntensity", 1.0)),
        ambient_intensity=float(resolver.query("light.ambientIntensity", 0.1)),
        sun_direction=sun_direction(resolver.query("light.time")),
        height_image=None if is_value_none(height_image) else height_image,
    )

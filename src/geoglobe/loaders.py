# SPDX-License-Identifier: Apache-2.0
"""Raster and GeoJSON sources backed by the filesystem or HTTP."""

from __future__ import annotations

import asyncio
import io
import json
import logging
from pathlib import Path
from typing import Any

import requests
from PIL import Image

from .interfaces import GeoJsonSource, RasterLoader
from .utils.env import env_float

LOGGER = logging.getLogger(__name__)


def is_remote_ref(value: object) -> bool:
    if not isinstance(value, str):
        return False
    return value.lower().startswith(("http://", "https://"))


def decode_image(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


class FileRasterLoader(RasterLoader):
    """Decode images from local paths, optionally relative to ``base_dir``."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else None

    def _resolve(self, source: str) -> Path:
        path = Path(source).expanduser()
        if self.base_dir is not None and not path.is_absolute():
            path = self.base_dir / path
        return path

    def _read(self, source: str) -> Image.Image:
        path = self._resolve(source)
        if not path.is_file():
            raise FileNotFoundError(f"Raster file not found: {path}")
        return decode_image(path.read_bytes())

    async def load(self, source: str) -> Image.Image:
        return await asyncio.to_thread(self._read, source)


class HttpRasterLoader(RasterLoader):
    """Fetch images over HTTP(S) with ``requests``."""

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else env_float("HTTP_TIMEOUT", 30.0)

    def _fetch(self, url: str) -> Image.Image:
        LOGGER.debug("GET %s", url)
        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return decode_image(resp.content)

    async def load(self, source: str) -> Image.Image:
        return await asyncio.to_thread(self._fetch, source)


class AutoRasterLoader(RasterLoader):
    """Dispatch to HTTP for URLs and to the filesystem for everything else."""

    def __init__(
        self,
        *,
        files: FileRasterLoader | None = None,
        http: HttpRasterLoader | None = None,
    ) -> None:
        self.files = files or FileRasterLoader()
        self._http = http

    @property
    def http(self) -> HttpRasterLoader:
        if self._http is None:
            self._http = HttpRasterLoader()
        return self._http

    async def load(self, source: str) -> Any:
        if is_remote_ref(source):
            return await self.http.load(source)
        return await self.files.load(source)


class FileGeoJsonSource(GeoJsonSource):
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _read(self) -> dict[str, Any]:
        with self.path.open("r", encoding="utf-8") as fp:
            return json.load(fp)

    async def get_geo_json(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._read)


class StaticGeoJsonSource(GeoJsonSource):
    """Serve an in-memory GeoJSON payload."""

    def __init__(self, payload: dict[str, Any]) -> None:
        self.payload = payload

    async def get_geo_json(self) -> dict[str, Any]:
        return self.payload

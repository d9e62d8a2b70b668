# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import asyncio
from typing import Any

import pytest

from geoglobe.interfaces import (
    OrbitControl,
    ParticleEngine,
    ParticleSurface,
    RasterLoader,
)


class FakeRasterLoader(RasterLoader):
    """Resolves keys to ``handle:<key>`` (or ``results[key]``) after one loop tick."""

    def __init__(self) -> None:
        self.results: dict[str, Any] = {}
        self.fail: set[str] = set()
        self.calls: list[str] = []

    async def load(self, source: str) -> Any:
        self.calls.append(source)
        await asyncio.sleep(0)
        if source in self.fail:
            raise OSError(f"cannot load {source}")
        return self.results.get(source, f"handle:{source}")


class FakeOrbit(OrbitControl):
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.updates: list[float] = []

    async def rotate_to(self, *, rotation, easing) -> None:
        await asyncio.sleep(0)
        self.calls.append(("rotate", tuple(rotation), easing))

    async def zoom_to(self, *, zoom, easing) -> None:
        self.calls.append(("zoom", zoom, easing))

    def update(self, delta_time: float) -> None:
        self.updates.append(delta_time)


class FakeParticles(ParticleSurface):
    def __init__(self, spec: Any, radius: float) -> None:
        self.spec = spec
        self.radius = radius
        self.steps: list[float] = []
        self.disposed = False

    def update(self, delta_seconds: float) -> None:
        self.steps.append(delta_seconds)

    def dispose(self) -> None:
        self.disposed = True


class FakeParticleEngine(ParticleEngine):
    def __init__(self) -> None:
        self.created: list[FakeParticles] = []

    def create(self, spec: Any, *, radius: float) -> FakeParticles:
        particles = FakeParticles(spec, radius)
        self.created.append(particles)
        return particles


@pytest.fixture
def raster_loader() -> FakeRasterLoader:
    return FakeRasterLoader()


@pytest.fixture
def orbit() -> FakeOrbit:
    return FakeOrbit()


@pytest.fixture
def particle_engine() -> FakeParticleEngine:
    return FakeParticleEngine()


@pytest.fixture(autouse=True)
def _clean_geoglobe_env(monkeypatch) -> None:
    for key in ("IMAGE_CACHE_SIZE", "EARTH_RADIUS", "HTTP_TIMEOUT"):
        monkeypatch.delenv(f"GEOGLOBE_{key}", raising=False)

# SPDX-License-Identifier: Apache-2.0
"""Raster resource cache with single-flight asynchronous loading."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from typing import Any, Callable, Generic, Hashable, TypeVar

from .defaults import IMAGE_CACHE_SIZE
from .interfaces import RasterLoader

LOGGER = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """Fixed-capacity least-recently-used mapping."""

    def __init__(self, capacity: int = IMAGE_CACHE_SIZE) -> None:
        if capacity < 1:
            raise ValueError("cache capacity must be at least 1")
        self.capacity = capacity
        self._entries: OrderedDict[K, V] = OrderedDict()

    def get(self, key: K) -> V | None:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def put(self, key: K, value: V) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = value
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            LOGGER.debug("Evicted cached resource %s", evicted)

    def has(self, key: K) -> bool:
        return key in self._entries

    def keys(self) -> list[K]:
        """Keys ordered from least to most recently used."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


ReadyCallback = Callable[[Any], None]


class ResourceLoader:
    """Issue at most one load per key and publish results into an LRU cache.

    ``request`` must be called from the event loop thread. Completions store
    the handle, run the callbacks registered for the key and then call
    ``on_refresh`` once so the surface can be redrawn. Failed keys are never
    retried.
    """

    def __init__(
        self,
        raster_loader: RasterLoader,
        *,
        cache: LRUCache[str, Any] | None = None,
        on_refresh: Callable[[], None] | None = None,
    ) -> None:
        self.raster_loader = raster_loader
        self.cache: LRUCache[str, Any] = cache if cache is not None else LRUCache()
        self.on_refresh = on_refresh
        self._pending: dict[str, asyncio.Task] = {}
        self._callbacks: dict[str, list[ReadyCallback]] = {}
        self._failed: set[str] = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def busy(self) -> bool:
        return bool(self._pending)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def has_failed(self, key: str) -> bool:
        return key in self._failed

    def request(self, key: str, on_ready: ReadyCallback | None = None) -> Any:
        """Return the cached handle for ``key`` or start loading it.

        Returns ``None`` while the resource is not available yet. ``on_ready``
        runs once the load completes (it is not called for cache hits).
        """
        handle = self.cache.get(key)
        if handle is not None:
            return handle
        if self._disposed or key in self._failed:
            return None
        if on_ready is not None:
            self._callbacks.setdefault(key, []).append(on_ready)
        if key not in self._pending:
            loop = asyncio.get_running_loop()
            self._pending[key] = loop.create_task(self._load(key))
        return None

    async def _load(self, key: str) -> None:
        try:
            handle = await self.raster_loader.load(key)
        except Exception as exc:
            self._failed.add(key)
            self._callbacks.pop(key, None)
            LOGGER.debug("Failed to load raster %s: %s", key, exc)
            return
        finally:
            self._pending.pop(key, None)
        if self._disposed:
            self._callbacks.pop(key, None)
            return
        self.cache.put(key, handle)
        for callback in self._callbacks.pop(key, []):
            try:
                callback(handle)
            except Exception:
                LOGGER.exception("Raster callback failed for %s", key)
        if self.on_refresh is not None:
            self.on_refresh()

    def forget_callbacks(self) -> None:
        """Drop callbacks registered by a previous refresh cycle."""
        self._callbacks.clear()

    async def wait_idle(self) -> None:
        """Wait until every in-flight load has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending.values()), return_exceptions=True)

    def dispose(self) -> None:
        self._disposed = True
        self._callbacks.clear()

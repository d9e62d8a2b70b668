# SPDX-License-Identifier: Apache-2.0
import asyncio

import pytest

from geoglobe.cache import LRUCache, ResourceLoader


def test_lru_evicts_least_recently_used():
    cache = LRUCache(2)
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.get("a") == 1
    cache.put("c", 3)

    assert cache.keys() == ["a", "c"]
    assert "b" not in cache
    assert len(cache) == 2


def test_lru_put_existing_key_refreshes_recency():
    cache = LRUCache(2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("a", 10)
    cache.put("c", 3)

    assert cache.get("a") == 10
    assert not cache.has("b")


def test_lru_rejects_zero_capacity():
    with pytest.raises(ValueError):
        LRUCache(0)


def test_same_key_is_loaded_once(raster_loader):
    refreshes = []
    seen = []

    async def scenario():
        loader = ResourceLoader(raster_loader, on_refresh=lambda: refreshes.append(1))
        assert loader.request("sea.png", seen.append) is None
        assert loader.request("sea.png", seen.append) is None
        assert loader.is_pending("sea.png")
        await loader.wait_idle()
        return loader

    loader = asyncio.run(scenario())

    assert raster_loader.calls == ["sea.png"]
    assert seen == ["handle:sea.png", "handle:sea.png"]
    assert refreshes == [1]
    assert loader.request("sea.png") == "handle:sea.png"
    assert not loader.busy


def test_failed_load_is_not_retried(raster_loader):
    raster_loader.fail.add("bad.png")
    seen = []
    refreshes = []

    async def scenario():
        loader = ResourceLoader(raster_loader, on_refresh=lambda: refreshes.append(1))
        loader.request("bad.png", seen.append)
        await loader.wait_idle()
        assert loader.request("bad.png", seen.append) is None
        await loader.wait_idle()
        return loader

    loader = asyncio.run(scenario())

    assert loader.has_failed("bad.png")
    assert raster_loader.calls == ["bad.png"]
    assert seen == []
    assert refreshes == []


def test_completion_after_dispose_is_a_no_op(raster_loader):
    seen = []
    refreshes = []

    async def scenario():
        loader = ResourceLoader(raster_loader, on_refresh=lambda: refreshes.append(1))
        loader.request("late.png", seen.append)
        loader.dispose()
        await loader.wait_idle()
        return loader

    loader = asyncio.run(scenario())

    assert loader.disposed
    assert "late.png" not in loader.cache
    assert seen == []
    assert refreshes == []


def test_evicted_key_is_loaded_again(raster_loader):
    async def scenario():
        loader = ResourceLoader(raster_loader, cache=LRUCache(1))
        for key in ("a.png", "b.png", "a.png"):
            loader.request(key)
            await loader.wait_idle()
        return loader

    loader = asyncio.run(scenario())

    assert raster_loader.calls == ["a.png", "b.png", "a.png"]
    assert loader.cache.keys() == ["a.png"]


def test_callback_errors_do_not_block_other_callbacks(raster_loader):
    seen = []

    def broken(handle):
        raise RuntimeError("boom")

    async def scenario():
        loader = ResourceLoader(raster_loader)
        loader.request("x.png", broken)
        loader.request("x.png", seen.append)
        await loader.wait_idle()

    asyncio.run(scenario())

    assert seen == ["handle:x.png"]

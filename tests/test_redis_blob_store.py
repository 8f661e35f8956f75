from __future__ import annotations

from collections.abc import AsyncIterator

import fakeredis
import pytest

from repository.blob_store import FetchStatus, WriteStatus
from repository.namespaces import JOURNALS
from repository.redis_blob_store import RedisBlobStore


@pytest.fixture
async def redis_client() -> AsyncIterator[fakeredis.FakeAsyncRedis]:
    client = fakeredis.FakeAsyncRedis(decode_responses=False)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.mark.asyncio
async def test_missing_key_is_not_found(redis_client) -> None:
    store = RedisBlobStore(redis_client)

    fetched = await store.get("dni.json")

    assert fetched.status == FetchStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_create_then_read_back(redis_client) -> None:
    store = RedisBlobStore(redis_client)

    written = await store.put("dni.json", [{"a": 1}], None)
    fetched = await store.get("dni.json")

    assert written.status == WriteStatus.SUCCESS
    assert fetched.status == FetchStatus.FOUND
    assert fetched.content == [{"a": 1}]
    assert fetched.version == written.version


@pytest.mark.asyncio
async def test_second_create_is_conflict(redis_client) -> None:
    store = RedisBlobStore(redis_client)
    await store.put("dni.json", [{"a": 1}], None)

    written = await store.put("dni.json", [{"b": 2}], None)

    assert written.status == WriteStatus.CONFLICT
    assert (await store.get("dni.json")).content == [{"a": 1}]


@pytest.mark.asyncio
async def test_update_requires_current_version(redis_client) -> None:
    store = RedisBlobStore(redis_client)
    first = await store.put("dni.json", [1], None)
    second = await store.put("dni.json", [1, 2], first.version)

    stale = await store.put("dni.json", [1, 2, 3], first.version)

    assert second.status == WriteStatus.SUCCESS
    assert second.version != first.version
    assert stale.status == WriteStatus.CONFLICT
    assert (await store.get("dni.json")).content == [1, 2]


@pytest.mark.asyncio
async def test_undecodable_content_is_error(redis_client) -> None:
    await redis_client.hset(
        f"{JOURNALS}:dni.json", mapping={"content": "{oops", "version": "v1"}
    )
    store = RedisBlobStore(redis_client)

    fetched = await store.get("dni.json")

    assert fetched.status == FetchStatus.ERROR


@pytest.mark.asyncio
async def test_write_between_watch_and_exec_is_conflict(redis_client, monkeypatch) -> None:
    store = RedisBlobStore(redis_client)
    first = await store.put("dni.json", [1], None)
    key = f"{JOURNALS}:dni.json"

    real_pipeline = redis_client.pipeline

    def pipeline_with_rival(*args, **kwargs):
        pipe = real_pipeline(*args, **kwargs)
        real_execute = pipe.execute

        async def rival_writes_then_execute(*a, **kw):
            await redis_client.hset(key, mapping={"content": "[1, 99]", "version": "rival"})
            return await real_execute(*a, **kw)

        pipe.execute = rival_writes_then_execute
        return pipe

    monkeypatch.setattr(redis_client, "pipeline", pipeline_with_rival)

    written = await store.put("dni.json", [1, 2], first.version)

    assert written.status == WriteStatus.CONFLICT
    assert written.detail == "concurrent write"
    monkeypatch.undo()
    fetched = await store.get("dni.json")
    assert fetched.content == [1, 99]
    assert fetched.version == "rival"


@pytest.mark.asyncio
async def test_invalid_utf8_content_is_error(redis_client) -> None:
    await redis_client.hset(
        f"{JOURNALS}:dni.json", mapping={"content": b"\xff\xfe[]", "version": "v1"}
    )
    store = RedisBlobStore(redis_client)

    fetched = await store.get("dni.json")

    assert fetched.status == FetchStatus.ERROR
    assert fetched.detail == "undecodable content"

"""Journal coordinator: non-blocking dispatch, sink isolation and profile wiring."""

from __future__ import annotations

import asyncio
import logging
import time

import pytest

from config.journal import JournalConfig
from service.blob_appender import BlobAppender
from service.journal_coordinator import JournalCoordinator
from service.kv_sink import KeyValueSink
from service.log_sink import LogSink
from tests.fakes import FakeKeyValueEndpoint, FakeLogEndpoint, InMemoryBlobStore
from util.enums import BlobBackend, JournalProfile


def _blob_journal(store: InMemoryBlobStore, **overrides) -> JournalCoordinator:
    config = JournalConfig(profile=JournalProfile.BLOB, **overrides)
    return JournalCoordinator(config, blob_appender=BlobAppender(store))


@pytest.mark.asyncio
async def test_record_returns_before_backend_io_completes() -> None:
    store = InMemoryBlobStore(delay=0.5)
    journal = _blob_journal(store)

    t0 = time.perf_counter()
    journal.record("/reniec", {"dni": "12345678"}, {"nombre": "ANA"})
    elapsed = time.perf_counter() - t0

    assert elapsed < 0.1
    assert journal.pending == 1
    assert store.blobs == {}

    await journal.drain()

    assert journal.pending == 0
    stored = store.content("dni.json")
    assert len(stored) == 1
    assert stored[0]["result"] == {"nombre": "ANA"}


@pytest.mark.asyncio
async def test_sequential_records_land_in_call_order() -> None:
    store = InMemoryBlobStore()
    journal = _blob_journal(store, max_concurrency=1)

    for dni in ("1", "2", "3", "4"):
        journal.record("/reniec", {"dni": dni}, {"dni": dni})
    await journal.drain()

    stored = store.content("dni.json")
    assert [e["parameters"]["dni"] for e in stored] == ["1", "2", "3", "4"]


@pytest.mark.asyncio
async def test_concurrent_writers_conflict_instead_of_overwriting(caplog) -> None:
    store = InMemoryBlobStore(delay=0.01)
    journal = _blob_journal(store, max_concurrency=4)

    with caplog.at_level(logging.ERROR):
        for dni in ("1", "2", "3"):
            journal.record("/reniec", {"dni": dni}, {})
        await journal.drain()

    # every reader saw "not found"; only one create can win
    assert len(store.content("dni.json")) == 1
    assert caplog.text.count("journal.blob.conflict") == 2


@pytest.mark.asyncio
async def test_secrets_never_reach_the_store() -> None:
    store = InMemoryBlobStore()
    journal = _blob_journal(store)

    journal.record("/reniec", {"dni": "1", "token": "upstream-secret"}, {})
    await journal.drain()

    assert store.content("dni.json")[0]["parameters"] == {"dni": "1"}


@pytest.mark.asyncio
async def test_unmapped_route_is_journaled_under_generic_dataset(caplog) -> None:
    store = InMemoryBlobStore()
    journal = _blob_journal(store)

    journal.record("/brand-new", {"q": "x"}, {"ok": True})
    await journal.drain()

    assert store.content("unclassified.json")[0]["route"] == "/brand-new"
    assert "journal.route.unmapped" in caplog.text


@pytest.mark.asyncio
async def test_corrupt_blob_does_not_escape_the_coordinator() -> None:
    store = InMemoryBlobStore()
    store.seed("dni.json", "garbage")
    journal = _blob_journal(store)

    journal.record("/reniec", {"dni": "1"}, {})
    await journal.drain()

    assert len(store.content("dni.json")) == 1


@pytest.mark.asyncio
async def test_sink_timeout_is_contained(caplog) -> None:
    store = InMemoryBlobStore(delay=1.0)
    journal = _blob_journal(store, timeout_seconds=0.05)

    journal.record("/reniec", {"dni": "1"}, {})
    await journal.drain()

    assert store.blobs == {}
    assert "journal.sink.timeout" in caplog.text


@pytest.mark.asyncio
async def test_log_failure_does_not_block_kv_sink() -> None:
    log_endpoint = FakeLogEndpoint(raises=RuntimeError("log backend exploded"))
    kv_endpoint = FakeKeyValueEndpoint()
    journal = JournalCoordinator(
        JournalConfig(profile=JournalProfile.LOG_KV),
        log_sink=LogSink(log_endpoint),
        kv_sink=KeyValueSink(kv_endpoint),
    )

    journal.record("/reniec", {"dni": "1"}, {"nombre": "ANA LUZ"})
    await journal.drain()

    assert kv_endpoint.calls == [("dni", "nombre=ANA%20LUZ")]


@pytest.mark.asyncio
async def test_log_transport_error_does_not_block_kv_sink() -> None:
    kv_endpoint = FakeKeyValueEndpoint()
    journal = JournalCoordinator(
        JournalConfig(profile=JournalProfile.LOG_KV),
        log_sink=LogSink(FakeLogEndpoint(ok=False)),
        kv_sink=KeyValueSink(kv_endpoint),
    )

    journal.record("/sueldos", {"dni": "1"}, [{"monto": "100"}])
    await journal.drain()

    assert kv_endpoint.calls == [("sueldos", "monto=100")]


@pytest.mark.asyncio
async def test_profile_decides_active_sinks() -> None:
    store = InMemoryBlobStore()
    log_endpoint = FakeLogEndpoint()
    journal = JournalCoordinator(
        JournalConfig(profile=JournalProfile.LOG),
        blob_appender=BlobAppender(store),
        log_sink=LogSink(log_endpoint),
        kv_sink=KeyValueSink(FakeKeyValueEndpoint()),
    )

    journal.record("/reniec", {"dni": "1"}, {})
    await journal.drain()

    assert journal.active_sinks == ("log",)
    assert store.blobs == {}
    assert len(log_endpoint.records) == 1


@pytest.mark.asyncio
async def test_backlog_limit_drops_instead_of_blocking(caplog) -> None:
    store = InMemoryBlobStore(delay=0.05)
    journal = _blob_journal(store, max_pending=1)

    journal.record("/reniec", {"dni": "1"}, {})
    journal.record("/reniec", {"dni": "2"}, {})
    await journal.drain()

    assert len(store.content("dni.json")) == 1
    assert "journal.backlog.full" in caplog.text


def test_from_config_without_backends_is_a_noop(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        journal = JournalCoordinator.from_config(
            JournalConfig(profile=JournalProfile.BLOB, blob_backend=BlobBackend.GITHUB)
        )

    assert journal.active_sinks == ()
    assert "journal.sink.disabled sink=blob" in caplog.text
    # no running loop needed: nothing gets scheduled
    journal.record("/reniec", {"dni": "1"}, {})
    assert journal.pending == 0


def test_from_config_log_kv_reports_each_missing_sink(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        journal = JournalCoordinator.from_config(
            JournalConfig(profile=JournalProfile.LOG_KV, log_sink_url="http://logs.test")
        )

    assert journal.active_sinks == ("log",)
    assert "journal.sink.disabled sink=kv" in caplog.text


def test_from_config_builds_github_backend() -> None:
    journal = JournalCoordinator.from_config(
        JournalConfig(
            profile=JournalProfile.BLOB, github_token="t", github_repo="acme/journal"
        )
    )

    assert journal.active_sinks == ("blob",)


def test_off_profile_has_no_sinks() -> None:
    journal = JournalCoordinator.from_config(
        JournalConfig(profile=JournalProfile.OFF, log_sink_url="http://logs.test")
    )

    assert journal.active_sinks == ()


@pytest.mark.asyncio
async def test_drain_with_timeout_returns(caplog) -> None:
    store = InMemoryBlobStore(delay=0.5)
    journal = _blob_journal(store)

    journal.record("/reniec", {"dni": "1"}, {})
    await asyncio.wait_for(journal.drain(timeout=0.01), timeout=1.0)

    assert "journal.drain.timeout" in caplog.text
    await journal.drain()


def test_journal_config_from_settings() -> None:
    from config.settings import settings
    from util.enums import ArrayPolicy

    s = settings.model_copy(
        update={
            "JOURNAL_PROFILE": JournalProfile.LOG_KV,
            "JOURNAL_SECRET_FIELDS": " token , PIN ,,",
            "KV_SINK_URL": "http://kv.test",
            "KV_ARRAY_POLICY": ArrayPolicy.EACH,
        }
    )

    config = JournalConfig.from_settings(s)

    assert config.profile == JournalProfile.LOG_KV
    assert config.secret_fields == ("token", "PIN")
    assert config.kv_sink_url == "http://kv.test"
    assert config.kv_array_policy == ArrayPolicy.EACH
    assert config.datasets["/reniec"].dataset_id == "dni.json"


@pytest.mark.asyncio
async def test_from_config_builds_redis_backend_from_journal_url() -> None:
    from repository.redis_blob_store import RedisBlobStore

    journal = JournalCoordinator.from_config(
        JournalConfig(
            profile=JournalProfile.BLOB,
            blob_backend=BlobBackend.REDIS,
            redis_url="redis://journal-host:6380/3",
        )
    )

    store = journal._owned_store
    assert journal.active_sinks == ("blob",)
    assert isinstance(store, RedisBlobStore)
    kwargs = store._redis.connection_pool.connection_kwargs
    assert kwargs["host"] == "journal-host"
    assert kwargs["port"] == 6380
    assert kwargs["db"] == 3

    await journal.aclose()
    assert journal._owned_store is None


@pytest.mark.asyncio
async def test_injected_store_is_not_closed_by_journal() -> None:
    store = InMemoryBlobStore()
    journal = JournalCoordinator.from_config(
        JournalConfig(profile=JournalProfile.BLOB), blob_store=store
    )

    await journal.aclose()

    assert journal.active_sinks == ("blob",)
    assert journal._owned_store is None

# service/journal_coordinator.py
import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Set, Tuple, Union
from config.journal import JournalConfig
from core.dataset_router import DatasetRouter
from core.record_encoder import encode_entry
from model.journal import SinkOutcome, SinkResult
from repository.blob_store import BlobStore
from repository.github_blob_store import GithubBlobStore
from repository.http_endpoints import KeyValueEndpoint, LogEndpoint
from repository.redis_blob_store import RedisBlobStore
from service.blob_appender import BlobAppender
from service.kv_sink import KeyValueSink
from service.log_sink import LogSink
from util.enums import BlobBackend, JournalProfile

logger = logging.getLogger(__name__)

SinkCall = Callable[[], Awaitable[Union[SinkResult, List[SinkResult]]]]


class JournalCoordinator:
    """
    Entry point the gateway calls after a successful lookup.

    Flow:
    - record() encodes the entry right away and schedules one background
      task per active sink, then returns; the response path never awaits.
    - Each task runs under a shared semaphore and a timeout. Whatever a
      sink does (error, conflict, timeout, exception) ends up in the log,
      never in the caller.
    - The deployment profile decides the sinks: blob | log | log + kv.
    """

    def __init__(
        self,
        config: JournalConfig,
        *,
        blob_appender: Optional[BlobAppender] = None,
        log_sink: Optional[LogSink] = None,
        kv_sink: Optional[KeyValueSink] = None,
        router: Optional[DatasetRouter] = None,
    ) -> None:
        self._config = config
        self._router = router or DatasetRouter(config.datasets)
        profile = config.profile
        self._blob = blob_appender if profile == JournalProfile.BLOB else None
        self._log = log_sink if profile in (JournalProfile.LOG, JournalProfile.LOG_KV) else None
        self._kv = kv_sink if profile == JournalProfile.LOG_KV else None
        self._sem = asyncio.Semaphore(config.max_concurrency)
        self._tasks: Set["asyncio.Task[List[SinkResult]]"] = set()
        self._owned_store: Optional[RedisBlobStore] = None

    @classmethod
    def from_config(
        cls,
        config: JournalConfig,
        *,
        blob_store: Optional[BlobStore] = None,
        log_endpoint: Optional[LogEndpoint] = None,
        kv_endpoint: Optional[KeyValueEndpoint] = None,
    ) -> "JournalCoordinator":
        """
        Wire the sinks for config.profile. A sink whose backend isn't
        configured is left out (no-op) and reported once here.
        """
        profile = config.profile
        blob_appender = log_sink = kv_sink = None
        owned: Optional[RedisBlobStore] = None

        if profile == JournalProfile.BLOB:
            store = blob_store or _blob_store_for(config)
            if blob_store is None and isinstance(store, RedisBlobStore):
                owned = store
            if store is None:
                logger.warning(
                    "journal.sink.disabled sink=blob backend=%s reason=missing_config",
                    config.blob_backend.value,
                )
            else:
                blob_appender = BlobAppender(store)

        if profile in (JournalProfile.LOG, JournalProfile.LOG_KV):
            endpoint = log_endpoint
            if endpoint is None and config.log_sink_url:
                endpoint = LogEndpoint(
                    config.log_sink_url,
                    token=config.log_sink_token,
                    timeout=config.timeout_seconds,
                )
            if endpoint is None:
                logger.warning("journal.sink.disabled sink=log reason=missing_config")
            else:
                log_sink = LogSink(endpoint)

        if profile == JournalProfile.LOG_KV:
            endpoint = kv_endpoint
            if endpoint is None and config.kv_sink_url:
                endpoint = KeyValueEndpoint(
                    config.kv_sink_url, timeout=config.timeout_seconds
                )
            if endpoint is None:
                logger.warning("journal.sink.disabled sink=kv reason=missing_config")
            else:
                kv_sink = KeyValueSink(endpoint, config.kv_array_policy)

        coordinator = cls(
            config, blob_appender=blob_appender, log_sink=log_sink, kv_sink=kv_sink
        )
        coordinator._owned_store = owned
        logger.info(
            "journal.ready profile=%s sinks=%s",
            profile.value,
            ",".join(coordinator.active_sinks) or "none",
        )
        return coordinator

    @property
    def active_sinks(self) -> Tuple[str, ...]:
        names = []
        if self._blob is not None:
            names.append("blob")
        if self._log is not None:
            names.append("log")
        if self._kv is not None:
            names.append("kv")
        return tuple(names)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def record(self, route: str, parameters: Mapping[str, Any], result: Any) -> None:
        if not self.active_sinks:
            return
        try:
            entry = encode_entry(
                route, parameters, result, secret_fields=self._config.secret_fields
            )
            descriptor = self._router.resolve(route)
            if not descriptor.classified:
                logger.warning(
                    "journal.route.unmapped route=%s dataset=%s",
                    route,
                    descriptor.dataset_id,
                )

            blob, log, kv = self._blob, self._log, self._kv
            if blob is not None:
                self._submit("blob", lambda: blob.append(descriptor.dataset_id, entry))
            if log is not None:
                self._submit("log", lambda: log.send(entry))
            if kv is not None:
                self._submit("kv", lambda: kv.send(descriptor.dataset_type, entry.result))
        except Exception:
            logger.exception("journal.record.failed route=%s", route)

    def _submit(self, sink: str, call: SinkCall) -> None:
        if len(self._tasks) >= self._config.max_pending:
            logger.warning(
                "journal.backlog.full sink=%s pending=%d", sink, len(self._tasks)
            )
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("journal.no_event_loop sink=%s", sink)
            return
        task = loop.create_task(self._run(sink, call))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, sink: str, call: SinkCall) -> List[SinkResult]:
        async with self._sem:
            try:
                out = await asyncio.wait_for(call(), timeout=self._config.timeout_seconds)
            except asyncio.TimeoutError:
                logger.error(
                    "journal.sink.timeout sink=%s after=%.1fs",
                    sink,
                    self._config.timeout_seconds,
                )
                out = SinkResult(
                    sink=sink, outcome=SinkOutcome.TRANSPORT_ERROR, detail="timeout"
                )
            except Exception as e:
                logger.exception("journal.sink.crashed sink=%s", sink)
                out = SinkResult(
                    sink=sink, outcome=SinkOutcome.TRANSPORT_ERROR, detail=type(e).__name__
                )

        results = out if isinstance(out, list) else [out]
        for r in results:
            logger.debug(
                "journal.sink.result sink=%s outcome=%s dataset=%s",
                r.sink,
                r.outcome.value,
                r.dataset,
            )
        return results

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight journal tasks (shutdown hook, tests)."""
        while self._tasks:
            _, still_pending = await asyncio.wait(set(self._tasks), timeout=timeout)
            if still_pending and timeout is not None:
                logger.warning("journal.drain.timeout pending=%d", len(still_pending))
                return

    async def aclose(self) -> None:
        """Release backend connections the coordinator opened itself."""
        if self._owned_store is not None:
            await self._owned_store.aclose()
            self._owned_store = None


def _blob_store_for(config: JournalConfig) -> Optional[BlobStore]:
    if config.blob_backend == BlobBackend.REDIS:
        return RedisBlobStore.from_url(config.redis_url) if config.redis_url else None
    if config.github_token and config.github_repo:
        return GithubBlobStore(
            token=config.github_token,
            repo=config.github_repo,
            api_url=config.github_api_url,
            branch=config.github_branch,
            directory=config.github_dir,
            timeout=config.timeout_seconds,
        )
    return None

# service/blob_appender.py
import logging
from typing import Any, List
from model.journal import JournalEntry, SinkOutcome, SinkResult
from repository.blob_store import BlobStore, FetchStatus, WriteStatus
from util.timing import timed

logger = logging.getLogger(__name__)

SINK_NAME = "blob"


class BlobAppender:
    """
    Appends entries to a JSON-array blob with optimistic concurrency:
    read (content, version) -> append in memory -> write conditioned on
    that version. A lost race is reported as CONFLICT and not retried.
    """

    def __init__(self, store: BlobStore) -> None:
        self._store = store

    async def append(self, dataset_id: str, entry: JournalEntry) -> SinkResult:
        with timed(logger, "journal.blob.append", dataset=dataset_id):
            fetched = await self._store.get(dataset_id)

            if fetched.status == FetchStatus.ERROR:
                # Unknown current content: never write blind.
                logger.error(
                    "journal.blob.read_failed dataset=%s ts=%s detail=%s",
                    dataset_id,
                    entry.timestamp,
                    fetched.detail,
                )
                return SinkResult(
                    sink=SINK_NAME,
                    outcome=SinkOutcome.TRANSPORT_ERROR,
                    dataset=dataset_id,
                    detail=fetched.detail,
                )

            recovered = False
            collection: List[Any]
            if fetched.status == FetchStatus.NOT_FOUND:
                logger.info("journal.blob.create dataset=%s", dataset_id)
                collection, version = [], None
            elif not isinstance(fetched.content, list):
                logger.warning(
                    "journal.blob.corrupt_reset dataset=%s found=%s",
                    dataset_id,
                    type(fetched.content).__name__,
                )
                collection, version, recovered = [], fetched.version, True
            else:
                collection, version = list(fetched.content), fetched.version

            collection.append(entry.model_dump(mode="json"))
            written = await self._store.put(
                dataset_id,
                collection,
                version,
                message=f"Journal entry for {entry.route}",
            )

        if written.status == WriteStatus.SUCCESS:
            logger.info(
                "journal.blob.ok dataset=%s entries=%d", dataset_id, len(collection)
            )
            return SinkResult(
                sink=SINK_NAME,
                outcome=SinkOutcome.SUCCESS,
                dataset=dataset_id,
                recovered=recovered,
            )

        if written.status == WriteStatus.CONFLICT:
            logger.error(
                "journal.blob.conflict dataset=%s ts=%s route=%s detail=%s",
                dataset_id,
                entry.timestamp,
                entry.route,
                written.detail,
            )
            return SinkResult(
                sink=SINK_NAME,
                outcome=SinkOutcome.CONFLICT,
                dataset=dataset_id,
                detail=written.detail,
                recovered=recovered,
            )

        logger.error(
            "journal.blob.write_failed dataset=%s ts=%s detail=%s",
            dataset_id,
            entry.timestamp,
            written.detail,
        )
        return SinkResult(
            sink=SINK_NAME,
            outcome=SinkOutcome.TRANSPORT_ERROR,
            dataset=dataset_id,
            detail=written.detail,
            recovered=recovered,
        )

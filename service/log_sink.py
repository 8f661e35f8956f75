# service/log_sink.py
import logging
from model.journal import JournalEntry, SinkOutcome, SinkResult
from repository.http_endpoints import LogEndpoint
from util.timing import timed

logger = logging.getLogger(__name__)

SINK_NAME = "log"


class LogSink:
    """Single POST per entry. No read-before-write, no retry, no ordering."""

    def __init__(self, endpoint: LogEndpoint) -> None:
        self._endpoint = endpoint

    async def send(self, entry: JournalEntry) -> SinkResult:
        with timed(logger, "journal.log.send", route=entry.route):
            res = await self._endpoint.post(entry.model_dump(mode="json"))
        if res.ok:
            return SinkResult(sink=SINK_NAME, outcome=SinkOutcome.SUCCESS)
        logger.error(
            "journal.log.failed route=%s ts=%s detail=%s",
            entry.route,
            entry.timestamp,
            res.detail,
        )
        return SinkResult(
            sink=SINK_NAME, outcome=SinkOutcome.TRANSPORT_ERROR, detail=res.detail
        )

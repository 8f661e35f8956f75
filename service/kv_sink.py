# service/kv_sink.py
import json
import logging
from typing import Any, List, Mapping
from urllib.parse import quote
from model.journal import SinkOutcome, SinkResult
from repository.http_endpoints import KeyValueEndpoint
from util.enums import ArrayPolicy
from util.timing import timed

logger = logging.getLogger(__name__)

SINK_NAME = "kv"


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def encode_query(record: Mapping[str, Any]) -> str:
    """
    Percent-encode every key and value on its own and join the pairs with "&".
    {"a": "1", "b": "x y"} -> "a=1&b=x%20y"
    """
    return "&".join(
        f"{quote(str(k), safe='')}={quote(_scalar(v), safe='')}"
        for k, v in record.items()
    )


def reduce_result(result: Any, policy: ArrayPolicy = ArrayPolicy.FIRST) -> List[Mapping[str, Any]]:
    """
    Records to send for an upstream result:
      - object         -> [object]
      - non-empty list -> [first object] (FIRST) or every object element (EACH)
      - anything else  -> [] (nothing is sent)
    """
    if isinstance(result, Mapping):
        return [result]
    if isinstance(result, list) and result:
        if policy == ArrayPolicy.EACH:
            return [r for r in result if isinstance(r, Mapping)]
        return [result[0]] if isinstance(result[0], Mapping) else []
    return []


class KeyValueSink:
    def __init__(
        self, endpoint: KeyValueEndpoint, policy: ArrayPolicy = ArrayPolicy.FIRST
    ) -> None:
        self._endpoint = endpoint
        self._policy = policy

    async def send(self, dataset_type: str, result: Any) -> List[SinkResult]:
        records = reduce_result(result, self._policy)
        if not records:
            logger.warning(
                "journal.kv.skipped type=%s shape=%s", dataset_type, type(result).__name__
            )
            return [
                SinkResult(
                    sink=SINK_NAME,
                    outcome=SinkOutcome.SKIPPED,
                    dataset=dataset_type,
                    detail="unsupported result shape",
                )
            ]

        out: List[SinkResult] = []
        for record in records:
            out.append(await self._send_one(dataset_type, record))
        return out

    async def _send_one(self, dataset_type: str, record: Mapping[str, Any]) -> SinkResult:
        with timed(logger, "journal.kv.send", type=dataset_type, fields=len(record)):
            res = await self._endpoint.get(dataset_type, encode_query(record))
        if res.ok:
            return SinkResult(sink=SINK_NAME, outcome=SinkOutcome.SUCCESS, dataset=dataset_type)
        logger.error("journal.kv.failed type=%s detail=%s", dataset_type, res.detail)
        return SinkResult(
            sink=SINK_NAME,
            outcome=SinkOutcome.TRANSPORT_ERROR,
            dataset=dataset_type,
            detail=res.detail,
        )

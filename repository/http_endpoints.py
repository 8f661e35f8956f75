# repository/http_endpoints.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointResult:
    ok: bool
    status_code: Optional[int] = None
    detail: Optional[str] = None


def _result(res: httpx.Response) -> EndpointResult:
    if res.status_code // 100 == 2:
        return EndpointResult(ok=True, status_code=res.status_code)
    return EndpointResult(
        ok=False, status_code=res.status_code, detail=f"status {res.status_code}"
    )


class LogEndpoint:
    """POSTs one JSON record per call to a log-ingestion URL."""

    def __init__(
        self, url: str, *, token: Optional[str] = None, timeout: float = 15.0
    ) -> None:
        self._url = url
        self._token = token
        self._timeout = timeout

    async def post(self, record: Dict[str, Any]) -> EndpointResult:
        headers = {"content-type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                res = await client.post(self._url, headers=headers, json=record)
        except httpx.RequestError as e:
            logger.error("log.endpoint.request_error err=%s", type(e).__name__)
            return EndpointResult(ok=False, detail=type(e).__name__)
        return _result(res)


class KeyValueEndpoint:
    """
    Issues GET <base>/<dataset_type>?<query>. The remote side stores the
    query pairs; only the status code matters here.
    """

    def __init__(self, base_url: str, *, timeout: float = 15.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def url_for(self, dataset_type: str, encoded_query: str) -> str:
        url = f"{self._base_url}/{dataset_type}"
        return f"{url}?{encoded_query}" if encoded_query else url

    async def get(self, dataset_type: str, encoded_query: str) -> EndpointResult:
        # Query is already percent-encoded; pass the URL through as a string.
        url = self.url_for(dataset_type, encoded_query)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                res = await client.get(url)
        except httpx.RequestError as e:
            logger.error(
                "kv.endpoint.request_error type=%s err=%s", dataset_type, type(e).__name__
            )
            return EndpointResult(ok=False, detail=type(e).__name__)
        return _result(res)

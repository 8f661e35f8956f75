# service/lookup_service.py
import logging
import httpx
from typing import Any, Dict, Mapping
from config.settings import settings
from core.lookup_catalog import LookupRoute
from util.enums import ErrorMessage
from util.errors import AppError

logger = logging.getLogger(__name__)


class LookupService:
    """
    Forwards a validated lookup to the upstream API (GET here -> POST there)
    and returns its JSON untouched.
    """

    def __init__(self) -> None:
        self._base_url: str = settings.UPSTREAM_BASE_URL.rstrip("/")
        self._token = settings.UPSTREAM_TOKEN
        self._timeout = settings.UPSTREAM_TIMEOUT_SECONDS

    async def lookup(self, route: LookupRoute, params: Mapping[str, str]) -> Any:
        url = f"{self._base_url}{route.upstream_path}"
        payload: Dict[str, Any] = {**params, "token": self._token}
        logger.info("lookup.forward route=%s", route.path)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                res = await client.post(url, json=payload)
        except httpx.RequestError as e:
            logger.error("lookup.request_error route=%s err=%s", route.path, type(e).__name__)
            raise AppError(
                ErrorMessage.UPSTREAM_UNAVAILABLE.value.message,
                ErrorMessage.UPSTREAM_UNAVAILABLE.value.http_status,
                detail=type(e).__name__,
            )

        if res.status_code // 100 != 2:
            logger.error("lookup.bad_status route=%s status=%d", route.path, res.status_code)
            raise AppError(
                ErrorMessage.UPSTREAM_FAILED.value.message,
                res.status_code,
                detail=_body(res),
            )

        try:
            return res.json()
        except ValueError:
            logger.error("lookup.bad_json route=%s", route.path)
            raise AppError(
                ErrorMessage.UPSTREAM_FAILED.value.message,
                ErrorMessage.UPSTREAM_FAILED.value.http_status,
                detail="invalid JSON from upstream",
            )


def _body(res: httpx.Response) -> Any:
    try:
        return res.json()
    except ValueError:
        return res.text

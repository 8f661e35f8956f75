# repository/github_blob_store.py
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional
import httpx
from fastapi import status
from repository.blob_store import BlobFetch, BlobWrite, FetchStatus, WriteStatus
from util.constants import ExternalURIs

logger = logging.getLogger(__name__)

_CONFLICT_STATUSES = (status.HTTP_409_CONFLICT, status.HTTP_412_PRECONDITION_FAILED)
_UNPROCESSABLE = 422


class GithubBlobStore:
    """
    JSON blobs stored as files in a GitHub repository via the contents API.
    The file's blob `sha` is the version token; GitHub rejects a PUT whose
    `sha` is stale, which gives us the conditional write.
    """

    def __init__(
        self,
        *,
        token: str,
        repo: str,
        api_url: str = ExternalURIs.GITHUB_API,
        branch: str = "main",
        directory: str = "public",
        timeout: float = 15.0,
    ) -> None:
        self._token = token
        self._repo = repo
        self._api_url = api_url.rstrip("/")
        self._branch = branch
        self._directory = directory.strip("/")
        self._timeout = timeout

    def _path(self, blob_id: str) -> str:
        return f"{self._directory}/{blob_id}" if self._directory else blob_id

    def _contents_url(self, blob_id: str) -> str:
        return f"{self._api_url}/repos/{self._repo}/contents/{self._path(blob_id)}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"token {self._token}",
            "Accept": "application/vnd.github+json",
        }

    async def get(self, blob_id: str) -> BlobFetch:
        url = self._contents_url(blob_id)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                res = await client.get(
                    url, headers=self._headers(), params={"ref": self._branch}
                )
                if res.status_code == status.HTTP_404_NOT_FOUND:
                    return BlobFetch.not_found()
                if res.status_code // 100 != 2:
                    logger.error(
                        "github.get.bad_status path=%s status=%d",
                        self._path(blob_id),
                        res.status_code,
                    )
                    return BlobFetch.error(f"status {res.status_code}")

                body = _json_object(res)
                if body is None:
                    # Directory listings come back as arrays; proxies may send HTML.
                    logger.error("github.get.bad_body path=%s", self._path(blob_id))
                    return BlobFetch.error("unexpected body")
                sha = body.get("sha")
                encoded = body.get("content") or ""
                # Files over 1MB come back without inline content.
                if not encoded and body.get("encoding") == "none" and sha:
                    blob = await client.get(
                        f"{self._api_url}/repos/{self._repo}/git/blobs/{sha}",
                        headers=self._headers(),
                    )
                    if blob.status_code // 100 != 2:
                        return BlobFetch.error(f"blob status {blob.status_code}")
                    blob_body = _json_object(blob)
                    if blob_body is None:
                        return BlobFetch.error("unexpected blob body")
                    encoded = blob_body.get("content") or ""
        except httpx.RequestError as e:
            logger.error("github.get.request_error path=%s err=%s", self._path(blob_id), e)
            return BlobFetch.error(type(e).__name__)

        if not isinstance(encoded, str):
            return BlobFetch.error("undecodable content")
        try:
            raw = base64.b64decode(encoded.replace("\n", ""))
            content = json.loads(raw.decode("utf-8")) if raw.strip() else None
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            # Unknown content: refuse so nothing overwrites it blindly.
            logger.error("github.get.undecodable path=%s err=%s", self._path(blob_id), e)
            return BlobFetch.error("undecodable content")

        return BlobFetch(status=FetchStatus.FOUND, content=content, version=sha)

    async def put(
        self,
        blob_id: str,
        content: Any,
        expected_version: Optional[str],
        message: str = "",
    ) -> BlobWrite:
        serialized = json.dumps(content, indent=2, ensure_ascii=False)
        payload: Dict[str, Any] = {
            "message": message or f"Update {self._path(blob_id)}",
            "content": base64.b64encode(serialized.encode("utf-8")).decode("ascii"),
            "branch": self._branch,
        }
        if expected_version is not None:
            payload["sha"] = expected_version

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                res = await client.put(
                    self._contents_url(blob_id), headers=self._headers(), json=payload
                )
        except httpx.RequestError as e:
            logger.error("github.put.request_error path=%s err=%s", self._path(blob_id), e)
            return BlobWrite(status=WriteStatus.ERROR, detail=type(e).__name__)

        if res.status_code in (status.HTTP_200_OK, status.HTTP_201_CREATED):
            # The write has landed; a missing sha only means no new token.
            content_info = (_json_object(res) or {}).get("content")
            sha = content_info.get("sha") if isinstance(content_info, dict) else None
            return BlobWrite(status=WriteStatus.SUCCESS, version=sha)

        # 422 on a create means the file appeared since we looked.
        if res.status_code in _CONFLICT_STATUSES or (
            expected_version is None and res.status_code == _UNPROCESSABLE
        ):
            return BlobWrite(status=WriteStatus.CONFLICT, detail=_message(res))

        logger.error(
            "github.put.bad_status path=%s status=%d", self._path(blob_id), res.status_code
        )
        return BlobWrite(status=WriteStatus.ERROR, detail=_message(res))


def _json_object(res: httpx.Response) -> Optional[Dict[str, Any]]:
    try:
        body = res.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _message(res: httpx.Response) -> str:
    body = _json_object(res) or {}
    return str(body.get("message") or res.status_code)

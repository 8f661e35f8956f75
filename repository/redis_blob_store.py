# repository/redis_blob_store.py
import json
import logging
from typing import Any, Optional
from uuid import uuid4
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError, WatchError
from repository.blob_store import BlobFetch, BlobWrite, FetchStatus, WriteStatus
from repository.namespaces import JOURNALS

logger = logging.getLogger(__name__)


def _s(v: Any) -> Optional[str]:
    if v is None:
        return None
    return v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)


class RedisBlobStore:
    """
    Flow:
    - Each blob is a hash {content, version} under journal:<blob_id>.
    - put() WATCHes the key, compares the stored version with the expected
      one and writes content + a fresh version token inside MULTI/EXEC.
    - A concurrent writer touching the key aborts EXEC (WatchError) -> conflict.
    """

    def __init__(self, client: Redis, *, owns_client: bool = False) -> None:
        self._redis = client
        self._owns_client = owns_client

    @classmethod
    def from_url(cls, url: str) -> "RedisBlobStore":
        # Connects lazily on first command.
        return cls(from_url(url, decode_responses=False), owns_client=True)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._redis.aclose()

    @staticmethod
    def _key(blob_id: str) -> str:
        return f"{JOURNALS}:{blob_id}"

    async def get(self, blob_id: str) -> BlobFetch:
        try:
            h = await self._redis.hgetall(self._key(blob_id))
        except RedisError as e:
            logger.error("redis.get.error key=%s err=%s", self._key(blob_id), e)
            return BlobFetch.error(type(e).__name__)
        if not h:
            return BlobFetch.not_found()

        try:
            fields = {_s(k): v for k, v in h.items()}
            version = _s(fields.get("version"))
            raw = _s(fields.get("content")) or ""
            content = json.loads(raw) if raw.strip() else None
        except (UnicodeDecodeError, ValueError) as e:
            logger.error("redis.get.undecodable key=%s err=%s", self._key(blob_id), e)
            return BlobFetch.error("undecodable content")
        return BlobFetch(status=FetchStatus.FOUND, content=content, version=version)

    async def put(
        self,
        blob_id: str,
        content: Any,
        expected_version: Optional[str],
        message: str = "",
    ) -> BlobWrite:
        key = self._key(blob_id)
        new_version = uuid4().hex
        data = json.dumps(content, ensure_ascii=False)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                current = _s(await pipe.hget(key, "version"))
                if current != expected_version:
                    await pipe.unwatch()
                    return BlobWrite(
                        status=WriteStatus.CONFLICT,
                        detail=f"expected={expected_version} current={current}",
                    )
                pipe.multi()
                pipe.hset(key, mapping={"content": data, "version": new_version})
                await pipe.execute()
        except WatchError:
            return BlobWrite(status=WriteStatus.CONFLICT, detail="concurrent write")
        except RedisError as e:
            logger.error("redis.put.error key=%s err=%s", key, e)
            return BlobWrite(status=WriteStatus.ERROR, detail=type(e).__name__)
        return BlobWrite(status=WriteStatus.SUCCESS, version=new_version)

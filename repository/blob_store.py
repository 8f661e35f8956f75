# repository/blob_store.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol


class FetchStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


class WriteStatus(str, Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    ERROR = "error"


@dataclass(frozen=True)
class BlobFetch:
    status: FetchStatus
    content: Any = None
    version: Optional[str] = None  # None when the blob does not exist
    detail: Optional[str] = None

    @classmethod
    def not_found(cls) -> "BlobFetch":
        return cls(status=FetchStatus.NOT_FOUND)

    @classmethod
    def error(cls, detail: str) -> "BlobFetch":
        return cls(status=FetchStatus.ERROR, detail=detail)


@dataclass(frozen=True)
class BlobWrite:
    status: WriteStatus
    version: Optional[str] = None  # token of the newly written version
    detail: Optional[str] = None


class BlobStore(Protocol):
    """
    Versioned JSON blob storage.

    put(expected_version=None) must only create; put(expected_version=v)
    must only overwrite while the stored version is still v.
    """

    async def get(self, blob_id: str) -> BlobFetch: ...

    async def put(
        self,
        blob_id: str,
        content: Any,
        expected_version: Optional[str],
        message: str = "",
    ) -> BlobWrite: ...

from __future__ import annotations

import pytest

from model.journal import JournalEntry
from tests.fakes import InMemoryBlobStore


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def make_entry():
    def _make(n: int = 1, route: str = "/reniec") -> JournalEntry:
        return JournalEntry(
            timestamp=f"2024-01-01T00:00:{n:02d}.000Z",
            route=route,
            parameters={"dni": f"{n:08d}"},
            result={"n": n},
        )

    return _make

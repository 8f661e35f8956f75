# model/journal.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict


class JournalEntry(BaseModel):
    """
    One persisted query outcome. Frozen once encoded; sinks only read it.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: str
    route: str
    parameters: Dict[str, str]
    result: Any = None


@dataclass(frozen=True)
class DatasetDescriptor:
    dataset_id: str  # blob name, e.g. "dni.json"
    dataset_type: str  # key-value endpoint tag, e.g. "dni"
    classified: bool = True


class SinkOutcome(str, Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    TRANSPORT_ERROR = "transport_error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SinkResult:
    sink: str
    outcome: SinkOutcome
    dataset: Optional[str] = None
    detail: Optional[str] = None
    # True when a corrupt (non-array) collection was reset before the write
    recovered: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == SinkOutcome.SUCCESS

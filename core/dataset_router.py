# core/dataset_router.py
from types import MappingProxyType
from typing import Final, Mapping
from model.journal import DatasetDescriptor

UNCLASSIFIED: Final[DatasetDescriptor] = DatasetDescriptor(
    dataset_id="unclassified.json",
    dataset_type="unclassified",
    classified=False,
)


class DatasetRouter:
    """
    Static route -> dataset lookup. Unknown routes map to UNCLASSIFIED
    so their entries are still journaled under a generic bucket.
    """

    def __init__(self, table: Mapping[str, DatasetDescriptor]) -> None:
        self._table = MappingProxyType(dict(table))

    def resolve(self, route: str) -> DatasetDescriptor:
        return self._table.get(route, UNCLASSIFIED)

    def __len__(self) -> int:
        return len(self._table)

"""Tabular dataset abstraction consumed by the index builder and linker."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from core.errors import MalformedRowError
from config.models import DatasetSelection

@dataclass
class Dataset:
    """
    A named table: ordered headers plus a (possibly lazy, single-pass)
    sequence of rows given as value sequences in header order.
    """
    name: str
    headers: List[str]
    rows: Iterable[Sequence[Any]]
    selection: DatasetSelection = field(default_factory=DatasetSelection)
    path: Optional[Path] = None

    @classmethod
    def from_records(
        cls,
        name: str,
        records: Sequence[Mapping[str, Any]],
        headers: Optional[List[str]] = None,
        selection: Optional[DatasetSelection] = None
    ) -> 'Dataset':
        """Build a dataset from mappings; headers default to the first record's keys."""
        if headers is None:
            headers = list(records[0]) if records else []
        rows = [[record.get(header, '') for header in headers] for record in records]
        return cls(name, list(headers), rows, selection or DatasetSelection())

    def records(self) -> Iterator[Dict[str, Any]]:
        """
        Yield rows as header -> value mappings, in order.

        Raises:
            MalformedRowError: If a row's value count differs from the header count
        """
        expected = len(self.headers)
        for row_number, values in enumerate(self.rows, start=1):
            values = list(values)
            if len(values) != expected:
                raise MalformedRowError(self.name, row_number, expected, len(values))
            yield dict(zip(self.headers, values))

"""Working output table with a uniform column schema."""

from typing import Any, Dict, Iterable, List, Mapping, Set
import pandas as pd


class MergeAccumulator:
    """
    Output rows seeded from the primary dataset.

    Columns contributed by secondary datasets are reserved up front and
    filled with the absent value on every row, so each emitted row carries
    the same schema whether or not it was ever matched.
    """

    def __init__(self, columns: Iterable[str], absent_value: Any = ''):
        self.absent_value = absent_value
        self._columns: List[str] = []
        self._rows: List[Dict[str, Any]] = []
        self._written: Dict[str, Set[int]] = {}
        self._add_columns(columns)

    def _add_columns(self, columns: Iterable[str]) -> List[str]:
        added = list(columns)
        duplicates = {c for c in added if added.count(c) > 1}
        duplicates.update(c for c in added if c in self._columns)
        if duplicates:
            raise ValueError(f"Duplicate output columns: {sorted(duplicates)}")
        self._columns.extend(added)
        return added

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def __len__(self) -> int:
        return len(self._rows)

    def add_row(self, record: Mapping[str, Any]) -> int:
        """Append a primary row; columns already reserved start absent."""
        row = {column: self.absent_value for column in self._columns}
        row.update((key, value) for key, value in record.items() if key in row)
        self._rows.append(row)
        return len(self._rows) - 1

    def reserve(self, group: str, columns: Iterable[str]) -> None:
        """Add a group of columns, set to the absent value on every row."""
        added = self._add_columns(columns)
        for row in self._rows:
            for column in added:
                row[column] = self.absent_value
        self._written.setdefault(group, set())

    def write(self, row_id: int, group: str, values: Mapping[str, Any]) -> bool:
        """
        Write a group's values onto a row.

        Returns:
            bool: True if the row already held values for this group
        """
        row = self._rows[row_id]
        unknown = [column for column in values if column not in row]
        if unknown:
            raise KeyError(f"Columns were never reserved: {unknown}")
        row.update(values)

        written = self._written.setdefault(group, set())
        overwritten = row_id in written
        written.add(row_id)
        return overwritten

    def row(self, row_id: int) -> Dict[str, Any]:
        return dict(self._rows[row_id])

    def matched_rows(self, group: str) -> Set[int]:
        return set(self._written.get(group, ()))

    def to_dataframe(self) -> pd.DataFrame:
        """Emit rows in primary order with the full column schema."""
        return pd.DataFrame(self._rows, columns=self._columns)

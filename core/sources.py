"""CSV source files: path resolution, lazy row reading and output writing."""

from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union
import csv
import logging
import pandas as pd

from core.dataset import Dataset
from core.errors import (
    InsufficientSourcesError,
    MalformedRowError,
    SourceFileNotFoundError
)
from config.models import DatasetSelection

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

def resolve_sources(paths: Sequence[PathLike]) -> List[Path]:
    """
    Resolve source paths to absolute paths and validate them.

    Raises:
        SourceFileNotFoundError: If a path does not exist
        InsufficientSourcesError: If fewer than two paths are given
    """
    resolved = [Path(p).resolve() for p in paths]
    for path in resolved:
        if not path.is_file():
            raise SourceFileNotFoundError(path)

    if len(resolved) < 2:
        raise InsufficientSourcesError(len(resolved))
    return resolved

def _read_lines(path: Path) -> Iterator[List[str]]:
    """Parsed, non-blank CSV lines of a file."""
    with path.open('r', encoding='utf-8-sig', newline='') as f:
        try:
            for values in csv.reader(f):
                if values:
                    yield values
        except csv.Error as e:
            raise MalformedRowError(path.name, None, detail=str(e)) from e

def read_headers(path: PathLike) -> List[str]:
    """Parse the header line of a CSV file."""
    path = Path(path)
    lines = _read_lines(path)
    try:
        return next(lines)
    except StopIteration:
        raise MalformedRowError(path.name, None, detail="missing header row")
    finally:
        lines.close()

def iter_rows(path: PathLike) -> Iterator[List[str]]:
    """
    Lazily yield the data rows of a CSV file as raw value lists.

    Rows are not padded or truncated; ``Dataset.records`` checks each one
    against the header count.
    """
    lines = _read_lines(Path(path))
    next(lines, None)
    yield from lines

def load_csv(path: PathLike, selection: Optional[DatasetSelection] = None) -> Dataset:
    """Open a CSV file as a dataset whose rows are read lazily."""
    path = Path(path)
    headers = read_headers(path)
    logger.debug(f"{path.name}: {len(headers)} columns")
    return Dataset(
        name=path.name,
        headers=headers,
        rows=iter_rows(path),
        selection=selection or DatasetSelection(),
        path=path
    )

def read_frame(path: PathLike) -> pd.DataFrame:
    """Read a CSV file fully as strings, e.g. a merged output."""
    return pd.read_csv(path, dtype=str, keep_default_na=False)

def write_csv(frame: pd.DataFrame, path: PathLike) -> None:
    """Write the merged output with a header row."""
    frame.to_csv(path, index=False)

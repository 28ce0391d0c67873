"""Configuration models for the record linking system."""

from dataclasses import dataclass, field
import math
from typing import Dict, Optional
from enum import Enum

@dataclass(frozen=True)
class BM25Config:
    """Configuration for BM25 relevance scoring."""
    k1: float = 1.2   # Term frequency saturation
    b: float = 0.75   # Document length normalization

    def __post_init__(self):
        """Reject parameters outside the BM25 domain."""
        if self.k1 < 0:
            raise ValueError(f"k1 must be non-negative, got {self.k1}")
        if not 0.0 <= self.b <= 1.0:
            raise ValueError(f"b must be within [0, 1], got {self.b}")

@dataclass(frozen=True)
class MatchConfig:
    """Configuration for how secondary rows are linked to the primary index."""
    min_score: float = 0.0
    min_overlap: int = 1
    absent_value: str = ''
    certainty_column: str = 'match_certainty'
    worker_threads: int = 1
    preprocess_method: str = 'whitespace'

    def __post_init__(self):
        if self.min_overlap < 1:
            raise ValueError("min_overlap must be at least 1")
        if self.worker_threads < 1:
            raise ValueError("worker_threads must be at least 1")

class IndexState(str, Enum):
    """Lifecycle states of a search index."""
    EMPTY = "empty"
    BUILDING = "building"
    CONSOLIDATED = "consolidated"

@dataclass(frozen=True)
class DatasetSelection:
    """Fields chosen for one dataset, mapped to their weight."""
    fields: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        for name, weight in self.fields.items():
            if not math.isfinite(weight) or weight <= 0:
                raise ValueError(
                    f"Weight for field '{name}' must be a positive number, got {weight}"
                )

    @classmethod
    def uniform(cls, names, weight: float = 1.0) -> 'DatasetSelection':
        """Select every field in ``names`` with the same weight."""
        return cls({name: weight for name in names})

    @property
    def names(self):
        return list(self.fields)

    def __bool__(self) -> bool:
        return bool(self.fields)

@dataclass
class MatchResult:
    """Best match found for one query."""
    doc_id: int
    score: float
    overlap: int = 0

@dataclass
class LinkReport:
    """Statistics for one merged secondary dataset."""
    dataset: str
    rows_processed: int = 0
    rows_matched: int = 0
    rows_overwritten: int = 0
    elapsed: Optional[float] = None

    @property
    def match_rate(self) -> float:
        if not self.rows_processed:
            return 0.0
        return self.rows_matched / self.rows_processed

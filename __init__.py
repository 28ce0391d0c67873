"""
Record Linker
=============

Merges rows of secondary CSV datasets into a primary dataset when the two
share no common key, by ranking primary rows against each secondary row
with BM25 over the tokens of user-selected fields.

Key Features:
- Per-field weights folded into BM25 term statistics
- Immutable, consolidated search index per primary dataset
- Top-1 matching with optional score and overlap thresholds
- Uniform output schema with prefixed secondary columns
- Optional threaded scoring of secondary rows
"""

from core.matcher import RecordLinker
from core.index import BM25Index
from core.analyzer import BM25Scorer
from core.dataset import Dataset
from core.preprocessor import normalize

from config.models import (
    BM25Config,
    MatchConfig,
    DatasetSelection,
    MatchResult
)
from config.rules import ColumnNamingRule, PascalPrefixRule

__version__ = "1.0.0"

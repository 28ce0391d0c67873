"""Inverted index with per-field weighting and frozen BM25 statistics."""

from typing import Any, Dict, List, Mapping, Optional, Tuple
from collections import defaultdict
import logging
import math
import numpy as np
from scipy.sparse import csc_matrix

from core.errors import InvalidIndexStateError
from core.preprocessor import Preprocessor, WhitespacePreprocessor
from config.models import BM25Config, IndexState

logger = logging.getLogger(__name__)

class BM25Index:
    """
    Searchable collection of documents for one dataset.

    Documents are added while the index is building; ``consolidate`` freezes
    the term statistics into a sparse document/term matrix and makes the
    index read-only.
    """

    def __init__(
        self,
        field_weights: Optional[Mapping[str, float]] = None,
        config: Optional[BM25Config] = None,
        preprocessor: Optional[Preprocessor] = None
    ):
        """
        Initialize an empty index.

        Args:
            field_weights: Optional field weights, same as calling ``configure``
            config: BM25 parameters, fixed for the lifetime of the index
            preprocessor: Tokenizer applied to every indexed field value
        """
        self.config = config or BM25Config()
        self.preprocessor = preprocessor or WhitespacePreprocessor()
        self.state = IndexState.EMPTY
        self.field_weights: Dict[str, float] = {}
        self._configured = False

        self._documents: List[Dict[str, Any]] = []
        self._lengths: List[float] = []
        self._postings: Dict[str, Dict[int, Dict[str, int]]] = defaultdict(dict)

        # Frozen at consolidation
        self._vocabulary: Dict[str, int] = {}
        self._matrix: Optional[csc_matrix] = None
        self._doc_freq: Optional[np.ndarray] = None
        self._idf: Optional[np.ndarray] = None
        self._doc_lengths: Optional[np.ndarray] = None
        self._norms: Optional[np.ndarray] = None
        self.avg_doc_length = 0.0

        if field_weights is not None:
            self.configure(field_weights)

    def configure(self, field_weights: Mapping[str, float]) -> None:
        """
        Set which fields are indexed and how much each one counts.

        Raises:
            InvalidIndexStateError: If documents have already been added
            ValueError: If a weight is not a positive finite number
        """
        if self.state is not IndexState.EMPTY:
            raise InvalidIndexStateError('configure', self.state)

        for name, weight in field_weights.items():
            if not math.isfinite(weight) or weight <= 0:
                raise ValueError(
                    f"Weight for field '{name}' must be a positive number, got {weight}"
                )

        self.field_weights = dict(field_weights)
        self._configured = True

    def start(self) -> None:
        """Move an empty index into the building state."""
        if self.state is not IndexState.EMPTY:
            raise InvalidIndexStateError('start building', self.state)
        if not self._configured:
            raise InvalidIndexStateError('start building before configure', self.state)
        self.state = IndexState.BUILDING

    def add_document(self, fields: Mapping[str, Any]) -> int:
        """
        Index a document and return its id.

        Ids are assigned in insertion order starting at 0. Only fields that
        have a weight are tokenized; the raw values of all fields are kept
        for retrieval.
        """
        if self.state is IndexState.EMPTY:
            self.start()
        elif self.state is not IndexState.BUILDING:
            raise InvalidIndexStateError('add a document', self.state)

        doc_id = len(self._documents)
        length = 0.0

        for name, weight in self.field_weights.items():
            tokens = self.preprocessor.tokenize(fields.get(name))
            for token in tokens:
                counts = self._postings[token].setdefault(doc_id, {})
                counts[name] = counts.get(name, 0) + 1
            length += weight * len(tokens)

        self._documents.append(dict(fields))
        self._lengths.append(length)
        return doc_id

    def consolidate(self) -> None:
        """Freeze document frequencies, idf and length statistics."""
        if self.state is not IndexState.BUILDING:
            raise InvalidIndexStateError('consolidate', self.state)

        n_docs = len(self._documents)
        terms = sorted(self._postings)
        self._vocabulary = {term: idx for idx, term in enumerate(terms)}

        indptr = [0]
        indices: List[int] = []
        data: List[float] = []
        for term in terms:
            postings = self._postings[term]
            for doc_id in sorted(postings):
                indices.append(doc_id)
                data.append(self._weighted_tf(postings[doc_id]))
            indptr.append(len(indices))

        self._matrix = csc_matrix(
            (np.asarray(data, dtype=np.float64),
             np.asarray(indices, dtype=np.int64),
             np.asarray(indptr, dtype=np.int64)),
            shape=(n_docs, len(terms))
        )
        self._doc_freq = np.diff(self._matrix.indptr)
        self._idf = np.log(
            (n_docs - self._doc_freq + 0.5) / (self._doc_freq + 0.5) + 1.0
        )
        self._doc_lengths = np.asarray(self._lengths, dtype=np.float64)
        self.avg_doc_length = float(self._doc_lengths.mean()) if n_docs else 0.0

        avg_len = self.avg_doc_length if self.avg_doc_length > 0 else 1.0
        k1, b = self.config.k1, self.config.b
        self._norms = k1 * (1 - b + b * self._doc_lengths / avg_len)

        self.state = IndexState.CONSOLIDATED
        logger.info(
            f"Index consolidated: {n_docs} documents, {len(terms)} terms, "
            f"average length {self.avg_doc_length:.2f}"
        )
        self._log_significant_terms()

    def _weighted_tf(self, field_counts: Dict[str, int]) -> float:
        return float(sum(
            count * self.field_weights[name]
            for name, count in field_counts.items()
        ))

    def _log_significant_terms(self, limit: int = 20) -> None:
        """Log the most discriminative terms for analysis."""
        if not logger.isEnabledFor(logging.DEBUG) or not self._vocabulary:
            return

        terms = list(self._vocabulary)
        top = np.argsort(-self._idf, kind='stable')[:limit]
        logger.debug("Most discriminative terms by idf:")
        for idx in top:
            logger.debug(
                f"- {terms[idx]:<20}: idf={self._idf[idx]:.3f}, "
                f"df={self._doc_freq[idx]}"
            )

    def _require_consolidated(self, operation: str) -> None:
        if self.state is not IndexState.CONSOLIDATED:
            raise InvalidIndexStateError(operation, self.state)

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def is_consolidated(self) -> bool:
        return self.state is IndexState.CONSOLIDATED

    @property
    def vocabulary_size(self) -> int:
        return len(self._postings)

    def document(self, doc_id: int) -> Dict[str, Any]:
        """Raw field values of a document."""
        return dict(self._documents[doc_id])

    def term_id(self, term: str) -> Optional[int]:
        self._require_consolidated('look up a term')
        return self._vocabulary.get(term)

    def document_frequency(self, term: str) -> int:
        term_id = self.term_id(term)
        return 0 if term_id is None else int(self._doc_freq[term_id])

    def idf(self, term: str) -> float:
        term_id = self.term_id(term)
        return 0.0 if term_id is None else float(self._idf[term_id])

    def idf_by_id(self, term_id: int) -> float:
        return float(self._idf[term_id])

    def postings(self, term: str) -> List[Tuple[int, float, Dict[str, int]]]:
        """(doc id, weighted term frequency, per-field counts) for a term."""
        postings = self._postings.get(term, {})
        return [
            (doc_id, self._weighted_tf(postings[doc_id]), dict(postings[doc_id]))
            for doc_id in sorted(postings)
        ]

    def term_column(self, term_id: int) -> Tuple[np.ndarray, np.ndarray]:
        """Document ids and weighted term frequencies for a term id."""
        self._require_consolidated('read postings')
        start, end = self._matrix.indptr[term_id], self._matrix.indptr[term_id + 1]
        return self._matrix.indices[start:end], self._matrix.data[start:end]

    def document_length(self, doc_id: int) -> float:
        return float(self._lengths[doc_id])

    @property
    def norms(self) -> np.ndarray:
        """Per-document BM25 length normalization, ``k1 * (1 - b + b * |d| / avgdl)``."""
        self._require_consolidated('read length norms')
        return self._norms

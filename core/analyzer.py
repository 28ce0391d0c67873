"""BM25 relevance scoring against a consolidated index."""

from typing import Any, Dict, List, Optional, Sequence, Tuple
import numpy as np

from core.errors import InvalidIndexStateError
from core.index import BM25Index
from config.models import MatchResult

class BM25Scorer:
    """
    Ranks documents of a consolidated index against a query token sequence.

    Field weights are already folded into the index's term frequencies and
    lengths, so scoring is plain single-field BM25 over weighted counts.
    Each distinct query term counts once.
    """

    def _check(self, index: BM25Index) -> None:
        if not index.is_consolidated:
            raise InvalidIndexStateError('score a query', index.state)

    def _accumulate(
        self,
        index: BM25Index,
        tokens: Sequence[str]
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Scores and count of shared distinct terms for every document."""
        self._check(index)
        n_docs = len(index)
        scores = np.zeros(n_docs, dtype=np.float64)
        overlap = np.zeros(n_docs, dtype=np.int64)
        if not n_docs:
            return scores, overlap

        k1 = index.config.k1
        norms = index.norms
        for term in dict.fromkeys(tokens):
            term_id = index.term_id(term)
            if term_id is None:
                continue
            doc_ids, tf = index.term_column(term_id)
            scores[doc_ids] += (
                index.idf_by_id(term_id) * (tf * (k1 + 1)) / (tf + norms[doc_ids])
            )
            overlap[doc_ids] += 1

        return scores, overlap

    @staticmethod
    def _rank(candidates: np.ndarray, scores: np.ndarray) -> np.ndarray:
        """Order candidates by descending score, lowest id first on ties."""
        return candidates[np.lexsort((candidates, -scores[candidates]))]

    def search(
        self,
        index: BM25Index,
        tokens: Sequence[str],
        limit: Optional[int] = None
    ) -> List[Tuple[int, float]]:
        """
        Rank documents sharing at least one term with the query.

        Args:
            index: Consolidated index to search
            tokens: Normalized query tokens
            limit: Optional maximum number of results

        Returns:
            List[Tuple[int, float]]: (document id, score), best first
        """
        scores, overlap = self._accumulate(index, tokens)
        ranked = self._rank(np.flatnonzero(overlap), scores)
        if limit is not None:
            ranked = ranked[:limit]
        return [(int(doc_id), float(scores[doc_id])) for doc_id in ranked]

    def best_match(
        self,
        index: BM25Index,
        tokens: Sequence[str],
        min_score: float = 0.0,
        min_overlap: int = 1
    ) -> Optional[MatchResult]:
        """
        Top-1 document for a query, or None.

        Only documents sharing at least ``min_overlap`` distinct query terms
        are considered; the winner is rejected when its score is below
        ``min_score``.
        """
        scores, overlap = self._accumulate(index, tokens)
        candidates = np.flatnonzero(overlap >= max(min_overlap, 1))
        if not candidates.size:
            return None

        doc_id = int(self._rank(candidates, scores)[0])
        score = float(scores[doc_id])
        if score < min_score:
            return None
        return MatchResult(doc_id=doc_id, score=score, overlap=int(overlap[doc_id]))

    def explain(
        self,
        index: BM25Index,
        tokens: Sequence[str],
        doc_id: int
    ) -> Dict[str, Any]:
        """Per-term breakdown of a document's score for a query."""
        self._check(index)
        k1, b = index.config.k1, index.config.b
        terms = {}
        total = 0.0

        for term in dict.fromkeys(tokens):
            term_id = index.term_id(term)
            if term_id is None:
                continue
            doc_ids, tf = index.term_column(term_id)
            position = np.searchsorted(doc_ids, doc_id)
            if position >= doc_ids.size or doc_ids[position] != doc_id:
                continue
            term_tf = float(tf[position])
            idf = index.idf_by_id(term_id)
            contribution = idf * (term_tf * (k1 + 1)) / (term_tf + index.norms[doc_id])
            total += contribution
            terms[term] = {
                'idf': idf,
                'term_freq': term_tf,
                'doc_freq': index.document_frequency(term),
                'score': float(contribution)
            }

        return {
            'doc_id': doc_id,
            'score': total,
            'description': f"BM25(k1={k1}, b={b})",
            'doc_length': index.document_length(doc_id),
            'avg_doc_length': index.avg_doc_length,
            'terms': terms
        }

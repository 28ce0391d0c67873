# Tests for BM25Index
# ===================

import math

import numpy as np
import pytest

from core.errors import InvalidIndexStateError
from core.index import BM25Index
from core.preprocessor import NamePreprocessor
from config.models import BM25Config, IndexState


class TestIndexLifecycle:
    """State machine tests."""

    def test_new_index_is_empty(self):
        index = BM25Index({"name": 1.0})
        assert index.state is IndexState.EMPTY
        assert len(index) == 0

    def test_add_document_starts_building(self):
        index = BM25Index({"name": 1.0})
        assert index.add_document({"name": "acme"}) == 0
        assert index.state is IndexState.BUILDING

    def test_ids_follow_insertion_order(self):
        index = BM25Index({"name": 1.0})
        ids = [index.add_document({"name": n}) for n in ["a", "b", "c"]]
        assert ids == [0, 1, 2]

    def test_consolidate_freezes_index(self):
        index = BM25Index({"name": 1.0})
        index.add_document({"name": "acme"})
        index.consolidate()
        assert index.state is IndexState.CONSOLIDATED
        assert index.is_consolidated

        with pytest.raises(InvalidIndexStateError):
            index.add_document({"name": "globex"})
        assert len(index) == 1

    def test_consolidate_twice_fails(self):
        index = BM25Index({"name": 1.0})
        index.add_document({"name": "acme"})
        index.consolidate()
        with pytest.raises(InvalidIndexStateError):
            index.consolidate()

    def test_consolidate_from_empty_fails(self):
        with pytest.raises(InvalidIndexStateError):
            BM25Index({"name": 1.0}).consolidate()

    def test_configure_after_building_fails(self):
        index = BM25Index({"name": 1.0})
        index.add_document({"name": "acme"})
        with pytest.raises(InvalidIndexStateError):
            index.configure({"city": 1.0})

    def test_add_before_configure_fails(self):
        with pytest.raises(InvalidIndexStateError):
            BM25Index().add_document({"name": "acme"})

    def test_start_twice_fails(self):
        index = BM25Index({"name": 1.0})
        index.start()
        with pytest.raises(InvalidIndexStateError):
            index.start()

    @pytest.mark.parametrize("weight", [0, -1.0, math.nan, math.inf])
    def test_rejects_invalid_weight(self, weight):
        with pytest.raises(ValueError):
            BM25Index({"name": weight})

    def test_queries_require_consolidation(self):
        index = BM25Index({"name": 1.0})
        index.add_document({"name": "acme"})
        with pytest.raises(InvalidIndexStateError):
            index.term_id("acme")

    def test_consolidate_empty_collection(self):
        index = BM25Index({"name": 1.0})
        index.start()
        index.consolidate()
        assert len(index) == 0
        assert index.avg_doc_length == 0.0
        assert index.term_id("acme") is None


class TestIndexStatistics:
    """Term statistics with per-field weights."""

    @pytest.fixture
    def index(self):
        index = BM25Index({"name": 2.0, "city": 1.0})
        index.add_document({"id": "7", "name": "Acme acme", "city": "Paris"})
        index.add_document({"id": "8", "name": "Globex", "city": "Paris ACME"})
        index.consolidate()
        return index

    def test_postings_carry_weighted_and_field_counts(self, index):
        assert index.postings("acme") == [
            (0, 4.0, {"name": 2}),
            (1, 1.0, {"city": 1}),
        ]

    def test_document_frequency(self, index):
        assert index.document_frequency("acme") == 2
        assert index.document_frequency("paris") == 2
        assert index.document_frequency("globex") == 1
        assert index.document_frequency("initech") == 0

    def test_weighted_lengths(self, index):
        assert index.document_length(0) == 5.0
        assert index.document_length(1) == 4.0
        assert index.avg_doc_length == pytest.approx(4.5)

    def test_idf(self, index):
        assert index.idf("globex") == pytest.approx(math.log(2.0))
        assert index.idf("acme") == pytest.approx(math.log(0.5 / 2.5 + 1.0))
        assert index.idf("initech") == 0.0

    def test_unweighted_fields_are_not_indexed(self, index):
        assert index.term_id("7") is None
        assert index.document(0)["id"] == "7"

    def test_document_returns_raw_values(self, index):
        assert index.document(1) == {"id": "8", "name": "Globex", "city": "Paris ACME"}

    def test_term_column(self, index):
        doc_ids, tf = index.term_column(index.term_id("acme"))
        assert doc_ids.tolist() == [0, 1]
        assert tf.tolist() == [4.0, 1.0]

    def test_norms(self, index):
        k1, b = 1.2, 0.75
        expected = k1 * (1 - b + b * np.array([5.0, 4.0]) / 4.5)
        assert index.norms == pytest.approx(expected)

    def test_vocabulary_size(self, index):
        assert index.vocabulary_size == 3


class TestIndexConfiguration:
    """Custom parameters and preprocessors."""

    def test_bm25_config_is_kept(self):
        config = BM25Config(k1=2.0, b=0.5)
        assert BM25Index({"name": 1.0}, config=config).config is config

    @pytest.mark.parametrize("kwargs", [{"k1": -1.0}, {"b": 1.5}, {"b": -0.1}])
    def test_bm25_config_validation(self, kwargs):
        with pytest.raises(ValueError):
            BM25Config(**kwargs)

    def test_custom_preprocessor(self):
        index = BM25Index({"name": 1.0}, preprocessor=NamePreprocessor())
        index.add_document({"name": "Café, Inc."})
        index.consolidate()
        assert index.term_id("cafe") is not None
        assert index.term_id("inc") is not None

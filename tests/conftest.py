# Shared fixtures for record linker tests
# =======================================

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.dataset import Dataset
from core.index import BM25Index
from config.models import DatasetSelection


@pytest.fixture
def write_csv_file(tmp_path):
    """Write text to a CSV file under tmp_path and return its path."""
    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def build_index():
    """Build and consolidate an index from a list of field mappings."""
    def _build(documents, weights=None, **kwargs):
        index = BM25Index(field_weights=weights or {"name": 1.0}, **kwargs)
        index.start()
        for fields in documents:
            index.add_document(fields)
        index.consolidate()
        return index
    return _build


@pytest.fixture
def companies():
    """Primary dataset of company names."""
    return Dataset.from_records(
        "companies.csv",
        [
            {"id": "1", "name": "Acme Inc"},
            {"id": "2", "name": "Globex Co"},
            {"id": "3", "name": "Umbrella Corporation"},
        ],
        selection=DatasetSelection.uniform(["name"]),
    )

# Tests for CSV sources
# =====================

import pytest

from core.errors import (
    InsufficientSourcesError,
    MalformedRowError,
    RecordLinkError,
    SourceFileNotFoundError,
)
from core.sources import load_csv, read_frame, read_headers, resolve_sources, write_csv
from config.models import DatasetSelection


class TestResolveSources:

    def test_resolves_to_absolute_paths(self, write_csv_file):
        a = write_csv_file("a.csv", "x\n1\n")
        b = write_csv_file("b.csv", "y\n2\n")
        assert resolve_sources([str(a), b]) == [a.resolve(), b.resolve()]

    def test_missing_file(self, write_csv_file, tmp_path):
        a = write_csv_file("a.csv", "x\n1\n")
        with pytest.raises(SourceFileNotFoundError) as excinfo:
            resolve_sources([a, tmp_path / "missing.csv"])
        assert isinstance(excinfo.value, FileNotFoundError)
        assert isinstance(excinfo.value, RecordLinkError)
        assert "missing.csv" in str(excinfo.value)

    def test_requires_two_files(self, write_csv_file):
        a = write_csv_file("a.csv", "x\n1\n")
        with pytest.raises(InsufficientSourcesError):
            resolve_sources([a])
        with pytest.raises(InsufficientSourcesError):
            resolve_sources([])


class TestLoadCsv:

    def test_headers_and_records(self, write_csv_file):
        path = write_csv_file(
            "vendors.csv",
            'id,name\n1,"Acme, Inc"\n\n2,Globex\n',
        )
        dataset = load_csv(path, DatasetSelection.uniform(["name"]))

        assert dataset.name == "vendors.csv"
        assert dataset.path == path
        assert dataset.headers == ["id", "name"]
        assert dataset.selection.names == ["name"]
        assert list(dataset.records()) == [
            {"id": "1", "name": "Acme, Inc"},
            {"id": "2", "name": "Globex"},
        ]

    def test_values_stay_strings(self, write_csv_file):
        path = write_csv_file("codes.csv", "code,empty\n007,\n")
        assert list(load_csv(path).records()) == [{"code": "007", "empty": ""}]

    def test_byte_order_mark_is_stripped(self, write_csv_file):
        path = write_csv_file("bom.csv", "\ufeffname\nAcme\n")
        assert read_headers(path) == ["name"]

    def test_header_only_file(self, write_csv_file):
        path = write_csv_file("empty.csv", "name,city\n")
        dataset = load_csv(path)
        assert dataset.headers == ["name", "city"]
        assert list(dataset.records()) == []

    def test_empty_file(self, write_csv_file):
        path = write_csv_file("blank.csv", "")
        with pytest.raises(MalformedRowError, match="missing header row"):
            load_csv(path)

    @pytest.mark.parametrize("text", [
        "a,b\n1,2\n3\n",
        "a,b\n1,2\n3,4,5\n",
    ])
    def test_cardinality_mismatch(self, write_csv_file, text):
        dataset = load_csv(write_csv_file("bad.csv", text))
        with pytest.raises(MalformedRowError) as excinfo:
            list(dataset.records())
        assert excinfo.value.row_number == 2
        assert excinfo.value.dataset == "bad.csv"


class TestWriteCsv:

    def test_round_trip(self, tmp_path):
        import pandas as pd

        frame = pd.DataFrame([{"name": "Acme", "BCsv__x": ""}], columns=["name", "BCsv__x"])
        path = tmp_path / "out.csv"
        write_csv(frame, path)

        assert path.read_text().splitlines() == ["name,BCsv__x", "Acme,"]
        pd.testing.assert_frame_equal(read_frame(path), frame)

"""Tests for zip archive extraction and building."""

import io
import zipfile

import pytest

from prices.archive import build_archive, open_data_file
from prices.errors import InvalidArchive, NoDataFile


def zip_of(entries: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


class TestOpenDataFile:
    def test_first_csv_entry_wins(self):
        payload = zip_of({"readme.txt": "hi", "test_data.csv": "a", "other.csv": "b"})
        with open_data_file(payload) as stream:
            assert stream.read() == b"a"

    def test_suffix_is_case_insensitive(self):
        payload = zip_of({"DATA.CSV": "upper"})
        with open_data_file(payload) as stream:
            assert stream.read() == b"upper"

    def test_csv_in_subdirectory(self):
        payload = zip_of({"export/": "", "export/prices.csv": "nested"})
        with open_data_file(payload) as stream:
            assert stream.read() == b"nested"

    def test_exact_name(self):
        payload = zip_of({"first.csv": "no", "data.csv": "yes"})
        with open_data_file(payload, data_file="data.csv") as stream:
            assert stream.read() == b"yes"

    def test_exact_name_missing(self):
        payload = zip_of({"first.csv": "no"})
        with pytest.raises(NoDataFile, match="data.csv"):
            open_data_file(payload, data_file="data.csv")

    def test_no_csv_entry(self):
        payload = zip_of({"notes.txt": "x", "image.png": "y"})
        with pytest.raises(NoDataFile, match="No .csv file"):
            open_data_file(payload)

    def test_empty_archive(self):
        with pytest.raises(NoDataFile):
            open_data_file(zip_of({}))

    @pytest.mark.parametrize("payload", [b"", b"not a zip", b"PK\x03\x04garbage"])
    def test_not_a_zip(self, payload):
        with pytest.raises(InvalidArchive, match="Invalid zip file"):
            open_data_file(payload)


class TestBuildArchive:
    def test_single_entry(self):
        payload = build_archive("data.csv", b"id,name\n")
        with zipfile.ZipFile(io.BytesIO(payload)) as archive:
            assert archive.namelist() == ["data.csv"]
            assert archive.read("data.csv") == b"id,name\n"
            assert archive.getinfo("data.csv").compress_type == zipfile.ZIP_DEFLATED

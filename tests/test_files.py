"""Tests for file access helpers and dataset file names."""

import logging

import pytest

from sparse_dnn.errors import FileAccessError
from sparse_dnn.formats.files import (
    feature_file_name,
    label_file_name,
    read_binary,
    read_binary_prefix,
    read_file_to_string,
    weight_file_name,
    write_binary,
    write_file_from_string,
)


class TestTextFiles:
    """Tests for read_file_to_string and write_file_from_string."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "layer.tsv"
        write_file_from_string(path, "1\t1\t2.0\n")

        assert read_file_to_string(path) == "1\t1\t2.0\n"

    def test_overwrite_larger_file(self, tmp_path):
        """Writing over a stale, larger file leaves exactly the new text."""
        path = tmp_path / "stale.tsv"
        path.write_text("x" * 100)

        write_file_from_string(path, "abc")

        assert read_file_to_string(path) == "abc"
        assert path.stat().st_size == 3

    def test_line_endings_kept(self, tmp_path):
        path = tmp_path / "crlf.tsv"
        write_file_from_string(path, "a\r\nb\n")

        assert path.read_bytes() == b"a\r\nb\n"
        assert read_file_to_string(path) == "a\r\nb\n"

    def test_missing_file(self, tmp_path):
        path = tmp_path / "missing.tsv"
        with pytest.raises(FileAccessError, match="cannot open the file") as excinfo:
            read_file_to_string(path)

        assert excinfo.value.path == str(path)
        assert isinstance(excinfo.value, OSError)
        assert isinstance(excinfo.value.__cause__, FileNotFoundError)

    def test_unwritable_location(self, tmp_path):
        with pytest.raises(FileAccessError):
            write_file_from_string(tmp_path / "no-such-dir" / "out.tsv", "abc")

    def test_write_is_logged(self, tmp_path, caplog):
        caplog.set_level(logging.INFO, logger="sparse_dnn.formats.files")
        write_file_from_string(tmp_path / "out.tsv", "abc")

        assert "Wrote 3 characters" in caplog.text


class TestBinaryFiles:
    """Tests for read_binary and write_binary."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "data.b"
        path.write_bytes(b"\xff" * 32)

        assert write_binary(path, b"\x01\x02\x03") == 3
        assert read_binary(path) == b"\x01\x02\x03"

    def test_prefix(self, tmp_path):
        path = tmp_path / "data.b"
        write_binary(path, bytes(range(16)))

        assert read_binary_prefix(path, 4) == bytes(range(4))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileAccessError):
            read_binary(tmp_path / "missing.b")


class TestFileNames:
    """Tests for dataset file naming."""

    def test_weight_names(self):
        assert weight_file_name(1024, 3) == "n1024-l3.tsv"
        assert weight_file_name(1024, 3, binary=True) == "n1024-l3.b"

    def test_feature_names(self):
        assert feature_file_name(64) == "sparse-images-64.tsv"
        assert feature_file_name(64, binary=True) == "sparse-images-64.b"

    def test_label_names(self):
        assert label_file_name(1024, 120) == "neuron1024-l120-categories.tsv"
        assert label_file_name(1024, 120, binary=True) == "neuron1024-l120-categories.b"

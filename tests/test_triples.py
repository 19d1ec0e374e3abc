"""Tests for coordinate text parsing."""

import pytest
import numpy as np
from numpy.testing import assert_array_equal

from sparse_dnn.config.enums import ValueKind
from sparse_dnn.core.triples import Triple, TripleArrays, count_nnz, parse_triples, split_lines
from sparse_dnn.errors import FormatError, SparseDNNError


class TestParseTriples:
    """Tests for parse_triples."""

    def test_example_input(self, example_text):
        """Ids become 0-based and values keep their line order."""
        triples = parse_triples(example_text)

        assert list(triples) == [Triple(0, 0, 2.0), Triple(1, 1, 3.0)]
        assert triples.rows.dtype == np.int32
        assert triples.values.dtype == np.float32

    def test_input_order_is_kept(self):
        """Entries are not sorted."""
        triples = parse_triples("4\t1\t0.5\n1\t3\t1.5\n2\t2\t2.5\n")

        assert_array_equal(triples.rows, [3, 0, 1])
        assert_array_equal(triples.cols, [0, 2, 1])
        assert_array_equal(triples.values, [0.5, 1.5, 2.5])

    def test_last_line_without_newline(self):
        """A final line without a trailing newline is still parsed."""
        triples = parse_triples("1\t1\t2.0\n2\t2\t3.0")

        assert len(triples) == 2
        assert triples[1] == Triple(1, 1, 3.0)

    def test_empty_text(self):
        """Empty text yields no triples."""
        triples = parse_triples("")

        assert len(triples) == 0
        assert triples.cols.dtype == np.int32

    def test_float64_kind(self):
        """FLOAT64 keeps double precision."""
        triples = parse_triples("1\t1\t0.1\n", value_kind=ValueKind.FLOAT64)

        assert triples.values.dtype == np.float64
        assert triples.values[0] == 0.1
        assert triples.value_kind is ValueKind.FLOAT64

    def test_kind_by_name(self):
        """Value kinds can be given by C-style name."""
        assert parse_triples("1\t1\t1\n", value_kind="double").value_kind is ValueKind.FLOAT64

    def test_custom_delimiter(self):
        """Other single-character delimiters are supported."""
        triples = parse_triples("1,2,3.0\n", delimiter=",")

        assert list(triples) == [Triple(0, 1, 3.0)]


class TestParseTriplesErrors:
    """Tests for malformed coordinate text."""

    def test_two_field_line(self):
        """The first offending line is reported."""
        with pytest.raises(FormatError) as excinfo:
            parse_triples("1\t1\t2.0\n3\t4\n5\n")

        assert excinfo.value.line_number == 2
        assert excinfo.value.line == "3\t4"
        assert "line 2" in str(excinfo.value)

    def test_four_field_line(self):
        with pytest.raises(FormatError, match="found 4"):
            parse_triples("1\t1\t2.0\t9\n")

    def test_blank_line_is_rejected(self):
        """Blank lines are not skipped."""
        with pytest.raises(FormatError) as excinfo:
            parse_triples("1\t1\t2.0\n\n2\t2\t3.0\n")

        assert excinfo.value.line_number == 2

    def test_zero_id(self):
        """Ids are 1-based."""
        with pytest.raises(FormatError, match="below the first valid id"):
            parse_triples("0\t1\t2.0\n")

    def test_non_integer_id(self):
        with pytest.raises(FormatError, match="invalid integer id"):
            parse_triples("1\tx\t2.0\n")

    @pytest.mark.parametrize("field", ["1_0", " 1", "1 ", "\u0661", "+", ""])
    def test_loose_integer_id(self, field):
        """Only plain ASCII decimal digits are ids."""
        with pytest.raises(FormatError, match="invalid integer id"):
            parse_triples(f"{field}\t1\t2.0\n")

    def test_signed_id(self):
        assert parse_triples("+2\t1\t2.0\n").rows[0] == 1

    def test_id_beyond_index_unit(self):
        with pytest.raises(FormatError, match="does not fit"):
            parse_triples(f"{2**40}\t1\t2.0\n")

    def test_non_numeric_value(self):
        with pytest.raises(FormatError, match="invalid float32 value"):
            parse_triples("1\t1\tabc\n")

    def test_non_finite_value(self):
        with pytest.raises(FormatError):
            parse_triples("1\t1\tnan\n")

    def test_float32_overflow(self):
        """A literal beyond float32 range fails for FLOAT32 only."""
        with pytest.raises(FormatError):
            parse_triples("1\t1\t1e39\n")

        triples = parse_triples("1\t1\t1e39\n", value_kind=ValueKind.FLOAT64)
        assert triples.values[0] == 1e39

    def test_error_hierarchy(self):
        """FormatError is both a package error and a ValueError."""
        with pytest.raises(SparseDNNError):
            parse_triples("1\n")
        with pytest.raises(ValueError):
            parse_triples("1\n")


class TestTripleArrays:
    """Tests for the column-wise triple container."""

    def test_from_triples(self):
        triples = TripleArrays.from_triples([(0, 1, 2.0), (3, 4, 5.0)])

        assert len(triples) == 2
        assert_array_equal(triples.cols, [1, 4])
        assert triples[0] == Triple(0, 1, 2.0)

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="differ in length"):
            TripleArrays(np.zeros(2, np.int32), np.zeros(1, np.int32), np.zeros(2, np.float32))


class TestLineHelpers:
    """Tests for split_lines and count_nnz."""

    def test_split_lines(self):
        assert split_lines("a\nb\n") == ["a", "b"]
        assert split_lines("a\nb") == ["a", "b"]
        assert split_lines("") == []

    def test_count_nnz_matches_split_lines(self):
        assert count_nnz("1\t1\t2.0\n2\t2\t3.0\n") == 2
        assert count_nnz("1\t1\t2.0\n2\t2\t3.0") == 2
        assert count_nnz("1\t1\t2.0") == 1
        assert count_nnz("") == 0

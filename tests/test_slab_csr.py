"""Tests for slab-blocked compressed row construction."""

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from sparse_dnn.config.enums import ValueKind
from sparse_dnn.core.slab_csr import build_slab_csr, count_offsets, placement_order
from sparse_dnn.core.sparse import collapse_slabs, triples_to_sparse
from sparse_dnn.core.triples import TripleArrays, parse_triples
from sparse_dnn.errors import BoundsError


class TestBuildSlabCSR:
    """Tests for build_slab_csr on small known inputs."""

    def test_single_slab(self, single_slab_matrix):
        """One slab keeps the plain CSR layout."""
        m = single_slab_matrix

        assert_array_equal(m.offsets, [0, 1, 2])
        assert_array_equal(m.columns, [0, 1])
        assert_allclose(m.values, [2.0, 3.0])
        assert m.nnz == 2
        assert m.offsets.dtype == np.int32
        assert m.columns.dtype == np.int32

    def test_two_slabs(self, two_slab_matrix):
        """Column 1 moves to virtual row 1 + 2 * 1 = 3."""
        m = two_slab_matrix

        assert_array_equal(m.offsets, [0, 1, 1, 1, 2])
        assert_array_equal(m.columns, [0, 1])
        assert_allclose(m.values, [2.0, 3.0])
        assert m.virtual_rows == 4

    def test_empty_input(self):
        """No entries gives all-zero offsets of full length."""
        m = build_slab_csr(parse_triples(""), rows=3, cols=4, nnz=0, col_block_width=2, slab_count=2)

        assert_array_equal(m.offsets, np.zeros(7))
        assert m.nnz == 0
        assert len(m.columns) == 0
        assert len(m.values) == 0
        assert m.check_invariants() == []

    def test_row_order_follows_input(self):
        """Entries of one row keep their input order, not column order."""
        triples = parse_triples("1\t3\t1.0\n1\t1\t2.0\n1\t2\t3.0\n")
        m = build_slab_csr(triples, rows=1, cols=3, nnz=3, col_block_width=4, slab_count=1)

        assert_array_equal(m.columns, [2, 0, 1])
        assert_allclose(m.values, [1.0, 2.0, 3.0])

    def test_mixed_slabs(self):
        """Entries are grouped by virtual row, in input order within each."""
        triples = parse_triples("1\t4\t1.0\n2\t1\t2.0\n1\t2\t3.0\n1\t3\t4.0\n")
        m = build_slab_csr(triples, rows=2, cols=4, nnz=4, col_block_width=2, slab_count=2)

        assert_array_equal(m.offsets, [0, 1, 2, 4, 4])
        assert_array_equal(m.columns, [1, 0, 3, 2])
        assert_allclose(m.values, [3.0, 2.0, 1.0, 4.0])

        columns, values = m.row_entries(2)
        assert_array_equal(columns, [3, 2])
        assert_allclose(values, [1.0, 4.0])

    def test_capacity_larger_than_entries(self):
        """nnz is a capacity; the matrix holds the actual entries."""
        m = build_slab_csr(parse_triples("1\t1\t2.0\n"), rows=2, cols=2, nnz=10,
                           col_block_width=2, slab_count=1)

        assert m.nnz == 1
        assert m.offsets[-1] == 1

    def test_nnz_none_means_all_entries(self, example_triples):
        m = build_slab_csr(example_triples, rows=2, cols=2, nnz=None, col_block_width=2, slab_count=1)

        assert m.nnz == 2

    def test_tuple_input(self):
        """Plain (row, col, value) tuples are accepted."""
        m = build_slab_csr([(1, 0, 5.0), (0, 1, 6.0)], rows=2, cols=2, nnz=2,
                           col_block_width=2, slab_count=1)

        assert_array_equal(m.offsets, [0, 1, 2])
        assert_array_equal(m.columns, [1, 0])

    def test_value_kind_override(self, example_triples):
        m = build_slab_csr(example_triples, rows=2, cols=2, nnz=2, col_block_width=2,
                           slab_count=1, value_kind=ValueKind.FLOAT64)

        assert m.values.dtype == np.float64
        assert m.value_kind is ValueKind.FLOAT64
        assert m.payload_words == 3 + 2 + 4


class TestBuildSlabCSRErrors:
    """Tests for capacity and geometry errors."""

    def test_more_entries_than_capacity(self, example_triples):
        with pytest.raises(BoundsError) as excinfo:
            build_slab_csr(example_triples, rows=2, cols=2, nnz=1, col_block_width=2, slab_count=1)

        assert excinfo.value.length == 2
        assert excinfo.value.limit == 1

    def test_row_out_of_range(self, example_triples):
        with pytest.raises(BoundsError, match="row"):
            build_slab_csr(example_triples, rows=1, cols=2, nnz=2, col_block_width=2, slab_count=1)

    def test_column_out_of_range(self, example_triples):
        with pytest.raises(BoundsError, match="column"):
            build_slab_csr(example_triples, rows=2, cols=1, nnz=2, col_block_width=2, slab_count=1)

    def test_slab_out_of_range(self):
        """A column whose slab does not exist is never relocated."""
        triples = parse_triples("1\t4\t1.0\n")
        with pytest.raises(BoundsError, match="slab"):
            build_slab_csr(triples, rows=1, cols=4, nnz=1, col_block_width=1, slab_count=2)

    @pytest.mark.parametrize("field", ["rows", "cols", "col_block_width", "slab_count"])
    def test_non_positive_geometry(self, example_triples, field):
        kwargs = dict(rows=2, cols=2, nnz=2, col_block_width=2, slab_count=1)
        kwargs[field] = 0
        with pytest.raises(ValueError, match=field):
            build_slab_csr(example_triples, **kwargs)


class TestConstructionInvariants:
    """Structural checks on randomized layers."""

    def test_random_layer(self, rng):
        """Offsets are consistent and folding the slabs restores the layer."""
        rows, cols, n = 16, 40, 120
        flat = rng.choice(rows * cols, size=n, replace=False)
        triples = TripleArrays(
            rows=(flat // cols).astype(np.int32),
            cols=(flat % cols).astype(np.int32),
            values=rng.standard_normal(n).astype(np.float32),
        )

        m = build_slab_csr(triples, rows=rows, cols=cols, nnz=n, col_block_width=8, slab_count=5)

        assert m.check_invariants() == []
        assert np.all(np.diff(m.offsets) >= 0)
        assert m.offsets[-1] == n
        assert_allclose(
            collapse_slabs(m).toarray(),
            triples_to_sparse(triples, rows, cols).toarray(),
        )

    def test_virtual_rows_hold_their_slab_only(self, rng):
        rows, cols, width = 8, 20, 4
        flat = rng.choice(rows * cols, size=50, replace=False)
        triples = TripleArrays(
            rows=(flat // cols).astype(np.int32),
            cols=(flat % cols).astype(np.int32),
            values=np.ones(50, dtype=np.float32),
        )

        m = build_slab_csr(triples, rows=rows, cols=cols, nnz=50, col_block_width=width, slab_count=5)

        for v in range(m.virtual_rows):
            columns, _ = m.row_entries(v)
            assert np.all(columns // width == v // rows)

    def test_counting_helpers(self):
        virtual = np.array([2, 0, 2, 1, 0])
        offsets = count_offsets(virtual, 4)

        assert_array_equal(offsets, [0, 2, 3, 5, 5])
        assert_array_equal(placement_order(virtual, offsets), [3, 0, 4, 2, 1])


class TestToScipy:
    """Tests for SlabBlockedMatrix.to_scipy."""

    def test_virtual_matrix(self, two_slab_matrix):
        dense = two_slab_matrix.to_scipy().toarray()

        assert dense.shape == (4, 2)
        expected = np.zeros((4, 2))
        expected[0, 0] = 2.0
        expected[3, 1] = 3.0
        assert_allclose(dense, expected)

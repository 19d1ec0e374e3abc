"""SciPy sparse views of parsed and slab-blocked layers.

Plain CSR/CSC assembly from triples is used for reference inference and
for loaders that do not need the slab layout. Duplicate coordinates are
summed, as triplet assembly does.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from scipy import sparse

from sparse_dnn.core.slab_csr import SlabBlockedMatrix
from sparse_dnn.core.triples import TripleArrays
from sparse_dnn.errors import BoundsError


def triples_to_sparse(
    triples: TripleArrays,
    rows: int,
    cols: int,
    layout: Literal["csr", "csc"] = "csr",
) -> sparse.spmatrix:
    """Assemble parsed triples into a SciPy sparse matrix.

    Args:
        triples: 0-based entries
        rows: Matrix rows
        cols: Matrix columns
        layout: "csr" (row-compressed) or "csc" (column-compressed)

    Returns:
        scipy.sparse csr_matrix or csc_matrix with duplicates summed and
        indices sorted

    Raises:
        BoundsError: If an entry lies outside (rows, cols)
    """
    if layout not in ("csr", "csc"):
        raise ValueError(f"layout must be 'csr' or 'csc', got {layout!r}")

    if len(triples):
        if triples.rows.max() >= rows:
            raise BoundsError(int(triples.rows.max()), 1, rows, what="row")
        if triples.cols.max() >= cols:
            raise BoundsError(int(triples.cols.max()), 1, cols, what="column")

    coo = sparse.coo_matrix(
        (triples.values, (triples.rows, triples.cols)),
        shape=(rows, cols),
        dtype=triples.values.dtype,
    )
    mat = coo.tocsr() if layout == "csr" else coo.tocsc()
    mat.sum_duplicates()
    return mat


def slab_matrix_to_scipy(matrix: SlabBlockedMatrix) -> sparse.csr_matrix:
    """Wrap a slab matrix as a (rows * slab_count, cols) SciPy CSR matrix.

    Entries keep their stored order, so the result may have unsorted indices.
    """
    return sparse.csr_matrix(
        (
            np.asarray(matrix.values),
            np.asarray(matrix.columns),
            np.asarray(matrix.offsets),
        ),
        shape=(matrix.virtual_rows, matrix.cols),
    )


def collapse_slabs(matrix: SlabBlockedMatrix) -> sparse.csr_matrix:
    """Fold the virtual rows of every slab back onto the original rows.

    The result equals the layer before slab relocation.
    """
    virtual = slab_matrix_to_scipy(matrix).tocoo()
    original_rows = virtual.row % matrix.rows
    folded = sparse.coo_matrix(
        (virtual.data, (original_rows, virtual.col)),
        shape=(matrix.rows, matrix.cols),
    )
    return folded.tocsr()

"""Slab-blocked compressed row matrices.

A layer matrix of shape (rows, cols) is cut into column blocks of
``col_block_width`` columns. Every entry is relocated to the virtual row
``row + rows * (col // col_block_width)``, so the layer becomes a
``(rows * slab_count, cols)`` matrix stored in compressed row form:

    offsets[rows * slab_count + 1]   start of each virtual row
    columns[nnz]                     original column of each entry
    values[nnz]                      value of each entry

Within a virtual row, entries keep the order in which they appeared in the
input. The construction is a two-pass counting placement, linear in nnz.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from sparse_dnn.config.defaults import INDEX_DTYPE, WORD_BYTES
from sparse_dnn.config.enums import ValueKind
from sparse_dnn.core.triples import TripleArrays
from sparse_dnn.core.view import ArenaView
from sparse_dnn.errors import BoundsError, FormatError

_MAX_NNZ = int(np.iinfo(INDEX_DTYPE).max)


@dataclass
class SlabBlockedMatrix:
    """One layer in slab-blocked compressed row form.

    Attributes:
        rows: Rows of the original matrix
        cols: Columns of the original matrix
        col_block_width: Contiguous columns per slab
        slab_count: Number of slabs
        offsets: Virtual row starts [rows * slab_count + 1] (int32)
        columns: Column ids [nnz] (int32)
        values: Values [nnz] (dtype of value_kind)
        value_kind: Numeric kind of values
    """

    rows: int
    cols: int
    col_block_width: int
    slab_count: int
    offsets: np.ndarray
    columns: np.ndarray
    values: np.ndarray
    value_kind: ValueKind = ValueKind.FLOAT32

    @property
    def nnz(self) -> int:
        return len(self.columns)

    @property
    def virtual_rows(self) -> int:
        return self.rows * self.slab_count

    @property
    def payload_words(self) -> int:
        """Arena words occupied by offsets, columns and values."""
        return (
            self.virtual_rows + 1
            + self.nnz
            + self.nnz * self.value_kind.itemsize // WORD_BYTES
        )

    def row_entries(self, virtual_row: int) -> Tuple[np.ndarray, np.ndarray]:
        """Columns and values stored in one virtual row."""
        start, end = self.offsets[virtual_row], self.offsets[virtual_row + 1]
        return self.columns[start:end], self.values[start:end]

    def check_invariants(self) -> list[str]:
        """Check the compressed row invariants.

        Returns:
            List of violated invariants (empty if the matrix is consistent)
        """
        errors = []
        if len(self.offsets) != self.virtual_rows + 1:
            errors.append(
                f"offsets has {len(self.offsets)} entries, expected {self.virtual_rows + 1}"
            )
            return errors
        if len(self.values) != self.nnz:
            errors.append(f"values has {len(self.values)} entries, columns has {self.nnz}")
        if self.offsets[0] != 0:
            errors.append(f"offsets[0] must be 0, got {self.offsets[0]}")
        if self.offsets[-1] != self.nnz:
            errors.append(f"offsets[-1] must equal nnz={self.nnz}, got {self.offsets[-1]}")
        if np.any(np.diff(self.offsets) < 0):
            errors.append("offsets must be monotonically nondecreasing")
        if self.nnz and (self.columns.min() < 0 or self.columns.max() >= self.cols):
            errors.append(f"column ids must lie in [0, {self.cols})")
        return errors

    def to_scipy(self):
        """Return the virtual (rows * slab_count, cols) matrix as scipy CSR."""
        from sparse_dnn.core.sparse import slab_matrix_to_scipy

        return slab_matrix_to_scipy(self)

    @classmethod
    def from_view(
        cls,
        view: ArenaView,
        rows: int,
        cols: int,
        col_block_width: int,
        slab_count: int,
        value_kind: ValueKind | str = ValueKind.FLOAT32,
    ) -> "SlabBlockedMatrix":
        """Read a packed layer back out of an arena view without copying.

        The nonzero count is taken from the last offset. The returned arrays
        alias the arena memory.

        Raises:
            FormatError: If the stored offsets are inconsistent
            BoundsError: If the stored layer does not fit the view
        """
        value_kind = ValueKind.from_name(value_kind)
        virtual_rows = rows * slab_count
        offsets = view.as_array(INDEX_DTYPE, 0, virtual_rows + 1)
        nnz = int(offsets[-1])
        if nnz < 0 or offsets[0] != 0:
            raise FormatError(
                f"packed layer has invalid offsets (first={offsets[0]}, last={nnz})"
            )
        columns_at = (virtual_rows + 1) * WORD_BYTES
        values_at = columns_at + nnz * WORD_BYTES
        columns = view.as_array(INDEX_DTYPE, columns_at, nnz)
        values = view.as_array(value_kind.dtype, values_at, nnz)
        return cls(rows, cols, col_block_width, slab_count, offsets, columns, values, value_kind)


def _as_triple_arrays(triples, value_kind: ValueKind | None) -> TripleArrays:
    if isinstance(triples, TripleArrays):
        return triples
    return TripleArrays.from_triples(triples, value_kind or ValueKind.FLOAT32)


def count_offsets(virtual: np.ndarray, virtual_rows: int) -> np.ndarray:
    """First pass: count entries per virtual row and prefix-sum the counts."""
    counts = np.bincount(virtual, minlength=virtual_rows)
    offsets = np.zeros(virtual_rows + 1, dtype=np.int64)
    np.cumsum(counts, out=offsets[1:])
    return offsets


def placement_order(virtual: np.ndarray, offsets: np.ndarray) -> np.ndarray:
    """Second pass: destination slot of each entry.

    Each virtual row owns ``offsets[v]:offsets[v + 1]``; entries are handed
    slots from a per-row cursor in the order they were counted, so the
    relative input order inside a row is kept.
    """
    cursor = offsets[:-1].tolist()
    slots = []
    append = slots.append
    for v in virtual.tolist():
        append(cursor[v])
        cursor[v] += 1
    return np.array(slots, dtype=np.int64)


def build_slab_csr(
    triples: TripleArrays | Iterable[Tuple[int, int, float]],
    rows: int,
    cols: int,
    nnz: int | None,
    col_block_width: int,
    slab_count: int,
    value_kind: ValueKind | str | None = None,
) -> SlabBlockedMatrix:
    """Relocate triples into slab-blocked compressed row form.

    Args:
        triples: 0-based entries (TripleArrays or (row, col, value) tuples)
        rows: Rows of the layer
        cols: Columns of the layer
        nnz: Declared nonzero capacity (None: exactly len(triples))
        col_block_width: Contiguous columns per slab
        slab_count: Number of slabs
        value_kind: Value kind (default: the kind the triples were parsed as)

    Returns:
        SlabBlockedMatrix with offsets of length rows * slab_count + 1

    Raises:
        ValueError: If rows, cols, col_block_width or slab_count is not positive
        BoundsError: If there are more entries than nnz, or an entry falls
            outside the rows/cols/slab geometry

    Example:
        >>> t = parse_triples("1\\t1\\t2.0\\n2\\t2\\t3.0\\n")
        >>> m = build_slab_csr(t, rows=2, cols=2, nnz=2, col_block_width=1, slab_count=2)
        >>> m.offsets.tolist()
        [0, 1, 1, 1, 2]
    """
    for name, value in (("rows", rows), ("cols", cols),
                        ("col_block_width", col_block_width), ("slab_count", slab_count)):
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")

    value_kind = ValueKind.from_name(value_kind) if value_kind is not None else None
    entries = _as_triple_arrays(triples, value_kind)
    value_kind = value_kind or entries.value_kind

    count = len(entries)
    capacity = count if nnz is None else nnz
    if count > capacity:
        raise BoundsError(0, count, capacity, what="nonzero")
    if count > _MAX_NNZ:
        raise BoundsError(0, count, _MAX_NNZ, what="index unit")

    if count:
        _check_range(entries.rows, rows, "row")
        _check_range(entries.cols, cols, "column")

    slab_ids = entries.cols.astype(np.int64) // col_block_width
    if count and slab_ids.max() >= slab_count:
        bad = int(np.argmax(slab_ids >= slab_count))
        raise BoundsError(int(slab_ids[bad]), 1, slab_count, what=f"slab (entry {bad})")

    virtual_rows = rows * slab_count
    virtual = entries.rows.astype(np.int64) + rows * slab_ids

    offsets = count_offsets(virtual, virtual_rows)
    slots = placement_order(virtual, offsets)

    columns = np.empty(count, dtype=INDEX_DTYPE)
    values = np.empty(count, dtype=value_kind.dtype)
    columns[slots] = entries.cols
    values[slots] = entries.values

    return SlabBlockedMatrix(
        rows=rows,
        cols=cols,
        col_block_width=col_block_width,
        slab_count=slab_count,
        offsets=offsets.astype(INDEX_DTYPE),
        columns=columns,
        values=values,
        value_kind=value_kind,
    )


def _check_range(ids: np.ndarray, limit: int, what: str) -> None:
    """Raise BoundsError for the first id outside [0, limit)."""
    outside = (ids < 0) | (ids >= limit)
    if np.any(outside):
        bad = int(np.argmax(outside))
        raise BoundsError(int(ids[bad]), 1, limit, what=f"{what} (entry {bad})")

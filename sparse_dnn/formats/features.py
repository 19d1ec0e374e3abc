"""Dense input feature matrices.

Input features arrive as coordinate text with the same line rules as
weight layers, but are stored densely: entry (row, col) lands at flat
position ``row * num_features + col`` of a row-major array. Alongside the
values a FeatureMatrix carries per-row nonzero counts and the rows that
hold at least one nonzero, so an inference loop can skip all-zero inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from sparse_dnn.config.defaults import DEFAULT_DELIMITER, INDEX_DTYPE
from sparse_dnn.config.enums import ValueKind
from sparse_dnn.core.codec import decode_dense, encode_dense
from sparse_dnn.core.triples import iter_coordinates
from sparse_dnn.errors import BoundsError


@dataclass
class FeatureMatrix:
    """Dense row-major features with row activity metadata.

    Attributes:
        values: (num_inputs, num_features) array
        row_nnz: Nonzero count of every row [num_inputs] (int32)
        active_rows: Ascending indices of rows with at least one nonzero (int32)
        value_kind: Numeric kind of values
    """

    values: np.ndarray
    row_nnz: np.ndarray
    active_rows: np.ndarray
    value_kind: ValueKind = ValueKind.FLOAT32

    @property
    def num_inputs(self) -> int:
        return self.values.shape[0]

    @property
    def num_features(self) -> int:
        return self.values.shape[1]

    @property
    def flat(self) -> np.ndarray:
        """Row-major values as one vector (a view)."""
        return self.values.reshape(-1)

    def row_mask(self, batch_size: Optional[int] = None) -> np.ndarray:
        """Boolean activity of the first batch_size rows (default: all rows)."""
        if batch_size is None:
            batch_size = self.num_inputs
        if not 0 <= batch_size <= self.num_inputs:
            raise BoundsError(0, batch_size, self.num_inputs, what="batch")
        return self.row_nnz[:batch_size] > 0

    @classmethod
    def from_values(cls, values: np.ndarray, value_kind: ValueKind | str = ValueKind.FLOAT32) -> "FeatureMatrix":
        """Wrap a 2D array and derive its row activity."""
        value_kind = ValueKind.from_name(value_kind)
        row_nnz = np.count_nonzero(values, axis=1).astype(INDEX_DTYPE)
        active_rows = np.flatnonzero(row_nnz).astype(INDEX_DTYPE)
        return cls(values, row_nnz, active_rows, value_kind)


def _dense_destination(num_inputs: int, num_features: int, value_kind: ValueKind, out) -> np.ndarray:
    count = num_inputs * num_features
    if out is None:
        return np.zeros((num_inputs, num_features), dtype=value_kind.dtype)
    if out.dtype != value_kind.dtype:
        raise ValueError(f"out has dtype {out.dtype}, expected {value_kind.dtype}")
    if not out.flags.c_contiguous:
        raise ValueError("out must be C-contiguous")
    if out.size < count:
        raise BoundsError(0, count, out.size, what="feature output")
    flat = out.reshape(-1)[:count]
    flat[:] = 0
    return flat.reshape(num_inputs, num_features)


def parse_features(
    text: str,
    num_inputs: int,
    num_features: int,
    value_kind: ValueKind | str = ValueKind.FLOAT32,
    out: np.ndarray | None = None,
    delimiter: str = DEFAULT_DELIMITER,
) -> FeatureMatrix:
    """Parse coordinate text into a dense feature matrix.

    Args:
        text: Coordinate text with 1-based (input, feature, value) lines
        num_inputs: Rows of the dense matrix
        num_features: Columns of the dense matrix
        value_kind: Numeric kind of values
        out: Optional flat or 2D destination; its first
            num_inputs * num_features elements are overwritten
        delimiter: Field delimiter

    Returns:
        FeatureMatrix whose values alias out when given. A repeated
        coordinate keeps the value of its last line.

    Raises:
        FormatError: Malformed line
        BoundsError: Id beyond num_inputs/num_features, or out too small
        ValueError: out has the wrong dtype or is not C-contiguous
    """
    value_kind = ValueKind.from_name(value_kind)
    dense = _dense_destination(num_inputs, num_features, value_kind, out)

    for row, col, value in iter_coordinates(text, value_kind, delimiter):
        if row >= num_inputs:
            raise BoundsError(row, 1, num_inputs, what="input row")
        if col >= num_features:
            raise BoundsError(col, 1, num_features, what="feature column")
        dense[row, col] = value

    return FeatureMatrix.from_values(dense, value_kind)


def encode_features(features: FeatureMatrix) -> bytes:
    """Encode as header (num_inputs, num_features) and row-major values."""
    return encode_dense(features.values, features.value_kind)


def decode_features(
    data,
    value_kind: ValueKind | str = ValueKind.FLOAT32,
    num_inputs: int | None = None,
    num_features: int | None = None,
    out: np.ndarray | None = None,
) -> FeatureMatrix:
    """Decode a dense feature payload.

    When num_inputs and num_features are given, the header must match them.

    Raises:
        FormatError: Header/expected dimension mismatch or truncated payload
        BoundsError: out too small
        ValueError: out has the wrong dtype or is not C-contiguous
    """
    value_kind = ValueKind.from_name(value_kind)
    expected = None
    if num_inputs is not None or num_features is not None:
        if num_inputs is None or num_features is None:
            raise ValueError("num_inputs and num_features must be given together")
        expected = (num_inputs, num_features)
    values = decode_dense(data, value_kind, expected_shape=expected, out=out)
    return FeatureMatrix.from_values(values, value_kind)

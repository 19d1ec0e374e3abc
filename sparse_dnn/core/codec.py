"""Binary codec for slab matrices, dense payloads and label vectors.

Layouts (native byte order and width, no padding between sections):

    matrix:  int32 rows; int32 nnz;
             int32 offsets[rows * slab_count + 1]; int32 columns[nnz]; value values[nnz]
    dense:   int32 rows; int32 cols; value values[rows * cols]   (row-major)
    labels:  int32 rows; int32 values[rows]

Matrix decoding never builds a matrix object: the payload bytes are copied
straight into a caller-supplied ArenaView, which is how many layers are
loaded into one arena without intermediate copies.

Import Policy:
    from sparse_dnn.core.codec import encode_matrix, decode_matrix
"""

from __future__ import annotations

from typing import NamedTuple, Tuple

import numpy as np

from sparse_dnn.config.defaults import (
    DENSE_HEADER_WORDS,
    INDEX_DTYPE,
    LABEL_HEADER_WORDS,
    MATRIX_HEADER_WORDS,
    WORD_BYTES,
)
from sparse_dnn.config.enums import ValueKind
from sparse_dnn.core.slab_csr import SlabBlockedMatrix
from sparse_dnn.core.view import ArenaView, as_contiguous
from sparse_dnn.errors import BoundsError, FormatError

MATRIX_HEADER_BYTES = MATRIX_HEADER_WORDS * WORD_BYTES
DENSE_HEADER_BYTES = DENSE_HEADER_WORDS * WORD_BYTES
LABEL_HEADER_BYTES = LABEL_HEADER_WORDS * WORD_BYTES


class MatrixHeader(NamedTuple):
    rows: int
    nnz: int


# =============================================================================
# Helpers
# =============================================================================

def _raw(data) -> memoryview:
    """Flat byte view of any bytes-like payload."""
    raw = memoryview(data)
    return raw if raw.format == "B" and raw.ndim == 1 else raw.cast("B")


def _frombuffer(raw: memoryview, dtype, count: int, offset: int) -> np.ndarray:
    if count == 0:
        return np.empty(0, dtype=dtype)
    return np.frombuffer(raw, dtype=dtype, count=count, offset=offset)


def _read_header(data, words: int, what: str) -> Tuple[int, ...]:
    """Read the leading int32 header words of a payload."""
    raw = _raw(data)
    nbytes = words * WORD_BYTES
    if len(raw) < nbytes:
        raise FormatError(f"{what} payload too short for header: {len(raw)} < {nbytes} bytes")
    header = _frombuffer(raw, INDEX_DTYPE, words, 0)
    values = tuple(int(v) for v in header)
    if any(v < 0 for v in values):
        raise FormatError(f"{what} header holds negative sizes: {values}")
    return values


def _check_payload(data, expected: int, what: str) -> None:
    actual = _raw(data).nbytes
    if actual < expected:
        raise FormatError(f"{what} payload truncated: {actual} bytes, expected {expected}")


def matrix_body_nbytes(virtual_rows: int, nnz: int, value_kind: ValueKind) -> int:
    """Bytes of offsets + columns + values for one layer."""
    return (virtual_rows + 1 + nnz) * WORD_BYTES + nnz * value_kind.itemsize


# =============================================================================
# Slab matrices
# =============================================================================

def write_matrix_body(destination: ArenaView, matrix: SlabBlockedMatrix) -> int:
    """Write offsets, columns and values contiguously at the start of destination.

    Capacity is checked once for the whole body before anything is written.

    Returns:
        Number of bytes written

    Raises:
        BoundsError: If the body does not fit destination
    """
    nbytes = matrix_body_nbytes(matrix.virtual_rows, matrix.nnz, matrix.value_kind)
    destination.check(0, nbytes)

    at = destination.write_array(0, matrix.offsets, dtype=INDEX_DTYPE)
    at += destination.write_array(at, matrix.columns, dtype=INDEX_DTYPE)
    at += destination.write_array(at, matrix.values, dtype=matrix.value_kind.dtype)
    return at


def matrix_payload(matrix: SlabBlockedMatrix) -> bytes:
    """Encoded matrix without its header (the bytes placed in an arena slot)."""
    buf = bytearray(matrix_body_nbytes(matrix.virtual_rows, matrix.nnz, matrix.value_kind))
    write_matrix_body(ArenaView(buf), matrix)
    return bytes(buf)


def encode_matrix(matrix: SlabBlockedMatrix) -> bytes:
    """Encode a slab matrix as header (rows, nnz) followed by its body."""
    body = matrix_body_nbytes(matrix.virtual_rows, matrix.nnz, matrix.value_kind)
    buf = bytearray(MATRIX_HEADER_BYTES + body)
    view = ArenaView(buf)
    view.write_array(0, np.array([matrix.rows, matrix.nnz]), dtype=INDEX_DTYPE)
    write_matrix_body(view.subview(MATRIX_HEADER_BYTES, body), matrix)
    return bytes(buf)


def read_matrix_header(data) -> MatrixHeader:
    """Read (rows, nnz) from an encoded matrix."""
    return MatrixHeader(*_read_header(data, MATRIX_HEADER_WORDS, "matrix"))


def decode_matrix(
    data,
    destination: ArenaView,
    slab_count: int,
    value_kind: ValueKind | str = ValueKind.FLOAT32,
    expected_rows: int | None = None,
    max_nnz: int | None = None,
) -> MatrixHeader:
    """Copy an encoded matrix body into destination.

    Args:
        data: Encoded matrix bytes
        destination: View receiving offsets, columns and values at its start
        slab_count: Slab count the matrix was built with
        value_kind: Value kind the matrix was encoded with
        expected_rows: Rows the caller expects (None: accept the header)
        max_nnz: Nonzero capacity of the destination slot (None: view length only)

    Returns:
        MatrixHeader read from data

    Raises:
        FormatError: If the header contradicts expected_rows or the payload is truncated
        BoundsError: If the body does not fit destination or exceeds max_nnz
    """
    value_kind = ValueKind.from_name(value_kind)
    header = read_matrix_header(data)
    if expected_rows is not None and header.rows != expected_rows:
        raise FormatError(f"matrix header declares {header.rows} rows, expected {expected_rows}")
    if max_nnz is not None and header.nnz > max_nnz:
        raise BoundsError(0, header.nnz, max_nnz, what="nonzero")

    body = matrix_body_nbytes(header.rows * slab_count, header.nnz, value_kind)
    _check_payload(data, MATRIX_HEADER_BYTES + body, "matrix")
    destination.check(0, body)

    raw = _raw(data)
    destination.write(0, raw[MATRIX_HEADER_BYTES:MATRIX_HEADER_BYTES + body])
    return header


# =============================================================================
# Dense payloads
# =============================================================================

def encode_dense(values: np.ndarray, value_kind: ValueKind | str = ValueKind.FLOAT32) -> bytes:
    """Encode a 2D array as header (rows, cols) and row-major values."""
    value_kind = ValueKind.from_name(value_kind)
    values = np.asarray(values)
    if values.ndim != 2:
        raise ValueError(f"dense payload must be 2D, got shape {values.shape}")
    rows, cols = values.shape
    header = np.array([rows, cols], dtype=INDEX_DTYPE)
    return header.tobytes() + np.ascontiguousarray(values, dtype=value_kind.dtype).tobytes()


def decode_dense(
    data,
    value_kind: ValueKind | str = ValueKind.FLOAT32,
    expected_shape: Tuple[int, int] | None = None,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """Decode a dense payload.

    Args:
        data: Encoded bytes
        value_kind: Value kind the payload was encoded with
        expected_shape: (rows, cols) the caller expects; None accepts the header
        out: Optional flat or 2D destination of the value dtype

    Returns:
        (rows, cols) array (a view of out when given)

    Raises:
        FormatError: Header/expected shape mismatch or truncated payload
        BoundsError: out is too small
        ValueError: out has the wrong dtype or is not C-contiguous
    """
    value_kind = ValueKind.from_name(value_kind)
    rows, cols = _read_header(data, DENSE_HEADER_WORDS, "dense")
    if expected_shape is not None and (rows, cols) != tuple(expected_shape):
        raise FormatError(
            f"dense header declares {rows}x{cols}, expected {expected_shape[0]}x{expected_shape[1]}"
        )
    count = rows * cols
    _check_payload(data, DENSE_HEADER_BYTES + count * value_kind.itemsize, "dense")
    raw = _raw(data)
    values = _frombuffer(raw, value_kind.dtype, count, DENSE_HEADER_BYTES)

    if out is None:
        return values.reshape(rows, cols).copy()

    if out.dtype != value_kind.dtype:
        raise ValueError(f"out has dtype {out.dtype}, expected {value_kind.dtype}")
    if not out.flags.c_contiguous:
        raise ValueError("out must be C-contiguous")
    if out.size < count:
        raise BoundsError(0, count, out.size, what="dense output")
    flat = out.reshape(-1)
    flat[:count] = values
    return flat[:count].reshape(rows, cols)


# =============================================================================
# Label vectors
# =============================================================================

def encode_labels(labels: np.ndarray) -> bytes:
    """Encode an integer vector as header (rows) and int32 values.

    Raises:
        ValueError: If a value does not fit int32
    """
    labels = np.asarray(labels).reshape(-1)
    header = np.array([len(labels)], dtype=INDEX_DTYPE)
    return header.tobytes() + as_contiguous(labels, INDEX_DTYPE).tobytes()


def decode_labels(data, expected_rows: int | None = None) -> np.ndarray:
    """Decode a label vector.

    Raises:
        FormatError: Header/expected length mismatch or truncated payload
    """
    (rows,) = _read_header(data, LABEL_HEADER_WORDS, "label")
    if expected_rows is not None and rows != expected_rows:
        raise FormatError(f"label header declares {rows} rows, expected {expected_rows}")
    _check_payload(data, LABEL_HEADER_BYTES + rows * WORD_BYTES, "label")
    raw = _raw(data)
    return _frombuffer(raw, INDEX_DTYPE, rows, LABEL_HEADER_BYTES).copy()

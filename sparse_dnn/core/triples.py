"""Coordinate text parsing.

Coordinate text holds one nonzero per line as ``<row>\\t<col>\\t<value>``
with 1-based ids. Parsing produces 0-based triples in input line order;
nothing is sorted or merged here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple

import numpy as np

from sparse_dnn.config.defaults import DEFAULT_DELIMITER, INDEX_BASE, INDEX_DTYPE, TRIPLE_FIELDS
from sparse_dnn.config.enums import ValueKind
from sparse_dnn.errors import FormatError

_MAX_INDEX = int(np.iinfo(INDEX_DTYPE).max)


class Triple(NamedTuple):
    """One 0-based nonzero entry."""

    row: int
    col: int
    value: float


@dataclass
class TripleArrays:
    """Parsed triples stored column-wise.

    Behaves as a read-only sequence of Triple in input line order.

    Attributes:
        rows: 0-based row ids [n]
        cols: 0-based column ids [n]
        values: Values [n] in the dtype of value_kind
        value_kind: Numeric kind the values were parsed as
    """

    rows: np.ndarray
    cols: np.ndarray
    values: np.ndarray
    value_kind: ValueKind = ValueKind.FLOAT32

    def __post_init__(self):
        if not (len(self.rows) == len(self.cols) == len(self.values)):
            raise ValueError(
                f"triple columns differ in length: rows={len(self.rows)}, "
                f"cols={len(self.cols)}, values={len(self.values)}"
            )

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: int) -> Triple:
        return Triple(int(self.rows[index]), int(self.cols[index]), self.values[index].item())

    def __iter__(self) -> Iterator[Triple]:
        for row, col, value in zip(self.rows.tolist(), self.cols.tolist(), self.values.tolist()):
            yield Triple(row, col, value)

    @classmethod
    def from_triples(cls, triples, value_kind: ValueKind = ValueKind.FLOAT32) -> "TripleArrays":
        """Build from any iterable of (row, col, value) tuples."""
        value_kind = ValueKind.from_name(value_kind)
        items = list(triples)
        rows = np.array([t[0] for t in items], dtype=INDEX_DTYPE)
        cols = np.array([t[1] for t in items], dtype=INDEX_DTYPE)
        values = np.array([t[2] for t in items], dtype=value_kind.dtype)
        return cls(rows, cols, values, value_kind)


def split_lines(text: str) -> list[str]:
    """Split text into lines the way a getline loop reads them.

    A trailing newline does not produce an extra empty line; empty text
    has no lines.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def split_fields(line: str, line_number: int, delimiter: str = DEFAULT_DELIMITER) -> list[str]:
    """Split one coordinate line into exactly three fields.

    Raises:
        FormatError: If the line does not hold exactly three fields
    """
    fields = line.split(delimiter)
    if len(fields) != TRIPLE_FIELDS:
        raise FormatError(
            f"expected {TRIPLE_FIELDS} fields separated by {delimiter!r}, found {len(fields)}",
            line_number=line_number,
            line=line,
        )
    return fields


def is_integer_text(field: str) -> bool:
    """True for an optionally signed run of ASCII decimal digits and nothing else."""
    digits = field[1:] if field[:1] in ("+", "-") else field
    return digits.isascii() and digits.isdigit()


def parse_index(field: str, line_number: int, line: str) -> int:
    """Parse a 1-based id field and return the 0-based index."""
    if not is_integer_text(field):
        raise FormatError(f"invalid integer id {field!r}", line_number=line_number, line=line)
    index = int(field)
    if index < INDEX_BASE:
        raise FormatError(
            f"id {index} is below the first valid id {INDEX_BASE}",
            line_number=line_number,
            line=line,
        )
    if index - INDEX_BASE > _MAX_INDEX:
        raise FormatError(
            f"id {index} does not fit the {INDEX_DTYPE.itemsize * 8}-bit index unit",
            line_number=line_number,
            line=line,
        )
    return index - INDEX_BASE


def parse_value(field: str, value_kind: ValueKind, line_number: int, line: str) -> float:
    """Parse a value field as value_kind."""
    try:
        return value_kind.parse_literal(field)
    except ValueError as e:
        raise FormatError(
            f"invalid {value_kind.value} value: {e}",
            line_number=line_number,
            line=line,
        ) from None


def iter_coordinates(text: str, value_kind: ValueKind, delimiter: str = DEFAULT_DELIMITER):
    """Yield (row, col, value) 0-based tuples from coordinate text.

    Stops at the first malformed line with a FormatError.
    """
    for line_number, line in enumerate(split_lines(text), start=1):
        row_field, col_field, value_field = split_fields(line, line_number, delimiter)
        yield (
            parse_index(row_field, line_number, line),
            parse_index(col_field, line_number, line),
            parse_value(value_field, value_kind, line_number, line),
        )


def parse_triples(
    text: str,
    value_kind: ValueKind | str = ValueKind.FLOAT32,
    delimiter: str = DEFAULT_DELIMITER,
) -> TripleArrays:
    """Parse coordinate text into 0-based triples.

    Args:
        text: Coordinate text, one ``row<delim>col<delim>value`` per line
        value_kind: Numeric kind of the value field
        delimiter: Field delimiter (default: tab)

    Returns:
        TripleArrays in input line order

    Raises:
        FormatError: At the first line with a wrong field count, an invalid
            id or an invalid value. Blank lines are not tolerated.

    Example:
        >>> t = parse_triples("1\\t1\\t2.0\\n2\\t2\\t3.0\\n")
        >>> list(t)
        [Triple(row=0, col=0, value=2.0), Triple(row=1, col=1, value=3.0)]
    """
    value_kind = ValueKind.from_name(value_kind)
    rows, cols, values = [], [], []
    for row, col, value in iter_coordinates(text, value_kind, delimiter):
        rows.append(row)
        cols.append(col)
        values.append(value)

    return TripleArrays(
        rows=np.array(rows, dtype=INDEX_DTYPE),
        cols=np.array(cols, dtype=INDEX_DTYPE),
        values=np.array(values, dtype=value_kind.dtype),
        value_kind=value_kind,
    )


def count_nnz(text: str) -> int:
    """Count the entries of coordinate text, one per line as split_lines reads them."""
    count = text.count("\n")
    if text and not text.endswith("\n"):
        count += 1
    return count

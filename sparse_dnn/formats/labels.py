"""One-hot label vectors.

Label text lists, one per line, the 1-based indices of the inputs that
belong to the target category. The decoded vector has one int32 slot per
input, set to 1 for listed inputs and 0 otherwise.
"""

from __future__ import annotations

import numpy as np

from sparse_dnn.config.defaults import INDEX_BASE, INDEX_DTYPE
from sparse_dnn.core.codec import decode_labels, encode_labels
from sparse_dnn.core.triples import is_integer_text, split_lines
from sparse_dnn.errors import BoundsError, FormatError


def parse_labels(text: str, num_inputs: int) -> np.ndarray:
    """Parse label text into a one-hot vector.

    Args:
        text: One 1-based input index per line
        num_inputs: Length of the vector

    Returns:
        int32 array of length num_inputs

    Raises:
        FormatError: A line is not an integer
        BoundsError: An index is outside [1, num_inputs]

    Example:
        >>> parse_labels("2\\n", 3).tolist()
        [0, 1, 0]
    """
    labels = np.zeros(num_inputs, dtype=INDEX_DTYPE)
    for line_number, line in enumerate(split_lines(text), start=1):
        if not is_integer_text(line):
            raise FormatError("invalid label index", line_number=line_number, line=line)
        index = int(line) - INDEX_BASE
        if not 0 <= index < num_inputs:
            raise BoundsError(index, 1, num_inputs, what=f"label (line {line_number})")
        labels[index] = 1
    return labels


def labels_to_bytes(labels: np.ndarray) -> bytes:
    """Encode as header (rows) and int32 values."""
    return encode_labels(labels)


def labels_from_bytes(data, num_inputs: int | None = None) -> np.ndarray:
    """Decode a label payload, checking its length against num_inputs when given."""
    return decode_labels(data, expected_rows=num_inputs)

"""File access and dataset file naming.

Every helper opens its file in a ``with`` block and closes it before
returning. OS failures surface as FileAccessError chained from the
underlying OSError; there is no retry.

Names follow the dataset convention:

    weights   n<cols>-l<layer>.tsv / .b          (layer is 1-based)
    features  sparse-images-<cols>.tsv / .b
    labels    neuron<features>-l<layers>-categories.tsv / .b
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from sparse_dnn.config.defaults import (
    BINARY_SUFFIX,
    FEATURE_FILE_TEMPLATE,
    LABEL_FILE_TEMPLATE,
    TEXT_SUFFIX,
    WEIGHT_FILE_TEMPLATE,
)
from sparse_dnn.config.yaml_loader import get_default
from sparse_dnn.errors import FileAccessError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_file_to_string(path: PathLike) -> str:
    """Read a whole text file.

    Raises:
        FileAccessError: If the file cannot be opened or read
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
    except OSError as e:
        raise FileAccessError(path, e.strerror or str(e)) from e


def write_file_from_string(path: PathLike, text: str) -> None:
    """Write text to path, replacing any previous content.

    The file holds exactly ``text`` afterwards, whatever size it had before.

    Raises:
        FileAccessError: If the file cannot be opened or written
    """
    path = Path(path)
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as e:
        raise FileAccessError(path, e.strerror or str(e)) from e
    logger.info(f"Wrote {len(text)} characters to {path}")


def read_binary(path: PathLike) -> bytes:
    """Read a whole binary file."""
    path = Path(path)
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise FileAccessError(path, e.strerror or str(e)) from e


def read_binary_prefix(path: PathLike, nbytes: int) -> bytes:
    """Read at most the first nbytes of a binary file (e.g. a header)."""
    path = Path(path)
    try:
        with open(path, "rb") as f:
            return f.read(nbytes)
    except OSError as e:
        raise FileAccessError(path, e.strerror or str(e)) from e


def write_binary(path: PathLike, data) -> int:
    """Write bytes-like data to path, replacing any previous content.

    Returns:
        Number of bytes written
    """
    path = Path(path)
    try:
        with open(path, "wb") as f:
            written = f.write(data)
    except OSError as e:
        raise FileAccessError(path, e.strerror or str(e)) from e
    logger.info(f"Wrote {written} bytes to {path}")
    return written


# =============================================================================
# File names
# =============================================================================

def _suffix(binary: bool) -> str:
    if binary:
        return get_default("files.binary_suffix", BINARY_SUFFIX)
    return get_default("files.text_suffix", TEXT_SUFFIX)


def weight_file_name(cols: int, layer: int, binary: bool = False) -> str:
    """Name of a weight layer file.

    Args:
        cols: Neurons per layer
        layer: 1-based layer number
        binary: Binary (.b) instead of coordinate text (.tsv)

    Example:
        >>> weight_file_name(1024, 3)
        'n1024-l3.tsv'
    """
    template = get_default("files.weight", WEIGHT_FILE_TEMPLATE)
    return template.format(cols=cols, layer=layer, suffix=_suffix(binary))


def feature_file_name(cols: int, binary: bool = False) -> str:
    """Name of the dense input feature file, e.g. ``sparse-images-1024.tsv``."""
    template = get_default("files.features", FEATURE_FILE_TEMPLATE)
    return template.format(cols=cols, suffix=_suffix(binary))


def label_file_name(num_features: int, num_layers: int, binary: bool = False) -> str:
    """Name of the label file, e.g. ``neuron1024-l120-categories.tsv``."""
    template = get_default("files.labels", LABEL_FILE_TEMPLATE)
    return template.format(features=num_features, layers=num_layers, suffix=_suffix(binary))

"""Dataset-level conversion and loading.

Files are addressed by the computed names of sparse_dnn.formats.files;
nothing here scans a directory. Weight layers are numbered from 1 in file
names and from 0 in arena slots, so file ``n<cols>-l<k>`` fills slot k - 1.

Typical conversion of a network to binary, then loading it:

    config = create_validated_config(1024, 1024, find_max_nnz(d, 120, 1024),
                                     num_layers=120)
    convert_weights(d, config)
    packer = load_weights_into_arena(d, config, binary=True)
"""

from __future__ import annotations

import logging
from multiprocessing import Pool
from pathlib import Path
from typing import List, Optional

import numpy as np

from sparse_dnn.config.defaults import DEFAULT_DELIMITER
from sparse_dnn.config.enums import ValueKind
from sparse_dnn.config.packing_config import PackingConfig
from sparse_dnn.config.yaml_loader import get_default
from sparse_dnn.core.arena import ArenaPacker
from sparse_dnn.core.codec import MATRIX_HEADER_BYTES, encode_matrix, read_matrix_header
from sparse_dnn.core.slab_csr import SlabBlockedMatrix, build_slab_csr
from sparse_dnn.core.sparse import triples_to_sparse
from sparse_dnn.core.triples import count_nnz, parse_triples
from sparse_dnn.formats.features import FeatureMatrix, decode_features, encode_features, parse_features
from sparse_dnn.formats.files import (
    PathLike,
    feature_file_name,
    label_file_name,
    read_binary,
    read_binary_prefix,
    read_file_to_string,
    weight_file_name,
    write_binary,
)
from sparse_dnn.formats.labels import labels_from_bytes, labels_to_bytes, parse_labels

logger = logging.getLogger(__name__)


def _delimiter() -> str:
    return get_default("text.delimiter", DEFAULT_DELIMITER)


# =============================================================================
# Weights
# =============================================================================

def build_weight_layer(weight_dir: PathLike, config: PackingConfig, layer: int) -> SlabBlockedMatrix:
    """Parse weight text file ``layer`` (1-based) into a slab matrix."""
    path = Path(weight_dir) / weight_file_name(config.cols, layer)
    triples = parse_triples(read_file_to_string(path), config.value_kind, _delimiter())
    return build_slab_csr(
        triples,
        rows=config.rows,
        cols=config.cols,
        nnz=config.max_nnz_per_layer,
        col_block_width=config.col_block_width,
        slab_count=config.slab_count,
        value_kind=config.value_kind,
    )


def convert_weight_layer(weight_dir: PathLike, config: PackingConfig, layer: int) -> Path:
    """Convert one weight text file to its binary form next to it.

    Args:
        weight_dir: Directory holding ``n<cols>-l<layer>.tsv``
        config: Packing geometry; max_nnz_per_layer caps the layer's nonzeros
        layer: 1-based layer number

    Returns:
        Path of the written ``.b`` file
    """
    matrix = build_weight_layer(weight_dir, config, layer)
    output = Path(weight_dir) / weight_file_name(config.cols, layer, binary=True)
    write_binary(output, encode_matrix(matrix))
    return output


def _convert_weight_layer_task(args) -> Path:
    weight_dir, config, layer = args
    return convert_weight_layer(weight_dir, config, layer)


def convert_weights(weight_dir: PathLike, config: PackingConfig, n_workers: int = 1) -> List[Path]:
    """Convert layers 1..config.num_layers to binary.

    Args:
        weight_dir: Directory holding the weight text files
        config: Packing geometry
        n_workers: Worker processes (-1 for one per layer, capped at 32)

    Returns:
        Paths of the written files, in layer order
    """
    tasks = [(weight_dir, config, layer) for layer in range(1, config.num_layers + 1)]
    if n_workers == -1:
        n_workers = min(32, len(tasks))

    if n_workers <= 1:
        outputs = [_convert_weight_layer_task(task) for task in tasks]
    else:
        with Pool(processes=n_workers) as pool:
            outputs = pool.map(_convert_weight_layer_task, tasks)

    logger.info(f"Converted {len(outputs)} weight layer(s) in {weight_dir} to binary")
    return outputs


def find_max_nnz(weight_dir: PathLike, num_layers: int, num_neurons: int) -> int:
    """Largest line count over the weight text files of layers 1..num_layers."""
    max_nnz = 0
    for layer in range(1, num_layers + 1):
        path = Path(weight_dir) / weight_file_name(num_neurons, layer)
        max_nnz = max(max_nnz, count_nnz(read_file_to_string(path)))
    return max_nnz


def find_max_nnz_binary(weight_dir: PathLike, num_layers: int, num_neurons: int) -> int:
    """Largest header nnz over the binary weight files of layers 1..num_layers.

    Only the headers are read.
    """
    max_nnz = 0
    for layer in range(1, num_layers + 1):
        path = Path(weight_dir) / weight_file_name(num_neurons, layer, binary=True)
        header = read_matrix_header(read_binary_prefix(path, MATRIX_HEADER_BYTES))
        max_nnz = max(max_nnz, header.nnz)
    return max_nnz


def load_weights_into_arena(
    weight_dir: PathLike,
    config: PackingConfig,
    binary: bool = False,
    packer: Optional[ArenaPacker] = None,
    n_workers: int = 1,
) -> ArenaPacker:
    """Load layers 1..config.num_layers into one arena.

    Args:
        weight_dir: Directory holding the weight files
        config: Packing geometry (sizes the arena stride)
        binary: Read ``.b`` files and copy them straight into the arena
            instead of parsing ``.tsv`` files
        packer: Packer to fill (default: a new one over a fresh arena)
        n_workers: Packing threads for text input

    Returns:
        The packer owning the filled arena
    """
    packer = packer or ArenaPacker(config)

    if binary:
        for layer in range(1, config.num_layers + 1):
            path = Path(weight_dir) / weight_file_name(config.cols, layer, binary=True)
            packer.load_binary(layer - 1, read_binary(path))
    else:
        matrices = [
            build_weight_layer(weight_dir, config, layer)
            for layer in range(1, config.num_layers + 1)
        ]
        packer.pack_all(matrices, n_workers=n_workers)

    logger.info(
        f"Loaded {config.num_layers} layer(s) from {weight_dir} "
        f"({'binary' if binary else 'text'}, stride={packer.stride} words)"
    )
    return packer


def load_sparse_weights(
    weight_dir: PathLike,
    num_neurons: int,
    num_layers: int,
    value_kind: ValueKind | str = ValueKind.FLOAT32,
    layout: str = "csr",
) -> list:
    """Load weight text files as square SciPy sparse matrices (duplicates summed)."""
    value_kind = ValueKind.from_name(value_kind)
    layers = []
    for layer in range(1, num_layers + 1):
        path = Path(weight_dir) / weight_file_name(num_neurons, layer)
        triples = parse_triples(read_file_to_string(path), value_kind, _delimiter())
        layers.append(triples_to_sparse(triples, num_neurons, num_neurons, layout=layout))
    return layers


# =============================================================================
# Features and labels
# =============================================================================

def convert_features(
    input_dir: PathLike,
    num_inputs: int,
    num_features: int,
    value_kind: ValueKind | str = ValueKind.FLOAT32,
) -> Path:
    """Convert ``sparse-images-<num_features>.tsv`` to its dense binary form."""
    input_dir = Path(input_dir)
    text = read_file_to_string(input_dir / feature_file_name(num_features))
    features = parse_features(text, num_inputs, num_features, value_kind, delimiter=_delimiter())
    output = input_dir / feature_file_name(num_features, binary=True)
    write_binary(output, encode_features(features))
    return output


def load_features(
    input_dir: PathLike,
    num_inputs: int,
    num_features: int,
    value_kind: ValueKind | str = ValueKind.FLOAT32,
    binary: bool = False,
    out: Optional[np.ndarray] = None,
) -> FeatureMatrix:
    """Load the input features from text or binary.

    Binary headers are checked against num_inputs and num_features.
    """
    input_dir = Path(input_dir)
    if binary:
        data = read_binary(input_dir / feature_file_name(num_features, binary=True))
        return decode_features(data, value_kind, num_inputs, num_features, out=out)
    text = read_file_to_string(input_dir / feature_file_name(num_features))
    return parse_features(text, num_inputs, num_features, value_kind, out=out, delimiter=_delimiter())


def convert_labels(label_dir: PathLike, num_features: int, num_layers: int, num_inputs: int) -> Path:
    """Convert ``neuron<f>-l<l>-categories.tsv`` to its binary form."""
    label_dir = Path(label_dir)
    text = read_file_to_string(label_dir / label_file_name(num_features, num_layers))
    output = label_dir / label_file_name(num_features, num_layers, binary=True)
    write_binary(output, labels_to_bytes(parse_labels(text, num_inputs)))
    return output


def load_labels(
    label_dir: PathLike,
    num_features: int,
    num_layers: int,
    num_inputs: int,
    binary: bool = False,
) -> np.ndarray:
    """Load the one-hot label vector from text or binary."""
    label_dir = Path(label_dir)
    if binary:
        data = read_binary(label_dir / label_file_name(num_features, num_layers, binary=True))
        return labels_from_bytes(data, num_inputs)
    text = read_file_to_string(label_dir / label_file_name(num_features, num_layers))
    return parse_labels(text, num_inputs)

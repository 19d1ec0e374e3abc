"""Slab-Blocked Sparse Layer Conversion and Arena Packing

Converts sparse neural-network layers from coordinate text into a
column-slab blocked compressed row layout, serializes them in a fixed
native-order binary format, and packs many layers into one contiguous
arena addressed purely by computed offsets.

Key Principles:
- Slab relocation: entry (r, c) moves to virtual row r + rows * (c // col_block_width)
- Counting placement: O(nnz), input order kept inside each virtual row
- Byte-exact binary layout: int32 headers, offsets and columns
- Fixed per-layer stride: layer i starts at word i * stride
- Every arena access is bounds-checked through ArenaView

Version: 1.0
"""

__version__ = "1.0"

# Errors
from sparse_dnn.errors import (
    BoundsError,
    ConfigurationError,
    FileAccessError,
    FormatError,
    SparseDNNError,
)

# Configuration
from sparse_dnn.config import (
    PackingConfig,
    ValueKind,
    create_default_config,
    create_validated_config,
)

# Conversion, codec and packing
from sparse_dnn.core import (
    Arena,
    ArenaPacker,
    ArenaView,
    LayerRegion,
    SlabBlockedMatrix,
    Triple,
    TripleArrays,
    build_slab_csr,
    compute_layer_stride,
    count_nnz,
    decode_dense,
    decode_labels,
    decode_matrix,
    encode_dense,
    encode_labels,
    encode_matrix,
    pack_layer,
    parse_triples,
    triples_to_sparse,
    value_width_ratio,
)

# Files and datasets
from sparse_dnn.formats import (
    FeatureMatrix,
    decode_features,
    encode_features,
    load_features,
    load_labels,
    load_weights_into_arena,
    parse_features,
    parse_labels,
    read_file_to_string,
    write_file_from_string,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "BoundsError",
    "ConfigurationError",
    "FileAccessError",
    "FormatError",
    "SparseDNNError",
    # Configuration
    "PackingConfig",
    "ValueKind",
    "create_default_config",
    "create_validated_config",
    # Core
    "Arena",
    "ArenaPacker",
    "ArenaView",
    "LayerRegion",
    "SlabBlockedMatrix",
    "Triple",
    "TripleArrays",
    "build_slab_csr",
    "compute_layer_stride",
    "count_nnz",
    "decode_dense",
    "decode_labels",
    "decode_matrix",
    "encode_dense",
    "encode_labels",
    "encode_matrix",
    "pack_layer",
    "parse_triples",
    "triples_to_sparse",
    "value_width_ratio",
    # Formats
    "FeatureMatrix",
    "decode_features",
    "encode_features",
    "load_features",
    "load_labels",
    "load_weights_into_arena",
    "parse_features",
    "parse_labels",
    "read_file_to_string",
    "write_file_from_string",
]

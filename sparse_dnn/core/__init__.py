"""Core conversion, codec and packing components."""

from sparse_dnn.core.triples import Triple, TripleArrays, count_nnz, parse_triples
from sparse_dnn.core.view import ArenaView
from sparse_dnn.core.slab_csr import SlabBlockedMatrix, build_slab_csr
from sparse_dnn.core.codec import (
    MatrixHeader,
    decode_dense,
    decode_labels,
    decode_matrix,
    encode_dense,
    encode_labels,
    encode_matrix,
    matrix_payload,
    read_matrix_header,
)
from sparse_dnn.core.arena import (
    Arena,
    ArenaPacker,
    LayerRegion,
    compute_layer_stride,
    pack_layer,
    value_width_ratio,
)
from sparse_dnn.core.sparse import collapse_slabs, slab_matrix_to_scipy, triples_to_sparse

__all__ = [
    "Triple",
    "TripleArrays",
    "count_nnz",
    "parse_triples",
    "ArenaView",
    "SlabBlockedMatrix",
    "build_slab_csr",
    "MatrixHeader",
    "decode_dense",
    "decode_labels",
    "decode_matrix",
    "encode_dense",
    "encode_labels",
    "encode_matrix",
    "matrix_payload",
    "read_matrix_header",
    "Arena",
    "ArenaPacker",
    "LayerRegion",
    "compute_layer_stride",
    "pack_layer",
    "value_width_ratio",
    "collapse_slabs",
    "slab_matrix_to_scipy",
    "triples_to_sparse",
]

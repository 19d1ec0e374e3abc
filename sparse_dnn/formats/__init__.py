"""File formats: coordinate text, dense features, labels and dataset files."""

from sparse_dnn.formats.files import (
    feature_file_name,
    label_file_name,
    read_binary,
    read_file_to_string,
    weight_file_name,
    write_binary,
    write_file_from_string,
)
from sparse_dnn.formats.features import (
    FeatureMatrix,
    decode_features,
    encode_features,
    parse_features,
)
from sparse_dnn.formats.labels import labels_from_bytes, labels_to_bytes, parse_labels
from sparse_dnn.formats.datasets import (
    convert_features,
    convert_labels,
    convert_weight_layer,
    convert_weights,
    find_max_nnz,
    find_max_nnz_binary,
    load_features,
    load_labels,
    load_sparse_weights,
    load_weights_into_arena,
)

__all__ = [
    "feature_file_name",
    "label_file_name",
    "read_binary",
    "read_file_to_string",
    "weight_file_name",
    "write_binary",
    "write_file_from_string",
    "FeatureMatrix",
    "decode_features",
    "encode_features",
    "parse_features",
    "labels_from_bytes",
    "labels_to_bytes",
    "parse_labels",
    "convert_features",
    "convert_labels",
    "convert_weight_layer",
    "convert_weights",
    "find_max_nnz",
    "find_max_nnz_binary",
    "load_features",
    "load_labels",
    "load_sparse_weights",
    "load_weights_into_arena",
]

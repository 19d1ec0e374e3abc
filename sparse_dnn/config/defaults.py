"""
Default Configuration Constants for sparse_dnn

This module contains the code-level defaults used by the parsers, the
slab builder, the binary codec and the arena packer. Values that users
are expected to tune per dataset are mirrored in defaults.yaml.

IMPORTANT Import Policies:
    1. DO NOT use: from sparse_dnn.config.defaults import *
    2. DO use explicit imports:
       from sparse_dnn.config.defaults import INDEX_DTYPE, DEFAULT_DELIMITER
    3. DO NOT define defaults elsewhere. All defaults must be in this file.
"""

import numpy as np

# =============================================================================
# Binary Layout
# =============================================================================

# Index unit of every binary layout (offsets, columns, headers, labels).
# Native byte order; no portability normalization is performed.
INDEX_DTYPE = np.dtype("=i4")

# Bytes per arena word. Strides are expressed in words of this width.
WORD_BYTES = INDEX_DTYPE.itemsize

# Header sizes in words
MATRIX_HEADER_WORDS = 2  # (rows, nnz)
DENSE_HEADER_WORDS = 2  # (rows, cols)
LABEL_HEADER_WORDS = 1  # (rows,)

# =============================================================================
# Coordinate Text
# =============================================================================

# Field delimiter of coordinate text lines: <row>\t<col>\t<value>
DEFAULT_DELIMITER = "\t"

# Number of fields per coordinate line
TRIPLE_FIELDS = 3

# Coordinate ids in text files are 1-based
INDEX_BASE = 1

# =============================================================================
# Slab Partitioning
# =============================================================================

# Number of contiguous columns assigned to one slab
DEFAULT_COL_BLOCK_WIDTH = 1024

# Number of slabs (virtual row groups)
DEFAULT_SLAB_COUNT = 1

# Alignment filler words reserved per arena layer
DEFAULT_PAD = 0

# Default numeric kind for values ("float32" or "float64")
DEFAULT_VALUE_KIND = "float32"

# =============================================================================
# File Naming
# =============================================================================

WEIGHT_FILE_TEMPLATE = "n{cols}-l{layer}{suffix}"
FEATURE_FILE_TEMPLATE = "sparse-images-{cols}{suffix}"
LABEL_FILE_TEMPLATE = "neuron{features}-l{layers}-categories{suffix}"

TEXT_SUFFIX = ".tsv"
BINARY_SUFFIX = ".b"

"""Packing Configuration

Geometry shared by every layer packed into one arena: matrix shape, slab
partitioning, per-layer capacity and value kind. The arena stride is
derived from this object and nothing else.

Import Policy:
    from sparse_dnn.config.packing_config import PackingConfig, create_default_config

DO NOT use: from sparse_dnn.config.packing_config import *
"""

from dataclasses import dataclass

from sparse_dnn.config.defaults import (
    DEFAULT_COL_BLOCK_WIDTH,
    DEFAULT_PAD,
    DEFAULT_SLAB_COUNT,
    DEFAULT_VALUE_KIND,
    WORD_BYTES,
)
from sparse_dnn.config.enums import ValueKind
from sparse_dnn.config.yaml_loader import get_default


@dataclass
class PackingConfig:
    """Arena packing configuration.

    Layers are square (rows == cols == neurons per layer) in the usual
    dataset, but the two are kept separate so rectangular layers can be
    packed too.

    Attributes:
        rows: Rows of every layer matrix
        cols: Columns of every layer matrix
        max_nnz_per_layer: Nonzeros of the densest layer (sizes the stride)
        num_layers: Number of layers sharing the arena
        col_block_width: Contiguous columns per slab
        slab_count: Number of slabs (virtual row groups)
        pad: Alignment filler words reserved per layer
        value_kind: Numeric kind of the values
    """

    rows: int
    cols: int
    max_nnz_per_layer: int
    num_layers: int = 1
    col_block_width: int = DEFAULT_COL_BLOCK_WIDTH
    slab_count: int = DEFAULT_SLAB_COUNT
    pad: int = DEFAULT_PAD
    value_kind: ValueKind = ValueKind(DEFAULT_VALUE_KIND)

    def __post_init__(self):
        self.value_kind = ValueKind.from_name(self.value_kind)

    @property
    def virtual_rows(self) -> int:
        """Rows of the slab-relocated matrix."""
        return self.rows * self.slab_count

    @property
    def value_width_ratio(self) -> int:
        return self.value_kind.itemsize // WORD_BYTES

    @property
    def stride(self) -> int:
        """Words reserved per layer in the arena."""
        return (
            self.virtual_rows + 1
            + self.max_nnz_per_layer
            + self.pad
            + self.value_width_ratio * self.max_nnz_per_layer
        )

    def validate(self) -> list[str]:
        """Validate packing configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if self.rows <= 0:
            errors.append(f"rows must be > 0, got {self.rows}")
        if self.cols <= 0:
            errors.append(f"cols must be > 0, got {self.cols}")
        if self.max_nnz_per_layer < 0:
            errors.append(f"max_nnz_per_layer must be >= 0, got {self.max_nnz_per_layer}")
        if self.num_layers <= 0:
            errors.append(f"num_layers must be > 0, got {self.num_layers}")
        if self.col_block_width <= 0:
            errors.append(f"col_block_width must be > 0, got {self.col_block_width}")
        if self.slab_count <= 0:
            errors.append(f"slab_count must be > 0, got {self.slab_count}")
        if self.pad < 0:
            errors.append(f"pad must be >= 0, got {self.pad}")

        # Every column must land in an existing slab
        if self.col_block_width > 0 and self.slab_count > 0 and self.cols > 0:
            needed = slab_count_for(self.cols, self.col_block_width)
            if needed > self.slab_count:
                errors.append(
                    f"slab_count ({self.slab_count}) is too small for cols={self.cols} "
                    f"with col_block_width={self.col_block_width} (needs {needed})"
                )

        return errors


def slab_count_for(cols: int, col_block_width: int) -> int:
    """Number of slabs needed to cover cols columns."""
    return (cols + col_block_width - 1) // col_block_width


def create_default_config(rows: int, cols: int, max_nnz_per_layer: int, **overrides) -> PackingConfig:
    """Create a packing configuration with defaults from defaults.yaml.

    Args:
        rows: Rows of every layer matrix
        cols: Columns of every layer matrix
        max_nnz_per_layer: Nonzeros of the densest layer
        **overrides: Any other PackingConfig field

    Returns:
        PackingConfig (not yet validated)
    """
    params = {
        "col_block_width": get_default("packing.col_block_width", DEFAULT_COL_BLOCK_WIDTH),
        "slab_count": get_default("packing.slab_count", DEFAULT_SLAB_COUNT),
        "pad": get_default("packing.pad", DEFAULT_PAD),
        "value_kind": get_default("packing.value_kind", DEFAULT_VALUE_KIND),
    }
    params.update(overrides)
    return PackingConfig(rows=rows, cols=cols, max_nnz_per_layer=max_nnz_per_layer, **params)

"""Multi-layer arena packing.

All layers of a network share one contiguous buffer of int32 words. Every
layer gets the same stride, sized for the densest layer:

    stride = rows * slab_count + 1        (offsets)
           + max_nnz_per_layer            (columns)
           + pad                          (alignment filler)
           + ratio * max_nnz_per_layer    (values; ratio = value bytes / word bytes)

so layer i always starts at word ``i * stride``. No per-layer pointer is
stored anywhere; the inference engine recomputes the same offsets.

Inside a slot the body is written as offsets, columns, values back to back.
A sparser layer leaves the tail of its slot untouched.

Layers occupy disjoint byte ranges, so packing different layers from
several threads needs no lock. Packing the same layer twice concurrently
is not supported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from multiprocessing.pool import ThreadPool
from typing import Sequence

import numpy as np

from sparse_dnn.config.defaults import INDEX_DTYPE, WORD_BYTES
from sparse_dnn.config.enums import ValueKind
from sparse_dnn.config.packing_config import PackingConfig
from sparse_dnn.config.validation import validate_config
from sparse_dnn.core.codec import MatrixHeader, decode_matrix, write_matrix_body
from sparse_dnn.core.slab_csr import SlabBlockedMatrix
from sparse_dnn.core.view import ArenaView
from sparse_dnn.errors import BoundsError

logger = logging.getLogger(__name__)


def value_width_ratio(value_kind: ValueKind | str) -> int:
    """Arena words per value (1 for float32, 2 for float64)."""
    return ValueKind.from_name(value_kind).itemsize // WORD_BYTES


def compute_layer_stride(
    rows: int,
    slab_count: int,
    max_nnz_per_layer: int,
    pad: int,
    value_width_ratio: int,
) -> int:
    """Words reserved per layer.

    Example:
        >>> compute_layer_stride(rows=2, slab_count=2, max_nnz_per_layer=3, pad=1, value_width_ratio=2)
        15
    """
    return rows * slab_count + 1 + max_nnz_per_layer + pad + value_width_ratio * max_nnz_per_layer


@dataclass(frozen=True)
class LayerRegion:
    """Word range ``[layer_index * stride, (layer_index + 1) * stride)`` of one layer."""

    layer_index: int
    stride: int

    @property
    def start_word(self) -> int:
        return self.layer_index * self.stride

    @property
    def end_word(self) -> int:
        return self.start_word + self.stride

    @property
    def byte_offset(self) -> int:
        return self.start_word * WORD_BYTES

    @property
    def byte_length(self) -> int:
        return self.stride * WORD_BYTES


class Arena:
    """Contiguous word buffer holding num_layers slots of stride words each.

    Attributes:
        num_layers: Number of layer slots
        stride: Words per slot
        words: Backing int32 array (uninitialized unless zero_fill)
    """

    def __init__(self, num_layers: int, stride: int, words: np.ndarray | None = None, zero_fill: bool = False):
        if num_layers <= 0:
            raise ValueError(f"num_layers must be > 0, got {num_layers}")
        if stride <= 0:
            raise ValueError(f"stride must be > 0, got {stride}")

        self.num_layers = num_layers
        self.stride = stride
        total = num_layers * stride

        if words is None:
            words = np.zeros(total, dtype=INDEX_DTYPE) if zero_fill else np.empty(total, dtype=INDEX_DTYPE)
        elif words.dtype != INDEX_DTYPE or words.size < total:
            raise BoundsError(0, total, words.size, what="arena words")

        self.words = words
        self.view = ArenaView(words, 0, total * WORD_BYTES)

    @property
    def nbytes(self) -> int:
        return self.view.length

    def layer_region(self, layer_index: int) -> LayerRegion:
        """Region of one layer.

        Raises:
            BoundsError: If layer_index is not a slot of this arena
        """
        if not 0 <= layer_index < self.num_layers:
            raise BoundsError(layer_index, 1, self.num_layers, what="layer")
        return LayerRegion(layer_index, self.stride)

    def layer_view(self, layer_index: int) -> ArenaView:
        region = self.layer_region(layer_index)
        return self.view.subview(region.byte_offset, region.byte_length)

    def layer_words(self, layer_index: int) -> np.ndarray:
        """Zero-copy int32 view of one slot."""
        region = self.layer_region(layer_index)
        return self.words[region.start_word:region.end_word]


def pack_layer(arena: Arena | ArenaView, layer_index: int, stride: int, matrix: SlabBlockedMatrix) -> int:
    """Write one layer's offsets, columns and values at word ``layer_index * stride``.

    Args:
        arena: Arena or a view over the whole arena buffer
        layer_index: Slot to fill
        stride: Words per slot
        matrix: Layer to place

    Returns:
        Number of bytes written

    Raises:
        ValueError: If stride is not positive
        BoundsError: If the slot lies outside the arena or the layer does not
            fit in stride words
    """
    view = arena.view if isinstance(arena, Arena) else arena
    if stride <= 0:
        raise ValueError(f"stride must be > 0, got {stride}")
    if layer_index < 0:
        raise BoundsError(layer_index, 1, view.length, what="layer")
    region = LayerRegion(layer_index, stride)
    slot = view.subview(region.byte_offset, region.byte_length)
    written = write_matrix_body(slot, matrix)
    logger.debug(
        f"Packed layer {layer_index}: nnz={matrix.nnz}, "
        f"{written}/{region.byte_length} bytes at offset {region.byte_offset}"
    )
    return written


class ArenaPacker:
    """Places many layers into one shared arena.

    Example:
        >>> config = PackingConfig(rows=2, cols=2, max_nnz_per_layer=2, num_layers=3,
        ...                        col_block_width=2, slab_count=1)
        >>> packer = ArenaPacker(config)
        >>> packer.pack(0, build_slab_csr(parse_triples("1\\t1\\t2.0\\n"), 2, 2, 2, 2, 1))
    """

    def __init__(self, config: PackingConfig, arena: Arena | None = None):
        """Initialize packer.

        Args:
            config: Packing geometry (validated here)
            arena: Existing arena to fill; allocated from config when None

        Raises:
            ConfigurationError: If config is invalid
            ValueError: If arena does not match the configured geometry
        """
        validate_config(config)
        self.config = config
        self.stride = config.stride

        if arena is None:
            arena = Arena(config.num_layers, self.stride)
        elif arena.stride != self.stride or arena.num_layers < config.num_layers:
            raise ValueError(
                f"arena geometry ({arena.num_layers} x {arena.stride}) does not match "
                f"config ({config.num_layers} x {self.stride})"
            )
        self.arena = arena

    def region(self, layer_index: int) -> LayerRegion:
        return self.arena.layer_region(layer_index)

    def _check_geometry(self, matrix: SlabBlockedMatrix) -> None:
        config = self.config
        fields = ("rows", "cols", "col_block_width", "slab_count", "value_kind")
        mismatched = [
            f"{name}={getattr(matrix, name)} (arena {getattr(config, name)})"
            for name in fields
            if getattr(matrix, name) != getattr(config, name)
        ]
        if mismatched:
            raise ValueError(f"layer geometry does not match arena: {', '.join(mismatched)}")
        if matrix.nnz > config.max_nnz_per_layer:
            raise BoundsError(0, matrix.nnz, config.max_nnz_per_layer, what="nonzero")

    def pack(self, layer_index: int, matrix: SlabBlockedMatrix) -> int:
        """Place a built layer in its slot.

        Raises:
            ValueError: If the layer geometry differs from the arena's
            BoundsError: If the layer index or nonzero count exceeds capacity
        """
        self.arena.layer_region(layer_index)
        self._check_geometry(matrix)
        return pack_layer(self.arena, layer_index, self.stride, matrix)

    def load_binary(self, layer_index: int, data) -> MatrixHeader:
        """Copy an encoded layer straight into its slot.

        Raises:
            FormatError: If the header rows differ from the configured rows
            BoundsError: If the layer index or nonzero count exceeds capacity
        """
        header = decode_matrix(
            data,
            self.arena.layer_view(layer_index),
            self.config.slab_count,
            self.config.value_kind,
            expected_rows=self.config.rows,
            max_nnz=self.config.max_nnz_per_layer,
        )
        logger.debug(f"Loaded layer {layer_index} from binary: nnz={header.nnz}")
        return header

    def pack_all(self, matrices: Sequence[SlabBlockedMatrix], n_workers: int = 1, first_layer: int = 0) -> int:
        """Pack consecutive layers, optionally from several threads.

        Args:
            matrices: Layers for slots first_layer, first_layer + 1, ...
            n_workers: Worker threads (-1 for one per layer, capped at 32)
            first_layer: Slot of matrices[0]

        Returns:
            Total bytes written
        """
        if first_layer < 0 or first_layer + len(matrices) > self.config.num_layers:
            raise BoundsError(first_layer, len(matrices), self.config.num_layers, what="layer")

        jobs = [(first_layer + i, m) for i, m in enumerate(matrices)]
        if n_workers == -1:
            n_workers = min(32, max(1, len(jobs)))

        if n_workers <= 1 or len(jobs) <= 1:
            written = sum(self.pack(i, m) for i, m in jobs)
        else:
            with ThreadPool(processes=n_workers) as pool:
                written = sum(pool.starmap(self.pack, jobs))

        logger.info(f"Packed {len(jobs)} layer(s) into arena ({written} bytes, {n_workers} worker(s))")
        return written

    def layer_matrix(self, layer_index: int) -> SlabBlockedMatrix:
        """Zero-copy read-back of a packed layer."""
        config = self.config
        return SlabBlockedMatrix.from_view(
            self.arena.layer_view(layer_index),
            rows=config.rows,
            cols=config.cols,
            col_block_width=config.col_block_width,
            slab_count=config.slab_count,
            value_kind=config.value_kind,
        )


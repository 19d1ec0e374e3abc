"""Bounds-checked byte views into a shared arena buffer.

An ArenaView is an explicit (buffer, byte offset, length) triple. All
reads and writes are relative to the view and checked against its length
before any memory is touched, so a layer can never spill into its
neighbour.
"""

from __future__ import annotations

import numpy as np

from sparse_dnn.errors import BoundsError


def as_contiguous(array, dtype=None) -> np.ndarray:
    """C-contiguous copy (or the array itself) converted to dtype.

    Raises:
        ValueError: If integer values do not fit an integer dtype
    """
    array = np.asarray(array)
    if dtype is not None:
        dtype = np.dtype(dtype)
        if dtype.kind in "iu" and array.dtype.kind in "iu" and array.size:
            info = np.iinfo(dtype)
            low, high = int(array.min()), int(array.max())
            if low < info.min or high > info.max:
                raise ValueError(f"values in [{low}, {high}] do not fit {dtype}")
    return np.ascontiguousarray(array, dtype=dtype)


class ArenaView:
    """Checked window of ``length`` bytes starting at ``offset`` in ``buffer``.

    Attributes:
        offset: Absolute byte offset of the window in the buffer
        length: Window size in bytes
    """

    __slots__ = ("_buffer", "offset", "length")

    def __init__(self, buffer, offset: int = 0, length: int | None = None):
        """Create a view.

        Args:
            buffer: Any writable C-contiguous buffer (bytearray, NumPy array, memoryview)
            offset: Byte offset of the window
            length: Window size in bytes (default: rest of the buffer)

        Raises:
            BoundsError: If the window does not lie inside the buffer
        """
        raw = memoryview(buffer)
        if raw.readonly:
            raise ValueError("arena buffer must be writable")
        raw = raw.cast("B") if raw.format != "B" or raw.ndim != 1 else raw
        if length is None:
            length = raw.nbytes - offset
        if offset < 0 or length < 0 or offset + length > raw.nbytes:
            raise BoundsError(offset, max(length, 0), raw.nbytes, what="view")
        self._buffer = raw
        self.offset = offset
        self.length = length

    def __len__(self) -> int:
        return self.length

    def __repr__(self) -> str:
        return f"ArenaView(offset={self.offset}, length={self.length})"

    def check(self, rel_offset: int, nbytes: int) -> None:
        """Raise BoundsError unless [rel_offset, rel_offset + nbytes) fits the view."""
        if rel_offset < 0 or nbytes < 0 or rel_offset + nbytes > self.length:
            raise BoundsError(rel_offset, nbytes, self.length)

    def subview(self, rel_offset: int, length: int) -> "ArenaView":
        """Narrower view; it can never reach outside this one."""
        self.check(rel_offset, length)
        return ArenaView(self._buffer, self.offset + rel_offset, length)

    def write(self, rel_offset: int, data) -> int:
        """Copy bytes-like data into the view.

        Returns:
            Number of bytes written
        """
        src = memoryview(data)
        if src.format != "B" or src.ndim != 1:
            src = src.cast("B")
        nbytes = src.nbytes
        self.check(rel_offset, nbytes)
        start = self.offset + rel_offset
        self._buffer[start:start + nbytes] = src
        return nbytes

    def write_array(self, rel_offset: int, array: np.ndarray, dtype=None) -> int:
        """Copy an array's raw native-order bytes into the view.

        Returns:
            Number of bytes written

        Raises:
            ValueError: If integer values do not fit dtype
        """
        array = as_contiguous(array, dtype)
        if array.size == 0:
            self.check(rel_offset, 0)
            return 0
        return self.write(rel_offset, array.reshape(-1).view(np.uint8))

    def read(self, rel_offset: int, nbytes: int) -> bytes:
        """Copy bytes out of the view."""
        self.check(rel_offset, nbytes)
        start = self.offset + rel_offset
        return bytes(self._buffer[start:start + nbytes])

    def as_array(self, dtype, rel_offset: int = 0, count: int | None = None) -> np.ndarray:
        """Zero-copy typed array over part of the view.

        Args:
            dtype: Element dtype
            rel_offset: Byte offset inside the view
            count: Number of elements (default: as many as fit)

        Raises:
            BoundsError: If the elements do not fit the view
        """
        dtype = np.dtype(dtype)
        if count is None:
            count = (self.length - rel_offset) // dtype.itemsize
        self.check(rel_offset, count * dtype.itemsize)
        if count == 0:
            return np.empty(0, dtype=dtype)
        return np.frombuffer(self._buffer, dtype=dtype, count=count, offset=self.offset + rel_offset)

"""
Configuration Enums for sparse_dnn

Import Policy:
    from sparse_dnn.config.enums import ValueKind

DO NOT use: from sparse_dnn.config.enums import *
"""

from enum import Enum

import numpy as np


class ValueKind(Enum):
    """Numeric kind of matrix and feature values.

    Options:
        FLOAT32: Single precision (one arena word per value)
        FLOAT64: Double precision (two arena words per value)

    Note:
        The kind is a runtime tag. Every code path that touches values
        resolves its dtype through this enum instead of inspecting data.
    """
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def dtype(self) -> np.dtype:
        """Native-order NumPy dtype for this kind."""
        return np.dtype("=f4") if self is ValueKind.FLOAT32 else np.dtype("=f8")

    @property
    def itemsize(self) -> int:
        return self.dtype.itemsize

    def parse_literal(self, text: str) -> float:
        """Parse a numeric literal as this kind.

        Args:
            text: Literal text (surrounding whitespace is ignored)

        Returns:
            Parsed value

        Raises:
            ValueError: If the literal is not a finite number representable
                in this kind
        """
        value = float(text)
        if not np.isfinite(value):
            raise ValueError(f"non-finite value {text!r}")
        if abs(value) > np.finfo(self.dtype).max:
            raise ValueError(f"value {text!r} out of range for {self.value}")
        return value

    @classmethod
    def from_name(cls, name: "str | ValueKind") -> "ValueKind":
        """Resolve a kind from its name or a C-style alias ("float", "double")."""
        if isinstance(name, cls):
            return name
        aliases = {
            "float": cls.FLOAT32,
            "single": cls.FLOAT32,
            "f4": cls.FLOAT32,
            "double": cls.FLOAT64,
            "f8": cls.FLOAT64,
        }
        key = str(name).lower()
        if key in aliases:
            return aliases[key]
        return cls(key)

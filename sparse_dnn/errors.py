"""
sparse_dnn/errors.py

Exception hierarchy for the sparse_dnn conversion and packing layers.

Import Policy:
    from sparse_dnn.errors import FormatError, BoundsError, FileAccessError
"""


class SparseDNNError(Exception):
    """Base class for all sparse_dnn exceptions."""
    pass


class FileAccessError(SparseDNNError, OSError):
    """Raised when a file is missing, unreadable or unwritable."""

    def __init__(self, path, reason=""):
        self.path = str(path)
        self.reason = reason
        message = f"cannot open the file {self.path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)

    def __reduce__(self):
        return type(self), (self.path, self.reason)


class FormatError(SparseDNNError, ValueError):
    """Raised when coordinate text or a binary payload is malformed.

    Attributes:
        line_number: 1-based line number of the offending line (None for binary payloads)
        line: Offending line text (None for binary payloads)
    """

    def __init__(self, message, line_number=None, line=None):
        self.message = message
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message} (got {line!r})"
        super().__init__(message)

    def __reduce__(self):
        return type(self), (self.message, self.line_number, self.line)


class BoundsError(SparseDNNError, IndexError):
    """Raised when a write or read would fall outside its declared region.

    Attributes:
        offset: Start of the attempted access
        length: Length of the attempted access
        limit: Capacity of the region being accessed
    """

    def __init__(self, offset, length, limit, what="region"):
        self.offset = offset
        self.length = length
        self.limit = limit
        self.what = what
        super().__init__(
            f"{what} access [{offset}, {offset + length}) exceeds capacity {limit}"
        )

    def __reduce__(self):
        return type(self), (self.offset, self.length, self.limit, self.what)


class ConfigurationError(SparseDNNError):
    """Raised when packing configuration validation fails."""
    pass

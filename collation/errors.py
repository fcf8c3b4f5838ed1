"""
Exceptions raised by the collation package.
"""


class CollationError(Exception):
    """Base class for collation errors."""


class ConfusionMatrixError(CollationError, ValueError):
    """A confusion matrix or glyph list failed shape/content validation."""


class DiffTimeoutError(CollationError):
    """The sequence diff ran past its configured time budget."""

    def __init__(self, elapsed: float, timeout: float):
        self.elapsed = elapsed
        self.timeout = timeout
        super().__init__(f"diff took {elapsed:.3f}s (timeout {timeout:.3f}s)")

"""
Exception hierarchy for the offset tree reduction.

Construction errors abort setup; contract violations fail a single
example without touching tree state.
"""
from __future__ import annotations

from typing import Optional


class OffsetTreeError(Exception):
    """Base class for all offset tree errors."""
    pass


class ConfigurationError(OffsetTreeError):
    """
    Raised for invalid setup: rebuilding a tree with a different leaf
    count, or out-of-range run configuration values.
    """

    def __init__(
        self,
        message: str,
        current: Optional[int] = None,
        requested: Optional[int] = None,
    ):
        super().__init__(message)
        self.current = current
        self.requested = requested


class ResourceExhausted(OffsetTreeError):
    """Raised when the node array cannot be allocated."""

    def __init__(self, message: str, leaf_count: int):
        super().__init__(message)
        self.leaf_count = leaf_count


class ContractViolation(OffsetTreeError):
    """Raised when a caller hands the tree malformed input."""
    pass


class ParseError(OffsetTreeError, ValueError):
    """Raised for a malformed line in the text example format."""

    def __init__(self, line_no: int, reason: str):
        super().__init__(f"line {line_no}: {reason}")
        self.line_no = line_no
        self.reason = reason

"""
Exception types raised at the toolkit boundary.

Both classes derive from ValueError so callers that already guard the
toolkit with ``except ValueError`` keep working.
"""

from typing import Optional


class ConfigurationError(ValueError):
    """A matching parameter is missing or has an invalid value."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        if message is None:
            message = f"Missing required configuration field: '{field}'"
        super().__init__(message)


class ShapeMismatchError(ValueError):
    """The stereo images do not share the same pixel dimensions."""

    def __init__(self, left_shape: tuple, right_shape: tuple, message: Optional[str] = None):
        self.left_shape = tuple(left_shape)
        self.right_shape = tuple(right_shape)
        if message is None:
            message = (f"Image shapes don't match: "
                       f"left={self.left_shape}, right={self.right_shape}")
        super().__init__(message)

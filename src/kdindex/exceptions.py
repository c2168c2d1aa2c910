"""
Errors raised by kdindex.
"""


class InvalidArgument(ValueError):
    """A required point, rectangle or value is missing or malformed."""

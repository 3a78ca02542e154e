"""
Exception hierarchy for Diff View Engine.

Malformed diff content is never an error: it degrades a single record.
These exceptions are reserved for invalid input shapes and I/O problems
that the caller controls.
"""


class DiffViewError(Exception):
    """Base class for all engine errors."""
    pass


class DiffParserError(DiffViewError):
    """Error during diff parsing (wrong input type or unreadable file)."""
    pass


class ContentFetchError(DiffViewError):
    """A file content source could not produce content for a path."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to read {path}: {reason}")
        self.path = path
        self.reason = reason

"""
Diff View Engine

Turns raw unified-diff text into stable per-file records, aggregates change
statistics, prefetches full file contents in bounded cancellable batches and
drives collapse/expand state and windowed rendering for diff viewers.
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("diff-view-engine")
except PackageNotFoundError:
    __version__ = "0.1.0"

# Public API exports
__all__ = [
    "__version__",
]

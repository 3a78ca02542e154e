"""
Parser package for Diff View Engine.

This package contains the unified diff parser, which turns raw diff text
into ordered per-file records.
"""

from diff_view_engine.parser.diff_parser import DiffParser, parse_unified_diff

__all__ = [
    "DiffParser",
    "parse_unified_diff",
]

"""
Data models for Diff View Engine.

This package contains Pydantic models for representing per-file diff
records, aggregate statistics, session view state, and code snippets.
"""

from diff_view_engine.models.diff import (
    DEV_NULL,
    ChangeType,
    DiffHunk,
    FileDiffRecord,
)
from diff_view_engine.models.report import DiffReport
from diff_view_engine.models.session import (
    CollapsedStateChange,
    CommitMode,
    FocusSignal,
    FullMode,
    SessionEvent,
    UncommittedMode,
    ViewingMode,
    ViewState,
)
from diff_view_engine.models.snippet import CodeSnippet
from diff_view_engine.models.stats import (
    EMPTY_DIFF_STATS,
    LOADING_DIFF_STATS,
    DiffStats,
)

__all__ = [
    # Diff models
    "DEV_NULL",
    "ChangeType",
    "DiffHunk",
    "FileDiffRecord",
    # Stats models
    "DiffStats",
    "EMPTY_DIFF_STATS",
    "LOADING_DIFF_STATS",
    # Session models
    "CollapsedStateChange",
    "CommitMode",
    "FocusSignal",
    "FullMode",
    "SessionEvent",
    "UncommittedMode",
    "ViewingMode",
    "ViewState",
    # Snippet and report models
    "CodeSnippet",
    "DiffReport",
]

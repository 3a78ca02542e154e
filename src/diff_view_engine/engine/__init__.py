"""
Engine package for Diff View Engine.

This package contains the stateful parts of a diff view:
- Statistics aggregation
- Bounded, epoch-gated content prefetching
- Collapse/expand view state
- Window size estimation for virtualized rendering
- Focus navigation and selection-to-snippet extraction
- The DiffSession that owns all of the above
"""

from diff_view_engine.engine.focus import FocusNavigator, filter_records, locate
from diff_view_engine.engine.prefetch import (
    ContentCache,
    ContentPrefetcher,
    EpochGuard,
    PrefetchResult,
    build_prefetch_list,
)
from diff_view_engine.engine.selection import (
    LineMarker,
    SelectionExtractor,
    TextSelection,
    generate_snippet_id,
)
from diff_view_engine.engine.session import DiffSession
from diff_view_engine.engine.stats import aggregate
from diff_view_engine.engine.view_state import ViewStateController
from diff_view_engine.engine.window import RenderWindow, WindowEstimator, WindowItem

__all__ = [
    "ContentCache",
    "ContentPrefetcher",
    "DiffSession",
    "EpochGuard",
    "FocusNavigator",
    "LineMarker",
    "PrefetchResult",
    "RenderWindow",
    "SelectionExtractor",
    "TextSelection",
    "ViewStateController",
    "WindowEstimator",
    "WindowItem",
    "aggregate",
    "build_prefetch_list",
    "filter_records",
    "generate_snippet_id",
    "locate",
]

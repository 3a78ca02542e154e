"""
Statistics aggregation over parsed diff records.
"""

from typing import Iterable

from diff_view_engine.models.diff import FileDiffRecord
from diff_view_engine.models.stats import DiffStats


def aggregate(records: Iterable[FileDiffRecord], is_loading: bool = False) -> DiffStats:
    """
    Fold per-file counts into aggregate statistics.

    Args:
        records: Parsed diff records.
        is_loading: Loading flag supplied by the caller's fetch lifecycle.

    Returns:
        DiffStats for the records.
    """
    file_count = 0
    additions = 0
    deletions = 0

    for record in records:
        file_count += 1
        additions += record.additions
        deletions += record.deletions

    return DiffStats(
        file_count=file_count,
        additions=additions,
        deletions=deletions,
        is_loading=is_loading,
        has_changes=file_count > 0,
    )

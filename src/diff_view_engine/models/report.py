"""
Report data models.

Models describing a parsed diff for the command-line formatters.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from diff_view_engine.models.diff import ChangeType, FileDiffRecord
from diff_view_engine.models.stats import DiffStats


class DiffReport(BaseModel):
    """Complete summary of one parsed diff."""

    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the diff was parsed",
    )
    diff_source: str = Field(description="Source of the diff (file path or 'stdin')")
    stats: DiffStats = Field(description="Aggregated statistics")
    records: list[FileDiffRecord] = Field(
        default_factory=list,
        description="Per-file records in input order",
    )
    parse_duration_ms: Optional[float] = Field(
        default=None,
        description="How long parsing took in milliseconds",
    )

    @property
    def invalid_records(self) -> list[FileDiffRecord]:
        """Records whose diff text is truncated or malformed."""
        return [r for r in self.records if not r.is_valid]

    @property
    def binary_count(self) -> int:
        """Number of binary files."""
        return sum(1 for r in self.records if r.is_binary)

    def get_records_by_change_type(self, change_type: ChangeType) -> list[FileDiffRecord]:
        """Get records filtered by change type."""
        return [r for r in self.records if r.change_type == change_type]

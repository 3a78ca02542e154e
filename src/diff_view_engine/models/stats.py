"""
Diff statistics models.
"""

from pydantic import BaseModel, Field


class DiffStats(BaseModel):
    """Aggregate change statistics for a diff."""

    file_count: int = Field(default=0, ge=0, description="Number of changed files")
    additions: int = Field(default=0, ge=0, description="Total added lines")
    deletions: int = Field(default=0, ge=0, description="Total removed lines")
    is_loading: bool = Field(default=False, description="A diff fetch is in flight")
    has_changes: bool = Field(default=False, description="At least one file changed")

    class Config:
        frozen = True


EMPTY_DIFF_STATS = DiffStats()

LOADING_DIFF_STATS = DiffStats(is_loading=True)

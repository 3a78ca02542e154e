"""
Diff data models.

Models representing the per-file records of a parsed unified diff.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from diff_view_engine.models.languages import language_for_path

# Path literal used by unified diffs for a file that does not exist on one side
DEV_NULL = "/dev/null"


class ChangeType(str, Enum):
    """Type of file change in a diff."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class DiffHunk(BaseModel):
    """Represents a hunk (section of changes) in a diff."""

    source_start: int = Field(description="Starting line in source file")
    source_length: int = Field(description="Number of lines in source")
    target_start: int = Field(description="Starting line in target file")
    target_length: int = Field(description="Number of lines in target")
    added_lines: list[int] = Field(
        default_factory=list,
        description="Line numbers of added lines (in target)",
    )
    removed_lines: list[int] = Field(
        default_factory=list,
        description="Line numbers of removed lines (in source)",
    )

    class Config:
        frozen = True


class FileDiffRecord(BaseModel):
    """One changed file within a diff."""

    key: str = Field(description="Stable identifier derived from (old_path, new_path)")
    old_path: str = Field(default="", description="Path before the change, or /dev/null")
    new_path: str = Field(default="", description="Path after the change, or /dev/null")
    diff_text: str = Field(default="", description="Raw diff text for this file, verbatim")
    additions: int = Field(default=0, ge=0, description="Added content lines")
    deletions: int = Field(default=0, ge=0, description="Removed content lines")
    is_binary: bool = Field(default=False, description="Header announced binary content")
    is_valid: bool = Field(default=True, description="Diff text is structurally complete")
    invalid_reason: Optional[str] = Field(
        default=None,
        description="Why the record is not valid",
    )
    hunks: list[DiffHunk] = Field(
        default_factory=list,
        description="Structural hunk metadata, when the segment parses cleanly",
    )

    class Config:
        frozen = True

    @property
    def is_new_file(self) -> bool:
        """File did not exist before the change."""
        return self.old_path == DEV_NULL and bool(self.new_path) and self.new_path != DEV_NULL

    @property
    def is_deleted_file(self) -> bool:
        """File does not exist after the change."""
        return self.new_path == DEV_NULL and bool(self.old_path) and self.old_path != DEV_NULL

    @property
    def change_type(self) -> ChangeType:
        """Classify the change from the path pair."""
        if self.is_new_file:
            return ChangeType.ADDED
        if self.is_deleted_file:
            return ChangeType.DELETED
        if self.old_path and self.new_path and self.old_path != self.new_path:
            return ChangeType.RENAMED
        return ChangeType.MODIFIED

    @property
    def display_path(self) -> str:
        """Path shown to the user: new path, else old path, else the key."""
        if self.new_path and self.new_path != DEV_NULL:
            return self.new_path
        if self.old_path and self.old_path != DEV_NULL:
            return self.old_path
        return self.key

    @property
    def lookup_path(self) -> str:
        """Path used for matching external path references."""
        if self.new_path and self.new_path != DEV_NULL:
            return self.new_path
        if self.old_path != DEV_NULL:
            return self.old_path
        return ""

    @property
    def file_name(self) -> str:
        """Last path component of the display path."""
        return self.display_path.rsplit("/", 1)[-1] or self.display_path

    @property
    def dir_path(self) -> Optional[str]:
        """Directory part of the display path, if any."""
        if "/" not in self.display_path:
            return None
        return self.display_path.rsplit("/", 1)[0]

    @property
    def language(self) -> str:
        """Language tag inferred from the display path's extension."""
        return language_for_path(self.display_path)

    @property
    def total_changes(self) -> int:
        """Number of added plus removed lines."""
        return self.additions + self.deletions

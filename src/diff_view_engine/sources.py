"""
Interfaces to external collaborators.

The engine does not run version-control commands or perform network I/O
itself. Hosts hand it objects satisfying these protocols.
"""

import asyncio
from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class FileReadResult(BaseModel):
    """Outcome of reading one file's content."""

    ok: bool = Field(description="Whether the content is available")
    content: str = Field(default="", description="File content when ok")
    error: Optional[str] = Field(default=None, description="Failure description")

    class Config:
        frozen = True


@runtime_checkable
class DiffSource(Protocol):
    """Version-control query service producing raw diff text."""

    async def get_diff(self, working_path: str) -> str:
        """Uncommitted changes in the worktree."""
        ...

    async def get_commit_diff(self, working_path: str, commit_hash: str) -> str:
        """Changes introduced by one commit."""
        ...

    async def get_full_diff(self, working_path: str) -> str:
        """All changes against the base branch."""
        ...


@runtime_checkable
class BatchContentSource(Protocol):
    """File-content service that resolves many files in one request."""

    async def read_files(
        self,
        working_path: str,
        files: list[tuple[str, str]],
    ) -> dict[str, FileReadResult]:
        """Read ``(key, relative_path)`` pairs, returning results by key."""
        ...


@runtime_checkable
class FileContentSource(Protocol):
    """File-content service that reads one file per request."""

    async def read_file(self, working_path: str, relative_path: str) -> str:
        """Return the content of one file; raise on failure."""
        ...


@runtime_checkable
class PreferenceStore(Protocol):
    """Key-value store for UI preferences owned by the host."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryPreferenceStore:
    """Preference store kept in a dict, for hosts without persistence."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class Scheduler(Protocol):
    """Host scheduler that lets cooperative work yield between chunks."""

    async def yield_(self) -> None:
        ...


class AsyncioScheduler:
    """Yield to the asyncio event loop for one tick."""

    async def yield_(self) -> None:
        await asyncio.sleep(0)

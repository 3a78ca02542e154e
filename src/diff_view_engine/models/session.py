"""
Session state models.

Viewing modes, per-file view state, and the events a diff session
publishes to its observers.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field


class UncommittedMode(BaseModel):
    """Working tree changes that are not yet committed."""

    kind: Literal["uncommitted"] = "uncommitted"

    class Config:
        frozen = True

    @property
    def cache_key(self) -> str:
        return "uncommitted"


class CommitMode(BaseModel):
    """Changes introduced by a single commit."""

    kind: Literal["commit"] = "commit"
    hash: str = Field(description="Commit hash")
    message: str = Field(default="", description="Commit message subject")

    class Config:
        frozen = True

    @property
    def cache_key(self) -> str:
        return f"commit:{self.hash}"


class FullMode(BaseModel):
    """All changes (committed and uncommitted) against the base branch."""

    kind: Literal["full"] = "full"

    class Config:
        frozen = True

    @property
    def cache_key(self) -> str:
        return "full"


ViewingMode = Union[UncommittedMode, CommitMode, FullMode]


class ViewState(BaseModel):
    """Collapse state for one file key."""

    collapsed: bool = False
    fully_expanded: bool = False

    class Config:
        frozen = True


DEFAULT_VIEW_STATE = ViewState()


class CollapsedStateChange(BaseModel):
    """Summary published whenever collapse state changes."""

    all_collapsed: bool
    all_expanded: bool

    class Config:
        frozen = True


class FocusSignal(BaseModel):
    """One-shot result of a focus request, consumed by the renderer."""

    index: int = Field(description="Position of the focused file in the list")
    key: str = Field(description="Key of the focused file")
    path: str = Field(description="Path that was requested")
    highlight_until: float = Field(description="Loop time at which the highlight clears")

    class Config:
        frozen = True


class SessionEvent(BaseModel):
    """Notification delivered to diff session observers."""

    kind: Literal["records", "stats", "contents", "view_state", "focus", "error"]
    epoch: int = Field(description="Session epoch the event belongs to")
    payload: Optional[Any] = Field(default=None, description="Kind-specific data")

    class Config:
        frozen = True
        arbitrary_types_allowed = True

"""
Map a text selection inside a rendered diff back to a code snippet.
"""

import secrets
import time
from typing import Optional

from pydantic import BaseModel, Field

from diff_view_engine.models.languages import language_for_path
from diff_view_engine.models.snippet import CodeSnippet

UNKNOWN_PATH = "unknown"


class LineMarker(BaseModel):
    """A rendered line exposed by the renderer, with its line number."""

    line_number: int
    text: str = ""
    selected: bool = Field(
        default=False,
        description="The renderer reports the selection range intersects this line",
    )

    class Config:
        frozen = True


class TextSelection(BaseModel):
    """A live selection reported by the host UI."""

    text: str = Field(default="", description="Selected text")
    file_path: Optional[str] = Field(
        default=None,
        description="Path from the nearest ancestor carrying path metadata",
    )
    line_markers: list[LineMarker] = Field(
        default_factory=list,
        description="Per-line structural metadata, when exposed by the renderer",
    )


def generate_snippet_id() -> str:
    """Generate a unique id for a code snippet."""
    return f"snippet-{int(time.time() * 1000)}-{secrets.token_hex(4)[:7]}"


def _lines_from_text_match(
    markers: list[LineMarker],
    selected_lines: list[str],
) -> Optional[tuple[int, int]]:
    """Find the lines whose text contains the first and last selected lines."""
    first = selected_lines[0].strip()
    last = selected_lines[-1].strip()
    start: Optional[int] = None
    end: Optional[int] = None

    for marker in markers:
        line_text = marker.text.strip()
        if start is None and first and first in line_text:
            start = marker.line_number
        if start is None or end is not None or not last or last not in line_text:
            continue
        if len(selected_lines) == 1 or marker.line_number > start:
            end = marker.line_number

    if start is None:
        return None
    if end is None or end < start:
        end = start + len(selected_lines) - 1
    return start, end


def resolve_line_range(selection: TextSelection, text: str) -> tuple[int, int]:
    """
    Resolve the 1-based inclusive line range of a selection.

    Markers the renderer flags as selected win; otherwise markers are
    matched against the selected text. Without usable markers the range is
    assumed to start at line 1.
    """
    selected_lines = text.split("\n")
    markers = [m for m in selection.line_markers if m.line_number >= 1]

    flagged = [m.line_number for m in markers if m.selected]
    if flagged:
        return min(flagged), max(flagged)

    if markers:
        matched = _lines_from_text_match(markers, selected_lines)
        if matched is not None:
            return matched

    return 1, len(selected_lines)


class SelectionExtractor:
    """Produce code snippets from text selections."""

    def extract(
        self,
        selection: Optional[TextSelection],
        snippet_id: Optional[str] = None,
    ) -> Optional[CodeSnippet]:
        """
        Build a snippet for a selection.

        Args:
            selection: The selection, or None when nothing is selected.
            snippet_id: Caller-supplied id; generated when omitted.

        Returns:
            A CodeSnippet, or None for an empty or unusable selection.
        """
        if selection is None:
            return None
        text = selection.text.strip()
        if not text:
            return None

        file_path = selection.file_path or UNKNOWN_PATH
        start_line, end_line = resolve_line_range(selection, text)

        return CodeSnippet(
            id=snippet_id or generate_snippet_id(),
            file_path=file_path,
            start_line=start_line,
            end_line=end_line,
            content=text,
            language=language_for_path(file_path),
        )

"""
Size estimation and visible-range computation for windowed rendering.

Estimated heights are only a starting hint. Once the renderer measures an
item its real height replaces the estimate and all later offsets re-flow.
"""

from bisect import bisect_right
from typing import Callable, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from diff_view_engine.config import WindowConfig
from diff_view_engine.models.diff import FileDiffRecord

Align = Literal["start", "center", "end"]


class WindowItem(BaseModel):
    """One item of the render window."""

    index: int
    key: str
    start: int = Field(description="Offset of the item's top edge")
    size: int = Field(description="Measured or estimated height")
    measured: bool = Field(default=False, description="Size came from the renderer")

    class Config:
        frozen = True

    @property
    def end(self) -> int:
        return self.start + self.size


class RenderWindow(BaseModel):
    """Slice of the list that should be rendered."""

    start: int = Field(description="First rendered index")
    end: int = Field(description="One past the last rendered index")
    total_size: int = Field(description="Height of the whole list")
    items: list[WindowItem] = Field(default_factory=list)

    class Config:
        frozen = True


class WindowEstimator:
    """
    Estimate per-file heights and compute the render window.

    Collapsed files report the header height. Expanded files are estimated
    from their changed line count, clamped to the configured bounds.
    """

    def __init__(
        self,
        records: Sequence[FileDiffRecord] = (),
        is_collapsed: Optional[Callable[[str], bool]] = None,
        config: Optional[WindowConfig] = None,
    ) -> None:
        """
        Initialize the estimator.

        Args:
            records: Ordered diff records.
            is_collapsed: Collapse lookup by record key.
            config: Height constants; defaults are used when omitted.
        """
        self.config = config or WindowConfig()
        self._records: list[FileDiffRecord] = list(records)
        self._is_collapsed = is_collapsed or (lambda key: False)
        self._measured: dict[str, int] = {}

    def set_records(self, records: Sequence[FileDiffRecord]) -> None:
        """Replace the list, keeping measurements for keys that survive."""
        self._records = list(records)
        keys = {record.key for record in self._records}
        self._measured = {k: v for k, v in self._measured.items() if k in keys}

    def set_collapse_lookup(self, is_collapsed: Callable[[str], bool]) -> None:
        self._is_collapsed = is_collapsed

    @property
    def count(self) -> int:
        return len(self._records)

    def estimate_size(self, index: int) -> int:
        """Initial height hint for the item at ``index``."""
        cfg = self.config
        if index < 0 or index >= len(self._records):
            return cfg.collapsed_height

        record = self._records[index]
        if self._is_collapsed(record.key):
            return cfg.collapsed_height

        line_count = record.additions + record.deletions
        estimate = line_count * cfg.line_height + cfg.collapsed_height
        return min(max(estimate, cfg.min_height), cfg.max_height)

    def size_of(self, index: int) -> int:
        """Measured height when known, else the estimate."""
        if 0 <= index < len(self._records):
            measured = self._measured.get(self._records[index].key)
            if measured is not None:
                return measured
        return self.estimate_size(index)

    def measure(self, index: int, height: int) -> bool:
        """
        Record the real height reported by the renderer.

        Returns:
            True if the stored size changed and offsets need to re-flow.
        """
        if index < 0 or index >= len(self._records) or height < 0:
            return False
        key = self._records[index].key
        if self._measured.get(key) == height:
            return False
        self._measured[key] = height
        return True

    def invalidate(self, index: Optional[int] = None) -> None:
        """Drop measurements for one item, or for all items."""
        if index is None:
            self._measured.clear()
        elif 0 <= index < len(self._records):
            self._measured.pop(self._records[index].key, None)

    def offsets(self) -> list[int]:
        """Top offset of every item."""
        result: list[int] = []
        position = 0
        for index in range(len(self._records)):
            result.append(position)
            position += self.size_of(index)
        return result

    def total_size(self) -> int:
        return sum(self.size_of(index) for index in range(len(self._records)))

    def visible_range(
        self,
        scroll_offset: int,
        viewport_height: int,
        overscan: Optional[int] = None,
    ) -> RenderWindow:
        """
        Compute which items to render for a scroll position.

        Args:
            scroll_offset: Distance scrolled from the top of the list.
            viewport_height: Height of the visible area.
            overscan: Extra items on each side; config default when omitted.

        Returns:
            RenderWindow with the item slice and positions.
        """
        count = len(self._records)
        overscan = self.config.overscan if overscan is None else overscan
        offsets = self.offsets()
        total = offsets[-1] + self.size_of(count - 1) if count else 0

        if count == 0:
            return RenderWindow(start=0, end=0, total_size=0)

        scroll_offset = max(0, min(scroll_offset, total))
        bottom = scroll_offset + max(0, viewport_height)

        first = max(0, bisect_right(offsets, scroll_offset) - 1)
        last = first
        while last + 1 < count and offsets[last + 1] < bottom:
            last += 1

        start = max(0, first - overscan)
        end = min(count, last + 1 + overscan)

        items = [
            WindowItem(
                index=index,
                key=self._records[index].key,
                start=offsets[index],
                size=self.size_of(index),
                measured=self._records[index].key in self._measured,
            )
            for index in range(start, end)
        ]
        return RenderWindow(start=start, end=end, total_size=total, items=items)

    def scroll_to_index(
        self,
        index: int,
        viewport_height: int = 0,
        align: Align = "start",
    ) -> int:
        """
        Scroll offset that brings ``index`` into view.

        Args:
            index: Item to reveal.
            viewport_height: Height of the visible area, used for center/end.
            align: Where the item should sit in the viewport.

        Returns:
            The scroll offset, clamped to the scrollable range.
        """
        count = len(self._records)
        if count == 0:
            return 0
        index = max(0, min(index, count - 1))
        offsets = self.offsets()
        item_start = offsets[index]
        item_size = self.size_of(index)

        if align == "center":
            target = item_start - (viewport_height - item_size) // 2
        elif align == "end":
            target = item_start + item_size - viewport_height
        else:
            target = item_start

        max_offset = max(0, self.total_size() - viewport_height)
        return max(0, min(target, max_offset))

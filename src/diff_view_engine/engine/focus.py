"""
Focus navigation: jump to a file requested by path.

Externally supplied paths may use a different prefix convention than the
diff (sandbox-relative vs. repo-relative), so matching falls back to a
suffix comparison in both directions.
"""

import asyncio
from typing import Callable, Iterable, Optional, Sequence

import structlog

from diff_view_engine.config import FocusConfig
from diff_view_engine.engine.view_state import ViewStateController
from diff_view_engine.models.diff import FileDiffRecord
from diff_view_engine.models.session import FocusSignal

logger = structlog.get_logger(__name__)

FocusListener = Callable[[Optional[FocusSignal]], None]


def paths_match(path: str, target: str) -> bool:
    """Exact or suffix match in either direction; empty paths never match."""
    if not path or not target:
        return False
    return path == target or path.endswith(target) or target.endswith(path)


def locate(records: Sequence[FileDiffRecord], target_path: str) -> Optional[int]:
    """
    Find the index of the record for a path.

    Args:
        records: Ordered diff records.
        target_path: Path to look for.

    Returns:
        The index, or None if no record matches.
    """
    if not target_path:
        return None

    for index, record in enumerate(records):
        if record.new_path == target_path or record.old_path == target_path:
            return index

    for index, record in enumerate(records):
        if paths_match(record.lookup_path, target_path):
            return index

    return None


def filter_records(
    records: Sequence[FileDiffRecord],
    paths: Optional[Iterable[str]],
) -> list[FileDiffRecord]:
    """
    Restrict records to those matching any of ``paths``.

    An empty or missing path list leaves the records unfiltered.
    """
    wanted = [p for p in (paths or []) if p]
    if not wanted:
        return list(records)
    return [
        record
        for record in records
        if any(paths_match(record.lookup_path, path) for path in wanted)
    ]


class FocusNavigator:
    """
    Resolve one-shot focus requests against the current record list.

    A successful resolution expands the file if needed and publishes a
    FocusSignal whose highlight clears after a fixed interval.
    """

    def __init__(self, config: Optional[FocusConfig] = None) -> None:
        self.config = config or FocusConfig()
        self._pending: Optional[str] = None
        self._signal: Optional[FocusSignal] = None
        self._clear_handle: Optional[asyncio.TimerHandle] = None
        self._listeners: list[FocusListener] = []

    @property
    def pending(self) -> Optional[str]:
        return self._pending

    @property
    def signal(self) -> Optional[FocusSignal]:
        """The active highlight, if any."""
        return self._signal

    def request(self, path: str) -> None:
        """Queue a focus request for the next ``consume`` call."""
        self._pending = path or None

    def cancel(self) -> None:
        """Drop any pending request and active highlight."""
        self._pending = None
        self.clear_highlight()

    def consume(
        self,
        records: Sequence[FileDiffRecord],
        view_state: ViewStateController,
        is_loading: bool = False,
    ) -> Optional[FocusSignal]:
        """
        Resolve the pending request.

        Nothing happens while the diff is loading. Otherwise the request is
        cleared whether or not a file matched.

        Args:
            records: Ordered diff records.
            view_state: Controller used to expand a collapsed target.
            is_loading: Whether the diff is still being fetched.

        Returns:
            The published signal, or None.
        """
        target = self._pending
        if target is None or is_loading:
            return None
        self._pending = None

        index = locate(records, target)
        if index is None:
            logger.debug("Focus target not found", path=target)
            return None

        record = records[index]
        if view_state.is_collapsed(record.key):
            view_state.set_collapsed(record.key, False)

        self._publish(index, record.key, target)
        return self._signal

    def _publish(self, index: int, key: str, path: str) -> None:
        duration = self.config.highlight_duration
        try:
            loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        now = loop.time() if loop is not None else 0.0
        self._signal = FocusSignal(index=index, key=key, path=path, highlight_until=now + duration)

        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None
        if loop is not None:
            self._clear_handle = loop.call_later(duration, self.clear_highlight)

        self._notify()

    def clear_highlight(self) -> None:
        """Remove the active highlight."""
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None
        if self._signal is None:
            return
        self._signal = None
        self._notify()

    def subscribe(self, listener: FocusListener) -> Callable[[], None]:
        """Register a listener called with the signal, or None when it clears."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._signal)

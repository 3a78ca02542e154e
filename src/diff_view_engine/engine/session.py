"""
Diff session - the owned state object behind every diff view.

A session holds the parsed records, their statistics, the content cache,
view state, window estimator and focus navigator for one consuming view.
Observers subscribe to explicit SessionEvents instead of recomputing from a
reactive graph. Every asynchronous operation captures the session epoch and
checks it again before mutating state, so work started for a previous mode,
worktree or diff is silently dropped.
"""

from typing import Awaitable, Callable, Iterable, Mapping, Optional

import structlog

from diff_view_engine.config import Config
from diff_view_engine.engine.focus import FocusNavigator, filter_records
from diff_view_engine.engine.prefetch import (
    ContentCache,
    ContentPrefetcher,
    ContentSource,
    EpochGuard,
)
from diff_view_engine.engine.selection import SelectionExtractor, TextSelection
from diff_view_engine.engine.stats import aggregate
from diff_view_engine.engine.view_state import ViewStateController
from diff_view_engine.engine.window import WindowEstimator
from diff_view_engine.models.diff import FileDiffRecord
from diff_view_engine.models.session import (
    CommitMode,
    FocusSignal,
    FullMode,
    SessionEvent,
    UncommittedMode,
    ViewingMode,
)
from diff_view_engine.models.snippet import CodeSnippet
from diff_view_engine.models.stats import EMPTY_DIFF_STATS, LOADING_DIFF_STATS, DiffStats
from diff_view_engine.parser.diff_parser import DiffParser
from diff_view_engine.sources import DiffSource, PreferenceStore, Scheduler

logger = structlog.get_logger(__name__)

SessionListener = Callable[[SessionEvent], None]


class DiffSession:
    """
    State owner for one diff view.

    Only the session mutates its maps; readers get immutable snapshots.
    """

    def __init__(
        self,
        diff_source: Optional[DiffSource] = None,
        content_source: Optional[ContentSource] = None,
        worktree_path: Optional[str] = None,
        mode: Optional[ViewingMode] = None,
        config: Optional[Config] = None,
        scheduler: Optional[Scheduler] = None,
        preferences: Optional[PreferenceStore] = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            diff_source: Version-control query service.
            content_source: Batch or per-file content service.
            worktree_path: Worktree the diff and file reads resolve against.
            mode: Initial viewing mode (uncommitted changes by default).
            config: Engine configuration.
            scheduler: Host scheduler for cooperative batches.
            preferences: Optional store for UI preferences.
        """
        self.config = config or Config()
        self.diff_source = diff_source
        self._content_source = content_source
        self._worktree_path = worktree_path
        self._mode: ViewingMode = mode or UncommittedMode()

        self._guard = EpochGuard()
        self._cache = ContentCache()
        self._closed = False

        self._raw_diff: Optional[str] = None
        self._all_records: tuple[FileDiffRecord, ...] = ()
        self._records: tuple[FileDiffRecord, ...] = ()
        self._filter_paths: Optional[list[str]] = None
        self._stats: DiffStats = EMPTY_DIFF_STATS
        self._error: Optional[str] = None
        self._listeners: list[SessionListener] = []

        self.prefetcher = ContentPrefetcher(self.config.prefetch)
        self.view_state = ViewStateController(self.config.view, scheduler, preferences)
        self.window = WindowEstimator(
            is_collapsed=self.view_state.is_collapsed,
            config=self.config.window,
        )
        self.focus = FocusNavigator(self.config.focus)
        self.selection = SelectionExtractor()

        self.view_state.subscribe(lambda change: self._emit("view_state", change))
        self.focus.subscribe(lambda signal: self._emit("focus", signal))

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def mode(self) -> ViewingMode:
        return self._mode

    @property
    def worktree_path(self) -> Optional[str]:
        return self._worktree_path

    @property
    def epoch(self) -> int:
        return self._guard.current

    @property
    def raw_diff(self) -> Optional[str]:
        return self._raw_diff

    @property
    def all_records(self) -> tuple[FileDiffRecord, ...]:
        """Every parsed record, ignoring the path filter."""
        return self._all_records

    @property
    def records(self) -> tuple[FileDiffRecord, ...]:
        """Records shown by this view, after the path filter."""
        return self._records

    @property
    def stats(self) -> DiffStats:
        return self._stats

    @property
    def is_loading(self) -> bool:
        return self._stats.is_loading

    @property
    def error(self) -> Optional[str]:
        """Description of the last failed diff fetch, for a retry affordance."""
        return self._error

    @property
    def contents(self) -> Mapping[str, str]:
        """Prefetched file contents by record key."""
        return self._cache.entries

    @property
    def closed(self) -> bool:
        return self._closed

    def content_for(self, key: str) -> Optional[str]:
        return self._cache.get(key)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register an observer for session events.

        Returns:
            A callable that removes the observer.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: str, payload: object = None) -> None:
        if self._closed:
            return
        event = SessionEvent(kind=kind, epoch=self._guard.current, payload=payload)
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------
    # Diff loading
    # ------------------------------------------------------------------

    def _fetch_raw(self, diff_source: DiffSource, worktree: str) -> Awaitable[str]:
        mode = self._mode
        if isinstance(mode, CommitMode):
            return diff_source.get_commit_diff(worktree, mode.hash)
        if isinstance(mode, FullMode):
            return diff_source.get_full_diff(worktree)
        return diff_source.get_diff(worktree)

    async def load(self) -> bool:
        """
        Fetch and apply the diff for the current mode and worktree.

        A failed fetch leaves the session empty with ``error`` set.

        Returns:
            True if a diff was applied, False if the load failed or was
            superseded.
        """
        if self._closed or self.diff_source is None or not self._worktree_path:
            return False

        epoch = self._guard.advance()
        self._reset_cache()
        self._error = None
        self._set_stats(LOADING_DIFF_STATS)

        try:
            raw = await self._fetch_raw(self.diff_source, self._worktree_path)
        except Exception as e:
            if not self._guard.is_current(epoch):
                return False
            logger.warning(
                "Diff fetch failed",
                mode=self._mode.kind,
                worktree=self._worktree_path,
                error=str(e),
            )
            self._error = str(e) or type(e).__name__
            self._apply_raw(None)
            self._emit("error", self._error)
            return False

        if not self._guard.is_current(epoch):
            logger.debug("Discarding stale diff", mode=self._mode.kind, epoch=epoch)
            return False

        self._apply_raw(raw)
        return True

    def set_raw_diff(self, raw: Optional[str]) -> None:
        """Apply diff text the caller already holds, superseding any load."""
        self._guard.advance()
        self._reset_cache()
        self._error = None
        self._apply_raw(raw)

    def _apply_raw(self, raw: Optional[str]) -> None:
        self._raw_diff = raw if raw and raw.strip() else None
        self._all_records = tuple(DiffParser.parse_string(raw)) if self._raw_diff else ()
        keys = {record.key for record in self._all_records}
        if not keys.issuperset(self._cache.entries):
            self._reset_cache()
        self._refresh_records()

    def _refresh_records(self) -> None:
        self._records = tuple(filter_records(self._all_records, self._filter_paths))
        self.view_state.sync(self._records)
        self.window.set_records(self._records)
        self._emit("records", self._records)
        self._set_stats(aggregate(self._records))
        self._consume_focus()

    def _set_stats(self, stats: DiffStats) -> None:
        self._stats = stats
        self._emit("stats", stats)

    def _reset_cache(self) -> None:
        self._cache.reset()
        self._emit("contents", self._cache.entries)

    def set_filter(self, paths: Optional[Iterable[str]]) -> None:
        """Show only records matching ``paths`` (exact or suffix match)."""
        self._filter_paths = list(paths) if paths else None
        self._refresh_records()

    def _invalidate(self) -> None:
        """Drop everything tied to the previous mode or worktree."""
        self._guard.advance()
        self._reset_cache()
        self._raw_diff = None
        self._all_records = ()
        self._records = ()
        self._error = None
        self.view_state.reset()
        self.window.set_records(())
        self.focus.cancel()
        self._set_stats(EMPTY_DIFF_STATS)

    async def switch_mode(self, mode: ViewingMode, reload: bool = True) -> bool:
        """
        Activate another viewing mode.

        Returns:
            True if the mode changed.
        """
        if mode.cache_key == self._mode.cache_key:
            return False
        self._mode = mode
        self._invalidate()
        if reload:
            await self.load()
        return True

    async def set_worktree(self, worktree_path: Optional[str], reload: bool = True) -> bool:
        """
        Point the session at another worktree.

        Returns:
            True if the worktree changed.
        """
        if worktree_path == self._worktree_path:
            return False
        self._worktree_path = worktree_path
        self._invalidate()
        if reload and worktree_path:
            await self.load()
        return True

    def set_content_source(self, source: Optional[ContentSource]) -> None:
        """Replace the content source; cached contents from the old one are dropped."""
        self._content_source = source
        self._reset_cache()

    # ------------------------------------------------------------------
    # Content prefetch
    # ------------------------------------------------------------------

    async def prefetch(self) -> bool:
        """
        Prefetch contents for the first files of the current diff.

        Returns:
            True if new contents were written to the cache.
        """
        source = self._content_source
        if self._closed or source is None or not self._worktree_path or not self._records:
            return False
        # Records still belong to the previous diff until the load lands
        if self.is_loading:
            return False

        result = await self.prefetcher.fetch(
            self._worktree_path,
            self._records,
            source,
            epoch=self._cache.epoch,
            cached=self._cache.entries,
        )
        if not self._cache.apply(result) or not result.contents:
            return False

        self._emit("contents", self._cache.entries)
        return True

    async def refresh(self) -> bool:
        """Reload the diff, then prefetch contents for it."""
        loaded = await self.load()
        if loaded:
            await self.prefetch()
        return loaded

    # ------------------------------------------------------------------
    # View operations
    # ------------------------------------------------------------------

    def toggle_collapsed(self, key: str) -> bool:
        collapsed = self.view_state.toggle_collapsed(key)
        self._invalidate_measurement(key)
        return collapsed

    def toggle_fully_expanded(self, key: str) -> bool:
        """
        Toggle full-file view for one file.

        Returns:
            True if full-file content is available for the key.
        """
        self.view_state.toggle_fully_expanded(key)
        self._invalidate_measurement(key)
        return key in self._cache

    def collapse_all(self) -> None:
        self.view_state.collapse_all()
        self.window.invalidate()

    async def expand_all(self) -> None:
        await self.view_state.expand_all()
        self.window.invalidate()

    def _invalidate_measurement(self, key: str) -> None:
        for index, record in enumerate(self._records):
            if record.key == key:
                self.window.invalidate(index)
                return

    def focus_file(self, path: str) -> Optional[FocusSignal]:
        """
        Request navigation to a file.

        While the diff is loading the request is kept and resolved once the
        records arrive.
        """
        self.focus.request(path)
        return self._consume_focus()

    def _consume_focus(self) -> Optional[FocusSignal]:
        signal = self.focus.consume(self._records, self.view_state, self.is_loading)
        if signal is not None:
            self.window.invalidate(signal.index)
        return signal

    def extract_selection(
        self,
        selection: Optional[TextSelection],
        snippet_id: Optional[str] = None,
    ) -> Optional[CodeSnippet]:
        return self.selection.extract(selection, snippet_id)

    def record_at(self, index: int) -> Optional[FileDiffRecord]:
        if 0 <= index < len(self._records):
            return self._records[index]
        return None

    def find_record(self, key: str) -> Optional[FileDiffRecord]:
        return next((r for r in self._records if r.key == key), None)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Unmount: invalidate in-flight work and stop notifying observers."""
        self._guard.advance()
        self._cache.reset()
        self.focus.cancel()
        self._closed = True
        self._listeners.clear()


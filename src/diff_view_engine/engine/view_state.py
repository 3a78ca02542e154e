"""
Per-file collapse and full-expand state.

State is keyed by record key and reset whenever the set of keys changes.
Each mutation swaps in a new immutable map so readers always see a
consistent snapshot.
"""

from types import MappingProxyType
from typing import Callable, Iterable, Literal, Mapping, Optional

import structlog

from diff_view_engine.config import ViewConfig
from diff_view_engine.models.diff import FileDiffRecord
from diff_view_engine.models.session import CollapsedStateChange, ViewState
from diff_view_engine.sources import AsyncioScheduler, PreferenceStore, Scheduler

logger = structlog.get_logger(__name__)

DiffStyle = Literal["split", "unified"]

DIFF_STYLE_PREFERENCE = "diff-view:view-mode"

CollapsedStateListener = Callable[[CollapsedStateChange], None]


class ViewStateController:
    """
    Maintain ``collapsed`` and ``fully_expanded`` flags per file key.

    Large diffs (more files than the auto-collapse threshold) start fully
    collapsed; smaller ones start expanded. The default is re-evaluated only
    when the set of file keys changes, so user toggles survive re-renders.
    """

    def __init__(
        self,
        config: Optional[ViewConfig] = None,
        scheduler: Optional[Scheduler] = None,
        preferences: Optional[PreferenceStore] = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            config: Thresholds; defaults are used when omitted.
            scheduler: Host scheduler used between expand batches.
            preferences: Optional store for the split/unified preference.
        """
        self.config = config or ViewConfig()
        self.scheduler = scheduler or AsyncioScheduler()
        self.preferences = preferences
        self._keys: tuple[str, ...] = ()
        self._collapsed: Mapping[str, bool] = MappingProxyType({})
        self._fully_expanded: Mapping[str, bool] = MappingProxyType({})
        self._default_collapsed = False
        self._generation = 0
        self._listeners: list[CollapsedStateListener] = []
        self._diff_style: DiffStyle = "unified"

    # ------------------------------------------------------------------
    # Key set lifecycle
    # ------------------------------------------------------------------

    @property
    def keys(self) -> tuple[str, ...]:
        return self._keys

    def sync(self, records: Iterable[FileDiffRecord]) -> bool:
        """
        Adopt the keys of a new parse result.

        Args:
            records: Current ordered records.

        Returns:
            True if the key set changed and state was reset.
        """
        keys = tuple(record.key for record in records)
        if set(keys) == set(self._keys):
            self._keys = keys
            return False

        self._keys = keys
        self._generation += 1
        self._default_collapsed = len(keys) > self.config.auto_collapse_threshold
        self._collapsed = MappingProxyType({key: self._default_collapsed for key in keys})
        self._fully_expanded = MappingProxyType({})
        logger.debug(
            "View state reset",
            files=len(keys),
            collapsed=self._default_collapsed,
        )
        self._notify()
        return True

    def reset(self) -> None:
        """Forget all keys and state."""
        self._keys = ()
        self._generation += 1
        self._default_collapsed = False
        self._collapsed = MappingProxyType({})
        self._fully_expanded = MappingProxyType({})
        self._notify()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_collapsed(self, key: str) -> bool:
        return self._collapsed.get(key, self._default_collapsed)

    def is_fully_expanded(self, key: str) -> bool:
        return self._fully_expanded.get(key, False)

    def get(self, key: str) -> ViewState:
        """View state for one key, with defaults for keys not yet seen."""
        return ViewState(
            collapsed=self.is_collapsed(key),
            fully_expanded=self.is_fully_expanded(key),
        )

    def snapshot(self) -> dict[str, ViewState]:
        """View state for every known key."""
        return {key: self.get(key) for key in self._keys}

    def is_all_collapsed(self) -> bool:
        """True if every known file is collapsed (vacuously true when empty)."""
        return all(self.is_collapsed(key) for key in self._keys)

    def is_all_expanded(self) -> bool:
        """True if no known file is collapsed (vacuously true when empty)."""
        return not any(self.is_collapsed(key) for key in self._keys)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def toggle_collapsed(self, key: str) -> bool:
        """Flip the collapsed flag of one file and return the new value."""
        value = not self.is_collapsed(key)
        self.set_collapsed(key, value)
        return value

    def set_collapsed(self, key: str, collapsed: bool) -> None:
        if self.is_collapsed(key) == collapsed and key in self._collapsed:
            return
        self._collapsed = MappingProxyType({**self._collapsed, key: collapsed})
        self._notify()

    def toggle_fully_expanded(self, key: str) -> bool:
        """Flip the full-file flag of one file and return the new value."""
        value = not self.is_fully_expanded(key)
        self._fully_expanded = MappingProxyType({**self._fully_expanded, key: value})
        self._notify()
        return value

    def collapse_all(self) -> None:
        """Collapse every known file."""
        self._generation += 1
        self._collapsed = MappingProxyType({key: True for key in self._keys})
        self._notify()

    def expand_all_now(self) -> None:
        """Expand every known file in one step."""
        self._generation += 1
        self._collapsed = MappingProxyType({key: False for key in self._keys})
        self._notify()

    async def expand_all(self) -> None:
        """
        Expand every known file.

        Small diffs are expanded at once. Larger ones are expanded in fixed
        size batches, yielding to the scheduler between batches. The run
        stops early if the key set changes while it is suspended.
        """
        keys = self._keys
        if len(keys) <= self.config.auto_collapse_threshold:
            self.expand_all_now()
            return

        generation = self._generation
        batch_size = self.config.expand_batch_size

        for start in range(0, len(keys), batch_size):
            if generation != self._generation:
                logger.debug("Expand-all superseded", expanded=start, files=len(keys))
                return

            batch = keys[start:start + batch_size]
            updated = dict(self._collapsed)
            for key in batch:
                updated[key] = False
            self._collapsed = MappingProxyType(updated)
            self._notify()

            if start + batch_size < len(keys):
                await self.scheduler.yield_()

    # ------------------------------------------------------------------
    # Observers and preferences
    # ------------------------------------------------------------------

    def subscribe(self, listener: CollapsedStateListener) -> Callable[[], None]:
        """
        Register a listener for collapse summary changes.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        change = CollapsedStateChange(
            all_collapsed=self.is_all_collapsed(),
            all_expanded=self.is_all_expanded(),
        )
        for listener in list(self._listeners):
            listener(change)

    @property
    def diff_style(self) -> DiffStyle:
        """Split or unified rendering, read from the preference store."""
        if self.preferences is None:
            return self._diff_style
        value = self.preferences.get(DIFF_STYLE_PREFERENCE)
        return "split" if value == "split" else "unified"

    @diff_style.setter
    def diff_style(self, value: DiffStyle) -> None:
        if value not in ("split", "unified"):
            raise ValueError(f"Unknown diff style: {value}")
        self._diff_style = value
        if self.preferences is not None:
            self.preferences.set(DIFF_STYLE_PREFERENCE, value)

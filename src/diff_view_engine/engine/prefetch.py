"""
Bounded, cancellable prefetching of full file contents.

Contents are fetched for the first files of a diff so that toggling a file
to "full file" view is instant. Every fetch is tagged with the epoch of the
session that started it; results from a superseded epoch are discarded
instead of being written into the current cache.
"""

import asyncio
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Union

import structlog
from pydantic import BaseModel, Field

from diff_view_engine.config import PrefetchConfig
from diff_view_engine.errors import ContentFetchError
from diff_view_engine.models.diff import DEV_NULL, FileDiffRecord
from diff_view_engine.sources import (
    BatchContentSource,
    FileContentSource,
    FileReadResult,
)

logger = structlog.get_logger(__name__)

ContentSource = Union[BatchContentSource, FileContentSource]


class EpochGuard:
    """Monotonic generation counter for asynchronous work."""

    def __init__(self) -> None:
        self._epoch = 0

    @property
    def current(self) -> int:
        return self._epoch

    def advance(self) -> int:
        """Invalidate all outstanding work and return the new epoch."""
        self._epoch += 1
        return self._epoch

    def is_current(self, epoch: int) -> bool:
        return epoch == self._epoch


class PrefetchResult(BaseModel):
    """Contents resolved by one prefetch pass."""

    epoch: int = Field(description="Epoch the pass was started under")
    contents: dict[str, str] = Field(
        default_factory=dict,
        description="Content by record key, for successful reads only",
    )
    failed_keys: list[str] = Field(
        default_factory=list,
        description="Keys whose content could not be read",
    )

    class Config:
        frozen = True


def resolve_fetch_path(record: FileDiffRecord) -> Optional[str]:
    """
    Pick the path to read for a record.

    The new path is preferred; deleted files fall back to the old path.

    Returns:
        The path, or None when there is nothing to fetch.
    """
    if record.new_path and record.new_path != DEV_NULL:
        return record.new_path
    if record.old_path and record.old_path != DEV_NULL:
        return record.old_path
    return None


def build_prefetch_list(
    records: Sequence[FileDiffRecord],
    limit: int = 20,
) -> list[tuple[str, str]]:
    """
    Build the ``(key, path)`` pairs to prefetch.

    Only the first ``limit`` records are considered; records without a
    readable path are skipped.
    """
    pairs: list[tuple[str, str]] = []
    for record in records[:limit]:
        path = resolve_fetch_path(record)
        if path is None:
            continue
        pairs.append((record.key, path))
    return pairs


class ContentCache:
    """
    Session-owned ``key -> content`` map with epoch-gated writes.

    The mapping exposed to readers is immutable and replaced as a whole on
    every write.
    """

    def __init__(self) -> None:
        self._guard = EpochGuard()
        self._entries: Mapping[str, str] = MappingProxyType({})

    @property
    def epoch(self) -> int:
        return self._guard.current

    @property
    def entries(self) -> Mapping[str, str]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def reset(self) -> int:
        """Clear the cache and start a new epoch."""
        self._entries = MappingProxyType({})
        return self._guard.advance()

    def apply(self, result: PrefetchResult) -> bool:
        """
        Merge a prefetch result if it belongs to the current epoch.

        Returns:
            True if the result was applied, False if it was stale.
        """
        if not self._guard.is_current(result.epoch):
            logger.debug(
                "Discarding stale prefetch result",
                result_epoch=result.epoch,
                current_epoch=self._guard.current,
                entries=len(result.contents),
            )
            return False

        if result.contents:
            merged = dict(self._entries)
            merged.update(result.contents)
            self._entries = MappingProxyType(merged)
        return True


class ContentPrefetcher:
    """
    Fetch file contents for the first files of a diff.

    Batch-capable sources are queried once for all needed files. Per-file
    sources are queried concurrently, with each read bounded by a timeout so
    a hung file cannot hold up the others.
    """

    def __init__(self, config: Optional[PrefetchConfig] = None) -> None:
        """
        Initialize the prefetcher.

        Args:
            config: Prefetch limits; defaults are used when omitted.
        """
        self.config = config or PrefetchConfig()

    @property
    def max_prefetch(self) -> int:
        return self.config.max_prefetch

    def needed_count(self, records: Sequence[FileDiffRecord], cached: Mapping[str, str]) -> int:
        """Number of entries still missing from a full prefetch pass."""
        return len(self.pending_requests(records, cached))

    def pending_requests(
        self,
        records: Sequence[FileDiffRecord],
        cached: Mapping[str, str],
    ) -> list[tuple[str, str]]:
        """
        Prefetch pairs not yet present in the cache.

        Cached keys that belong to other records do not count towards the
        limit.
        """
        return [
            (key, path)
            for key, path in build_prefetch_list(records, self.max_prefetch)
            if key not in cached
        ]

    async def fetch(
        self,
        working_path: str,
        records: Sequence[FileDiffRecord],
        source: ContentSource,
        epoch: int,
        cached: Optional[Mapping[str, str]] = None,
    ) -> PrefetchResult:
        """
        Run one prefetch pass.

        Args:
            working_path: Worktree the paths are relative to.
            records: Current ordered diff records.
            source: Batch or per-file content source.
            epoch: Epoch to tag the result with.
            cached: Contents already held for this session.

        Returns:
            PrefetchResult; failures are reported in ``failed_keys``.
        """
        requests = self.pending_requests(records, cached or {})
        if not requests:
            return PrefetchResult(epoch=epoch)

        logger.debug("Prefetching file contents", files=len(requests), epoch=epoch)

        if isinstance(source, BatchContentSource):
            results = await self._fetch_batch(working_path, requests, source)
        else:
            results = await self._fetch_each(working_path, requests, source)

        contents: dict[str, str] = {}
        failed: list[str] = []
        for key, _path in requests:
            result = results.get(key)
            if isinstance(result, dict):
                result = FileReadResult(**result)
            if result is not None and result.ok:
                contents[key] = result.content
            else:
                failed.append(key)

        if failed:
            logger.warning("Some file contents were unavailable", failed=len(failed), epoch=epoch)

        return PrefetchResult(epoch=epoch, contents=contents, failed_keys=failed)

    async def _fetch_batch(
        self,
        working_path: str,
        requests: list[tuple[str, str]],
        source: BatchContentSource,
    ) -> dict[str, FileReadResult]:
        """Resolve all requests with a single batch call."""
        try:
            return await source.read_files(working_path, requests)
        except Exception as e:
            logger.warning("Batch content fetch failed", error=str(e), files=len(requests))
            return {}

    async def _fetch_each(
        self,
        working_path: str,
        requests: list[tuple[str, str]],
        source: FileContentSource,
    ) -> dict[str, FileReadResult]:
        """Resolve requests with concurrent per-file calls."""
        pairs = await asyncio.gather(
            *(self._read_one(working_path, key, path, source) for key, path in requests)
        )
        return dict(pairs)

    async def _read_one(
        self,
        working_path: str,
        key: str,
        path: str,
        source: FileContentSource,
    ) -> tuple[str, FileReadResult]:
        """Read one file, turning timeouts and errors into a failed result."""
        try:
            content = await asyncio.wait_for(
                source.read_file(working_path, path),
                timeout=self.config.file_timeout,
            )
        except asyncio.TimeoutError:
            logger.debug("File content fetch timed out", path=path)
            return key, FileReadResult(ok=False, error="timeout")
        except ContentFetchError as e:
            logger.debug("File content unavailable", path=e.path, reason=e.reason)
            return key, FileReadResult(ok=False, error=e.reason)
        except Exception as e:
            logger.debug("File content fetch failed", path=path, error=str(e))
            return key, FileReadResult(ok=False, error=str(e))

        if not isinstance(content, str):
            return key, FileReadResult(ok=False, error="no content")
        return key, FileReadResult(ok=True, content=content)

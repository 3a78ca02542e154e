"""
Unit tests for content prefetching.
"""

import asyncio
from typing import Callable, Optional

import pytest

from diff_view_engine.config import PrefetchConfig
from diff_view_engine.engine.prefetch import (
    ContentCache,
    ContentPrefetcher,
    EpochGuard,
    PrefetchResult,
    build_prefetch_list,
    resolve_fetch_path,
)
from diff_view_engine.errors import ContentFetchError
from diff_view_engine.models.diff import DEV_NULL, FileDiffRecord
from diff_view_engine.parser.diff_parser import DiffParser
from diff_view_engine.sources import FileReadResult


def make_record(old_path: str, new_path: str) -> FileDiffRecord:
    return FileDiffRecord(key=DiffParser.make_key(old_path, new_path, 0), old_path=old_path, new_path=new_path)


class RecordingBatchSource:
    """Batch content source that records every request."""

    def __init__(self, fail: bool = False, missing: Optional[set[str]] = None) -> None:
        self.calls: list[list[tuple[str, str]]] = []
        self.fail = fail
        self.missing = missing or set()

    async def read_files(self, working_path: str, files: list[tuple[str, str]]) -> dict[str, FileReadResult]:
        self.calls.append(list(files))
        if self.fail:
            raise RuntimeError("service unavailable")
        return {
            key: FileReadResult(ok=False, error="not found")
            if path in self.missing
            else FileReadResult(ok=True, content=f"content of {path}")
            for key, path in files
        }


class RecordingFileSource:
    """Per-file content source with optional slow or failing paths."""

    def __init__(self, slow: Optional[set[str]] = None, broken: Optional[set[str]] = None) -> None:
        self.paths: list[str] = []
        self.slow = slow or set()
        self.broken = broken or set()

    async def read_file(self, working_path: str, relative_path: str) -> str:
        self.paths.append(relative_path)
        if relative_path in self.slow:
            await asyncio.sleep(10)
        if relative_path in self.broken:
            raise ContentFetchError(relative_path, "permission denied")
        return f"{working_path}/{relative_path}"


class TestResolveFetchPath:
    """Tests for fetch path resolution."""

    @pytest.mark.parametrize(
        "old_path,new_path,expected",
        [
            ("a.txt", "b.txt", "b.txt"),
            ("x.py", DEV_NULL, "x.py"),
            (DEV_NULL, "y.py", "y.py"),
            ("", "", None),
            (DEV_NULL, DEV_NULL, None),
        ],
    )
    def test_resolve(self, old_path: str, new_path: str, expected: Optional[str]) -> None:
        assert resolve_fetch_path(make_record(old_path, new_path)) == expected


class TestBuildPrefetchList:
    """Tests for the bounded prefetch list."""

    def test_limit_is_respected(self, make_diff: Callable[..., str]) -> None:
        """Only the first files are requested."""
        records = DiffParser.parse_string(make_diff(50))
        pairs = build_prefetch_list(records, limit=20)

        assert len(pairs) == 20
        assert pairs[-1] == (records[19].key, records[19].new_path)
        assert all(path != records[20].new_path for _key, path in pairs)

    def test_unreadable_records_are_skipped(self) -> None:
        records = [make_record("", ""), make_record("a.py", "a.py")]

        assert build_prefetch_list(records) == [("a.py->a.py", "a.py")]


class TestContentCache:
    """Tests for epoch-gated cache writes."""

    def test_apply_current_result(self) -> None:
        cache = ContentCache()
        applied = cache.apply(PrefetchResult(epoch=cache.epoch, contents={"k": "v"}))

        assert applied
        assert cache.get("k") == "v"
        assert "k" in cache
        assert len(cache) == 1

    def test_stale_result_is_rejected(self) -> None:
        """A result started before a reset never lands in the cache."""
        cache = ContentCache()
        started = cache.epoch
        cache.reset()

        applied = cache.apply(PrefetchResult(epoch=started, contents={"k": "v"}))

        assert not applied
        assert len(cache) == 0

    def test_entries_are_read_only(self) -> None:
        cache = ContentCache()
        cache.apply(PrefetchResult(epoch=cache.epoch, contents={"k": "v"}))

        with pytest.raises(TypeError):
            cache.entries["k"] = "other"  # type: ignore[index]

    def test_writes_replace_the_mapping(self) -> None:
        """Readers holding an old snapshot do not see later writes."""
        cache = ContentCache()
        snapshot = cache.entries
        cache.apply(PrefetchResult(epoch=cache.epoch, contents={"k": "v"}))

        assert "k" not in snapshot
        assert "k" in cache.entries


class TestEpochGuard:
    def test_advance(self) -> None:
        guard = EpochGuard()
        first = guard.current

        second = guard.advance()

        assert second == first + 1
        assert guard.is_current(second)
        assert not guard.is_current(first)


class TestContentPrefetcher:
    """Tests for the prefetch pass."""

    def test_needed_count(self, make_diff: Callable[..., str]) -> None:
        prefetcher = ContentPrefetcher()
        records = DiffParser.parse_string(make_diff(50))

        assert prefetcher.needed_count(records, {}) == 20
        assert prefetcher.needed_count(records, {r.key: "x" for r in records[:20]}) == 0
        assert prefetcher.needed_count(records[:3], {records[0].key: "x"}) == 2

    def test_unrelated_cached_keys_do_not_count(self, make_diff: Callable[..., str]) -> None:
        """Entries for records outside the current list leave the limit untouched."""
        prefetcher = ContentPrefetcher()
        records = DiffParser.parse_string(make_diff(50))
        stale = {f"other_{i}.py->other_{i}.py": "old" for i in range(20)}

        assert prefetcher.needed_count(records, stale) == 20
        assert prefetcher.needed_count(records[20:], {r.key: "x" for r in records[:20]}) == 20
        assert len(prefetcher.pending_requests(records, stale)) == 20

    @pytest.mark.anyio
    async def test_batch_source_bounded(self, make_diff: Callable[..., str]) -> None:
        """50 files yield a single batch request for the first 20."""
        records = DiffParser.parse_string(make_diff(50))
        source = RecordingBatchSource()

        result = await ContentPrefetcher().fetch("/repo", records, source, epoch=1)

        assert len(source.calls) == 1
        requested = source.calls[0]
        assert len(requested) == 20
        assert {key for key, _ in requested} == {r.key for r in records[:20]}
        assert len(result.contents) == 20
        assert result.epoch == 1
        assert result.failed_keys == []

    @pytest.mark.anyio
    async def test_cached_keys_are_not_requested(self, make_diff: Callable[..., str]) -> None:
        records = DiffParser.parse_string(make_diff(5))
        source = RecordingBatchSource()
        cached = {records[0].key: "cached"}

        result = await ContentPrefetcher().fetch("/repo", records, source, epoch=1, cached=cached)

        assert records[0].key not in {key for key, _ in source.calls[0]}
        assert len(result.contents) == 4

    @pytest.mark.anyio
    async def test_fully_cached_makes_no_request(self, make_diff: Callable[..., str]) -> None:
        records = DiffParser.parse_string(make_diff(3))
        source = RecordingBatchSource()
        cached = {r.key: "x" for r in records}

        result = await ContentPrefetcher().fetch("/repo", records, source, epoch=4, cached=cached)

        assert source.calls == []
        assert result.contents == {}
        assert result.epoch == 4

    @pytest.mark.anyio
    async def test_batch_partial_failure(self, make_diff: Callable[..., str]) -> None:
        """Failed entries are omitted; the rest are kept."""
        records = DiffParser.parse_string(make_diff(3))
        source = RecordingBatchSource(missing={"src/file_1.py"})

        result = await ContentPrefetcher().fetch("/repo", records, source, epoch=1)

        assert set(result.contents) == {records[0].key, records[2].key}
        assert result.failed_keys == [records[1].key]

    @pytest.mark.anyio
    async def test_batch_failure_yields_nothing(self, make_diff: Callable[..., str]) -> None:
        records = DiffParser.parse_string(make_diff(3))
        source = RecordingBatchSource(fail=True)

        result = await ContentPrefetcher().fetch("/repo", records, source, epoch=1)

        assert result.contents == {}
        assert len(result.failed_keys) == 3

    @pytest.mark.anyio
    async def test_per_file_source(self, make_diff: Callable[..., str]) -> None:
        records = DiffParser.parse_string(make_diff(25))
        source = RecordingFileSource()

        result = await ContentPrefetcher().fetch("/repo", records, source, epoch=2)

        assert sorted(source.paths) == sorted(r.new_path for r in records[:20])
        assert result.contents[records[0].key] == "/repo/src/file_0.py"

    @pytest.mark.anyio
    async def test_per_file_timeout_and_errors(self, make_diff: Callable[..., str]) -> None:
        """A hung or failing file does not hold up the others."""
        records = DiffParser.parse_string(make_diff(4))
        source = RecordingFileSource(slow={"src/file_1.py"}, broken={"src/file_2.py"})
        prefetcher = ContentPrefetcher(PrefetchConfig(file_timeout=0.05))

        result = await prefetcher.fetch("/repo", records, source, epoch=1)

        assert set(result.contents) == {records[0].key, records[3].key}
        assert set(result.failed_keys) == {records[1].key, records[2].key}

    @pytest.mark.anyio
    async def test_deleted_file_reads_old_path(self) -> None:
        records = [make_record("gone.py", DEV_NULL)]
        source = RecordingFileSource()

        await ContentPrefetcher().fetch("/repo", records, source, epoch=1)

        assert source.paths == ["gone.py"]

    @pytest.mark.anyio
    async def test_stale_pass_is_discarded(self, make_diff: Callable[..., str]) -> None:
        """A pass that completes after the cache moved on does not write."""
        records = DiffParser.parse_string(make_diff(2))
        cache = ContentCache()
        started = cache.epoch

        result = await ContentPrefetcher().fetch("/repo", records, RecordingBatchSource(), epoch=started)
        cache.reset()

        assert not cache.apply(result)
        assert cache.entries == {}

"""
Unified diff parser.

Splits raw ``git diff`` output into per-file records with line statistics.
Counting is done line by line so that truncated or malformed segments still
produce a record; the unidiff library supplies structural hunk metadata for
segments that parse cleanly.
"""

import re
from pathlib import Path
from typing import Optional, Union

import structlog
from unidiff import PatchSet, PatchedFile
from unidiff.errors import UnidiffParseError

from diff_view_engine.errors import DiffParserError
from diff_view_engine.models.diff import DEV_NULL, DiffHunk, FileDiffRecord

logger = structlog.get_logger(__name__)

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
GIT_HEADER_RE = re.compile(r"^diff --git (?:a/)?(.+?) (?:b/)?(.+)$")
BINARY_FILES_RE = re.compile(r"^Binary files (.+) and (.+) differ$")

# Lines that end hunk content and carry per-file metadata
METADATA_PREFIXES = (
    "diff --git",
    "index ",
    "new file mode",
    "deleted file mode",
    "old mode",
    "new mode",
    "similarity index",
    "dissimilarity index",
    "rename from",
    "rename to",
    "copy from",
    "copy to",
)

# Markers for segments that legitimately carry no hunks
HUNKLESS_MARKERS = (
    "new mode",
    "old mode",
    "rename from",
    "rename to",
    "Binary files",
)


class _BlockScan:
    """Mutable accumulator used while scanning one file segment."""

    def __init__(self) -> None:
        self.old_path: Optional[str] = None
        self.new_path: Optional[str] = None
        self.is_binary = False
        self.additions = 0
        self.deletions = 0
        self.unterminated = False


class DiffParser:
    """
    Parse unified diff text into ordered per-file records.

    Parsing is deterministic and never raises for malformed diff content:
    a truncated or unparseable segment becomes a record with
    ``is_valid=False`` instead of being dropped.
    """

    @staticmethod
    def split_blocks(diff_text: str) -> list[str]:
        """
        Split raw diff text into per-file segments.

        Args:
            diff_text: Complete diff output.

        Returns:
            Segment texts in order of appearance.
        """
        normalized = diff_text.replace("\r\n", "\n")
        blocks: list[str] = []
        current: list[str] = []

        def push_current(last: bool = False) -> None:
            lines = current
            # Only the input's final newline is a terminator; other empty
            # lines may be blank context lines
            if last and lines and lines[-1] == "":
                lines = lines[:-1]
            text = "\n".join(lines).lstrip("\n")
            if text.strip() and (
                text.startswith("diff --git ")
                or text.startswith("--- ")
                or text.startswith("+++ ")
                or text.startswith("Binary files ")
                or "\n+++ " in text
                or "\nBinary files " in text
            ):
                blocks.append(text)

        for line in normalized.split("\n"):
            if line.startswith("diff --git ") and current:
                push_current()
                current = []
            current.append(line)
        push_current(last=True)

        return blocks

    @staticmethod
    def validate_diff_hunk(diff_text: str) -> tuple[bool, Optional[str]]:
        """
        Check whether a file segment has a usable structure.

        This is a lenient validator: it only rejects clearly malformed
        segments.

        Args:
            diff_text: Text of one file segment.

        Returns:
            Tuple of (valid, reason). Reason is None for valid segments.
        """
        if not diff_text or not diff_text.strip():
            return False, "empty diff"

        lines = diff_text.split("\n")
        minus_idx = next((i for i, line in enumerate(lines) if line.startswith("--- ")), -1)
        plus_idx = next((i for i, line in enumerate(lines) if line.startswith("+++ ")), -1)

        if minus_idx == -1 and plus_idx == -1 and lines[0].startswith("diff --git "):
            # Mode changes and pure renames have no ---/+++ pair
            if any(marker in diff_text for marker in HUNKLESS_MARKERS):
                return True, None

        if minus_idx == -1 or plus_idx == -1:
            return False, "missing header lines"

        if plus_idx <= minus_idx:
            return False, "header order wrong"

        if any(marker in diff_text for marker in HUNKLESS_MARKERS):
            return True, None

        if not any(HUNK_HEADER_RE.match(line) for line in lines[plus_idx + 1:]):
            return False, "no hunk headers found"

        return True, None

    @staticmethod
    def _strip_prefix(raw: str, prefix: str) -> str:
        """Strip the a/ or b/ prefix from a header path."""
        raw = raw.strip()
        # git appends a tab and timestamp in some modes
        raw = raw.split("\t", 1)[0]
        if raw.startswith(prefix):
            return raw[len(prefix):]
        return raw

    @classmethod
    def _scan_block(cls, block: str) -> _BlockScan:
        """
        Walk one segment, extracting paths and counting hunk content lines.

        Hunk header line counts are tracked so that a ``---``/``+++``-looking
        content line is not mistaken for a header, and so that a hunk cut
        short by truncation is detected.
        """
        scan = _BlockScan()
        inside_hunk = False
        # Remaining (source, target) lines promised by the current hunk header
        remaining: Optional[list[int]] = None
        git_paths: Optional[tuple[str, str]] = None
        new_file = deleted_file = False
        rename_from = rename_to = None

        def close_hunk() -> None:
            if remaining is not None and (remaining[0] > 0 or remaining[1] > 0):
                scan.unterminated = True

        for line in block.split("\n"):
            expecting = remaining is not None and (remaining[0] > 0 or remaining[1] > 0)

            if inside_hunk and expecting and line[:1] in ("+", "-", " ", ""):
                if line.startswith("+"):
                    scan.additions += 1
                    remaining[1] -= 1
                elif line.startswith("-"):
                    scan.deletions += 1
                    remaining[0] -= 1
                else:
                    remaining[0] -= 1
                    remaining[1] -= 1
                continue

            if line.startswith("Binary files ") and line.endswith(" differ"):
                scan.is_binary = True
                match = BINARY_FILES_RE.match(line)
                if match and scan.old_path is None:
                    scan.old_path = cls._strip_prefix(match.group(1), "a/")
                    scan.new_path = cls._strip_prefix(match.group(2), "b/")
                continue

            if line.startswith("GIT binary patch"):
                scan.is_binary = True
                continue

            if line.startswith("--- "):
                close_hunk()
                remaining = None
                scan.old_path = cls._strip_prefix(line[4:], "a/")
                inside_hunk = False
                continue

            if line.startswith("+++ "):
                close_hunk()
                remaining = None
                scan.new_path = cls._strip_prefix(line[4:], "b/")
                inside_hunk = False
                continue

            if line.startswith("@@"):
                close_hunk()
                inside_hunk = True
                match = HUNK_HEADER_RE.match(line)
                if match:
                    source_len = int(match.group(2)) if match.group(2) is not None else 1
                    target_len = int(match.group(4)) if match.group(4) is not None else 1
                    remaining = [source_len, target_len]
                else:
                    remaining = None
                continue

            if line.startswith(METADATA_PREFIXES):
                close_hunk()
                remaining = None
                inside_hunk = False
                if line.startswith("diff --git "):
                    match = GIT_HEADER_RE.match(line)
                    if match:
                        git_paths = (match.group(1), match.group(2))
                elif line.startswith("new file mode"):
                    new_file = True
                elif line.startswith("deleted file mode"):
                    deleted_file = True
                elif line.startswith("rename from "):
                    rename_from = line[len("rename from "):].strip()
                elif line.startswith("rename to "):
                    rename_to = line[len("rename to "):].strip()
                continue

            # Content beyond the promised hunk length still counts
            if inside_hunk and not scan.is_binary:
                if line.startswith("+"):
                    scan.additions += 1
                elif line.startswith("-"):
                    scan.deletions += 1

        close_hunk()

        # Best-effort paths when the ---/+++ pair is missing
        if scan.old_path is None and scan.new_path is None:
            if rename_from or rename_to:
                scan.old_path = rename_from or ""
                scan.new_path = rename_to or ""
            elif git_paths is not None:
                scan.old_path = DEV_NULL if new_file else git_paths[0]
                scan.new_path = DEV_NULL if deleted_file else git_paths[1]

        if scan.is_binary:
            scan.additions = 0
            scan.deletions = 0
            scan.unterminated = False

        return scan

    @staticmethod
    def _parse_hunks(patched_file: PatchedFile) -> list[DiffHunk]:
        """
        Convert unidiff hunks into DiffHunk models.

        Args:
            patched_file: A PatchedFile from unidiff.

        Returns:
            DiffHunk list with line information.
        """
        hunks: list[DiffHunk] = []
        for hunk in patched_file:
            added_lines: list[int] = []
            removed_lines: list[int] = []

            for line in hunk:
                if line.is_added:
                    added_lines.append(line.target_line_no)
                elif line.is_removed:
                    removed_lines.append(line.source_line_no)

            hunks.append(
                DiffHunk(
                    source_start=hunk.source_start,
                    source_length=hunk.source_length,
                    target_start=hunk.target_start,
                    target_length=hunk.target_length,
                    added_lines=added_lines,
                    removed_lines=removed_lines,
                )
            )
        return hunks

    @classmethod
    def _structural_hunks(cls, block: str) -> tuple[list[DiffHunk], Optional[str]]:
        """
        Parse hunk structure with unidiff.

        Returns:
            Tuple of (hunks, error). Error is set when unidiff rejects the
            segment.
        """
        try:
            patch_set = PatchSet(block + "\n")
        except UnidiffParseError as e:
            return [], f"unparseable hunk: {e}"

        hunks: list[DiffHunk] = []
        for patched_file in patch_set:
            hunks.extend(cls._parse_hunks(patched_file))
        return hunks, None

    @staticmethod
    def make_key(old_path: str, new_path: str, index: int) -> str:
        """
        Derive a record key from its path pair.

        Args:
            old_path: Path before the change.
            new_path: Path after the change.
            index: Position of the record, used only when both paths are empty.

        Returns:
            Key string.
        """
        if old_path or new_path:
            return f"{old_path}->{new_path}"
        return f"file-{index}"

    @classmethod
    def _parse_block(cls, block: str, index: int) -> FileDiffRecord:
        """Build one record from one segment."""
        scan = cls._scan_block(block)
        old_path = scan.old_path or ""
        new_path = scan.new_path or ""

        if scan.is_binary:
            is_valid, reason = True, None
        else:
            is_valid, reason = cls.validate_diff_hunk(block)
            if is_valid and scan.unterminated:
                is_valid, reason = False, "unterminated hunk"

        hunks: list[DiffHunk] = []
        has_hunk_header = any(HUNK_HEADER_RE.match(line) for line in block.split("\n"))
        if is_valid and not scan.is_binary and has_hunk_header:
            hunks, error = cls._structural_hunks(block)
            if error is not None:
                is_valid, reason = False, error

        if not is_valid:
            logger.debug("Degraded diff segment", index=index, reason=reason, path=new_path or old_path)

        return FileDiffRecord(
            key=cls.make_key(old_path, new_path, index),
            old_path=old_path,
            new_path=new_path,
            diff_text=block,
            additions=scan.additions,
            deletions=scan.deletions,
            is_binary=scan.is_binary,
            is_valid=is_valid,
            invalid_reason=reason,
            hunks=hunks,
        )

    @classmethod
    def parse_string(cls, diff_content: str) -> list[FileDiffRecord]:
        """
        Parse diff content from a string.

        Args:
            diff_content: The diff content as a string.

        Returns:
            List of FileDiffRecord objects in input order.

        Raises:
            DiffParserError: If the input is not a string.
        """
        if not isinstance(diff_content, str):
            raise DiffParserError(f"Invalid diff content type: {type(diff_content).__name__}")

        records: list[FileDiffRecord] = []
        seen: dict[str, int] = {}
        for index, block in enumerate(cls.split_blocks(diff_content)):
            record = cls._parse_block(block, index)
            count = seen.get(record.key, 0)
            seen[record.key] = count + 1
            if count:
                record = record.model_copy(update={"key": f"{record.key}#{count}"})
            records.append(record)

        return records

    @classmethod
    def parse_file(cls, diff_path: Path, encoding: str = "utf-8") -> list[FileDiffRecord]:
        """
        Parse a diff file.

        Args:
            diff_path: Path to the diff file.
            encoding: File encoding (default: utf-8).

        Returns:
            List of FileDiffRecord objects.

        Raises:
            DiffParserError: If the file cannot be read.
        """
        try:
            content = diff_path.read_text(encoding=encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise DiffParserError(f"Failed to read diff file {diff_path}: {e}") from e
        return cls.parse_string(content)

    @classmethod
    def parse(cls, source: Union[Path, str]) -> list[FileDiffRecord]:
        """
        Parse diff from a file path or a diff string.

        Args:
            source: Either a Path to a diff file or raw diff text.

        Returns:
            List of FileDiffRecord objects.
        """
        if isinstance(source, Path):
            return cls.parse_file(source)
        elif isinstance(source, str):
            return cls.parse_string(source)
        else:
            raise DiffParserError(f"Invalid source type: {type(source)}")

    @classmethod
    def get_changed_line_numbers(
        cls,
        record: FileDiffRecord,
    ) -> tuple[list[int], list[int]]:
        """
        Get all changed line numbers from a record.

        Args:
            record: A FileDiffRecord object.

        Returns:
            Tuple of (added_lines, removed_lines).
        """
        added: list[int] = []
        removed: list[int] = []

        for hunk in record.hunks:
            added.extend(hunk.added_lines)
            removed.extend(hunk.removed_lines)

        return added, removed


def parse_unified_diff(raw: str) -> list[FileDiffRecord]:
    """Parse raw unified diff text into ordered per-file records."""
    return DiffParser.parse_string(raw)

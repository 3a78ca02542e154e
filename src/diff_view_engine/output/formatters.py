"""
Base formatter and formatter registry.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from diff_view_engine.models.diff import FileDiffRecord
    from diff_view_engine.models.report import DiffReport


class BaseFormatter(ABC):
    """
    Abstract base class for output formatters.

    Subclasses must implement format() and format_records() methods.
    """

    @abstractmethod
    def format(self, report: "DiffReport") -> str:
        """
        Format a diff report.

        Args:
            report: The diff report to format.

        Returns:
            Formatted string representation.
        """
        pass

    @abstractmethod
    def format_records(self, records: list["FileDiffRecord"]) -> str:
        """
        Format a list of file records.

        Args:
            records: List of records to format.

        Returns:
            Formatted string representation.
        """
        pass


def record_to_dict(record: "FileDiffRecord", include_diff: bool = False) -> dict[str, Any]:
    """Convert a record to a plain dictionary for serializing formatters."""
    data: dict[str, Any] = {
        "key": record.key,
        "old_path": record.old_path,
        "new_path": record.new_path,
        "change_type": record.change_type.value,
        "language": record.language,
        "additions": record.additions,
        "deletions": record.deletions,
        "is_binary": record.is_binary,
        "is_valid": record.is_valid,
    }
    if record.invalid_reason:
        data["invalid_reason"] = record.invalid_reason
    if include_diff:
        data["diff_text"] = record.diff_text
    return data


def report_to_dict(report: "DiffReport") -> dict[str, Any]:
    """Convert a report to a plain dictionary for serializing formatters."""
    return {
        "timestamp": report.timestamp.isoformat(),
        "diff_source": report.diff_source,
        "summary": {
            "files_changed": report.stats.file_count,
            "additions": report.stats.additions,
            "deletions": report.stats.deletions,
            "has_changes": report.stats.has_changes,
            "binary_files": report.binary_count,
            "invalid_files": len(report.invalid_records),
            "parse_duration_ms": report.parse_duration_ms,
        },
        "files": [record_to_dict(r) for r in report.records],
    }


# Formatter registry
_FORMATTERS: dict[str, type[BaseFormatter]] = {}


def register_formatter(name: str) -> Callable[[type[BaseFormatter]], type[BaseFormatter]]:
    """
    Decorator to register a formatter.

    Args:
        name: The name to register the formatter under.

    Returns:
        Decorator function.
    """
    def decorator(cls: type[BaseFormatter]) -> type[BaseFormatter]:
        _FORMATTERS[name] = cls
        return cls
    return decorator


def get_formatter(name: str) -> BaseFormatter:
    """
    Get a formatter instance by name.

    Args:
        name: The formatter name (e.g., "text", "json", "yaml").

    Returns:
        An instance of the requested formatter.

    Raises:
        ValueError: If the formatter name is not recognized.
    """
    # Import formatters to ensure they're registered
    from diff_view_engine.output import (  # noqa: F401
        json_output,
        text_output,
        yaml_output,
    )

    if name not in _FORMATTERS:
        available = ", ".join(_FORMATTERS.keys())
        raise ValueError(f"Unknown formatter: {name}. Available: {available}")

    return _FORMATTERS[name]()

"""
JSON output formatter.
"""

import json

from diff_view_engine.models.diff import FileDiffRecord
from diff_view_engine.models.report import DiffReport
from diff_view_engine.output.formatters import (
    BaseFormatter,
    record_to_dict,
    register_formatter,
    report_to_dict,
)


@register_formatter("json")
class JsonFormatter(BaseFormatter):
    """
    Format output as JSON.
    """

    def __init__(self, indent: int = 2) -> None:
        """
        Initialize the JSON formatter.

        Args:
            indent: JSON indentation level.
        """
        self.indent = indent

    def format(self, report: DiffReport) -> str:
        """Format a diff report as JSON."""
        return json.dumps(report_to_dict(report), indent=self.indent, default=str)

    def format_records(self, records: list[FileDiffRecord]) -> str:
        """Format a list of records as JSON."""
        data = {
            "total": len(records),
            "files": [record_to_dict(r) for r in records],
        }

        return json.dumps(data, indent=self.indent, default=str)

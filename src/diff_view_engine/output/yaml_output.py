"""
YAML output formatter.
"""

import yaml

from diff_view_engine.models.diff import FileDiffRecord
from diff_view_engine.models.report import DiffReport
from diff_view_engine.output.formatters import (
    BaseFormatter,
    record_to_dict,
    register_formatter,
    report_to_dict,
)


@register_formatter("yaml")
class YamlFormatter(BaseFormatter):
    """
    Format output as YAML.
    """

    def format(self, report: DiffReport) -> str:
        """Format a diff report as YAML."""
        return yaml.dump(
            report_to_dict(report),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )

    def format_records(self, records: list[FileDiffRecord]) -> str:
        """Format a list of records as YAML."""
        data = {
            "total": len(records),
            "files": [record_to_dict(r) for r in records],
        }

        return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

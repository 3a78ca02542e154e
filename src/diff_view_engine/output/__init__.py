"""
Output package for Diff View Engine.

This package contains formatters for displaying parsed diffs
in various formats (text, JSON, YAML).
"""

from diff_view_engine.output.formatters import (
    BaseFormatter,
    get_formatter,
)
from diff_view_engine.output.json_output import JsonFormatter
from diff_view_engine.output.text_output import TextFormatter
from diff_view_engine.output.yaml_output import YamlFormatter

__all__ = [
    "BaseFormatter",
    "JsonFormatter",
    "TextFormatter",
    "YamlFormatter",
    "get_formatter",
]

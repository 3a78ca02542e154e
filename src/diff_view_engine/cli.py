"""
Command-line interface for Diff View Engine.

This module provides the CLI using Click framework for argument parsing.
It exposes the engine's parse, statistics, focus and windowing operations
against a diff file so they can be inspected outside a UI host.
"""

import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import click
import structlog
from rich.console import Console
from rich.table import Table

from diff_view_engine import __version__
from diff_view_engine.config import Config, find_config_file, load_config
from diff_view_engine.errors import DiffParserError
from diff_view_engine.logging import configure_logging

if TYPE_CHECKING:
    from diff_view_engine.engine.session import DiffSession

console = Console()
logger = structlog.get_logger(__name__)


def _read_diff(diff: Path) -> str:
    """Read diff text from a file, or stdin when the path is '-'."""
    if str(diff) == "-":
        return sys.stdin.read()
    try:
        return diff.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DiffParserError(f"Failed to read diff file {diff}: {e}") from e


def _write_output(formatted_output: str, output: Optional[Path]) -> None:
    if output:
        output.write_text(formatted_output, encoding="utf-8")
        console.print(f"[green]Results written to:[/green] {output}")
    else:
        # Print directly to stdout to preserve ANSI codes from formatter
        sys.stdout.write(formatted_output)
        sys.stdout.flush()


def _load_session(config: Config, diff: Path) -> "DiffSession":
    from diff_view_engine.engine.session import DiffSession

    session = DiffSession(config=config)
    session.set_raw_diff(_read_diff(diff))
    return session


@click.group()
@click.version_option(version=__version__, prog_name="diff-view")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging.",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: bool) -> None:
    """Diff View Engine - Inspect how diffs are parsed, summarized and windowed."""
    ctx.ensure_object(dict)
    try:
        config_path = config or find_config_file(Path.cwd())
        loaded = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise click.Abort()

    if verbose:
        loaded = loaded.model_copy(
            update={"logging": loaded.logging.model_copy(update={"level": "DEBUG"})}
        )
    configure_logging(loaded.logging)
    ctx.obj["config"] = loaded
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option(
    "--diff",
    "-d",
    type=click.Path(allow_dash=True, path_type=Path),
    required=True,
    help="Path to diff file, or '-' for stdin.",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json", "yaml"]),
    default="text",
    help="Output format (default: text).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output file path. If not specified, prints to stdout.",
)
@click.pass_context
def parse(
    ctx: click.Context,
    diff: Path,
    output_format: str,
    output: Optional[Path],
) -> None:
    """Parse a diff and report every changed file."""
    from diff_view_engine.engine.stats import aggregate
    from diff_view_engine.models.report import DiffReport
    from diff_view_engine.output.formatters import get_formatter
    from diff_view_engine.parser.diff_parser import DiffParser

    try:
        raw = _read_diff(diff)
        started = time.perf_counter()
        records = DiffParser.parse_string(raw)
        duration_ms = (time.perf_counter() - started) * 1000

        report = DiffReport(
            diff_source="stdin" if str(diff) == "-" else str(diff),
            stats=aggregate(records),
            records=records,
            parse_duration_ms=duration_ms,
        )
        logger.debug("Parsed diff", files=len(records), duration_ms=round(duration_ms, 2))

        formatter = get_formatter(output_format)
        _write_output(formatter.format(report), output)

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if ctx.obj.get("verbose"):
            import traceback
            console.print(traceback.format_exc())
        raise click.Abort()


@cli.command()
@click.option(
    "--diff",
    "-d",
    type=click.Path(allow_dash=True, path_type=Path),
    required=True,
    help="Path to diff file, or '-' for stdin.",
)
@click.pass_context
def stats(ctx: click.Context, diff: Path) -> None:
    """Print aggregate change statistics for a diff."""
    try:
        session = _load_session(ctx.obj["config"], diff)
    except DiffParserError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise click.Abort()

    s = session.stats
    click.echo(f"{s.file_count} files changed, +{s.additions} -{s.deletions}")


@cli.command()
@click.option(
    "--diff",
    "-d",
    type=click.Path(allow_dash=True, path_type=Path),
    required=True,
    help="Path to diff file, or '-' for stdin.",
)
@click.argument("path")
@click.pass_context
def locate(ctx: click.Context, diff: Path, path: str) -> None:
    """Find the file in a diff that PATH refers to."""
    try:
        session = _load_session(ctx.obj["config"], diff)
    except DiffParserError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise click.Abort()

    signal = session.focus_file(path)
    if signal is None:
        console.print(f"[yellow]No file matches:[/yellow] {path}")
        ctx.exit(1)

    record = session.records[signal.index]
    click.echo(f"{signal.index}\t{record.display_path}")


@cli.command()
@click.option(
    "--diff",
    "-d",
    type=click.Path(allow_dash=True, path_type=Path),
    required=True,
    help="Path to diff file, or '-' for stdin.",
)
@click.option(
    "--scroll",
    type=int,
    default=0,
    help="Scroll offset from the top of the list.",
)
@click.option(
    "--viewport",
    type=int,
    default=800,
    help="Height of the visible area.",
)
@click.option(
    "--expand-all",
    is_flag=True,
    help="Expand every file before computing the window.",
)
@click.pass_context
def window(
    ctx: click.Context,
    diff: Path,
    scroll: int,
    viewport: int,
    expand_all: bool,
) -> None:
    """Show which files a virtualized view would render."""
    try:
        session = _load_session(ctx.obj["config"], diff)
    except DiffParserError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise click.Abort()

    if expand_all:
        session.view_state.expand_all_now()

    render_window = session.window.visible_range(scroll, viewport)

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("File")
    table.add_column("Top", justify="right")
    table.add_column("Height", justify="right")
    table.add_column("State")
    for item in render_window.items:
        record = session.records[item.index]
        state = "collapsed" if session.view_state.is_collapsed(item.key) else "expanded"
        table.add_row(str(item.index), record.display_path, str(item.start), str(item.size), state)

    console.print(table)
    console.print(
        f"Rendering {render_window.start}..{render_window.end} "
        f"of {len(session.records)} files, total height {render_window.total_size}"
    )


def main() -> None:
    """Main entry point for the CLI."""
    cli(obj={})

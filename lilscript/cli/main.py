"""Main CLI entry point for lilscript.

Usage:
    python -m lilscript.cli convert -i script.tex -o script.md       # Convert a script
    python -m lilscript.cli convert -i script.tex -o script.md --stats
    python -m lilscript.cli stats -i script.tex                      # Word counts only
    python -m lilscript.cli -v convert -i script.tex -o script.md    # Verbose logging

Formats are chosen by file extension. Only .tex -> .md is implemented.
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..analysis import analyze, analyze_sections
from ..config import load_config
from ..converter import convert_file, read_document
from ..errors import LilscriptError
from ..ingestion import detect_format, parse_document
from ..models import Script

console = Console()

# Mapping from -v count to logging level
_VERBOSITY_MAP = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


def _configure_logging(verbosity: int) -> None:
    """Route the ``lilscript`` logger through rich on stderr."""
    level = _VERBOSITY_MAP.get(verbosity, logging.DEBUG)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=level <= logging.DEBUG,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("lilscript")
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)


def print_stats(script: Script) -> None:
    """Print a word-count table for the script."""
    table = Table(title="Word Count")
    table.add_column("Section", style="cyan")
    table.add_column("Spoken", justify="right")
    table.add_column("Unspoken", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Density", justify="right", style="green")

    for label, stats in analyze_sections(script):
        density = f"{100 * stats.density:.2f}%" if stats.total_words else "-"
        table.add_row(
            label or "(untitled)",
            f"{stats.spoken_words:,}",
            f"{stats.unspoken_words:,}",
            f"{stats.total_words:,}",
            density,
        )

    console.print(table)
    console.print(f"\n[bold]Words:[/bold] {analyze(script)}")


def cmd_convert(args: argparse.Namespace) -> int:
    """Convert a script file to another format."""
    try:
        config = load_config(args.config)
        script = convert_file(args.infile, args.outfile, config)
    except (OSError, LilscriptError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if script.header.title:
        console.print(f"[bold]Title:[/bold] {script.header.title}")
    console.print(
        f"Converted {Path(args.infile).name} -> {Path(args.outfile).name} "
        f"({len(script.blocks)} blocks)"
    )

    if args.stats:
        print_stats(script)

    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Print word counts and speech density for a script."""
    infile = Path(args.infile)

    try:
        config = load_config(args.config)
        source = detect_format(infile)
        text = read_document(infile)
        script = parse_document(text, source, config.parser)
    except (OSError, LilscriptError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if script.header.title:
        console.print(f"[bold]Title:[/bold] {script.header.title}")
    if script.speakers:
        console.print(f"[bold]Speakers:[/bold] {', '.join(script.speakers)}")
    print_stats(script)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lilscript",
        description="Convert ASMR role-play scripts between LaTeX and Markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        help="Path to a YAML config file (default: $LILSCRIPT_CONFIG or ./lilscript.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # convert command
    convert_parser = subparsers.add_parser("convert", help="Convert a script file")
    convert_parser.add_argument(
        "--infile", "-i",
        required=True,
        help="The input file to operate on",
    )
    convert_parser.add_argument(
        "--outfile", "-o",
        required=True,
        help="The file to output the results to",
    )
    convert_parser.add_argument(
        "--stats",
        action="store_true",
        help="Also print word counts and speech density",
    )
    convert_parser.set_defaults(func=cmd_convert)

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show word counts for a script")
    stats_parser.add_argument(
        "--infile", "-i",
        required=True,
        help="The input file to analyze",
    )
    stats_parser.set_defaults(func=cmd_stats)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    load_dotenv(find_dotenv(usecwd=True))

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    _configure_logging(args.verbose)
    return args.func(args)

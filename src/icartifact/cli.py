#!/usr/bin/env python3
"""
icartifact - Command Line Interface

Runs the excessive ICA component check on one EEGLAB recording and prints
the result.
"""

import argparse
import math
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from icartifact import __version__
from icartifact.detection import DetectionConfig, DetectionResult, detect
from icartifact.errors import IcArtifactError
from icartifact.io import load_eeglab_set
from icartifact.reporting import (
    FigureRenderer,
    generate_detection_report,
    save_result_table,
)
from icartifact.utils.config import load_detection_config, merge_overrides
from icartifact.utils.logging import configure_logger, message

console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="icartifact",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Flag ICA components that dominate a single EEG sensor.",
        epilog="""
Examples:
  icartifact detect sub-01_rest.set
  icartifact detect sub-01_rest.set --threshold 4 --output-dir figures
  icartifact detect sub-01_rest.set --target-label E17 --csv results.csv
""",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    detect_parser = subparsers.add_parser(
        "detect", help="Check one EEGLAB .set file for an excessive component"
    )
    detect_parser.add_argument("input", type=Path, help="EEGLAB .set file with ICA weights")
    detect_parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Cutoff for the maximum z-score (default: 5.0)",
    )
    detect_parser.add_argument(
        "--target-label",
        default=None,
        help="Label of the sensor to check (default: E55)",
    )
    detect_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for the figure (default: current directory)",
    )
    detect_parser.add_argument(
        "--config", type=Path, default=None, help="YAML file with a 'detection' section"
    )
    detect_parser.add_argument("--csv", type=Path, default=None, help="Write the report row to CSV")
    detect_parser.add_argument("--pdf", type=Path, default=None, help="Write a PDF summary")
    detect_parser.add_argument(
        "--no-figure", action="store_true", help="Skip rendering the figure"
    )
    detect_parser.add_argument(
        "--verbose",
        "-v",
        default=None,
        help="Log level (DEBUG, INFO, WARNING, ...)",
    )

    subparsers.add_parser("version", help="Show version information")

    return parser


def _print_result(result: DetectionResult) -> None:
    table = Table(title="Excessive ICA Component Check", show_header=True)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    for column, value in result.to_record().items():
        if isinstance(value, bool):
            shown = "[red]EXCESSIVE[/red]" if value else "[green]ok[/green]"
        elif isinstance(value, float):
            shown = "n/a" if math.isnan(value) else f"{value:.3f}"
        else:
            shown = str(value) or "-"
        table.add_row(column, shown)

    console.print(table)


def cmd_detect(args) -> int:
    """Run the check on one file."""
    configure_logger(args.verbose)

    try:
        config = load_detection_config(args.config) if args.config else DetectionConfig()
        config = merge_overrides(
            config,
            threshold=args.threshold,
            target_label=args.target_label,
            output_dir=args.output_dir,
        )
        loaded = load_eeglab_set(args.input)
        renderer = None if args.no_figure else FigureRenderer(config.output_dir)
        result = detect(loaded.layout, loaded.mixing, loaded.source_id, config, renderer)
    except (IcArtifactError, FileNotFoundError) as e:
        message("error", str(e))
        return 1

    _print_result(result)

    if args.csv:
        save_result_table(result, args.csv)
    if args.pdf:
        generate_detection_report(result, args.pdf)

    return 0


def cmd_version(_args) -> int:
    console.print(f"icartifact {__version__}")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "detect":
        return cmd_detect(args)
    if args.command == "version":
        return cmd_version(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())

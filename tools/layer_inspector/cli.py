"""CLI interface for Layer Inspector."""

import sys

import click
from rich.console import Console

from shared.cli import handle_errors, info, success
from shared.logger import setup_logger

from .archive import walk_archive
from .report import (
    DECORATION_WIDTH,
    DEFAULT_LINE_WIDTH,
    DEFAULT_MAX_FILES,
    HUMANIZED_WIDTH,
    build_report,
    render_report,
)

console = Console(soft_wrap=True, highlight=False)


@click.command()
@click.option(
    "--file",
    "-f",
    "archive_path",
    type=click.Path(exists=True, dir_okay=False, allow_dash=True),
    default="-",
    show_default=True,
    help="Image archive written by `docker save` (- reads stdin)",
)
@click.option(
    "--max-files",
    "-n",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_FILES,
    show_default=True,
    help="Maximum files listed per layer",
)
@click.option(
    "--line-width",
    "-l",
    type=click.IntRange(min=HUMANIZED_WIDTH + DECORATION_WIDTH),
    default=DEFAULT_LINE_WIDTH,
    show_default=True,
    help="Screen line width",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@handle_errors
def main(archive_path: str, max_files: int, line_width: int, verbose: bool):
    """
    Layer Inspector - Show what makes each layer of a Docker image big.

    Reads an uncompressed image archive and prints, for every layer, the
    build command that created it and its largest files.

    Examples:

        \b
        # Inspect a saved image
        docker save myapp:latest -o myapp.tar
        layer-inspector -f myapp.tar

        \b
        # Stream from docker, top 20 files per layer
        docker save nginx:alpine | layer-inspector -n 20

        \b
        # Narrow terminal
        layer-inspector -f myapp.tar --line-width 80
    """
    # Setup logging
    log_level = "DEBUG" if verbose else "INFO"
    setup_logger(__name__, level=log_level)

    info(f"Inspecting image archive: {'stdin' if archive_path == '-' else archive_path}")
    with click.open_file(archive_path, "rb") as archive_file:
        archive = walk_archive(archive_file)
    reports = build_report(archive, max_files=max_files, line_width=line_width)

    render_report(reports, console, line_width=line_width)

    success("Inspection completed!")
    sys.exit(0)


if __name__ == "__main__":
    main()

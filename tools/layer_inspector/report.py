"""Per-layer report of the largest files."""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from rich.console import COLOR_SYSTEMS, Console
from rich.style import Style

from shared.logger import get_logger

from .archive import FileEntry, ImageArchive
from .exceptions import MissingLayerError
from .history import reconcile

logger = get_logger(__name__)

SHELL_PREFIX = "/bin/sh -c "
SIZE_UNITS = ["B", "kB", "MB", "GB", "TB", "PB", "EB"]

# Width of the right-aligned size column and of the " \t $ " decoration.
HUMANIZED_WIDTH = 7
DECORATION_WIDTH = 4

DEFAULT_MAX_FILES = 10
DEFAULT_LINE_WIDTH = 100


def format_bytes(bytes_val: int) -> str:
    """
    Format bytes into human-readable string.

    Uses SI units: one decimal below 10 of a unit, none above.

    Args:
        bytes_val: Number of bytes

    Returns:
        Human-readable string (e.g., "1.5 kB", "83 MB")
    """
    if bytes_val < 10:
        return f"{bytes_val} B"

    value = float(bytes_val)
    unit = SIZE_UNITS[0]
    for unit in SIZE_UNITS:
        if value < 1000:
            break
        value /= 1000

    value = int(value * 10 + 0.5) / 10
    if value < 10:
        return f"{value:.1f} {unit}"
    return f"{value:.0f} {unit}"


def pad_size(bytes_val: int) -> str:
    """Format bytes right-aligned to the size column."""
    return format_bytes(bytes_val).rjust(HUMANIZED_WIDTH)


@dataclass(frozen=True)
class LayerReport:
    """One block of the report: a build command and its largest files."""

    command: str
    total_size: int
    files: List[FileEntry]

    @property
    def size_human(self) -> str:
        """Get human-readable layer size."""
        return format_bytes(self.total_size)


def command_width(line_width: int) -> int:
    """
    Get how much of a command fits on the summary line.

    Raises:
        ValueError: If the line is too narrow for the size column
    """
    width = line_width - HUMANIZED_WIDTH - DECORATION_WIDTH
    if width < 0:
        raise ValueError(
            f"Line width must be at least {HUMANIZED_WIDTH + DECORATION_WIDTH}, got {line_width}"
        )
    return width


def display_command(created_by: str, width: int) -> str:
    """
    Derive the command shown for a history step.

    The shell wrapper is dropped when a command follows it. The result is cut
    to at most ``width`` UTF-8 bytes with no ellipsis; a multi-byte character
    split by the cut, or a lone surrogate, shows up as U+FFFD.

    Args:
        created_by: Raw created_by value from the image history
        width: Maximum command width in bytes

    Returns:
        Command text for the summary line
    """
    _, marker, command = created_by.partition(SHELL_PREFIX)
    if not marker or not command:
        command = created_by

    encoded = command.encode("utf-8", errors="surrogatepass")
    return encoded[:width].decode("utf-8", errors="replace")


def rank_files(files: Iterable[FileEntry]) -> List[FileEntry]:
    """Sort files largest first, ties broken by the raw bytes of the name."""
    return sorted(files, key=lambda f: (-f.size, f.name.encode("utf-8", errors="surrogateescape")))


def build_report(
    archive: ImageArchive,
    max_files: int = DEFAULT_MAX_FILES,
    line_width: int = DEFAULT_LINE_WIDTH,
) -> List[LayerReport]:
    """
    Build the report blocks for an image archive.

    The report is built in full before anything is printed, so a broken
    archive never produces partial output.

    Args:
        archive: Result of walking the image archive
        max_files: Maximum files listed per layer
        line_width: Total display line width

    Returns:
        One LayerReport per layer, in manifest order

    Raises:
        ManifestError: If the manifest lists no images
        ReconciliationError: If history and layers cannot be paired
        MissingLayerError: If a manifest layer is not in the archive
        ValueError: If max_files is negative or line_width too small
    """
    if max_files < 0:
        raise ValueError(f"max_files must not be negative, got {max_files}")
    width = command_width(line_width)

    manifest = archive.manifest
    if manifest.repo_tags:
        logger.info(f"Image tags: {', '.join(manifest.repo_tags)}")

    reports = []
    for pair in reconcile(archive.history, manifest):
        layer = archive.layers.get(pair.layer_path)
        if layer is None:
            raise MissingLayerError(f"Layer {pair.layer_path} listed in manifest was not found in archive")

        reports.append(
            LayerReport(
                command=display_command(pair.step.created_by, width),
                total_size=layer.total_size,
                files=rank_files(layer.files)[:max_files],
            )
        )

    logger.info(f"Built report for {len(reports)} layers")
    return reports


def display_name(name: str) -> str:
    """Get a printable form of a file name; undecodable bytes become U+FFFD."""
    return name.encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace")


def _write_line(console: Console, line: str, style: Optional[str] = None) -> None:
    # Console.print expands tabs, so lines go straight to the console file.
    if style and console.color_system and not console.no_color:
        line = Style.parse(style).render(line, color_system=COLOR_SYSTEMS[console.color_system])
    console.file.write(line + "\n")


def render_report(
    reports: Iterable[LayerReport],
    console: Console,
    line_width: int = DEFAULT_LINE_WIDTH,
) -> None:
    """
    Print report blocks.

    Lines keep their literal tab separators. The summary line is blue when
    the console supports color.

    Args:
        reports: Blocks from build_report()
        console: Console to print to
        line_width: Width of the separator lines
    """
    separator = "=" * line_width

    for report in reports:
        _write_line(console, "")
        _write_line(console, separator)
        _write_line(console, f"{report.size_human.rjust(HUMANIZED_WIDTH)} \t $ {report.command}", style="blue")
        _write_line(console, separator)
        for entry in report.files:
            _write_line(console, f"{pad_size(entry.size)} \t {display_name(entry.name)}")
    console.file.flush()

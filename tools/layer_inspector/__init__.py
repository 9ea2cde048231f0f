"""Layer Inspector - Find the largest files in each layer of a saved Docker image."""

from .archive import FileEntry, ImageArchive, Layer, walk_archive
from .report import LayerReport, build_report, render_report

__all__ = [
    "FileEntry",
    "ImageArchive",
    "Layer",
    "LayerReport",
    "build_report",
    "render_report",
    "walk_archive",
]

"""Builders for in-memory image archives used by the tests."""

import io
import json
import tarfile
from typing import Any, Dict, Iterable, List, Optional, Tuple

DIRECTORY = None


class Symlink:
    """Marks a make_tar entry as a symbolic link to target."""

    def __init__(self, target: str):
        self.target = target


def add_file(tar: tarfile.TarFile, name: str, data: bytes) -> None:
    """Add a regular file with the given content."""
    info = tarfile.TarInfo(name)
    info.size = len(data)
    tar.addfile(info, fileobj=io.BytesIO(data))


def add_symlink(tar: tarfile.TarFile, name: str, target: str) -> None:
    """Add a symbolic link entry."""
    info = tarfile.TarInfo(name)
    info.type = tarfile.SYMTYPE
    info.linkname = target
    tar.addfile(info)


def add_directory(tar: tarfile.TarFile, name: str) -> None:
    """Add a directory entry."""
    info = tarfile.TarInfo(name)
    info.type = tarfile.DIRTYPE
    info.mode = 0o755
    tar.addfile(info)


def make_tar(entries: Iterable[Tuple[str, Any]], **tar_options) -> bytes:
    """
    Build a tar from (name, content) pairs.

    Content DIRECTORY adds a directory and a Symlink adds a symbolic link.
    Extra keyword arguments go to tarfile.open(), e.g. format and encoding.
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", **tar_options) as tar:
        for name, data in entries:
            if data is DIRECTORY:
                add_directory(tar, name)
            elif isinstance(data, Symlink):
                add_symlink(tar, name, data.target)
            else:
                add_file(tar, name, data)
    return buf.getvalue()


def make_layer(entries: Iterable[Tuple[str, Optional[int]]], **tar_options) -> bytes:
    """Build a layer tar from (path, size) pairs; size DIRECTORY adds a directory."""
    return make_tar(
        ((name, DIRECTORY if size is DIRECTORY else b"x" * size) for name, size in entries),
        **tar_options,
    )


def to_json(obj) -> bytes:
    return json.dumps(obj).encode("utf-8")


def make_image(
    history: List[dict],
    layers: Dict[str, Any],
    manifest: Optional[list] = None,
    config_name: str = "abc123.json",
) -> bytes:
    """
    Build a `docker save` style archive.

    Layers are written in the given order, then the config, then manifest.json.
    Unless a manifest is given, it lists the layers in the same order.
    """
    if manifest is None:
        manifest = [
            {
                "Config": config_name,
                "RepoTags": ["test:latest"],
                "Layers": list(layers),
            }
        ]

    entries: List[Tuple[str, Any]] = []
    for path, data in layers.items():
        entries.append((path.rsplit("/", 1)[0], DIRECTORY))
        entries.append((path, data))
    entries.append((config_name, to_json({"architecture": "amd64", "history": history})))
    entries.append(("manifest.json", to_json(manifest)))
    entries.append(("repositories", to_json({"test": {"latest": "abc"}})))
    return make_tar(entries)

"""Reading of `docker save` image archives."""

import json
import tarfile
from dataclasses import dataclass, field
from typing import IO, Any, Dict, List, Optional, Type

from shared.logger import get_logger

from .exceptions import ArchiveFormatError, ImageConfigError, ManifestError

logger = get_logger(__name__)

MANIFEST_NAME = "manifest.json"
LAYER_SUFFIX = "/layer.tar"
CONFIG_SUFFIX = ".json"


@dataclass(frozen=True)
class FileEntry:
    """A non-directory entry of a layer archive."""

    name: str
    size: int


@dataclass(frozen=True)
class Layer:
    """Files of one layer, in archive order."""

    files: List[FileEntry]
    total_size: int


@dataclass(frozen=True)
class ManifestEntry:
    """One image described by manifest.json."""

    config: str
    repo_tags: List[str]
    layers: List[str]


@dataclass(frozen=True)
class HistoryStep:
    """One build step from the image config history."""

    empty_layer: bool
    created_by: str


@dataclass(frozen=True)
class ImageArchive:
    """Everything collected from a single pass over an image archive."""

    manifests: List[ManifestEntry]
    history: List[HistoryStep] = field(default_factory=list)
    layers: Dict[str, Layer] = field(default_factory=dict)

    @property
    def manifest(self) -> ManifestEntry:
        """
        Get the manifest entry the report is built from.

        Returns:
            The first entry of manifest.json

        Raises:
            ManifestError: If manifest.json lists no images
        """
        if not self.manifests:
            raise ManifestError("manifest.json does not describe any image")
        return self.manifests[0]


def read_layer(fileobj: IO[bytes]) -> Layer:
    """
    List the files of a nested layer archive.

    Only headers are read; file contents are skipped over.

    Args:
        fileobj: Stream positioned at the start of the layer tar

    Returns:
        Layer with its non-directory entries in archive order

    Raises:
        ArchiveFormatError: If the layer tar is malformed or truncated
    """
    files: List[FileEntry] = []
    total = 0

    try:
        with tarfile.open(fileobj=fileobj, mode="r|") as layer_tar:
            for member in layer_tar:
                if member.isdir():
                    continue
                files.append(FileEntry(name=member.name, size=member.size))
                total += member.size
            _ensure_complete(layer_tar, "layer archive")
    except tarfile.TarError as e:
        raise ArchiveFormatError(f"Cannot read layer archive: {e}") from e

    return Layer(files=files, total_size=total)


def walk_archive(fileobj: IO[bytes]) -> ImageArchive:
    """
    Walk an image archive once and collect manifest, history and layers.

    Entries are dispatched by name, first match wins:
    ``*/layer.tar`` is listed as a layer, ``manifest.json`` is the manifest,
    any other ``*.json`` is an image config whose history replaces the one
    seen before. Everything else is ignored.

    Args:
        fileobj: Binary stream of an uncompressed tar (may be non-seekable)

    Returns:
        ImageArchive with the collected data

    Raises:
        ArchiveFormatError: If the archive or a layer archive is malformed
        ManifestError: If manifest.json is missing or malformed
        ImageConfigError: If an image config is malformed
    """
    manifests: Optional[List[ManifestEntry]] = None
    history: List[HistoryStep] = []
    layers: Dict[str, Layer] = {}

    try:
        with tarfile.open(fileobj=fileobj, mode="r|") as archive:
            for member in archive:
                if member.isdir():
                    continue

                name = member.name
                if name.endswith(LAYER_SUFFIX):
                    # docker save links duplicate layers to the first copy
                    if not member.isfile() or member.size == 0:
                        logger.debug(f"Empty layer entry: {name}")
                        layers[name] = Layer(files=[], total_size=0)
                    else:
                        logger.debug(f"Reading layer archive: {name} ({member.size} bytes)")
                        layers[name] = read_layer(archive.extractfile(member))

                elif not member.isfile():
                    logger.debug(f"Skipping non-regular entry: {name}")

                elif name == MANIFEST_NAME:
                    logger.debug(f"Reading manifest: {name}")
                    manifests = _parse_manifest(_load_json(archive, member, ManifestError))

                elif name.endswith(CONFIG_SUFFIX):
                    logger.debug(f"Reading image config: {name}")
                    config = _load_json(archive, member, ImageConfigError)
                    if not isinstance(config, dict):
                        raise ImageConfigError(f"Image config {name} must be a JSON object")
                    if "history" in config:
                        history = _parse_history(name, config["history"])

                else:
                    logger.debug(f"Skipping entry: {name}")

            _ensure_complete(archive, "image archive")
    except tarfile.TarError as e:
        raise ArchiveFormatError(f"Cannot read image archive: {e}") from e

    if manifests is None:
        raise ManifestError(f"{MANIFEST_NAME} not found in archive")

    logger.info(f"Found {len(layers)} layer archives and {len(history)} history steps")
    return ImageArchive(manifests=manifests, history=history, layers=layers)


def _ensure_complete(tar: tarfile.TarFile, what: str) -> None:
    """
    Reject a stream that ended inside a header or member data.

    In stream mode tarfile treats a short read at a header position as the
    end of the archive, so compare what was consumed with where the next
    header should have started.
    """
    consumed = tar.fileobj.tell()
    if consumed < tar.offset or (consumed - tar.offset) % tarfile.BLOCKSIZE:
        raise ArchiveFormatError(f"Truncated {what}: unexpected end of data")


def _load_json(archive: tarfile.TarFile, member: tarfile.TarInfo, exc_type: Type[Exception]) -> Any:
    """Decode the JSON content of an archive member."""
    stream = archive.extractfile(member)
    try:
        return json.load(stream)
    except ValueError as e:
        raise exc_type(f"Invalid JSON in {member.name}: {e}") from e


def _parse_manifest(data: Any) -> List[ManifestEntry]:
    if not isinstance(data, list):
        raise ManifestError(f"{MANIFEST_NAME} must be a JSON array")

    entries = []
    for item in data:
        if not isinstance(item, dict):
            raise ManifestError(f"Invalid entry in {MANIFEST_NAME}: {item!r}")
        config = item.get("Config") or ""
        if not isinstance(config, str):
            raise ManifestError(f"Config in {MANIFEST_NAME} must be a string: {config!r}")
        entries.append(
            ManifestEntry(
                config=config,
                repo_tags=_string_list(item.get("RepoTags"), "RepoTags"),
                layers=_string_list(item.get("Layers"), "Layers"),
            )
        )
    return entries


def _string_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestError(f"{key} in {MANIFEST_NAME} must be an array of strings: {value!r}")
    return list(value)


def _parse_history(name: str, data: Any) -> List[HistoryStep]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ImageConfigError(f"History in {name} must be a JSON array")

    steps = []
    for item in data:
        if not isinstance(item, dict):
            raise ImageConfigError(f"Invalid history entry in {name}: {item!r}")

        empty_layer = item.get("empty_layer")
        if empty_layer is None:
            empty_layer = False
        elif not isinstance(empty_layer, bool):
            raise ImageConfigError(f"empty_layer in {name} must be a boolean: {empty_layer!r}")

        created_by = item.get("created_by")
        if created_by is None:
            created_by = ""
        elif not isinstance(created_by, str):
            raise ImageConfigError(f"created_by in {name} must be a string: {created_by!r}")

        steps.append(HistoryStep(empty_layer=empty_layer, created_by=created_by))
    return steps

"""Exceptions raised while inspecting an image archive."""


class LayerInspectorError(Exception):
    """Base exception for all layer inspector errors."""

    pass


class ArchiveFormatError(LayerInspectorError):
    """Raised when the outer archive or a nested layer archive is malformed."""

    pass


class ManifestError(LayerInspectorError):
    """Raised when manifest.json is missing, malformed or empty."""

    pass


class ImageConfigError(LayerInspectorError):
    """Raised when the image config (history) JSON is malformed."""

    pass


class ReconciliationError(LayerInspectorError):
    """Raised when history steps and manifest layers cannot be paired."""

    pass


class MissingLayerError(LayerInspectorError):
    """Raised when a layer declared in the manifest is not in the archive."""

    pass

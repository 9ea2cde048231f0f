"""Pairing of image history with manifest layers."""

from dataclasses import dataclass
from typing import List

from shared.logger import get_logger

from .archive import HistoryStep, ManifestEntry
from .exceptions import ReconciliationError

logger = get_logger(__name__)


@dataclass(frozen=True)
class LayerStep:
    """A build step together with the layer archive it produced."""

    step: HistoryStep
    layer_path: str


def layer_steps(history: List[HistoryStep]) -> List[HistoryStep]:
    """Get the steps that produced a layer, in build order."""
    return [step for step in history if not step.empty_layer]


def reconcile(history: List[HistoryStep], manifest: ManifestEntry) -> List[LayerStep]:
    """
    Pair non-empty history steps with manifest layer paths by position.

    The i-th step that produced a layer belongs to the i-th layer listed in
    the manifest. There is no key to match on, so the counts must agree.

    Args:
        history: Full image history in build order
        manifest: Manifest entry with the ordered layer paths

    Returns:
        One LayerStep per manifest layer, in manifest order

    Raises:
        ReconciliationError: If step and layer counts differ
    """
    steps = layer_steps(history)
    skipped = len(history) - len(steps)
    logger.debug(f"Dropped {skipped} empty history steps, {len(steps)} remain")

    if len(steps) != len(manifest.layers):
        raise ReconciliationError(
            f"Image history has {len(steps)} non-empty steps "
            f"but the manifest lists {len(manifest.layers)} layers"
        )

    return [LayerStep(step=step, layer_path=path) for step, path in zip(steps, manifest.layers)]

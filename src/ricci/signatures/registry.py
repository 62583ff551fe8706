# ─────────────────────────────────────────────────────────────────────
# RICCI — Signature Category Multiplexer
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Category dispatch and the all-categories convenience call.

Output order is rigidity, fragmentation, inflation, distortion; inside a
category the three detectors run in their declared order. The order is
stable but carries no ranking between signatures.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ..core.exceptions import InsufficientDataError
from ..core.types import Signature, SignatureCategory
from .base import SignatureSnapshot, logger
from .distortion import DistortionThresholds, detect_distortion
from .fragmentation import FragmentationThresholds, detect_fragmentation
from .inflation import InflationThresholds, detect_inflation
from .rigidity import RigidityThresholds, detect_rigidity

CATEGORY_ORDER: tuple[SignatureCategory, ...] = (
    SignatureCategory.RIGIDITY,
    SignatureCategory.FRAGMENTATION,
    SignatureCategory.INFLATION,
    SignatureCategory.DISTORTION,
)

CATEGORY_DETECTORS: dict[SignatureCategory, Callable[..., list[Signature]]] = {
    SignatureCategory.RIGIDITY: detect_rigidity,
    SignatureCategory.FRAGMENTATION: detect_fragmentation,
    SignatureCategory.INFLATION: detect_inflation,
    SignatureCategory.DISTORTION: detect_distortion,
}


@dataclass(frozen=True)
class DetectionThresholds:
    """Thresholds for every detector, grouped by category."""

    rigidity: RigidityThresholds = field(default_factory=RigidityThresholds)
    fragmentation: FragmentationThresholds = field(default_factory=FragmentationThresholds)
    inflation: InflationThresholds = field(default_factory=InflationThresholds)
    distortion: DistortionThresholds = field(default_factory=DistortionThresholds)

    def for_category(self, category: SignatureCategory):
        return getattr(self, SignatureCategory(category).value)


def detect_category(
    snapshot: SignatureSnapshot,
    category: SignatureCategory | str,
    thresholds=None,
) -> list[Signature]:
    """Run the three detectors of one category.

    Parameters
    ----------
    category : SignatureCategory | str — e.g. ``"inflation"``.
    thresholds : the category's threshold container, or None for defaults.
    """
    try:
        category = SignatureCategory(category)
    except ValueError as exc:
        raise ValueError(
            f"Unknown signature category {category!r}. "
            f"Choose from: {[c.value for c in CATEGORY_ORDER]}"
        ) from exc
    return CATEGORY_DETECTORS[category](snapshot, thresholds)


def detect_all(
    snapshot: SignatureSnapshot,
    thresholds: DetectionThresholds | None = None,
) -> list[Signature]:
    """Concatenate all four categories in fixed order.

    A category that runs out of data contributes nothing; it never aborts
    the other categories.
    """
    thresholds = thresholds or DetectionThresholds()
    signatures: list[Signature] = []
    for category in CATEGORY_ORDER:
        try:
            signatures.extend(
                detect_category(snapshot, category, thresholds.for_category(category))
            )
        except InsufficientDataError as exc:
            logger.debug("Skipping %s for %s: %s", category.value, snapshot.point.id, exc)
    return signatures

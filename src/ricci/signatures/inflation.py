# ─────────────────────────────────────────────────────────────────────
# RICCI — Inflation Detectors
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Inflation: structure growing without anchoring.

  - Structure Hyperexpansion — autopoietic drive far above constraint with
    neither circumspection nor sapience holding it back.
  - Field Hypercoherence — saturated coherence sealed off from external flux.
  - Boundary Hyperasymmetry — the actor's mass grows while the mass of
    everyone else drains.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

import numpy as np

from ..core.types import Signature, SignatureType
from ..geometry.derivatives import mean_step
from ..geometry.scalars import (
    autopoietic_potential,
    constraining_force,
    vector_norm_first_n,
)
from .base import MIN_HISTORY, SignatureSnapshot, fx, logger


@dataclass(frozen=True)
class HyperexpansionThresholds:
    autopoietic_ratio: float = 5.0
    circumspection: float = 0.1
    sapience: float = 0.2


@dataclass(frozen=True)
class HypercoherenceThresholds:
    coherence_max: float = 0.95
    leakage: float = 0.1
    window: timedelta = timedelta(hours=4)


@dataclass(frozen=True)
class HyperasymmetryThresholds:
    growth: float = 0.5
    drain: float = -0.2
    window: timedelta = timedelta(hours=6)


@dataclass(frozen=True)
class InflationThresholds:
    hyperexpansion: HyperexpansionThresholds = field(
        default_factory=HyperexpansionThresholds
    )
    hypercoherence: HypercoherenceThresholds = field(
        default_factory=HypercoherenceThresholds
    )
    hyperasymmetry: HyperasymmetryThresholds = field(
        default_factory=HyperasymmetryThresholds
    )


def detect_structure_hyperexpansion(
    snapshot: SignatureSnapshot,
    thresholds: HyperexpansionThresholds = HyperexpansionThresholds(),
) -> list[Signature]:
    """Φ > α·force while circumspection and sapience are both below threshold.

    Missing regulatory values count as 1.0 in the trigger and 0.0 in the
    severity.
    """
    point = snapshot.point
    magnitude = point.coherence_magnitude
    potential = autopoietic_potential(magnitude)
    force = constraining_force(magnitude)

    if (
        potential > 0.0
        and force > 0.0
        and potential > thresholds.autopoietic_ratio * force
        and snapshot.circumspection_or(1.0) < thresholds.circumspection
        and snapshot.sapience_or(1.0) < thresholds.sapience
    ):
        eps = snapshot.severity_epsilon
        circumspection = snapshot.circumspection_or(0.0)
        sapience = snapshot.sapience_or(0.0)
        expansion = potential / (force + eps) * (1.0 - circumspection) * (1.0 - sapience)
        logger.debug("Structure hyperexpansion on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.STRUCTURE_HYPEREXPANSION,
                severity=expansion / 20.0,
                geometric_signature=(potential, force, circumspection, sapience),
                evidence=(
                    f"Autopoietic potential: {fx(potential)} > "
                    f"{fx(thresholds.autopoietic_ratio)} * constraining force: {fx(force)}, "
                    f"circumspection: {fx(circumspection)} < {fx(thresholds.circumspection)}, "
                    f"sapience: {fx(sapience)} < {fx(thresholds.sapience)}"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_field_hypercoherence(
    snapshot: SignatureSnapshot,
    thresholds: HypercoherenceThresholds = HypercoherenceThresholds(),
) -> list[Signature]:
    """‖C‖ over the analysis dimension at or above C_max with low boundary flux."""
    point = snapshot.point
    magnitude = vector_norm_first_n(point.coherence_field, snapshot.analysis_dimension)
    if magnitude < thresholds.coherence_max:
        return []
    edges = snapshot.edges_within(thresholds.window)
    if not edges:
        return []

    flux = float(np.mean([e.magnitude for e in edges]))
    permeability = float(
        np.mean([e.magnitude * snapshot.external_masses.get(e.point_q, 0.0) for e in edges])
    )

    if flux < thresholds.leakage:
        logger.debug("Field hypercoherence on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.FIELD_HYPERCOHERENCE,
                severity=magnitude * (1.0 - flux),
                geometric_signature=(magnitude, flux, permeability, float(len(edges))),
                evidence=(
                    f"Coherence: {fx(magnitude)} >= max threshold {fx(thresholds.coherence_max)}, "
                    f"boundary flux: {fx(flux)} < leakage threshold {fx(thresholds.leakage)} "
                    f"(samples: {len(edges)})"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_boundary_hyperasymmetry(
    snapshot: SignatureSnapshot,
    thresholds: HyperasymmetryThresholds = HyperasymmetryThresholds(),
) -> list[Signature]:
    """Local mass growth above threshold while the ecological mass drains."""
    point = snapshot.point
    local = [p.mass_or_default() for p in snapshot.history_within(thresholds.window)]
    ecological = snapshot.ecological_within(thresholds.window)
    if len(local) < MIN_HISTORY or len(ecological) < MIN_HISTORY:
        return []

    growth = mean_step(local)
    drain = mean_step(ecological)
    if growth is None or drain is None:
        return []

    if growth > thresholds.growth and drain < thresholds.drain:
        logger.debug("Boundary hyperasymmetry on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.BOUNDARY_HYPERASYMMETRY,
                severity=growth * abs(drain) * 5.0,
                geometric_signature=(growth, drain, float(len(local)), float(len(ecological))),
                evidence=(
                    f"Local growth: {fx(growth)} > {fx(thresholds.growth)} while "
                    f"ecological impact: {fx(drain)} < drain threshold {fx(thresholds.drain)}"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_inflation(
    snapshot: SignatureSnapshot,
    thresholds: InflationThresholds | None = None,
) -> list[Signature]:
    thresholds = thresholds or InflationThresholds()
    return (
        detect_structure_hyperexpansion(snapshot, thresholds.hyperexpansion)
        + detect_field_hypercoherence(snapshot, thresholds.hypercoherence)
        + detect_boundary_hyperasymmetry(snapshot, thresholds.hyperasymmetry)
    )

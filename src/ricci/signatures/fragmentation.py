# ─────────────────────────────────────────────────────────────────────
# RICCI — Fragmentation Detectors
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Fragmentation: coherence coming apart.

  - Attractor Dissociation — the coherence direction keeps jumping to new
    attractors faster than the autopoietic potential changes.
  - Field Dissolution — the coherence field changes faster than its own
    magnitude, and the change is accelerating.
  - Coupling Dispersion — coupling strength trends down while sapience is
    too low to compensate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

import numpy as np

from ..core.types import Signature, SignatureType
from ..geometry.derivatives import finite_differences, linear_trend
from ..geometry.scalars import (
    autopoietic_potential,
    cosine_similarity_first_n,
    vector_norm_first_n,
)
from .base import MIN_HISTORY, SignatureSnapshot, fx, logger


@dataclass(frozen=True)
class DissociationThresholds:
    kappa: float = 2.0
    min_rate: float = 0.05
    window: timedelta = timedelta(hours=6)


@dataclass(frozen=True)
class DissolutionThresholds:
    gradient_ratio: float = 2.0
    window: timedelta = timedelta(hours=6)


@dataclass(frozen=True)
class DispersionThresholds:
    slope: float = -0.05
    sapience: float = 0.5
    window: timedelta = timedelta(hours=1)


@dataclass(frozen=True)
class FragmentationThresholds:
    dissociation: DissociationThresholds = field(default_factory=DissociationThresholds)
    dissolution: DissolutionThresholds = field(default_factory=DissolutionThresholds)
    dispersion: DispersionThresholds = field(default_factory=DispersionThresholds)


def detect_attractor_dissociation(
    snapshot: SignatureSnapshot,
    thresholds: DissociationThresholds = DissociationThresholds(),
) -> list[Signature]:
    """Direction-change rate > κ·|dΦ/dt| and above the minimum rate."""
    point = snapshot.point
    history = snapshot.history_within(thresholds.window)
    if len(history) < MIN_HISTORY:
        return []

    d = snapshot.analysis_dimension
    fields = [p.coherence_field for p in history]
    rate = float(
        np.mean(
            [1.0 - cosine_similarity_first_n(a, b, d) for a, b in zip(fields, fields[1:])]
        )
    )
    potentials = [autopoietic_potential(p.coherence_magnitude) for p in history]
    derivs = finite_differences(potentials)
    if derivs is None:
        return []
    potential_rate = abs(float(derivs.first))

    if rate > thresholds.kappa * potential_rate and rate > thresholds.min_rate:
        eps = snapshot.severity_epsilon
        logger.debug("Attractor dissociation on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.ATTRACTOR_DISSOCIATION,
                severity=rate / (potential_rate + eps) / 10.0,
                geometric_signature=(rate, potential_rate, float(len(history))),
                evidence=(
                    f"Attractor shift rate: {fx(rate)} > {fx(thresholds.kappa)} * "
                    f"potential rate: {fx(potential_rate)} and > {fx(thresholds.min_rate)} "
                    f"(samples: {len(history)})"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_field_dissolution(
    snapshot: SignatureSnapshot,
    thresholds: DissolutionThresholds = DissolutionThresholds(),
) -> list[Signature]:
    """‖∇C‖ > ratio·‖C‖ with positive second derivative of ‖C‖."""
    point = snapshot.point
    history = snapshot.history_within(thresholds.window)
    if len(history) < MIN_HISTORY:
        return []

    d = snapshot.analysis_dimension
    field_derivs = finite_differences([p.coherence_field[:d] for p in history])
    magnitude_derivs = finite_differences(
        [vector_norm_first_n(p.coherence_field, d) for p in history]
    )
    if field_derivs is None or magnitude_derivs is None:
        return []

    gradient = float(np.linalg.norm(field_derivs.first))
    magnitude = vector_norm_first_n(point.coherence_field, d)
    acceleration = float(magnitude_derivs.second)

    if gradient > thresholds.gradient_ratio * magnitude and acceleration > 0.0:
        eps = snapshot.severity_epsilon
        logger.debug("Field dissolution on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.FIELD_DISSOLUTION,
                severity=gradient / (magnitude + eps) / 10.0,
                geometric_signature=(gradient, magnitude, acceleration),
                evidence=(
                    f"Coherence gradient: {fx(gradient)} > "
                    f"{fx(thresholds.gradient_ratio)} * field magnitude: {fx(magnitude)}, "
                    f"magnitude acceleration: {fx(acceleration)} > 0.000"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_coupling_dispersion(
    snapshot: SignatureSnapshot,
    thresholds: DispersionThresholds = DispersionThresholds(),
) -> list[Signature]:
    """Negative coupling trend that sapience does not compensate.

    A missing sapience record counts as full sapience for the trigger and
    as zero sapience in the severity.
    """
    point = snapshot.point
    magnitudes = [e.magnitude for e in snapshot.actor_edges_within(thresholds.window)]
    if len(magnitudes) < MIN_HISTORY:
        return []
    slope = linear_trend(magnitudes)
    if slope is None:
        return []

    if slope < thresholds.slope and snapshot.sapience_or(1.0) < thresholds.sapience:
        sapience = snapshot.sapience_or(0.0)
        logger.debug("Coupling dispersion on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.COUPLING_DISPERSION,
                severity=abs(slope) * (1.0 - sapience) * 10.0,
                geometric_signature=(slope, sapience, float(len(magnitudes))),
                evidence=(
                    f"Coupling trend: {fx(slope)} < {fx(thresholds.slope)}, "
                    f"sapience: {fx(sapience)} < {fx(thresholds.sapience)} "
                    f"(samples: {len(magnitudes)})"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_fragmentation(
    snapshot: SignatureSnapshot,
    thresholds: FragmentationThresholds | None = None,
) -> list[Signature]:
    thresholds = thresholds or FragmentationThresholds()
    return (
        detect_attractor_dissociation(snapshot, thresholds.dissociation)
        + detect_field_dissolution(snapshot, thresholds.dissolution)
        + detect_coupling_dispersion(snapshot, thresholds.dispersion)
    )

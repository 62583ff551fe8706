# ─────────────────────────────────────────────────────────────────────
# RICCI — Rigidity Detectors
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Rigidity: structure that has stopped responding.

  - Metric Crystallization — the metric no longer evolves while the
    manifold stays curved.
  - Field Calcification — external coupling pressure with no matching
    coherence response.
  - Attractor Isolation — a highly stable attractor held by constraint
    far above its own autopoietic potential.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

import numpy as np

from ..core.types import Signature, SignatureType
from ..geometry.scalars import autopoietic_potential, constraining_force
from .base import MIN_HISTORY, SignatureSnapshot, fx, logger


@dataclass(frozen=True)
class CrystallizationThresholds:
    evolution: float = 0.01
    curvature: float = 0.1
    window: timedelta = timedelta(hours=6)


@dataclass(frozen=True)
class CalcificationThresholds:
    pressure: float = 0.3
    ratio: float = 10.0
    window: timedelta = timedelta(hours=6)


@dataclass(frozen=True)
class IsolationThresholds:
    stability: float = 0.8
    force_ratio: float = 3.0


@dataclass(frozen=True)
class RigidityThresholds:
    crystallization: CrystallizationThresholds = field(
        default_factory=CrystallizationThresholds
    )
    calcification: CalcificationThresholds = field(default_factory=CalcificationThresholds)
    isolation: IsolationThresholds = field(default_factory=IsolationThresholds)


def detect_metric_crystallization(
    snapshot: SignatureSnapshot,
    thresholds: CrystallizationThresholds = CrystallizationThresholds(),
) -> list[Signature]:
    """Mean relative metric change < evolution threshold while |R| > curvature threshold."""
    point = snapshot.point
    if point.scalar_curvature is None:
        return []
    metrics = [
        p.metric_tensor
        for p in snapshot.history_within(thresholds.window)
        if p.metric_tensor is not None
    ]
    if len(metrics) < MIN_HISTORY:
        return []

    eps = snapshot.severity_epsilon
    changes = [
        float(np.linalg.norm(cur - prev)) / max(float(np.linalg.norm(prev)), eps)
        for prev, cur in zip(metrics, metrics[1:])
        if cur.shape == prev.shape
    ]
    if not changes:
        return []
    evolution = float(np.mean(changes))
    curvature = abs(point.scalar_curvature)

    if evolution < thresholds.evolution and curvature > thresholds.curvature:
        logger.debug("Metric crystallization on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.METRIC_CRYSTALLIZATION,
                severity=curvature / (evolution + eps) / 100.0,
                geometric_signature=(evolution, curvature, float(len(metrics))),
                evidence=(
                    f"Metric evolution rate: {fx(evolution)} < {fx(thresholds.evolution)} "
                    f"with scalar curvature: {fx(curvature)} > {fx(thresholds.curvature)} "
                    f"(samples: {len(metrics)})"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_field_calcification(
    snapshot: SignatureSnapshot,
    thresholds: CalcificationThresholds = CalcificationThresholds(),
) -> list[Signature]:
    """External coupling pressure without a proportional coherence response."""
    point = snapshot.point
    history = snapshot.history_within(thresholds.window)
    if len(history) < MIN_HISTORY:
        return []
    hetero = [e.magnitude for e in snapshot.actor_edges_within(thresholds.window) if not e.is_self]
    if not hetero:
        return []

    eps = snapshot.severity_epsilon
    pressure = float(np.mean(hetero))
    magnitudes = np.array([p.coherence_magnitude for p in history], dtype=np.float64)
    response = float(np.mean(np.abs(np.diff(magnitudes))))
    ratio = pressure / (response + eps)

    if pressure > thresholds.pressure and ratio > thresholds.ratio:
        logger.debug("Field calcification on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.FIELD_CALCIFICATION,
                severity=ratio / 50.0,
                geometric_signature=(pressure, response, ratio, float(len(history))),
                evidence=(
                    f"Coupling pressure: {fx(pressure)} > {fx(thresholds.pressure)}, "
                    f"coherence response: {fx(response)} "
                    f"(ratio: {fx(ratio)} > {fx(thresholds.ratio)})"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_attractor_isolation(
    snapshot: SignatureSnapshot,
    thresholds: IsolationThresholds = IsolationThresholds(),
) -> list[Signature]:
    """Stability above threshold and constraining force ≫ autopoietic potential."""
    point = snapshot.point
    stability = point.attractor_stability
    magnitude = point.coherence_magnitude
    potential = autopoietic_potential(magnitude)
    force = constraining_force(magnitude)

    if (
        stability > thresholds.stability
        and force > 0.0
        and force > thresholds.force_ratio * potential
    ):
        eps = snapshot.severity_epsilon
        logger.debug("Attractor isolation on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.ATTRACTOR_ISOLATION,
                severity=force / max(potential, eps) / 10.0,
                geometric_signature=(stability, force, potential, magnitude),
                evidence=(
                    f"Attractor stability: {fx(stability)} > {fx(thresholds.stability)}, "
                    f"constraining force: {fx(force)} > {fx(thresholds.force_ratio)} * "
                    f"autopoietic potential: {fx(potential)}"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_rigidity(
    snapshot: SignatureSnapshot,
    thresholds: RigidityThresholds | None = None,
) -> list[Signature]:
    thresholds = thresholds or RigidityThresholds()
    return (
        detect_metric_crystallization(snapshot, thresholds.crystallization)
        + detect_field_calcification(snapshot, thresholds.calcification)
        + detect_attractor_isolation(snapshot, thresholds.isolation)
    )

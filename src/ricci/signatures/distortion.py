# ─────────────────────────────────────────────────────────────────────
# RICCI — Distortion (Coupling) Detectors
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Distortion: the interface to other actors breaks down.

  - Signal Projection — persistent negative bias with concentrated
    threat-like co-occurrence (high mass, low coupling).
  - Operative Decoupling — the actor's own history diverges from the
    current point relative to field magnitude.
  - Recursive Hypercoupling — coupling mass dominated by self-coupling
    with weak external references.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import timedelta

from ..core.types import CouplingEdge, Signature, SignatureType
from ..geometry.scalars import vector_distance_first_n, vector_norm_first_n
from .base import SignatureSnapshot, fx, logger, pct

BIAS_CENTER = 0.5


@dataclass(frozen=True)
class ProjectionThresholds:
    bias: float = 0.3
    concentration: float = 0.8
    threat_mass: float = 0.6
    threat_coupling: float = 0.3
    max_samples: int = 20
    min_samples: int = 3
    window: timedelta = timedelta(hours=12)


@dataclass(frozen=True)
class DecouplingThresholds:
    divergence_ratio: float = 0.5
    max_samples: int = 10
    min_samples: int = 2
    min_magnitude: float = 0.1
    window: timedelta = timedelta(hours=8)


@dataclass(frozen=True)
class HypercouplingThresholds:
    self_share: float = 0.8
    external_share: float = 0.2
    min_references: int = 3
    window: timedelta = timedelta(hours=12)


@dataclass(frozen=True)
class DistortionThresholds:
    projection: ProjectionThresholds = field(default_factory=ProjectionThresholds)
    decoupling: DecouplingThresholds = field(default_factory=DecouplingThresholds)
    hypercoupling: HypercouplingThresholds = field(default_factory=HypercouplingThresholds)


def detect_signal_projection(
    snapshot: SignatureSnapshot,
    thresholds: ProjectionThresholds = ProjectionThresholds(),
) -> list[Signature]:
    """Negative bias above threshold with concentrated threat patterns.

    Each history point contributes one sample per outgoing edge (one
    sample with zero coupling when it has none), newest first, up to
    ``max_samples``. The bias proxy is the norm of the first
    ``small_window`` coherence components.
    """
    point = snapshot.point
    outgoing: dict[str, list[CouplingEdge]] = defaultdict(list)
    for edge in snapshot.actor_edges:
        outgoing[edge.point_p].append(edge)

    samples: list[tuple[float, float, float]] = []
    for p in reversed(snapshot.history_within(thresholds.window)):
        proxy = vector_norm_first_n(p.coherence_field, snapshot.small_window)
        mass = p.mass_or_default()
        couplings = [e.magnitude for e in outgoing.get(p.id, [])] or [0.0]
        for coupling in couplings:
            samples.append((proxy, mass, coupling))
        if len(samples) >= thresholds.max_samples:
            break
    samples = samples[: thresholds.max_samples]
    if len(samples) <= thresholds.min_samples:
        return []

    count = len(samples)
    bias = sum(max(0.0, BIAS_CENTER - proxy) for proxy, _, _ in samples) / count
    divergence = sum(abs(BIAS_CENTER - proxy) for proxy, _, _ in samples) / count
    threats = sum(
        1
        for _, mass, coupling in samples
        if mass > thresholds.threat_mass and coupling < thresholds.threat_coupling
    )
    concentration = threats / count

    if bias > thresholds.bias and concentration > thresholds.concentration:
        logger.debug("Signal projection on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.SIGNAL_PROJECTION,
                severity=bias * concentration * 2.0,
                geometric_signature=(bias, concentration, divergence, float(count)),
                evidence=(
                    f"Negative bias: {fx(bias)} > {fx(thresholds.bias)}, "
                    f"threat patterns: {pct(concentration)}% > "
                    f"{pct(thresholds.concentration)}% (samples: {count})"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_operative_decoupling(
    snapshot: SignatureSnapshot,
    thresholds: DecouplingThresholds = DecouplingThresholds(),
) -> list[Signature]:
    """Self-history divergence relative to field magnitude above threshold.

    Needs an actor and a consensus baseline (the latest point of any other
    actor); without either there is nothing to decouple from.
    """
    point = snapshot.point
    baseline = snapshot.consensus_baseline
    if point.actor_id is None or baseline is None:
        return []

    d = snapshot.analysis_dimension
    recent = list(reversed(snapshot.history_within(thresholds.window)))[: thresholds.max_samples]
    magnitude = point.coherence_magnitude
    if len(recent) <= thresholds.min_samples or magnitude <= thresholds.min_magnitude:
        return []

    count = len(recent)
    interpretation = (
        sum(vector_distance_first_n(p.coherence_field, point.coherence_field, d) for p in recent)
        / count
    )
    consensus = (
        sum(vector_distance_first_n(p.coherence_field, baseline.coherence_field, d) for p in recent)
        / count
    )
    ratio = interpretation / magnitude

    if ratio > thresholds.divergence_ratio:
        logger.debug("Operative decoupling on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.OPERATIVE_DECOUPLING,
                severity=ratio * consensus,
                geometric_signature=(interpretation, magnitude, ratio, consensus),
                evidence=(
                    f"Interpretation divergence: {fx(interpretation)} > "
                    f"{fx(thresholds.divergence_ratio)} * field magnitude: {fx(magnitude)} "
                    f"(ratio: {fx(ratio)}, consensus divergence: {fx(consensus)})"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_recursive_hypercoupling(
    snapshot: SignatureSnapshot,
    thresholds: HypercouplingThresholds = HypercouplingThresholds(),
) -> list[Signature]:
    """Self-coupling share above threshold with a weak external share."""
    point = snapshot.point
    edges = snapshot.actor_edges_within(thresholds.window)
    self_mags = [e.magnitude for e in edges if e.is_self]
    external_mags = [e.magnitude for e in edges if not e.is_self]
    total = float(sum(self_mags) + sum(external_mags))
    references = len(self_mags) + len(external_mags)
    if total <= 0.0 or references <= thresholds.min_references:
        return []

    self_share = float(sum(self_mags)) / total
    external_share = float(sum(external_mags)) / total

    if self_share > thresholds.self_share and external_share < thresholds.external_share:
        logger.debug("Recursive hypercoupling on %s", point.id)
        return [
            Signature(
                signature_type=SignatureType.RECURSIVE_HYPERCOUPLING,
                severity=self_share * (1.0 - external_share),
                geometric_signature=(
                    float(sum(self_mags)),
                    float(sum(external_mags)),
                    self_share,
                    float(references),
                ),
                evidence=(
                    f"Self-coupling: {pct(self_share)}% of total > "
                    f"{pct(thresholds.self_share)}%, external coupling: "
                    f"{pct(external_share)}% < {pct(thresholds.external_share)}% "
                    f"(refs: {len(self_mags)}/{len(external_mags)})"
                ),
                point_id=point.id,
            )
        ]
    return []


def detect_distortion(
    snapshot: SignatureSnapshot,
    thresholds: DistortionThresholds | None = None,
) -> list[Signature]:
    thresholds = thresholds or DistortionThresholds()
    return (
        detect_signal_projection(snapshot, thresholds.projection)
        + detect_operative_decoupling(snapshot, thresholds.decoupling)
        + detect_recursive_hypercoupling(snapshot, thresholds.hypercoupling)
    )

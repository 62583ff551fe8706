# ─────────────────────────────────────────────────────────────────────
# RICCI — Aggregate Analyzers
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Analyses across many points.

  - ``coordination_via_coupling`` — strong cross-actor coupling edges that
    cluster in time.
  - ``escalation_via_field_evolution`` — velocity and acceleration of
    coherence magnitude along an ordered trajectory, fused with curvature
    and mass into an escalation score.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timedelta

import numpy as np

from ..core.config import DEFAULT_ANALYSIS_DIMENSION
from ..core.types import (
    CoordinationCluster,
    CouplingEdge,
    EscalationStep,
    ManifoldPoint,
    _clamp,
)
from ..geometry.scalars import circumspection, cosine_similarity_first_n

logger = logging.getLogger("RICCI.Aggregate")

# Escalation score weights: velocity, acceleration, |curvature|, mass
ESCALATION_WEIGHTS = (0.4, 0.3, 0.2, 0.1)
URGENCY_ACCELERATION = 0.3
URGENCY_CIRCUMSPECTION = 0.3


def coordination_via_coupling(
    edges: list[CouplingEdge],
    points: Mapping[str, ManifoldPoint],
    as_of: datetime,
    window: timedelta = timedelta(hours=1),
    coupling_threshold: float = 0.5,
    min_cluster_size: int = 3,
    bucket: timedelta = timedelta(minutes=5),
    dimension: int = DEFAULT_ANALYSIS_DIMENSION,
) -> list[CoordinationCluster]:
    """Bucket strong cross-actor edges by time and keep the dense buckets.

    Parameters
    ----------
    edges : candidate coupling edges.
    points : point lookup for edge endpoints (actor, fields, mass).
    as_of : end of the analysis window.
    window : length of the analysis window.
    coupling_threshold : edges must have magnitude strictly above this.
    min_cluster_size : minimum qualifying edges per bucket.
    bucket : bucket width.
    """
    if bucket <= timedelta(0):
        raise ValueError(f"bucket must be positive, got {bucket}")
    start = as_of - window

    buckets: dict[int, list[tuple[CouplingEdge, ManifoldPoint, ManifoldPoint]]] = {}
    for edge in edges:
        if edge.is_self or edge.magnitude <= coupling_threshold:
            continue
        if not (start <= edge.computed_at <= as_of):
            continue
        p = points.get(edge.point_p)
        q = points.get(edge.point_q)
        if p is None or q is None:
            continue
        if p.actor_id is None or q.actor_id is None or p.actor_id == q.actor_id:
            continue
        index = int((edge.computed_at - start) // bucket)
        buckets.setdefault(index, []).append((edge, p, q))

    clusters: list[CoordinationCluster] = []
    for index in sorted(buckets):
        members = buckets[index]
        if len(members) < min_cluster_size:
            continue
        mean_coupling = float(np.mean([e.magnitude for e, _, _ in members]))
        mean_coherence = float(
            np.mean(
                [
                    max(
                        0.0,
                        cosine_similarity_first_n(
                            p.coherence_field, q.coherence_field, dimension
                        ),
                    )
                    for _, p, q in members
                ]
            )
        )
        involved = {p.id: p for _, p, _ in members}
        involved.update({q.id: q for _, _, q in members})
        mean_mass = float(np.mean([pt.mass_or_default() for pt in involved.values()]))
        actors = sorted({pt.actor_id for pt in involved.values() if pt.actor_id is not None})

        confidence = _clamp(
            mean_coupling * mean_coherence * (len(members) / 10.0) * (mean_mass / 100.0)
        )
        window_start = start + index * bucket
        clusters.append(
            CoordinationCluster(
                window_start=window_start,
                window_end=window_start + bucket,
                cluster_size=len(members),
                actor_ids=tuple(actors),
                point_ids=tuple(sorted(involved)),
                mean_coupling=mean_coupling,
                mean_geometric_coherence=mean_coherence,
                mean_mass=mean_mass,
                confidence=confidence,
            )
        )

    logger.debug(
        "Coordination: %d qualifying buckets, %d clusters", len(buckets), len(clusters)
    )
    return clusters


def _escalation_score(velocity: float, acceleration: float, curvature: float, mass: float) -> float:
    w_v, w_a, w_r, w_m = ESCALATION_WEIGHTS
    return (
        w_v * math.tanh(max(velocity, 0.0))
        + w_a * math.tanh(max(acceleration, 0.0))
        + w_r * math.tanh(abs(curvature))
        + w_m * math.tanh(max(mass, 0.0))
    )


def escalation_via_field_evolution(
    points: list[ManifoldPoint],
    circumspection_by_point: Mapping[str, float] | None = None,
) -> list[EscalationStep]:
    """One ``EscalationStep`` per point after the first, in trajectory order.

    Circumspection comes from *circumspection_by_point* when supplied,
    otherwise from the point's own curvature tensor (0 without geometry).
    """
    circumspection_by_point = circumspection_by_point or {}
    steps: list[EscalationStep] = []
    previous_velocity = 0.0

    for i in range(1, len(points)):
        point = points[i]
        velocity = float(point.coherence_magnitude - points[i - 1].coherence_magnitude)
        acceleration = velocity - previous_velocity if i > 1 else 0.0
        previous_velocity = velocity

        curvature = float(point.scalar_curvature) if point.scalar_curvature is not None else 0.0
        mass = point.mass_or_default()
        if point.id in circumspection_by_point:
            h = float(circumspection_by_point[point.id])
        elif point.curvature is not None:
            h = circumspection(float(np.linalg.norm(point.curvature)))
        else:
            h = 0.0

        steps.append(
            EscalationStep(
                point_id=point.id,
                coherence_magnitude=float(point.coherence_magnitude),
                velocity=velocity,
                acceleration=acceleration,
                scalar_curvature=curvature,
                semantic_mass=mass,
                circumspection=h,
                escalation_score=_escalation_score(velocity, acceleration, curvature, mass),
                intervention_urgency=(
                    acceleration > URGENCY_ACCELERATION and h < URGENCY_CIRCUMSPECTION
                ),
            )
        )
    return steps

# ─────────────────────────────────────────────────────────────────────
# RICCI — Coupling Tensor Engine
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Third-order pairwise coupling between two points.

The coupling tensor is the forward mixed difference of p's
semantic⊗coherence product field taken in the direction of q and
projected on q's coherence field:

    R_ijk = (s_q,i c_p,j + s_p,i c_q,j + h s_q,i c_q,j) · c_q,k

over the first ``d`` components. Self-coupling is the ``p == q`` case and
is generally non-zero.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import numpy as np

from ..core.exceptions import InvalidDimensionError
from ..core.types import CouplingEdge, ManifoldPoint

logger = logging.getLogger("RICCI.Coupling")


def _leading_fields(point: ManifoldPoint, dimension: int) -> tuple[np.ndarray, np.ndarray]:
    if point.dimension < dimension:
        raise InvalidDimensionError(
            f"point {point.id}: field length {point.dimension} < {dimension}"
        )
    return point.semantic_field[:dimension], point.coherence_field[:dimension]


def coupling_tensor(
    p: ManifoldPoint,
    q: ManifoldPoint,
    h: float = 1e-3,
    dimension: int = 100,
) -> np.ndarray:
    """(d, d, d) coupling tensor of *p* toward *q*."""
    s_p, c_p = _leading_fields(p, dimension)
    s_q, c_q = _leading_fields(q, dimension)
    mixed = np.outer(s_q, c_p) + np.outer(s_p, c_q) + h * np.outer(s_q, c_q)
    return np.einsum("ij,k->ijk", mixed, c_q)


def coupling_magnitude(tensor) -> float:
    """Frobenius norm of a coupling tensor."""
    return float(np.linalg.norm(np.asarray(tensor, dtype=np.float64).ravel()))


def build_edge(
    p: ManifoldPoint,
    q: ManifoldPoint,
    h: float = 1e-3,
    dimension: int = 100,
    previous: CouplingEdge | None = None,
    computed_at: datetime | None = None,
    keep_tensor: bool = True,
) -> CouplingEdge:
    """Compute the coupling edge p → q.

    Parameters
    ----------
    previous : CouplingEdge | None — last edge for the same (p, q) pair;
        the evolution rate is the magnitude change per second against it.
    computed_at : datetime | None — edge timestamp (defaults to now, UTC).
    keep_tensor : bool — store the full tensor on the edge, or only its
        magnitude.
    """
    tensor = coupling_tensor(p, q, h, dimension)
    magnitude = coupling_magnitude(tensor)
    computed_at = computed_at or datetime.now(timezone.utc)

    rate = 0.0
    if previous is not None:
        elapsed = (computed_at - previous.computed_at).total_seconds()
        if elapsed > 0.0:
            rate = (magnitude - previous.magnitude) / elapsed

    logger.debug("Coupling %s -> %s: |R|=%.4e rate=%.4e", p.id, q.id, magnitude, rate)
    return CouplingEdge(
        point_p=p.id,
        point_q=q.id,
        magnitude=magnitude,
        tensor=tensor if keep_tensor else None,
        evolution_rate=rate,
        computed_at=computed_at,
    )

# ─────────────────────────────────────────────────────────────────────
# RICCI — Metric & Connection Builder
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Local metric tensor and the differential-geometry operators derived from it.

For a point with semantic field ``s`` and a neighbourhood ``{s_k}`` the
builder computes, over the first ``d`` components only:

  g_ij      = (1/K) Σ_k Δ_k,i Δ_k,j + scale·δ_ij,   Δ_k = s_k − s
  ∂_l g_ij  = secant least-squares fit of (g_k − g) against Δ_k
  Γ^k_ij    = ½ Σ_l g^{kl} (∂_i g_jl + ∂_j g_il − ∂_l g_ij)
  R_ij      = ∂_k Γ^k_ij − ∂_j Γ^k_ik + Γ^k_kl Γ^l_ij − Γ^k_jl Γ^l_ik
  R         = Σ g^{ij} R_ij

Array conventions: ``dg[l, i, j] = ∂_l g_ij`` and ``gamma[k, i, j] = Γ^k_ij``.
The analysis dimension ``d`` comes from ``RicciConfig.analysis_dimension``;
components beyond it never enter any computation here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ..core.config import (
    DIAGONAL_REGULARIZATION,
    PIVOT_EPSILON,
    SINGULAR_THRESHOLD,
    RicciConfig,
)
from ..core.exceptions import InsufficientDataError, InvalidDimensionError
from ..core.types import DerivedGeometry, ManifoldPoint
from .kernel import determinant, invert
from .scalars import regularized_determinant, semantic_mass

logger = logging.getLogger("RICCI.Metric")

MIN_NEIGHBORS = 2


@dataclass
class ConnectionDerivative:
    """The two contractions of ∂Γ needed by the Ricci tensor.

    divergence[i, j]     = ∂_k Γ^k_ij
    trace_gradient[i, j] = ∂_j Γ^k_ik
    """

    divergence: np.ndarray
    trace_gradient: np.ndarray


def _leading(vector, dimension: int) -> np.ndarray:
    v = np.asarray(vector, dtype=np.float64)
    if v.ndim != 1 or v.shape[0] < dimension:
        raise InvalidDimensionError(
            f"field of shape {v.shape} has fewer than {dimension} components"
        )
    return v[:dimension]


def secant_displacements(field, neighbor_fields, dimension: int) -> np.ndarray:
    """Rows Δ_k = neighbor_k[:d] − field[:d]."""
    base = _leading(field, dimension)
    return np.stack([_leading(n, dimension) - base for n in neighbor_fields])


def build_metric(
    field,
    neighbor_fields,
    scale: float = 1.0,
    dimension: int = 100,
) -> np.ndarray:
    """Symmetric d×d metric from secant differences to at least two neighbours."""
    if len(neighbor_fields) < MIN_NEIGHBORS:
        raise InsufficientDataError(
            f"metric needs at least {MIN_NEIGHBORS} neighbor fields, "
            f"got {len(neighbor_fields)}",
            required=MIN_NEIGHBORS,
            available=len(neighbor_fields),
        )
    deltas = secant_displacements(field, neighbor_fields, dimension)
    g = deltas.T @ deltas / deltas.shape[0]
    g[np.diag_indices(dimension)] += scale
    return 0.5 * (g + g.T)


def invert_metric(
    g,
    singular_threshold: float = SINGULAR_THRESHOLD,
    regularization: float = DIAGONAL_REGULARIZATION,
    pivot_epsilon: float = PIVOT_EPSILON,
) -> np.ndarray:
    """Inverse metric, bumping the diagonal first when |det g| is near zero.

    Raises ``SingularMatrixError`` if the bumped metric still has no pivot.
    """
    g = np.asarray(g, dtype=np.float64)
    det = determinant(g, pivot_epsilon)
    if abs(det) < singular_threshold:
        logger.debug(
            "Near-singular metric (|det|=%.3e), adding %.1e to diagonal",
            abs(det),
            regularization,
        )
        g = g + regularization * np.eye(g.shape[0])
    return invert(g, pivot_epsilon)


def secant_pseudoinverse(displacements) -> np.ndarray:
    """(d, K) minimum-norm least-squares operator for secant derivative fits."""
    return np.linalg.pinv(np.asarray(displacements, dtype=np.float64))


def metric_gradient(g, neighbor_metrics, displacements) -> np.ndarray:
    """∂_l g_ij as a (d, d, d) array indexed ``[l, i, j]``.

    Solves ``Δ_k · ∇g ≈ g_k − g`` in the minimum-norm least-squares sense.
    """
    g = np.asarray(g, dtype=np.float64)
    d = g.shape[0]
    pinv = secant_pseudoinverse(displacements)
    diffs = np.stack([np.asarray(gk, dtype=np.float64) - g for gk in neighbor_metrics])
    dg = (pinv @ diffs.reshape(diffs.shape[0], d * d)).reshape(d, d, d)
    return 0.5 * (dg + dg.transpose(0, 2, 1))


def christoffel(g_inv, dg) -> np.ndarray:
    """Γ^k_ij = ½ Σ_l g^{kl}(∂_i g_jl + ∂_j g_il − ∂_l g_ij), indexed ``[k, i, j]``."""
    g_inv = np.asarray(g_inv, dtype=np.float64)
    dg = np.asarray(dg, dtype=np.float64)
    d = g_inv.shape[0]
    if g_inv.shape != (d, d) or dg.shape != (d, d, d):
        raise InvalidDimensionError(
            f"christoffel expects g_inv {(d, d)} and dg {(d, d, d)}, "
            f"got {g_inv.shape} and {dg.shape}"
        )
    # lowered[l, i, j] = ∂_i g_jl + ∂_j g_il − ∂_l g_ij
    lowered = (
        np.einsum("ijl->lij", dg) + np.einsum("jil->lij", dg) - dg
    )
    return 0.5 * np.einsum("kl,lij->kij", g_inv, lowered, optimize=True)


def connection_derivative(gamma, neighbor_gammas, displacements) -> ConnectionDerivative:
    """Secant estimate of the contracted connection derivatives."""
    gamma = np.asarray(gamma, dtype=np.float64)
    pinv = secant_pseudoinverse(displacements)
    diffs = np.stack([np.asarray(gk, dtype=np.float64) - gamma for gk in neighbor_gammas])
    divergence = np.einsum("km,mkij->ij", pinv, diffs, optimize=True)
    traces = np.einsum("mkik->mi", diffs)
    trace_gradient = np.einsum("jm,mi->ij", pinv, traces)
    return ConnectionDerivative(divergence=divergence, trace_gradient=trace_gradient)


def curvature(gamma, dgamma: ConnectionDerivative) -> np.ndarray:
    """Ricci tensor R_ij from Γ and its contracted derivatives (symmetrized)."""
    gamma = np.asarray(gamma, dtype=np.float64)
    trace = np.einsum("kkl->l", gamma)
    quadratic = np.einsum("l,lij->ij", trace, gamma) - np.einsum(
        "kjl,lik->ij", gamma, gamma, optimize=True
    )
    ricci = dgamma.divergence - dgamma.trace_gradient + quadratic
    return 0.5 * (ricci + ricci.T)


def scalar_curvature(ricci, g_inv) -> float:
    """R = Σ g^{ij} R_ij."""
    return float(np.sum(np.asarray(g_inv) * np.asarray(ricci)))


class GeometryBuilder:
    """Builds the full geometric state of a point from its neighbourhood.

    Every member of the neighbourhood (the point plus its neighbours) gets
    a metric and connection built from the remaining members, so the
    derivatives at the point are secant fits across real neighbour values.

    Parameters
    ----------
    config : RicciConfig — dimensions and regularization constants.
    """

    def __init__(self, config: RicciConfig | None = None) -> None:
        self.config = config or RicciConfig()
        self.dimension = self.config.analysis_dimension

    def _metric(self, fields: list[np.ndarray], index: int) -> np.ndarray:
        others = [f for j, f in enumerate(fields) if j != index]
        return build_metric(
            fields[index], others, self.config.metric_scale, self.dimension
        )

    def _invert(self, g: np.ndarray) -> np.ndarray:
        return invert_metric(
            g,
            self.config.singular_threshold,
            self.config.diagonal_regularization,
            self.config.pivot_epsilon,
        )

    def build(self, point: ManifoldPoint, neighbors: list[ManifoldPoint]) -> DerivedGeometry:
        """Compute metric, inverse, Γ, Ricci tensor, scalar curvature and mass.

        Raises
        ------
        InsufficientDataError
            Fewer than two neighbours.
        SingularMatrixError
            A metric stays singular after the diagonal bump.
        """
        if len(neighbors) < MIN_NEIGHBORS:
            raise InsufficientDataError(
                f"point {point.id}: geometry needs at least {MIN_NEIGHBORS} "
                f"neighbors, got {len(neighbors)}",
                required=MIN_NEIGHBORS,
                available=len(neighbors),
            )

        d = self.dimension
        fields = [point.semantic_field] + [n.semantic_field for n in neighbors]
        leading = [_leading(f, d) for f in fields]
        count = len(fields)

        metrics = [self._metric(leading, i) for i in range(count)]
        inverses = [self._invert(g) for g in metrics]

        gammas = []
        for i in range(count):
            others = [j for j in range(count) if j != i]
            displacements = np.stack([leading[j] - leading[i] for j in others])
            dg = metric_gradient(metrics[i], [metrics[j] for j in others], displacements)
            gammas.append(christoffel(inverses[i], dg))

        dgamma = connection_derivative(
            gammas[0], gammas[1:], np.stack([f - leading[0] for f in leading[1:]])
        )
        ricci = curvature(gammas[0], dgamma)
        r_scalar = scalar_curvature(ricci, inverses[0])

        det = regularized_determinant(
            determinant(metrics[0], self.config.pivot_epsilon),
            self.config.determinant_floor,
        )
        mass = semantic_mass(
            point.recursive_depth,
            det,
            point.attractor_stability,
            self.config.determinant_floor,
        )
        logger.debug(
            "Geometry for %s: det=%.4e R=%.4e mass=%.4e", point.id, det, r_scalar, mass
        )
        return DerivedGeometry(
            metric=metrics[0],
            inverse=inverses[0],
            christoffel=gammas[0],
            curvature=ricci,
            scalar_curvature=r_scalar,
            determinant=det,
            semantic_mass=mass,
        )


__all__ = [
    "ConnectionDerivative",
    "GeometryBuilder",
    "build_metric",
    "christoffel",
    "connection_derivative",
    "curvature",
    "invert_metric",
    "metric_gradient",
    "scalar_curvature",
    "secant_displacements",
    "secant_pseudoinverse",
]

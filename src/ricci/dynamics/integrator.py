# ─────────────────────────────────────────────────────────────────────
# RICCI — Field Evolution Integrator
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Single explicit Euler step of the coherence field.

  C_next = C + Δt · [□C + attractor(C) + autopoietic(C) − damping(C)]

with

  □C          = C̈ + Γᵏᵢⱼ ĊⁱĊʲ − (g⁻¹R) C     (first d components; C̈ beyond)
  attractor   = −γ (‖C‖ − C_nominal) Ĉ
  autopoietic = dΦ/d‖C‖ · Ĉ
  damping     = H(‖R‖_F) · Ċ

Ċ and C̈ come from finite differences over the point's history and are
zero when fewer than three samples exist. A point without geometry evolves
on the identity metric with zero connection and curvature. No implicit
solve and no adaptive step: the caller owns Δt and stability.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ..core.config import RicciConfig
from ..core.exceptions import InvalidDimensionError, NumericalError
from ..core.types import ManifoldPoint
from ..geometry.derivatives import finite_differences
from ..geometry.metric import invert_metric
from ..geometry.scalars import autopoietic_gradient_magnitude, circumspection

logger = logging.getLogger("RICCI.Integrator")


@dataclass
class EvolutionForces:
    """The four terms of the evolution equation at one point."""

    dalembertian: np.ndarray
    attractor: np.ndarray
    autopoietic: np.ndarray
    damping: np.ndarray

    def total(self) -> np.ndarray:
        return self.dalembertian + self.attractor + self.autopoietic - self.damping


class FieldEvolver:
    """Explicit Euler integrator for coherence fields.

    Parameters
    ----------
    config : RicciConfig — analysis dimension, default Δt, nominal coherence.
    attractor_gain : float — γ, strength of the restoring attractor.
    """

    def __init__(self, config: RicciConfig | None = None, attractor_gain: float = 1.0) -> None:
        self.config = config or RicciConfig()
        self.dimension = self.config.analysis_dimension
        self.attractor_gain = attractor_gain
        self.nominal = self.config.coherence_threshold

    def _geometry(self, point: ManifoldPoint) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        d = self.dimension
        if point.metric_tensor is not None:
            g = np.asarray(point.metric_tensor, dtype=np.float64)
            if g.shape != (d, d):
                raise InvalidDimensionError(
                    f"point {point.id}: metric shape {g.shape} != {(d, d)}"
                )
            if point.metric_inverse is not None and np.shape(point.metric_inverse) == (d, d):
                g_inv = np.asarray(point.metric_inverse, dtype=np.float64)
            else:
                g_inv = invert_metric(
                    g,
                    self.config.singular_threshold,
                    self.config.diagonal_regularization,
                    self.config.pivot_epsilon,
                )
        else:
            g_inv = np.eye(d)
        gamma = (
            np.asarray(point.christoffel, dtype=np.float64)
            if point.christoffel is not None
            else np.zeros((d, d, d))
        )
        ricci = (
            np.asarray(point.curvature, dtype=np.float64)
            if point.curvature is not None
            else np.zeros((d, d))
        )
        if gamma.shape != (d, d, d) or ricci.shape != (d, d):
            raise InvalidDimensionError(
                f"point {point.id}: christoffel {gamma.shape} / curvature "
                f"{ricci.shape} do not match analysis dimension {d}"
            )
        return g_inv, gamma, ricci

    def forces(
        self,
        point: ManifoldPoint,
        history: list[ManifoldPoint] | None = None,
    ) -> EvolutionForces:
        """Evaluate every term of the evolution equation without stepping."""
        c = np.asarray(point.coherence_field, dtype=np.float64)
        if not np.all(np.isfinite(c)):
            raise NumericalError(f"point {point.id}: coherence field is not finite")
        d = self.dimension

        derivs = None
        if history:
            derivs = finite_differences([p.coherence_field for p in history])
        if derivs is not None:
            c_dot, c_ddot = derivs.first, derivs.second
        else:
            c_dot, c_ddot = np.zeros_like(c), np.zeros_like(c)

        g_inv, gamma, ricci = self._geometry(point)

        box = c_ddot.copy()
        box[:d] += np.einsum("kij,i,j->k", gamma, c_dot[:d], c_dot[:d])
        box[:d] -= (g_inv @ ricci) @ c[:d]

        magnitude = float(np.linalg.norm(c))
        if magnitude > self.config.severity_epsilon:
            direction = c / magnitude
        else:
            direction = np.zeros_like(c)

        attractor = -self.attractor_gain * (magnitude - self.nominal) * direction
        autopoietic = (
            autopoietic_gradient_magnitude(magnitude, self.nominal) * direction
        )
        damping = circumspection(float(np.linalg.norm(ricci))) * c_dot

        return EvolutionForces(
            dalembertian=box,
            attractor=attractor,
            autopoietic=autopoietic,
            damping=damping,
        )

    def step(
        self,
        point: ManifoldPoint,
        history: list[ManifoldPoint] | None = None,
        dt: float | None = None,
    ) -> np.ndarray:
        """Return the next coherence field (same length as the input).

        Raises
        ------
        NumericalError
            Non-finite input field or non-finite result.
        """
        dt = self.config.default_dt if dt is None else dt
        if dt <= 0.0:
            raise ValueError(f"dt must be > 0, got {dt}")

        forces = self.forces(point, history)
        next_field = point.coherence_field + dt * forces.total()
        if not np.all(np.isfinite(next_field)):
            raise NumericalError(
                f"point {point.id}: evolution step produced non-finite values (dt={dt})"
            )
        logger.debug(
            "Evolved %s: |C| %.4f -> %.4f (dt=%.3g)",
            point.id,
            float(np.linalg.norm(point.coherence_field)),
            float(np.linalg.norm(next_field)),
            dt,
        )
        return next_field

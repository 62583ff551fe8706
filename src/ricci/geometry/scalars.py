# ─────────────────────────────────────────────────────────────────────
# RICCI — Scalar Quantity Library
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Pure scalar quantities derived from geometric state.

  - semantic mass           M = D · (1 / max(det g, ε)) · A
  - autopoietic potential   Φ(‖C‖) = α (‖C‖ − C_thr)^β   for ‖C‖ ≥ C_thr
  - circumspection          H(‖R‖) = ‖R‖ · exp(clip(−k(‖R‖ − r_opt), −50, 50))
  - constraining force      F(‖C‖) = s · |‖C‖ − C_thr|

plus norm/distance helpers restricted to the leading components of a field.
"""

from __future__ import annotations

import math

import numpy as np

from ..core.config import DETERMINANT_FLOOR

AUTOPOIETIC_THRESHOLD = 0.7
AUTOPOIETIC_ALPHA = 1.0
AUTOPOIETIC_BETA = 2.0
CIRCUMSPECTION_OPTIMAL = 0.5
CIRCUMSPECTION_K = 2.0
CONSTRAINT_STIFFNESS = 0.5
EXPONENT_CLIP = 50.0


def semantic_mass(
    recursive_depth: float,
    metric_determinant: float,
    attractor_stability: float,
    floor: float = DETERMINANT_FLOOR,
) -> float:
    """M = D · (1/max(det_g, floor)) · A."""
    return recursive_depth * (1.0 / max(metric_determinant, floor)) * attractor_stability


def regularized_determinant(det: float, floor: float = DETERMINANT_FLOOR) -> float:
    """Keep a determinant away from zero while preserving its sign."""
    if abs(det) >= floor:
        return float(det)
    return -floor if det < 0.0 else floor


def autopoietic_potential(
    coherence_magnitude: float,
    threshold: float = AUTOPOIETIC_THRESHOLD,
    alpha: float = AUTOPOIETIC_ALPHA,
    beta: float = AUTOPOIETIC_BETA,
) -> float:
    """Φ(‖C‖) — zero below threshold, α(‖C‖−threshold)^β above it."""
    if coherence_magnitude < threshold:
        return 0.0
    return alpha * (coherence_magnitude - threshold) ** beta


def autopoietic_gradient_magnitude(
    coherence_magnitude: float,
    threshold: float = AUTOPOIETIC_THRESHOLD,
    alpha: float = AUTOPOIETIC_ALPHA,
    beta: float = AUTOPOIETIC_BETA,
) -> float:
    """dΦ/d‖C‖ = αβ(‖C‖−threshold)^(β−1) above threshold, else 0."""
    if coherence_magnitude < threshold:
        return 0.0
    return alpha * beta * (coherence_magnitude - threshold) ** (beta - 1.0)


def circumspection(
    curvature_norm: float,
    optimal: float = CIRCUMSPECTION_OPTIMAL,
    k: float = CIRCUMSPECTION_K,
) -> float:
    """H(‖R‖_F) = ‖R‖ · exp(clip(−k(‖R‖−optimal), −50, 50))."""
    exponent = min(EXPONENT_CLIP, max(-EXPONENT_CLIP, -k * (curvature_norm - optimal)))
    return curvature_norm * math.exp(exponent)


def constraining_force(
    coherence_magnitude: float,
    threshold: float = AUTOPOIETIC_THRESHOLD,
    stiffness: float = CONSTRAINT_STIFFNESS,
) -> float:
    """Restoring force toward the nominal coherence magnitude."""
    return stiffness * abs(coherence_magnitude - threshold)


def vector_norm_first_n(vector, n: int) -> float:
    """L2 norm of the first *n* components."""
    v = np.asarray(vector, dtype=np.float64)[:n]
    return float(np.linalg.norm(v))


def vector_distance_first_n(a, b, n: int) -> float:
    """L2 distance between the first *n* components of two vectors."""
    va = np.asarray(a, dtype=np.float64)[:n]
    vb = np.asarray(b, dtype=np.float64)[:n]
    return float(np.linalg.norm(va - vb))


def cosine_similarity_first_n(a, b, n: int, eps: float = 1e-12) -> float:
    """Cosine similarity of the first *n* components (0 for null vectors)."""
    va = np.asarray(a, dtype=np.float64)[:n]
    vb = np.asarray(b, dtype=np.float64)[:n]
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom < eps:
        return 0.0
    return float(np.dot(va, vb) / denom)

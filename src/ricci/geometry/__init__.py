# ─────────────────────────────────────────────────────────────────────
# RICCI — Geometry Package
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# Contact: www.anulum.li | protoscience@anulum.li
# ORCID: https://orcid.org/0009-0009-3560-0851
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""Tensor kernel, derivatives, metric/connection/curvature, coupling, scalars."""

from .coupling import build_edge, coupling_magnitude, coupling_tensor
from .derivatives import FieldDerivatives, derivative_series, finite_differences, linear_trend
from .kernel import determinant, invert
from .metric import (
    ConnectionDerivative,
    GeometryBuilder,
    build_metric,
    christoffel,
    connection_derivative,
    curvature,
    invert_metric,
    metric_gradient,
    scalar_curvature,
)
from .scalars import (
    autopoietic_potential,
    circumspection,
    constraining_force,
    semantic_mass,
    vector_distance_first_n,
    vector_norm_first_n,
)

__all__ = [
    "determinant",
    "invert",
    "FieldDerivatives",
    "derivative_series",
    "finite_differences",
    "linear_trend",
    "ConnectionDerivative",
    "GeometryBuilder",
    "build_metric",
    "invert_metric",
    "metric_gradient",
    "christoffel",
    "connection_derivative",
    "curvature",
    "scalar_curvature",
    "coupling_tensor",
    "coupling_magnitude",
    "build_edge",
    "semantic_mass",
    "autopoietic_potential",
    "circumspection",
    "constraining_force",
    "vector_norm_first_n",
    "vector_distance_first_n",
]

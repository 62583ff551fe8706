# ─────────────────────────────────────────────────────────────────────
# RICCI — Field Derivative Engine
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Finite-difference first and second derivatives of short time series.

Samples are ordered oldest first. Interior samples use centered
differences, the two boundary samples use forward/backward stencils.
Fewer than three samples is "insufficient history": the functions return
``None`` and callers treat that as no signal, never as an error.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

MIN_SAMPLES = 3


@dataclass
class FieldDerivatives:
    """First and second derivative evaluated at one sample."""

    first: np.ndarray
    second: np.ndarray


def _stack(samples) -> np.ndarray | None:
    if samples is None or len(samples) < MIN_SAMPLES:
        return None
    arr = np.asarray([np.asarray(s, dtype=np.float64) for s in samples])
    return arr


def derivative_series(samples, h: float = 1.0) -> tuple[np.ndarray, np.ndarray] | None:
    """Per-sample derivatives of an ordered series.

    Parameters
    ----------
    samples : sequence of scalars or equal-length vectors, oldest first.
    h : float — sample spacing.

    Returns
    -------
    (first, second) with the same shape as the stacked samples, or
    ``None`` when fewer than three samples are given.
    """
    x = _stack(samples)
    if x is None:
        return None
    if h <= 0.0:
        raise ValueError(f"step h must be > 0, got {h}")

    first = np.empty_like(x)
    second = np.empty_like(x)

    first[1:-1] = (x[2:] - x[:-2]) / (2.0 * h)
    first[0] = (x[1] - x[0]) / h
    first[-1] = (x[-1] - x[-2]) / h

    second[1:-1] = (x[2:] - 2.0 * x[1:-1] + x[:-2]) / (h * h)
    second[0] = (x[2] - 2.0 * x[1] + x[0]) / (h * h)
    second[-1] = (x[-1] - 2.0 * x[-2] + x[-3]) / (h * h)
    return first, second


def finite_differences(samples, h: float = 1.0) -> FieldDerivatives | None:
    """Derivatives at the newest sample (backward stencils)."""
    series = derivative_series(samples, h)
    if series is None:
        return None
    first, second = series
    return FieldDerivatives(first=first[-1], second=second[-1])


def linear_trend(values) -> float | None:
    """Least-squares slope of *values* against their sample index."""
    y = np.asarray(values, dtype=np.float64)
    if y.size < 2:
        return None
    x = np.arange(y.size, dtype=np.float64)
    x_centered = x - x.mean()
    denom = float(np.dot(x_centered, x_centered))
    return float(np.dot(x_centered, y - y.mean()) / denom)


def mean_step(values) -> float | None:
    """Mean of consecutive differences, ``None`` with fewer than two values."""
    y = np.asarray(values, dtype=np.float64)
    if y.size < 2:
        return None
    return float(np.mean(np.diff(y)))

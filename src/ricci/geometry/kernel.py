# ─────────────────────────────────────────────────────────────────────
# RICCI — Tensor Algebra Kernel
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Dense determinant and inverse routines.

Both routines run explicit elimination with partial pivoting rather than
dispatching to LAPACK, so the pivot floor is applied exactly where the
metric builder's regularization expects it and results are bit-for-bit
reproducible for identical input.
"""

from __future__ import annotations

import logging

import numpy as np

from ..core.config import PIVOT_EPSILON
from ..core.exceptions import InvalidDimensionError, SingularMatrixError

logger = logging.getLogger("RICCI.Kernel")


def _as_square(matrix) -> np.ndarray:
    a = np.array(matrix, dtype=np.float64, copy=True)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise InvalidDimensionError(f"expected a square matrix, got shape {a.shape}")
    if not np.all(np.isfinite(a)):
        raise SingularMatrixError("matrix contains NaN or Inf values")
    return a


def determinant(matrix, pivot_epsilon: float = PIVOT_EPSILON) -> float:
    """Determinant by Gaussian elimination with partial pivoting.

    Returns 0.0 as soon as the best available pivot magnitude falls
    below *pivot_epsilon*.
    """
    a = _as_square(matrix)
    n = a.shape[0]
    if n == 0:
        return 1.0

    det = 1.0
    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(a[col:, col])))
        pivot = a[pivot_row, col]
        if abs(pivot) < pivot_epsilon:
            return 0.0
        if pivot_row != col:
            a[[col, pivot_row]] = a[[pivot_row, col]]
            det = -det
        det *= pivot
        if col + 1 < n:
            factors = a[col + 1 :, col] / pivot
            a[col + 1 :, col:] -= np.outer(factors, a[col, col:])
    return float(det)


def invert(matrix, pivot_epsilon: float = PIVOT_EPSILON) -> np.ndarray:
    """Inverse by Gauss–Jordan elimination on the augmented system ``[M | I]``.

    Raises
    ------
    SingularMatrixError
        If a column has no pivot with magnitude ≥ *pivot_epsilon*.
    """
    a = _as_square(matrix)
    n = a.shape[0]
    aug = np.hstack([a, np.eye(n, dtype=np.float64)])

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(aug[col:, col])))
        pivot = aug[pivot_row, col]
        if abs(pivot) < pivot_epsilon:
            logger.debug("No usable pivot in column %d (|pivot|=%.3e)", col, abs(pivot))
            raise SingularMatrixError(
                f"matrix is singular: |pivot| {abs(pivot):.3e} < {pivot_epsilon:.1e} "
                f"in column {col}",
                pivot=float(pivot),
                column=col,
            )
        if pivot_row != col:
            aug[[col, pivot_row]] = aug[[pivot_row, col]]
        aug[col] /= pivot
        factors = aug[:, col].copy()
        factors[col] = 0.0
        aug -= np.outer(factors, aug[col])

    return aug[:, n:]

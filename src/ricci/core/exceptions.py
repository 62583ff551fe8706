# ─────────────────────────────────────────────────────────────────────
# RICCI — Exception Hierarchy
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Structured exception hierarchy for RICCI.

All library-specific exceptions descend from ``RicciError`` so callers
can catch the entire family with a single except clause.
"""


class RicciError(Exception):
    """Base exception for all RICCI errors."""


class ValidationError(RicciError, ValueError):
    """Raised for invalid inputs (fields, thresholds, configs)."""


class NotFoundError(RicciError, KeyError):
    """Raised when a directly requested point or edge is absent."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")

    def __str__(self) -> str:
        return f"{self.kind} not found: {self.identifier}"


class InsufficientDataError(RicciError, ValueError):
    """Raised when a computation needs more samples than were supplied.

    Detectors recover from this locally and emit no signature.
    """

    def __init__(self, message: str, required: int = 0, available: int = 0):
        self.required = required
        self.available = available
        super().__init__(message)


class InvalidDimensionError(RicciError, ValueError):
    """Raised when a field or matrix does not match the configured dimension."""


class NumericalError(RicciError):
    """Raised when a numerical computation produces NaN/Inf."""


class SingularMatrixError(NumericalError):
    """Raised when a matrix has no usable pivot after regularization."""

    def __init__(self, message: str, pivot: float = 0.0, column: int = -1):
        self.pivot = pivot
        self.column = column
        super().__init__(message)

# ─────────────────────────────────────────────────────────────────────
# RICCI — Core Package (Data Model & Ambient Services)
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# Contact: www.anulum.li | protoscience@anulum.li
# ORCID: https://orcid.org/0009-0009-3560-0851
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""Configuration, exceptions, data model, metrics and audit."""

from .audit import AuditEntry, SignatureAuditLogger
from .config import RicciConfig
from .exceptions import (
    InsufficientDataError,
    InvalidDimensionError,
    NotFoundError,
    NumericalError,
    RicciError,
    SingularMatrixError,
    ValidationError,
)
from .metrics import MetricsCollector, metrics
from .types import (
    CoordinationCluster,
    CouplingEdge,
    DerivedGeometry,
    EscalationStep,
    ManifoldPoint,
    SapienceRecord,
    Signature,
    SignatureCategory,
    SignatureType,
)

__all__ = [
    "RicciConfig",
    "RicciError",
    "ValidationError",
    "NotFoundError",
    "InsufficientDataError",
    "InvalidDimensionError",
    "NumericalError",
    "SingularMatrixError",
    "ManifoldPoint",
    "DerivedGeometry",
    "CouplingEdge",
    "SapienceRecord",
    "Signature",
    "SignatureCategory",
    "SignatureType",
    "CoordinationCluster",
    "EscalationStep",
    "MetricsCollector",
    "metrics",
    "AuditEntry",
    "SignatureAuditLogger",
]

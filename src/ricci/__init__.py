# ─────────────────────────────────────────────────────────────────────
# RICCI — Package Initialisation
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# Contact: www.anulum.li | protoscience@anulum.li
# ORCID: https://orcid.org/0009-0009-3560-0851
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
RICCI: Riemannian Intrinsic Coherence & Coupling Infrastructure.

Geometric pathology detection over evolving embedding fields::

    from ricci import InMemoryStore, ManifoldPoint, RicciConfig, RicciEngine

    config = RicciConfig.from_profile("test")
    store = InMemoryStore(config.field_dimension, config.analysis_dimension)
    engine = RicciEngine(store, config)
    signatures = engine.detect_all(point_id)
"""

__version__ = "0.1.0"

from .core import (
    CoordinationCluster,
    CouplingEdge,
    DerivedGeometry,
    EscalationStep,
    InsufficientDataError,
    InvalidDimensionError,
    ManifoldPoint,
    NotFoundError,
    NumericalError,
    RicciConfig,
    RicciError,
    SapienceRecord,
    Signature,
    SignatureAuditLogger,
    SignatureCategory,
    SignatureType,
    SingularMatrixError,
    ValidationError,
)
from .dynamics import FieldEvolver
from .engine import RicciEngine
from .geometry import GeometryBuilder
from .signatures import DetectionThresholds, SignatureSnapshot, detect_all, detect_category
from .store import InMemoryStore, ManifoldStore

__all__ = [
    "__version__",
    "RicciEngine",
    "RicciConfig",
    "ManifoldStore",
    "InMemoryStore",
    "GeometryBuilder",
    "FieldEvolver",
    "SignatureSnapshot",
    "DetectionThresholds",
    "detect_all",
    "detect_category",
    "SignatureAuditLogger",
    # Data model
    "ManifoldPoint",
    "DerivedGeometry",
    "CouplingEdge",
    "SapienceRecord",
    "Signature",
    "SignatureCategory",
    "SignatureType",
    "CoordinationCluster",
    "EscalationStep",
    # Exceptions
    "RicciError",
    "ValidationError",
    "NotFoundError",
    "InsufficientDataError",
    "InvalidDimensionError",
    "NumericalError",
    "SingularMatrixError",
]

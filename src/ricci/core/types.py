# ─────────────────────────────────────────────────────────────────────
# RICCI — Shared Types (Manifold Data Model)
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

import numpy as np

from .config import DETERMINANT_FLOOR
from .exceptions import InvalidDimensionError, ValidationError

_clamp_logger = logging.getLogger("RICCI.Types")


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    """Clamp *value* to [lo, hi], replacing NaN/Inf with boundary values."""
    if math.isnan(value):
        _clamp_logger.warning("NaN in _clamp, replacing with %s", lo)
        return lo
    if math.isinf(value):
        replacement = hi if value > 0 else lo
        _clamp_logger.warning("Inf in _clamp, replacing with %s", replacement)
        return replacement
    return max(lo, min(hi, value))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    """Naive timestamps are taken to be UTC; aware ones are kept as given."""
    if moment.tzinfo is None or moment.utcoffset() is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _new_id() -> str:
    return str(uuid.uuid4())


class SignatureCategory(str, Enum):
    """The four pathology families, in evaluation order."""

    RIGIDITY = "rigidity"
    FRAGMENTATION = "fragmentation"
    INFLATION = "inflation"
    DISTORTION = "distortion"


class SignatureType(str, Enum):
    """The twelve detectable evolution pathologies."""

    METRIC_CRYSTALLIZATION = "METRIC_CRYSTALLIZATION"
    FIELD_CALCIFICATION = "FIELD_CALCIFICATION"
    ATTRACTOR_ISOLATION = "ATTRACTOR_ISOLATION"
    ATTRACTOR_DISSOCIATION = "ATTRACTOR_DISSOCIATION"
    FIELD_DISSOLUTION = "FIELD_DISSOLUTION"
    COUPLING_DISPERSION = "COUPLING_DISPERSION"
    STRUCTURE_HYPEREXPANSION = "STRUCTURE_HYPEREXPANSION"
    FIELD_HYPERCOHERENCE = "FIELD_HYPERCOHERENCE"
    BOUNDARY_HYPERASYMMETRY = "BOUNDARY_HYPERASYMMETRY"
    SIGNAL_PROJECTION = "SIGNAL_PROJECTION"
    OPERATIVE_DECOUPLING = "OPERATIVE_DECOUPLING"
    RECURSIVE_HYPERCOUPLING = "RECURSIVE_HYPERCOUPLING"

    @property
    def category(self) -> SignatureCategory:
        return _CATEGORY_OF[self]


_CATEGORY_OF = {
    SignatureType.METRIC_CRYSTALLIZATION: SignatureCategory.RIGIDITY,
    SignatureType.FIELD_CALCIFICATION: SignatureCategory.RIGIDITY,
    SignatureType.ATTRACTOR_ISOLATION: SignatureCategory.RIGIDITY,
    SignatureType.ATTRACTOR_DISSOCIATION: SignatureCategory.FRAGMENTATION,
    SignatureType.FIELD_DISSOLUTION: SignatureCategory.FRAGMENTATION,
    SignatureType.COUPLING_DISPERSION: SignatureCategory.FRAGMENTATION,
    SignatureType.STRUCTURE_HYPEREXPANSION: SignatureCategory.INFLATION,
    SignatureType.FIELD_HYPERCOHERENCE: SignatureCategory.INFLATION,
    SignatureType.BOUNDARY_HYPERASYMMETRY: SignatureCategory.INFLATION,
    SignatureType.SIGNAL_PROJECTION: SignatureCategory.DISTORTION,
    SignatureType.OPERATIVE_DECOUPLING: SignatureCategory.DISTORTION,
    SignatureType.RECURSIVE_HYPERCOUPLING: SignatureCategory.DISTORTION,
}


@dataclass
class DerivedGeometry:
    """Geometric state computed for one point, persisted via the store."""

    metric: np.ndarray  # (d, d) symmetric
    inverse: np.ndarray  # (d, d)
    christoffel: np.ndarray  # (d, d, d), [k, i, j] = Γᵏᵢⱼ
    curvature: np.ndarray  # (d, d) Ricci tensor
    scalar_curvature: float
    determinant: float  # regularized away from zero
    semantic_mass: float


@dataclass
class ManifoldPoint:
    """One analyzed unit of field data (e.g. one message).

    Identity fields are fixed at construction; derived geometry stays
    ``None`` until explicitly computed and applied.
    """

    semantic_field: np.ndarray
    coherence_field: np.ndarray
    id: str = field(default_factory=_new_id)
    group_id: str | None = None
    actor_id: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    coherence_magnitude: float | None = None

    # Semantic-mass components
    recursive_depth: float = 1.0
    constraint_density: float = 1.0
    attractor_stability: float = 0.5

    # Derived geometry
    metric_tensor: np.ndarray | None = None
    metric_inverse: np.ndarray | None = None
    metric_determinant: float | None = None
    semantic_mass: float | None = None
    christoffel: np.ndarray | None = None
    curvature: np.ndarray | None = None
    scalar_curvature: float | None = None

    def __post_init__(self) -> None:
        self.semantic_field = np.asarray(self.semantic_field, dtype=np.float64)
        self.coherence_field = np.asarray(self.coherence_field, dtype=np.float64)
        if self.semantic_field.ndim != 1 or self.coherence_field.ndim != 1:
            raise InvalidDimensionError("semantic and coherence fields must be 1-D")
        if self.semantic_field.shape != self.coherence_field.shape:
            raise InvalidDimensionError(
                f"semantic field length {self.semantic_field.shape[0]} != "
                f"coherence field length {self.coherence_field.shape[0]}"
            )
        if self.coherence_magnitude is None:
            self.coherence_magnitude = float(np.linalg.norm(self.coherence_field))
        self.created_at = _as_utc(self.created_at)

    @property
    def dimension(self) -> int:
        return int(self.semantic_field.shape[0])

    @property
    def has_geometry(self) -> bool:
        return self.metric_tensor is not None

    def validate_dimension(self, field_dimension: int, analysis_dimension: int) -> None:
        """Raise ``InvalidDimensionError`` if fields do not match the config."""
        if self.dimension != field_dimension:
            raise InvalidDimensionError(
                f"point {self.id}: field length {self.dimension} != "
                f"configured field dimension {field_dimension}"
            )
        if self.dimension < analysis_dimension:
            raise InvalidDimensionError(
                f"point {self.id}: field length {self.dimension} < "
                f"analysis dimension {analysis_dimension}"
            )

    def apply_geometry(self, geometry: DerivedGeometry) -> None:
        """Copy computed geometry onto this point."""
        self.metric_tensor = geometry.metric
        self.metric_inverse = geometry.inverse
        self.metric_determinant = geometry.determinant
        self.constraint_density = 1.0 / max(abs(geometry.determinant), DETERMINANT_FLOOR)
        self.christoffel = geometry.christoffel
        self.curvature = geometry.curvature
        self.scalar_curvature = geometry.scalar_curvature
        self.semantic_mass = geometry.semantic_mass

    def mass_or_default(self, floor: float = DETERMINANT_FLOOR) -> float:
        """Stored semantic mass, or the mass implied by the stored components."""
        if self.semantic_mass is not None:
            return float(self.semantic_mass)
        det = self.metric_determinant if self.metric_determinant is not None else 1.0
        return self.recursive_depth * (1.0 / max(det, floor)) * self.attractor_stability


@dataclass
class CouplingEdge:
    """Directed coupling between two points (self-pairs allowed)."""

    point_p: str
    point_q: str
    magnitude: float
    tensor: np.ndarray | None = None  # (d, d, d)
    evolution_rate: float = 0.0
    computed_at: datetime = field(default_factory=_utcnow)
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        if not math.isfinite(self.magnitude) or self.magnitude < 0.0:
            raise ValidationError(
                f"coupling magnitude must be finite and >= 0, got {self.magnitude}"
            )
        self.computed_at = _as_utc(self.computed_at)

    @property
    def is_self(self) -> bool:
        return self.point_p == self.point_q


@dataclass
class SapienceRecord:
    """Externally supplied regulatory signal for one point (read-only)."""

    point_id: str
    sapience: float
    circumspection_factor: float
    forecast_sensitivity: float = 0.0
    gradient_response: float = 0.0
    recursion_regulation: float = 0.0
    computed_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not (0.0 <= self.sapience <= 1.0):
            raise ValidationError(f"sapience must be in [0, 1], got {self.sapience}")
        if not (0.0 <= self.circumspection_factor <= 1.0):
            raise ValidationError(
                "circumspection_factor must be in [0, 1], "
                f"got {self.circumspection_factor}"
            )
        self.computed_at = _as_utc(self.computed_at)


@dataclass
class Signature:
    """One detected pathology instance with severity and literal evidence."""

    signature_type: SignatureType
    severity: float
    geometric_signature: tuple[float, ...]
    evidence: str
    point_id: str = ""

    def __post_init__(self) -> None:
        self.severity = _clamp(float(self.severity))
        self.geometric_signature = tuple(float(v) for v in self.geometric_signature)
        if not self.geometric_signature:
            raise ValidationError("geometric_signature must not be empty")
        if not self.evidence:
            raise ValidationError("evidence must not be empty")

    @property
    def category(self) -> SignatureCategory:
        return self.signature_type.category

    def to_dict(self) -> dict:
        return {
            "signature_type": self.signature_type.value,
            "category": self.category.value,
            "severity": self.severity,
            "geometric_signature": list(self.geometric_signature),
            "evidence": self.evidence,
            "point_id": self.point_id,
        }


@dataclass
class CoordinationCluster:
    """A time bucket with enough strong cross-actor coupling edges."""

    window_start: datetime
    window_end: datetime
    cluster_size: int  # qualifying edge count
    actor_ids: tuple[str, ...]
    point_ids: tuple[str, ...]
    mean_coupling: float
    mean_geometric_coherence: float
    mean_mass: float
    confidence: float


@dataclass
class EscalationStep:
    """Escalation assessment for one point in an ordered trajectory."""

    point_id: str
    coherence_magnitude: float
    velocity: float
    acceleration: float
    scalar_curvature: float
    semantic_mass: float
    circumspection: float
    escalation_score: float
    intervention_urgency: bool = False

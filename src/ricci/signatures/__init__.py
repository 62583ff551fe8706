# ─────────────────────────────────────────────────────────────────────
# RICCI — Signature Detector Package
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# Contact: www.anulum.li | protoscience@anulum.li
# ORCID: https://orcid.org/0009-0009-3560-0851
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Twelve stateless pathology detectors in four categories.

Quick start::

    from ricci.signatures import SignatureSnapshot, detect_all

    signatures = detect_all(SignatureSnapshot(point=p, as_of=now, history=[...]))
"""

from .base import SignatureSnapshot
from .distortion import (
    DecouplingThresholds,
    DistortionThresholds,
    HypercouplingThresholds,
    ProjectionThresholds,
    detect_distortion,
    detect_operative_decoupling,
    detect_recursive_hypercoupling,
    detect_signal_projection,
)
from .fragmentation import (
    DispersionThresholds,
    DissociationThresholds,
    DissolutionThresholds,
    FragmentationThresholds,
    detect_attractor_dissociation,
    detect_coupling_dispersion,
    detect_field_dissolution,
    detect_fragmentation,
)
from .inflation import (
    HyperasymmetryThresholds,
    HypercoherenceThresholds,
    HyperexpansionThresholds,
    InflationThresholds,
    detect_boundary_hyperasymmetry,
    detect_field_hypercoherence,
    detect_inflation,
    detect_structure_hyperexpansion,
)
from .registry import (
    CATEGORY_ORDER,
    DetectionThresholds,
    detect_all,
    detect_category,
)
from .rigidity import (
    CalcificationThresholds,
    CrystallizationThresholds,
    IsolationThresholds,
    RigidityThresholds,
    detect_attractor_isolation,
    detect_field_calcification,
    detect_metric_crystallization,
    detect_rigidity,
)

__all__ = [
    "SignatureSnapshot",
    "CATEGORY_ORDER",
    "DetectionThresholds",
    "detect_all",
    "detect_category",
    # Rigidity
    "RigidityThresholds",
    "CrystallizationThresholds",
    "CalcificationThresholds",
    "IsolationThresholds",
    "detect_rigidity",
    "detect_metric_crystallization",
    "detect_field_calcification",
    "detect_attractor_isolation",
    # Fragmentation
    "FragmentationThresholds",
    "DissociationThresholds",
    "DissolutionThresholds",
    "DispersionThresholds",
    "detect_fragmentation",
    "detect_attractor_dissociation",
    "detect_field_dissolution",
    "detect_coupling_dispersion",
    # Inflation
    "InflationThresholds",
    "HyperexpansionThresholds",
    "HypercoherenceThresholds",
    "HyperasymmetryThresholds",
    "detect_inflation",
    "detect_structure_hyperexpansion",
    "detect_field_hypercoherence",
    "detect_boundary_hyperasymmetry",
    # Distortion
    "DistortionThresholds",
    "ProjectionThresholds",
    "DecouplingThresholds",
    "HypercouplingThresholds",
    "detect_distortion",
    "detect_signal_projection",
    "detect_operative_decoupling",
    "detect_recursive_hypercoupling",
]

# ─────────────────────────────────────────────────────────────────────
# RICCI — Signature Snapshot & Shared Detector Helpers
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Explicit input state for the pathology detectors.

Detectors never touch a store. The engine gathers everything a detector
may read into one ``SignatureSnapshot`` and every time window is applied
relative to ``snapshot.as_of``, so the same snapshot always produces the
same signatures.

Evidence text is an audited format: values are fixed-point with three
decimals (percentages with one) and every comparison names both the
observed value and the literal threshold it was compared against.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..core.config import DEFAULT_ANALYSIS_DIMENSION, SEVERITY_EPSILON
from ..core.types import CouplingEdge, ManifoldPoint, SapienceRecord

logger = logging.getLogger("RICCI.Signatures")

MIN_HISTORY = 3


def fx(value: float) -> str:
    """Fixed-point, three decimals."""
    return f"{value:.3f}"


def pct(fraction: float) -> str:
    """Percentage with one decimal (``0.9859 -> '98.6'``)."""
    return f"{fraction * 100.0:.1f}"


def _within(timestamp: datetime, as_of: datetime, window: timedelta | None) -> bool:
    if timestamp > as_of:
        return False
    return window is None or timestamp >= as_of - window


@dataclass
class SignatureSnapshot:
    """Everything the twelve detectors can see for one point.

    Parameters
    ----------
    point : ManifoldPoint — the point under analysis.
    as_of : datetime — reference time for every window.
    history : list[ManifoldPoint] — the actor's points (or just the point
        when it has no actor), oldest first.
    edges : list[CouplingEdge] — coupling edges with ``point_p == point.id``.
    actor_edges : list[CouplingEdge] — edges whose source belongs to the
        actor (the point's own edges when it has no actor).
    sapience : SapienceRecord | None — latest regulatory signal.
    consensus_baseline : ManifoldPoint | None — latest point of any other actor.
    ecological_masses : list[tuple[datetime, float]] — mean semantic mass of
        the other actors per timestamp, oldest first.
    external_masses : dict[str, float] — semantic mass of edge targets.
    """

    point: ManifoldPoint
    as_of: datetime
    history: list[ManifoldPoint] = field(default_factory=list)
    edges: list[CouplingEdge] = field(default_factory=list)
    actor_edges: list[CouplingEdge] = field(default_factory=list)
    sapience: SapienceRecord | None = None
    consensus_baseline: ManifoldPoint | None = None
    ecological_masses: list[tuple[datetime, float]] = field(default_factory=list)
    external_masses: dict[str, float] = field(default_factory=dict)
    analysis_dimension: int = DEFAULT_ANALYSIS_DIMENSION
    small_window: int = 10
    severity_epsilon: float = SEVERITY_EPSILON

    def history_within(self, window: timedelta | None) -> list[ManifoldPoint]:
        """History points inside ``[as_of - window, as_of]``, oldest first."""
        points = [p for p in self.history if _within(p.created_at, self.as_of, window)]
        return sorted(points, key=lambda p: p.created_at)

    def edges_within(self, window: timedelta | None) -> list[CouplingEdge]:
        """The point's own edges inside the window, oldest first."""
        edges = [e for e in self.edges if _within(e.computed_at, self.as_of, window)]
        return sorted(edges, key=lambda e: e.computed_at)

    def actor_edges_within(self, window: timedelta | None) -> list[CouplingEdge]:
        """Actor edges inside the window, oldest first."""
        edges = [e for e in self.actor_edges if _within(e.computed_at, self.as_of, window)]
        return sorted(edges, key=lambda e: e.computed_at)

    def ecological_within(self, window: timedelta | None) -> list[float]:
        series = [
            (ts, mass)
            for ts, mass in self.ecological_masses
            if _within(ts, self.as_of, window)
        ]
        return [mass for _, mass in sorted(series, key=lambda item: item[0])]

    def sapience_or(self, default: float) -> float:
        return self.sapience.sapience if self.sapience is not None else default

    def circumspection_or(self, default: float) -> float:
        if self.sapience is None:
            return default
        return self.sapience.circumspection_factor

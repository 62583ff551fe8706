# ─────────────────────────────────────────────────────────────────────
# RICCI — Manifold Store Protocol & In-Memory Backend
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Backing-store collaborator for the engine.

Persistent storage and indexing live outside the core; anything that
implements ``ManifoldStore`` can back a ``RicciEngine``. ``InMemoryStore``
is the reference implementation used by the tests and by callers that
keep their points in process.

Reads return snapshots (new lists), so a concurrent writer can make a
read stale but never inconsistent.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import numpy as np

from .core.config import DEFAULT_ANALYSIS_DIMENSION, DEFAULT_FIELD_DIMENSION
from .core.exceptions import NotFoundError
from .core.types import CouplingEdge, DerivedGeometry, ManifoldPoint, SapienceRecord, _as_utc

logger = logging.getLogger("RICCI.Store")


def _in_window(ts: datetime, window: timedelta | None, as_of: datetime | None) -> bool:
    if as_of is not None:
        as_of = _as_utc(as_of)
    if as_of is not None and ts > as_of:
        return False
    if window is None:
        return True
    reference = as_of or datetime.now(timezone.utc)
    return ts >= reference - window


class ManifoldStore(ABC):
    """Protocol for manifold backing stores.

    ``window=None`` means unbounded; ``as_of=None`` means now.
    """

    @abstractmethod
    def get_point(self, point_id: str) -> ManifoldPoint | None: ...

    @abstractmethod
    def get_history(
        self,
        actor_or_point: str,
        window: timedelta | None = None,
        as_of: datetime | None = None,
    ) -> list[ManifoldPoint]:
        """Points of an actor (or of a point's actor), oldest first."""

    @abstractmethod
    def get_coupling_edges(
        self,
        point_or_actor: str,
        window: timedelta | None = None,
        as_of: datetime | None = None,
    ) -> list[CouplingEdge]:
        """Edges whose source is the point, or any point of the actor."""

    @abstractmethod
    def get_sapience(self, point_id: str) -> SapienceRecord | None: ...

    @abstractmethod
    def persist_derived(self, point_id: str, geometry: DerivedGeometry) -> None: ...

    @abstractmethod
    def get_neighbors(self, point_id: str, k: int) -> list[ManifoldPoint]: ...

    @abstractmethod
    def get_consensus_baseline(
        self, actor_id: str, as_of: datetime | None = None
    ) -> ManifoldPoint | None:
        """Latest point belonging to any other actor."""

    @abstractmethod
    def get_ecological_mass_series(
        self,
        actor_id: str,
        window: timedelta | None = None,
        as_of: datetime | None = None,
    ) -> list[tuple[datetime, float]]:
        """Mean semantic mass of all other actors per timestamp, oldest first."""

    @abstractmethod
    def get_latest_edge(self, point_p: str, point_q: str) -> CouplingEdge | None: ...

    @abstractmethod
    def get_all_edges(
        self,
        window: timedelta | None = None,
        as_of: datetime | None = None,
    ) -> list[CouplingEdge]: ...

    @abstractmethod
    def persist_edge(self, edge: CouplingEdge) -> None: ...

    @abstractmethod
    def all_points(self) -> list[ManifoldPoint]: ...


class InMemoryStore(ManifoldStore):
    """Dict-backed store (no external deps).

    Parameters
    ----------
    field_dimension : int — required field length; enforced on insert.
    analysis_dimension : int — d, used for neighbour distances.
    """

    def __init__(
        self,
        field_dimension: int = DEFAULT_FIELD_DIMENSION,
        analysis_dimension: int = DEFAULT_ANALYSIS_DIMENSION,
    ) -> None:
        self.field_dimension = field_dimension
        self.analysis_dimension = analysis_dimension
        self._points: dict[str, ManifoldPoint] = {}
        self._edges: list[CouplingEdge] = []
        self._sapience: dict[str, list[SapienceRecord]] = defaultdict(list)
        self._lock = threading.Lock()

    # ── Writes ────────────────────────────────────────────────────────

    def add_point(self, point: ManifoldPoint) -> ManifoldPoint:
        """Insert a point; raises ``InvalidDimensionError`` on length mismatch."""
        point.validate_dimension(self.field_dimension, self.analysis_dimension)
        with self._lock:
            self._points[point.id] = point
        return point

    def add_edge(self, edge: CouplingEdge) -> CouplingEdge:
        self.persist_edge(edge)
        return edge

    def persist_edge(self, edge: CouplingEdge) -> None:
        with self._lock:
            self._edges.append(edge)

    def set_sapience(self, record: SapienceRecord) -> None:
        with self._lock:
            self._sapience[record.point_id].append(record)

    def persist_derived(self, point_id: str, geometry: DerivedGeometry) -> None:
        with self._lock:
            point = self._points.get(point_id)
            if point is None:
                raise NotFoundError("point", point_id)
            point.apply_geometry(geometry)
        logger.debug("Persisted geometry for %s", point_id)

    # ── Reads ─────────────────────────────────────────────────────────

    def get_point(self, point_id: str) -> ManifoldPoint | None:
        return self._points.get(point_id)

    def all_points(self) -> list[ManifoldPoint]:
        with self._lock:
            return sorted(self._points.values(), key=lambda p: (p.created_at, p.id))

    def _actor_points(self, actor_id: str) -> list[ManifoldPoint]:
        return [p for p in self.all_points() if p.actor_id == actor_id]

    def _resolve(self, key: str) -> list[ManifoldPoint]:
        point = self._points.get(key)
        if point is not None:
            if point.actor_id is None:
                return [point]
            return self._actor_points(point.actor_id)
        return self._actor_points(key)

    def get_history(
        self,
        actor_or_point: str,
        window: timedelta | None = None,
        as_of: datetime | None = None,
    ) -> list[ManifoldPoint]:
        return [p for p in self._resolve(actor_or_point) if _in_window(p.created_at, window, as_of)]

    def get_coupling_edges(
        self,
        point_or_actor: str,
        window: timedelta | None = None,
        as_of: datetime | None = None,
    ) -> list[CouplingEdge]:
        if point_or_actor in self._points:
            sources = {point_or_actor}
        else:
            sources = {p.id for p in self._actor_points(point_or_actor)}
        with self._lock:
            edges = list(self._edges)
        return sorted(
            (
                e
                for e in edges
                if e.point_p in sources and _in_window(e.computed_at, window, as_of)
            ),
            key=lambda e: e.computed_at,
        )

    def get_all_edges(
        self,
        window: timedelta | None = None,
        as_of: datetime | None = None,
    ) -> list[CouplingEdge]:
        with self._lock:
            edges = list(self._edges)
        return sorted(
            (e for e in edges if _in_window(e.computed_at, window, as_of)),
            key=lambda e: e.computed_at,
        )

    def get_latest_edge(self, point_p: str, point_q: str) -> CouplingEdge | None:
        with self._lock:
            matches = [e for e in self._edges if e.point_p == point_p and e.point_q == point_q]
        if not matches:
            return None
        return max(matches, key=lambda e: e.computed_at)

    def get_sapience(self, point_id: str) -> SapienceRecord | None:
        with self._lock:
            records = list(self._sapience.get(point_id, []))
        if not records:
            return None
        return max(records, key=lambda r: r.computed_at)

    def get_neighbors(self, point_id: str, k: int) -> list[ManifoldPoint]:
        """The *k* nearest other points by semantic distance over d."""
        point = self._points.get(point_id)
        if point is None:
            raise NotFoundError("point", point_id)
        d = self.analysis_dimension
        origin = point.semantic_field[:d]
        ranked = sorted(
            (
                (float(np.linalg.norm(other.semantic_field[:d] - origin)), other.id, other)
                for other in self.all_points()
                if other.id != point_id
            ),
            key=lambda item: (item[0], item[1]),
        )
        return [other for _, _, other in ranked[:k]]

    def get_consensus_baseline(
        self, actor_id: str, as_of: datetime | None = None
    ) -> ManifoldPoint | None:
        others = [
            p
            for p in self.all_points()
            if p.actor_id is not None
            and p.actor_id != actor_id
            and (as_of is None or p.created_at <= as_of)
        ]
        return others[-1] if others else None

    def get_ecological_mass_series(
        self,
        actor_id: str,
        window: timedelta | None = None,
        as_of: datetime | None = None,
    ) -> list[tuple[datetime, float]]:
        grouped: dict[datetime, list[float]] = defaultdict(list)
        for p in self.all_points():
            if p.actor_id is None or p.actor_id == actor_id:
                continue
            if _in_window(p.created_at, window, as_of):
                grouped[p.created_at].append(p.mass_or_default())
        return [(ts, float(np.mean(masses))) for ts, masses in sorted(grouped.items())]

# ─────────────────────────────────────────────────────────────────────
# RICCI — Engine (Service Facade)
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Wires a ``ManifoldStore`` to the geometry builder, the detectors, the
integrator and the aggregate analyzers.

Usage::

    store = InMemoryStore(field_dimension=2000)
    engine = RicciEngine(store, RicciConfig.from_env())
    engine.compute_geometry(point_id)
    for sig in engine.detect_all(point_id):
        print(sig.signature_type.value, sig.severity, sig.evidence)
"""

from __future__ import annotations

import dataclasses
import logging
import time
from datetime import datetime, timedelta, timezone

import numpy as np

from .analysis.aggregate import coordination_via_coupling, escalation_via_field_evolution
from .core.audit import SignatureAuditLogger
from .core.config import RicciConfig
from .core.exceptions import InsufficientDataError, NotFoundError, SingularMatrixError
from .core.metrics import MetricsCollector
from .core.metrics import metrics as default_metrics
from .core.types import (
    CoordinationCluster,
    CouplingEdge,
    DerivedGeometry,
    EscalationStep,
    ManifoldPoint,
    Signature,
    SignatureCategory,
    _as_utc,
)
from .dynamics.integrator import FieldEvolver
from .geometry.coupling import build_edge
from .geometry.derivatives import MIN_SAMPLES
from .geometry.metric import GeometryBuilder
from .signatures import registry
from .signatures.base import SignatureSnapshot
from .store import ManifoldStore


def _longest_window(thresholds) -> timedelta:
    """Largest ``timedelta`` found anywhere in a (nested) threshold dataclass."""
    longest = timedelta(0)
    for fld in dataclasses.fields(thresholds):
        value = getattr(thresholds, fld.name)
        if isinstance(value, timedelta):
            longest = max(longest, value)
        elif dataclasses.is_dataclass(value):
            longest = max(longest, _longest_window(value))
    return longest


class RicciEngine:
    """Request-scoped facade over a manifold store.

    Parameters
    ----------
    store : ManifoldStore — backing store (points, edges, sapience).
    config : RicciConfig | None — defaults to ``RicciConfig()``.
    audit : SignatureAuditLogger | None — defaults to a logger writing to
        ``config.audit_log_path`` when that is set.
    collector : MetricsCollector | None — defaults to the module-level
        collector (or a disabled one when ``metrics_enabled`` is False).
    """

    def __init__(
        self,
        store: ManifoldStore,
        config: RicciConfig | None = None,
        audit: SignatureAuditLogger | None = None,
        collector: MetricsCollector | None = None,
    ) -> None:
        self.store = store
        self.config = config or RicciConfig()
        self.logger = logging.getLogger("RICCI.Engine")
        self.geometry = GeometryBuilder(self.config)
        self.evolver = FieldEvolver(self.config)
        if collector is not None:
            self.metrics = collector
        elif self.config.metrics_enabled:
            self.metrics = default_metrics
        else:
            self.metrics = MetricsCollector(enabled=False)
        if audit is None and self.config.audit_log_path:
            audit = SignatureAuditLogger(self.config.audit_log_path)
        self.audit = audit

    # ── Single-entity access ──────────────────────────────────────────

    def get_point(self, point_id: str) -> ManifoldPoint:
        point = self.store.get_point(point_id)
        if point is None:
            raise NotFoundError("point", point_id)
        return point

    def compute_geometry(self, point_id: str) -> DerivedGeometry | None:
        """Build and persist the geometric state of one point.

        Returns ``None`` when the point has too few neighbours.

        Raises
        ------
        NotFoundError
            Unknown point.
        SingularMatrixError
            The metric could not be regularized; the point should be flagged.
        """
        point = self.get_point(point_id)
        neighbors = self.store.get_neighbors(point_id, self.config.neighbor_count)
        try:
            with self.metrics.timer("geometry_duration_seconds"):
                geometry = self.geometry.build(point, neighbors)
        except InsufficientDataError as exc:
            self.metrics.inc("insufficient_data_total")
            self.logger.info("Geometry skipped for %s: %s", point_id, exc)
            return None
        except SingularMatrixError as exc:
            self.metrics.inc("singular_matrix_total")
            self.logger.error(
                "Singular metric for point %s: %s", point_id, exc, extra={"point_id": point_id}
            )
            raise
        self.store.persist_derived(point_id, geometry)
        return geometry

    def compute_coupling(self, p_id: str, q_id: str, persist: bool = True) -> CouplingEdge:
        """Coupling edge p → q with evolution rate against the last p → q edge."""
        p = self.get_point(p_id)
        q = self.get_point(q_id)
        edge = build_edge(
            p,
            q,
            h=self.config.coupling_step,
            dimension=self.config.analysis_dimension,
            previous=self.store.get_latest_edge(p_id, q_id),
        )
        if persist:
            self.store.persist_edge(edge)
        return edge

    # ── Detection ─────────────────────────────────────────────────────

    def snapshot(
        self,
        point: ManifoldPoint,
        as_of: datetime | None = None,
        lookback: timedelta | None = None,
    ) -> SignatureSnapshot:
        """Gather everything the detectors may read for *point*.

        Raises ``InvalidDimensionError`` if the point does not match the
        configured dimensions.
        """
        point.validate_dimension(self.config.field_dimension, self.config.analysis_dimension)
        as_of = _as_utc(as_of) if as_of is not None else datetime.now(timezone.utc)
        key = point.actor_id or point.id

        edges = self.store.get_coupling_edges(point.id, lookback, as_of)
        actor_edges = (
            self.store.get_coupling_edges(key, lookback, as_of) if point.actor_id else list(edges)
        )
        external_masses: dict[str, float] = {}
        for edge in edges:
            target = self.store.get_point(edge.point_q)
            if target is not None:
                external_masses[edge.point_q] = target.mass_or_default(
                    self.config.determinant_floor
                )

        return SignatureSnapshot(
            point=point,
            as_of=as_of,
            history=self.store.get_history(key, lookback, as_of),
            edges=edges,
            actor_edges=actor_edges,
            sapience=self.store.get_sapience(point.id),
            consensus_baseline=(
                self.store.get_consensus_baseline(point.actor_id, as_of)
                if point.actor_id
                else None
            ),
            ecological_masses=(
                self.store.get_ecological_mass_series(point.actor_id, lookback, as_of)
                if point.actor_id
                else []
            ),
            external_masses=external_masses,
            analysis_dimension=self.config.analysis_dimension,
            small_window=self.config.small_window,
            severity_epsilon=self.config.severity_epsilon,
        )

    def _record(self, signatures: list[Signature], started: float) -> None:
        elapsed = time.monotonic() - started
        self.metrics.inc("detections_total")
        self.metrics.observe("detection_duration_seconds", elapsed)
        for sig in signatures:
            self.metrics.record_signature(sig.signature_type.value, sig.severity)
            self.logger.info(
                "%s on %s: severity=%.3f",
                sig.signature_type.value,
                sig.point_id,
                sig.severity,
                extra={"point_id": sig.point_id},
            )
        if self.audit is not None and signatures:
            self.audit.log_signatures(signatures, latency_ms=elapsed * 1000.0)

    def detect_category(
        self,
        point_id: str,
        category: SignatureCategory | str,
        thresholds=None,
        as_of: datetime | None = None,
    ) -> list[Signature]:
        """Run one category's detectors; a missing point yields no signatures."""
        point = self.store.get_point(point_id)
        if point is None:
            self.logger.debug("detect_category: point %s not found", point_id)
            return []
        category = SignatureCategory(category)
        thresholds = thresholds or registry.DetectionThresholds().for_category(category)
        started = time.monotonic()
        snapshot = self.snapshot(point, as_of, _longest_window(thresholds) or None)
        signatures = registry.detect_category(snapshot, category, thresholds)
        self._record(signatures, started)
        return signatures

    def detect_rigidity(self, point_id: str, thresholds=None, as_of=None) -> list[Signature]:
        return self.detect_category(point_id, SignatureCategory.RIGIDITY, thresholds, as_of)

    def detect_fragmentation(self, point_id: str, thresholds=None, as_of=None) -> list[Signature]:
        return self.detect_category(point_id, SignatureCategory.FRAGMENTATION, thresholds, as_of)

    def detect_inflation(self, point_id: str, thresholds=None, as_of=None) -> list[Signature]:
        return self.detect_category(point_id, SignatureCategory.INFLATION, thresholds, as_of)

    def detect_distortion(self, point_id: str, thresholds=None, as_of=None) -> list[Signature]:
        return self.detect_category(point_id, SignatureCategory.DISTORTION, thresholds, as_of)

    def detect_all(
        self,
        point_id: str,
        thresholds: registry.DetectionThresholds | None = None,
        as_of: datetime | None = None,
    ) -> list[Signature]:
        """All four categories in fixed order.

        Only ``InvalidDimensionError`` aborts the call.
        """
        point = self.store.get_point(point_id)
        if point is None:
            self.logger.debug("detect_all: point %s not found", point_id)
            return []
        thresholds = thresholds or registry.DetectionThresholds()
        started = time.monotonic()
        snapshot = self.snapshot(point, as_of, _longest_window(thresholds) or None)
        signatures = registry.detect_all(snapshot, thresholds)
        self._record(signatures, started)
        return signatures

    # ── Dynamics ──────────────────────────────────────────────────────

    def evolve(self, point_id: str, dt: float | None = None) -> np.ndarray:
        """Next coherence field of *point_id* after one Euler step."""
        point = self.get_point(point_id)
        key = point.actor_id or point.id
        history = self.store.get_history(key, None, point.created_at)
        return self.evolver.step(point, history[-MIN_SAMPLES:], dt)

    # ── Aggregates ────────────────────────────────────────────────────

    def coordination_clusters(
        self,
        window: timedelta = timedelta(hours=1),
        coupling_threshold: float = 0.5,
        min_cluster_size: int = 3,
        bucket: timedelta = timedelta(minutes=5),
        as_of: datetime | None = None,
    ) -> list[CoordinationCluster]:
        as_of = _as_utc(as_of) if as_of is not None else datetime.now(timezone.utc)
        edges = self.store.get_all_edges(window, as_of)
        points = {p.id: p for p in self.store.all_points()}
        return coordination_via_coupling(
            edges,
            points,
            as_of,
            window=window,
            coupling_threshold=coupling_threshold,
            min_cluster_size=min_cluster_size,
            bucket=bucket,
            dimension=self.config.analysis_dimension,
        )

    def escalation(self, point_ids: list[str]) -> list[EscalationStep]:
        """Escalation trajectory over the given points, in the given order."""
        points = [self.get_point(pid) for pid in point_ids]
        circumspection_by_point: dict[str, float] = {}
        for point in points:
            record = self.store.get_sapience(point.id)
            if record is not None:
                circumspection_by_point[point.id] = record.circumspection_factor
        return escalation_via_field_evolution(points, circumspection_by_point)

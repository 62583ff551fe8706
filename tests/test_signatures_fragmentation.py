"""Tests for fragmentation detectors (signatures/fragmentation.py)."""

from __future__ import annotations

import pytest

from ricci.core.types import SapienceRecord, SignatureType
from ricci.signatures.fragmentation import (
    DispersionThresholds,
    detect_attractor_dissociation,
    detect_coupling_dispersion,
    detect_field_dissolution,
    detect_fragmentation,
)


def _series(make_point, coherences, spacing=30.0, actor="a1"):
    n = len(coherences)
    return [
        make_point(
            coherence=c, pid=f"h{i}", actor=actor, minutes_ago=spacing * (n - 1 - i), seed=i
        )
        for i, c in enumerate(coherences)
    ]


class TestAttractorDissociation:
    def test_fires_when_direction_keeps_jumping(self, make_snapshot, make_point):
        history = _series(make_point, [[1.0, 0.0], [0.0, 1.0], [1.0, 0.0]])
        sigs = detect_attractor_dissociation(make_snapshot(history[-1], history=history))
        assert len(sigs) == 1
        assert sigs[0].signature_type is SignatureType.ATTRACTOR_DISSOCIATION
        assert sigs[0].severity == 1.0
        assert sigs[0].evidence == (
            "Attractor shift rate: 1.000 > 2.000 * potential rate: 0.000 and > 0.050 "
            "(samples: 3)"
        )

    def test_stable_direction(self, make_snapshot, make_point):
        history = _series(make_point, [[1.0, 0.0], [1.1, 0.0], [1.2, 0.0]])
        assert detect_attractor_dissociation(make_snapshot(history[-1], history=history)) == []

    def test_short_history(self, make_snapshot, make_point):
        history = _series(make_point, [[1.0, 0.0], [0.0, 1.0]])
        assert detect_attractor_dissociation(make_snapshot(history[-1], history=history)) == []

    def test_old_samples_outside_window(self, make_snapshot, make_point):
        history = _series(make_point, [[1.0, 0.0], [0.0, 1.0], [1.0, 0.0]], spacing=240.0)
        assert detect_attractor_dissociation(make_snapshot(history[-1], history=history)) == []


class TestFieldDissolution:
    def test_fires_on_accelerating_breakup(self, make_snapshot, make_point):
        history = _series(make_point, [[1.0], [0.3], [-0.1]])
        sigs = detect_field_dissolution(make_snapshot(history[-1], history=history))
        assert len(sigs) == 1
        sig = sigs[0]
        assert sig.signature_type is SignatureType.FIELD_DISSOLUTION
        assert sig.severity == pytest.approx(0.4)
        assert sig.evidence == (
            "Coherence gradient: 0.400 > 2.000 * field magnitude: 0.100, "
            "magnitude acceleration: 0.500 > 0.000"
        )

    def test_decelerating_change(self, make_snapshot, make_point):
        history = _series(make_point, [[0.1], [0.3], [-0.1]])
        # magnitudes 0.1, 0.3, 0.1: second derivative is negative
        assert detect_field_dissolution(make_snapshot(history[-1], history=history)) == []

    def test_slow_change(self, make_snapshot, make_point):
        history = _series(make_point, [[1.0], [0.9], [0.85]])
        assert detect_field_dissolution(make_snapshot(history[-1], history=history)) == []

    def test_short_history(self, make_snapshot, make_point):
        history = _series(make_point, [[0.3], [-0.1]])
        assert detect_field_dissolution(make_snapshot(history[-1], history=history)) == []


class TestCouplingDispersion:
    def _edges(self, make_edge, magnitudes):
        n = len(magnitudes)
        return [
            make_edge("h0", f"q{i}", m, minutes_ago=10 * (n - i))
            for i, m in enumerate(magnitudes)
        ]

    def test_scenario_decaying_coupling_without_sapience(
        self, make_snapshot, make_point, make_edge
    ):
        point = make_point(pid="h0", actor="a1")
        edges = self._edges(make_edge, [0.6, 0.4, 0.2, 0.1])
        sapience = SapienceRecord(point_id="h0", sapience=0.0, circumspection_factor=0.0)
        snap = make_snapshot(point, actor_edges=edges, sapience=sapience)
        sigs = detect_coupling_dispersion(snap)
        assert len(sigs) == 1
        sig = sigs[0]
        assert sig.signature_type is SignatureType.COUPLING_DISPERSION
        slope = sig.geometric_signature[0]
        assert slope == pytest.approx(-0.17)
        assert sig.severity == min(1.0, abs(slope) * 10.0)
        assert sig.evidence == (
            "Coupling trend: -0.170 < -0.050, sapience: 0.000 < 0.500 (samples: 4)"
        )

    def test_partial_sapience_scales_severity(self, make_snapshot, make_point, make_edge):
        point = make_point(pid="h0", actor="a1")
        edges = self._edges(make_edge, [0.4, 0.3, 0.2, 0.1])
        sapience = SapienceRecord(point_id="h0", sapience=0.4, circumspection_factor=0.5)
        sigs = detect_coupling_dispersion(
            make_snapshot(point, actor_edges=edges, sapience=sapience)
        )
        assert len(sigs) == 1
        assert sigs[0].severity == pytest.approx(0.1 * 0.6 * 10.0)

    def test_compensated_by_sapience(self, make_snapshot, make_point, make_edge):
        point = make_point(pid="h0", actor="a1")
        edges = self._edges(make_edge, [0.6, 0.4, 0.2, 0.1])
        sapience = SapienceRecord(point_id="h0", sapience=0.9, circumspection_factor=0.5)
        snap = make_snapshot(point, actor_edges=edges, sapience=sapience)
        assert detect_coupling_dispersion(snap) == []

    def test_missing_sapience_does_not_trigger(self, make_snapshot, make_point, make_edge):
        point = make_point(pid="h0", actor="a1")
        edges = self._edges(make_edge, [0.6, 0.4, 0.2, 0.1])
        assert detect_coupling_dispersion(make_snapshot(point, actor_edges=edges)) == []

    def test_rising_coupling(self, make_snapshot, make_point, make_edge):
        point = make_point(pid="h0", actor="a1")
        edges = self._edges(make_edge, [0.1, 0.2, 0.4, 0.6])
        sapience = SapienceRecord(point_id="h0", sapience=0.0, circumspection_factor=0.0)
        snap = make_snapshot(point, actor_edges=edges, sapience=sapience)
        assert detect_coupling_dispersion(snap) == []

    def test_too_few_edges(self, make_snapshot, make_point, make_edge):
        point = make_point(pid="h0", actor="a1")
        edges = self._edges(make_edge, [0.6, 0.1])
        sapience = SapienceRecord(point_id="h0", sapience=0.0, circumspection_factor=0.0)
        snap = make_snapshot(point, actor_edges=edges, sapience=sapience)
        assert detect_coupling_dispersion(snap) == []

    def test_window_is_one_hour(self, make_snapshot, make_point, make_edge):
        point = make_point(pid="h0", actor="a1")
        edges = [
            make_edge("h0", f"q{i}", m, minutes_ago=90 - 10 * i)
            for i, m in enumerate([0.6, 0.4, 0.2, 0.1])
        ]
        sapience = SapienceRecord(point_id="h0", sapience=0.0, circumspection_factor=0.0)
        snap = make_snapshot(point, actor_edges=edges, sapience=sapience)
        assert detect_coupling_dispersion(snap) == []
        wide = DispersionThresholds(window=snap.as_of - edges[0].computed_at)
        assert len(detect_coupling_dispersion(snap, wide)) == 1


class TestFragmentationCategory:
    def test_declared_order(self, make_snapshot, make_point, make_edge):
        history = _series(make_point, [[1.0], [0.3], [-0.1]])
        # direction flips between the last two samples
        edges = [
            make_edge("h2", f"q{i}", m, minutes_ago=10 * (4 - i))
            for i, m in enumerate([0.6, 0.4, 0.2, 0.1])
        ]
        sapience = SapienceRecord(point_id="h2", sapience=0.0, circumspection_factor=0.0)
        snap = make_snapshot(history[-1], history=history, actor_edges=edges, sapience=sapience)
        types = [s.signature_type for s in detect_fragmentation(snap)]
        assert types == [
            SignatureType.ATTRACTOR_DISSOCIATION,
            SignatureType.FIELD_DISSOLUTION,
            SignatureType.COUPLING_DISPERSION,
        ]

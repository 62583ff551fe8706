"""Tests for coordination clustering and escalation (analysis/aggregate.py)."""

from __future__ import annotations

import math
from datetime import timedelta

import numpy as np
import pytest

from ricci.analysis.aggregate import (
    coordination_via_coupling,
    escalation_via_field_evolution,
)


@pytest.fixture
def actors(make_point):
    """Three points of three different actors with aligned coherence, mass 50."""
    points = {}
    for i in range(3):
        p = make_point(coherence=[0.6, 0.8], pid=f"p{i}", actor=f"a{i}", seed=i)
        p.semantic_mass = 50.0
        points[p.id] = p
    return points


def _ring(make_edge, magnitude=1.0, minutes=(7, 8, 9)):
    return [
        make_edge(f"p{i}", f"p{(i + 1) % 3}", magnitude, minutes_ago=m)
        for i, m in enumerate(minutes)
    ]


class TestCoordinationViaCoupling:
    def test_dense_bucket_forms_cluster(self, actors, make_edge, now):
        clusters = coordination_via_coupling(_ring(make_edge), actors, now, dimension=4)
        assert len(clusters) == 1
        c = clusters[0]
        assert c.cluster_size == 3
        assert c.actor_ids == ("a0", "a1", "a2")
        assert c.point_ids == ("p0", "p1", "p2")
        assert c.mean_coupling == pytest.approx(1.0)
        assert c.mean_geometric_coherence == pytest.approx(1.0)
        assert c.mean_mass == pytest.approx(50.0)
        assert c.confidence == pytest.approx(1.0 * 1.0 * 0.3 * 0.5)
        assert c.window_end - c.window_start == timedelta(minutes=5)
        assert c.window_start <= now - timedelta(minutes=9)
        assert c.window_end >= now - timedelta(minutes=7)

    def test_confidence_clamped(self, actors, make_edge, now):
        for p in actors.values():
            p.semantic_mass = 1e6
        edges = _ring(make_edge, magnitude=50.0) * 4
        clusters = coordination_via_coupling(edges, actors, now, dimension=4)
        assert clusters[0].confidence == 1.0

    def test_edges_split_across_buckets(self, actors, make_edge, now):
        edges = _ring(make_edge, minutes=(7, 18, 29))
        assert coordination_via_coupling(edges, actors, now, dimension=4) == []

    def test_min_cluster_size(self, actors, make_edge, now):
        clusters = coordination_via_coupling(
            _ring(make_edge), actors, now, min_cluster_size=4, dimension=4
        )
        assert clusters == []

    def test_threshold_is_strict(self, actors, make_edge, now):
        edges = _ring(make_edge, magnitude=0.5)
        assert coordination_via_coupling(edges, actors, now, dimension=4) == []

    def test_same_actor_and_self_edges_ignored(self, actors, make_edge, make_point, now):
        twin = make_point(coherence=[0.6, 0.8], pid="p0b", actor="a0")
        actors[twin.id] = twin
        edges = [
            make_edge("p0", "p0b", 1.0, minutes_ago=7),
            make_edge("p1", "p1", 1.0, minutes_ago=7),
            make_edge("p2", "p0", 1.0, minutes_ago=8),
        ]
        assert coordination_via_coupling(edges, actors, now, dimension=4) == []

    def test_actorless_and_unknown_points_ignored(self, actors, make_edge, now):
        actors["p2"].actor_id = None
        edges = _ring(make_edge) + [make_edge("p0", "ghost", 1.0, minutes_ago=8)]
        assert coordination_via_coupling(edges, actors, now, dimension=4) == []

    def test_outside_window(self, actors, make_edge, now):
        edges = _ring(make_edge, minutes=(71, 72, 73))
        assert coordination_via_coupling(edges, actors, now, dimension=4) == []
        wide = coordination_via_coupling(
            edges, actors, now, window=timedelta(hours=2), dimension=4
        )
        assert len(wide) == 1

    def test_opposed_coherence_counts_as_zero(self, actors, make_edge, now):
        actors["p1"].coherence_field[:2] = [-0.6, -0.8]
        clusters = coordination_via_coupling(_ring(make_edge), actors, now, dimension=4)
        # p0→p1 and p1→p2 are anti-aligned, p2→p0 aligned
        assert clusters[0].mean_geometric_coherence == pytest.approx(1.0 / 3.0)

    def test_bad_bucket(self, actors, now):
        with pytest.raises(ValueError, match="bucket"):
            coordination_via_coupling([], actors, now, bucket=timedelta(0))

    @pytest.mark.parametrize("seed", range(10))
    def test_raising_threshold_never_grows_clusters(self, seed, actors, make_edge, now):
        rng = np.random.default_rng(seed)
        ids = list(actors)
        edges = []
        for _ in range(40):
            p, q = rng.choice(ids, size=2, replace=False)
            edges.append(
                make_edge(
                    str(p),
                    str(q),
                    float(rng.uniform(0.0, 2.0)),
                    minutes_ago=float(rng.uniform(0, 60)),
                )
            )
        previous = None
        for threshold in (0.0, 0.25, 0.5, 1.0, 1.5):
            sizes = {
                c.window_start: c.cluster_size
                for c in coordination_via_coupling(
                    edges,
                    actors,
                    now,
                    coupling_threshold=threshold,
                    min_cluster_size=1,
                    dimension=4,
                )
            }
            if previous is not None:
                for start, size in sizes.items():
                    assert size <= previous.get(start, 0)
            previous = sizes


class TestEscalationViaFieldEvolution:
    def _trajectory(self, make_point, magnitudes):
        return [
            make_point(coherence=[m], pid=f"t{i}", minutes_ago=10 * (len(magnitudes) - i))
            for i, m in enumerate(magnitudes)
        ]

    def test_velocity_and_acceleration(self, make_point):
        steps = escalation_via_field_evolution(self._trajectory(make_point, [0.1, 0.5, 1.5]))
        assert [s.point_id for s in steps] == ["t1", "t2"]
        assert steps[0].velocity == pytest.approx(0.4)
        assert steps[0].acceleration == 0.0
        assert steps[1].velocity == pytest.approx(1.0)
        assert steps[1].acceleration == pytest.approx(0.6)

    def test_score_formula(self, make_point):
        steps = escalation_via_field_evolution(self._trajectory(make_point, [0.1, 0.5]))
        mass = 0.5
        expected = 0.4 * math.tanh(0.4) + 0.1 * math.tanh(mass)
        assert steps[0].semantic_mass == pytest.approx(mass)
        assert steps[0].escalation_score == pytest.approx(expected)

    def test_curvature_contributes(self, make_point):
        trajectory = self._trajectory(make_point, [0.5, 0.5])
        trajectory[1].scalar_curvature = -2.0
        steps = escalation_via_field_evolution(trajectory)
        assert steps[0].scalar_curvature == -2.0
        assert steps[0].escalation_score == pytest.approx(
            0.2 * math.tanh(2.0) + 0.1 * math.tanh(0.5)
        )

    def test_urgency_needs_low_circumspection(self, make_point):
        trajectory = self._trajectory(make_point, [0.1, 0.5, 1.5])
        urgent = escalation_via_field_evolution(trajectory, {"t2": 0.1})
        assert urgent[1].intervention_urgency is True
        calm = escalation_via_field_evolution(trajectory, {"t2": 0.5})
        assert calm[1].intervention_urgency is False
        assert calm[1].circumspection == 0.5

    def test_circumspection_from_curvature_tensor(self, make_point):
        trajectory = self._trajectory(make_point, [0.1, 0.5])
        trajectory[1].curvature = np.eye(4) * 0.25
        steps = escalation_via_field_evolution(trajectory)
        # ‖R‖_F = 0.5 is the circumspection optimum
        assert steps[0].circumspection == pytest.approx(0.5)

    def test_decelerating_trajectory_not_urgent(self, make_point):
        steps = escalation_via_field_evolution(self._trajectory(make_point, [0.1, 1.1, 1.2]))
        assert steps[1].acceleration == pytest.approx(-0.9)
        assert not any(s.intervention_urgency for s in steps)

    @pytest.mark.parametrize("n", [0, 1])
    def test_too_short(self, make_point, n):
        assert escalation_via_field_evolution(self._trajectory(make_point, [0.5] * n)) == []

"""Tests for pairwise coupling tensors (geometry/coupling.py)."""

from __future__ import annotations

from datetime import timedelta

import numpy as np
import pytest

from ricci.core.exceptions import InvalidDimensionError
from ricci.geometry.coupling import build_edge, coupling_magnitude, coupling_tensor


class TestCouplingTensor:
    def test_shape(self, make_point):
        p, q = make_point(seed=1), make_point(seed=2)
        assert coupling_tensor(p, q, dimension=4).shape == (4, 4, 4)

    def test_formula_d1(self, make_point):
        p = make_point([2.0], [3.0])
        q = make_point([5.0], [7.0])
        h = 0.1
        expected = (5.0 * 3.0 + 2.0 * 7.0 + h * 5.0 * 7.0) * 7.0
        assert coupling_tensor(p, q, h=h, dimension=1)[0, 0, 0] == pytest.approx(expected)

    def test_self_coupling_nonzero(self, make_point):
        p = make_point(seed=3)
        assert coupling_magnitude(coupling_tensor(p, p, dimension=4)) > 0.0

    def test_zero_target_coherence(self, make_point):
        p = make_point(seed=1)
        q = make_point(seed=2, coherence=np.zeros(16))
        assert coupling_magnitude(coupling_tensor(p, q, dimension=4)) == 0.0

    def test_only_leading_components(self, make_point):
        p = make_point([1.0, 2.0], [0.5, 0.5])
        q = make_point([1.0, 2.0, 9.0], [0.5, 0.5, 9.0])
        np.testing.assert_allclose(
            coupling_tensor(p, q, dimension=2),
            coupling_tensor(p, make_point([1.0, 2.0], [0.5, 0.5]), dimension=2),
        )

    def test_dimension_too_large(self, make_point):
        p, q = make_point(seed=1), make_point(seed=2)
        with pytest.raises(InvalidDimensionError):
            coupling_tensor(p, q, dimension=32)


class TestCouplingMagnitude:
    def test_frobenius(self):
        t = np.zeros((2, 2, 2))
        t[0, 0, 0] = 3.0
        t[1, 1, 1] = 4.0
        assert coupling_magnitude(t) == pytest.approx(5.0)


class TestBuildEdge:
    def test_edge_fields(self, make_point, now):
        p, q = make_point(pid="p", seed=1), make_point(pid="q", seed=2)
        edge = build_edge(p, q, dimension=4, computed_at=now)
        assert edge.point_p == "p"
        assert edge.point_q == "q"
        assert edge.magnitude == pytest.approx(coupling_magnitude(edge.tensor))
        assert edge.evolution_rate == 0.0
        assert edge.computed_at == now
        assert not edge.is_self

    def test_without_tensor(self, make_point):
        p = make_point(pid="p", seed=1)
        edge = build_edge(p, p, dimension=4, keep_tensor=False)
        assert edge.tensor is None
        assert edge.is_self

    def test_evolution_rate_per_second(self, make_point, now):
        p, q = make_point(pid="p", seed=1), make_point(pid="q", seed=2)
        first = build_edge(p, q, dimension=4, computed_at=now - timedelta(seconds=10))
        q.coherence_field = q.coherence_field * 2.0
        second = build_edge(p, q, dimension=4, previous=first, computed_at=now)
        expected = (second.magnitude - first.magnitude) / 10.0
        assert second.evolution_rate == pytest.approx(expected)
        assert second.evolution_rate != 0.0

    def test_same_timestamp_has_zero_rate(self, make_point, now):
        p, q = make_point(pid="p", seed=1), make_point(pid="q", seed=2)
        first = build_edge(p, q, dimension=4, computed_at=now)
        second = build_edge(p, q, dimension=4, previous=first, computed_at=now)
        assert second.evolution_rate == 0.0

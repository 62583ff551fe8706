"""Unit tests for the dense determinant / inverse kernel (geometry/kernel.py)."""

from __future__ import annotations

import numpy as np
import pytest

from ricci.core.exceptions import InvalidDimensionError, SingularMatrixError
from ricci.geometry.kernel import determinant, invert


class TestDeterminant:
    def test_identity(self):
        assert determinant(np.eye(5)) == pytest.approx(1.0)

    def test_known_2x2(self):
        assert determinant([[2.0, 1.0], [1.0, 3.0]]) == pytest.approx(5.0)

    def test_row_swap_flips_sign(self):
        assert determinant([[0.0, 1.0], [1.0, 0.0]]) == pytest.approx(-1.0)

    def test_singular_returns_zero(self):
        assert determinant([[1.0, 2.0], [2.0, 4.0]]) == 0.0

    def test_tiny_pivot_returns_zero(self):
        assert determinant(np.eye(3) * 1e-13) == 0.0

    def test_empty_matrix(self):
        assert determinant(np.zeros((0, 0))) == 1.0

    def test_input_not_mutated(self):
        m = np.array([[4.0, 2.0], [1.0, 3.0]])
        original = m.copy()
        determinant(m)
        np.testing.assert_array_equal(m, original)

    @pytest.mark.parametrize("seed", range(5))
    def test_matches_numpy(self, seed):
        rng = np.random.default_rng(seed)
        m = rng.normal(size=(6, 6)) + 6.0 * np.eye(6)
        assert determinant(m) == pytest.approx(np.linalg.det(m), rel=1e-9)

    def test_non_square_rejected(self):
        with pytest.raises(InvalidDimensionError, match="square"):
            determinant(np.ones((2, 3)))

    def test_nan_rejected(self):
        with pytest.raises(SingularMatrixError):
            determinant([[np.nan, 0.0], [0.0, 1.0]])


class TestInvert:
    def test_identity(self):
        np.testing.assert_allclose(invert(np.eye(4)), np.eye(4))

    @pytest.mark.parametrize("seed", range(5))
    def test_product_is_identity(self, seed):
        rng = np.random.default_rng(seed)
        a = rng.normal(size=(5, 5))
        m = a @ a.T + np.eye(5)
        np.testing.assert_allclose(m @ invert(m), np.eye(5), atol=1e-9)

    def test_needs_pivoting(self):
        m = np.array([[0.0, 2.0], [3.0, 0.0]])
        np.testing.assert_allclose(invert(m), [[0.0, 1.0 / 3.0], [0.5, 0.0]])

    def test_singular_raises_with_column(self):
        with pytest.raises(SingularMatrixError, match="singular") as exc_info:
            invert([[1.0, 2.0], [2.0, 4.0]])
        assert exc_info.value.column == 1

    def test_custom_pivot_epsilon(self):
        m = np.eye(2) * 1e-4
        invert(m)
        with pytest.raises(SingularMatrixError):
            invert(m, pivot_epsilon=1e-3)

    def test_is_reproducible(self):
        rng = np.random.default_rng(7)
        m = rng.normal(size=(4, 4)) + 4.0 * np.eye(4)
        np.testing.assert_array_equal(invert(m), invert(m))

    @pytest.mark.parametrize("seed", range(10))
    @pytest.mark.parametrize("d", [1, 3, 8])
    def test_double_inverse_recovers_spd(self, seed, d):
        rng = np.random.default_rng(seed)
        a = rng.normal(size=(d, d))
        g = a @ a.T + 0.5 * np.eye(d)
        np.testing.assert_allclose(invert(invert(g)), g, atol=1e-6)


@pytest.mark.parametrize("d", [1, 2, 10, 50])
def test_identity_determinant_is_one(d):
    assert determinant(np.eye(d)) == 1.0

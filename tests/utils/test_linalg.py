"""
Unit tests for covariance repair and safe inversion.

Tests cover:
    - Higham nearest PSD projection
    - Nearest SPD (Cholesky-factorizable) repair
    - Relative-tolerance PSD check at sentinel scale
    - Diagonal inflation of singular innovation covariances
"""

import warnings

import numpy as np
import pytest
from numpy.testing import assert_allclose

from ekfslam.utils.linalg import (
    is_symmetric_psd,
    nearest_psd,
    nearest_spd,
    regularized_inverse,
    repair_covariance,
    symmetrize,
)


class TestNearestPSD:

    def test_indefinite_matrix(self):
        """[[1, 2], [2, 1]] has eigenvalues 3 and -1; the projection drops -1."""
        A = np.array([[1.0, 2.0], [2.0, 1.0]])
        P = nearest_psd(A)
        assert_allclose(P, [[1.5, 1.5], [1.5, 1.5]], atol=1e-10)
        assert np.linalg.eigvalsh(P).min() >= -1e-12

    def test_psd_matrix_unchanged(self):
        A = np.array([[4.0, 1.0, 0.0], [1.0, 3.0, 0.5], [0.0, 0.5, 2.0]])
        assert_allclose(nearest_psd(A), A, atol=1e-12)

    def test_asymmetric_input_symmetrized(self):
        A = np.array([[2.0, 1.0], [0.0, 2.0]])
        P = nearest_psd(A)
        assert_allclose(P, P.T, atol=0)
        assert_allclose(P, [[2.0, 0.5], [0.5, 2.0]], atol=1e-10)

    def test_rejects_non_square(self):
        with pytest.raises(ValueError, match="square"):
            nearest_psd(np.ones((2, 3)))

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError, match="non-finite"):
            nearest_psd(np.array([[1.0, np.nan], [np.nan, 1.0]]))


class TestNearestSPD:

    def test_result_is_cholesky_factorizable(self):
        A = np.array([[1.0, 2.0], [2.0, 1.0]])
        np.linalg.cholesky(nearest_spd(A))

    def test_zero_matrix(self):
        S = nearest_spd(np.zeros((3, 3)))
        np.linalg.cholesky(S)
        assert np.abs(S).max() < 1e-10

    def test_positive_definite_unchanged(self):
        A = np.diag([1.0, 2.0, 3.0])
        assert_allclose(nearest_spd(A), A, atol=1e-12)


class TestIsSymmetricPSD:

    def test_identity(self):
        assert is_symmetric_psd(np.eye(3))

    def test_asymmetric(self):
        assert not is_symmetric_psd(np.array([[1.0, 0.1], [0.0, 1.0]]))

    def test_negative_eigenvalue(self):
        assert not is_symmetric_psd(np.diag([1.0, -0.01]))

    def test_tolerance_scales_with_sentinel_variance(self):
        """Round-off at 1e6 scale must not be reported as indefinite."""
        P = np.diag([1e6, 1e6, 0.0])
        P[2, 2] = -1e-8
        assert is_symmetric_psd(P)

    def test_empty(self):
        assert is_symmetric_psd(np.zeros((0, 0)))


class TestRepairCovariance:

    def test_always_exactly_symmetric(self):
        P = np.array([[2.0, 0.3 + 1e-14], [0.3, 1.0]])
        repaired = repair_covariance(P)
        np.testing.assert_array_equal(repaired, repaired.T)

    def test_projects_indefinite(self):
        P = np.array([[1.0, 2.0], [2.0, 1.0]])
        repaired = repair_covariance(P)
        assert np.linalg.eigvalsh(repaired).min() >= -1e-12

    def test_valid_covariance_untouched(self):
        P = np.array([[0.5, 0.1], [0.1, 0.2]])
        assert_allclose(repair_covariance(P), P, atol=0)

    def test_symmetrize(self):
        A = np.array([[1.0, 2.0], [0.0, 1.0]])
        assert_allclose(symmetrize(A), [[1.0, 1.0], [1.0, 1.0]])


class TestRegularizedInverse:

    def test_well_conditioned(self):
        S = np.array([[2.0, 0.5], [0.5, 1.0]])
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            S_inv = regularized_inverse(S)
        assert_allclose(S_inv @ S, np.eye(2), atol=1e-12)

    def test_singular_is_inflated_with_warning(self):
        S = np.array([[1.0, 1.0], [1.0, 1.0]])
        with pytest.warns(RuntimeWarning, match="singular"):
            S_inv = regularized_inverse(S)
        assert np.all(np.isfinite(S_inv))

    def test_zero_matrix(self):
        with pytest.warns(RuntimeWarning):
            S_inv = regularized_inverse(np.zeros((2, 2)))
        assert np.all(np.isfinite(S_inv))

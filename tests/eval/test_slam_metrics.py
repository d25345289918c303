"""Unit tests for SLAM evaluation metrics."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from ekfslam.eval import compute_nees, compute_pose_error, compute_rmse, match_landmarks
from ekfslam.types import Point2, Pose2


class TestPoseError:

    def test_per_axis_absolute(self):
        error = compute_pose_error(Pose2(1.0, 2.0, 0.1), Pose2(1.5, 1.0, -0.1))
        assert_allclose(error, [0.5, 1.0, 0.2], atol=1e-12)

    def test_heading_error_wraps(self):
        error = compute_pose_error(Pose2(0.0, 0.0, np.pi - 0.01), Pose2(0.0, 0.0, -np.pi + 0.01))
        assert error[2] == pytest.approx(0.02, abs=1e-12)


class TestRMSE:

    def test_scalar(self):
        assert compute_rmse(np.array([3.0, 4.0])) == pytest.approx(np.sqrt(12.5))

    def test_per_axis(self):
        errors = np.array([[1.0, 0.0], [1.0, 2.0]])
        assert_allclose(compute_rmse(errors, axis=0), [1.0, np.sqrt(2.0)])


class TestMatchLandmarks:

    def test_nearest_neighbour(self):
        truth = [Point2(0.0, 0.0), Point2(5.0, 0.0)]
        result = match_landmarks(truth, [Point2(4.9, 0.1), Point2(0.2, 0.0)])
        assert_allclose(result["indices"], [1, 0])
        assert_allclose(result["errors"], [np.hypot(0.1, 0.1), 0.2], atol=1e-12)
        assert result["duplicates"] == 0

    def test_duplicates(self):
        truth = [[0.0, 0.0], [5.0, 0.0]]
        result = match_landmarks(truth, [[0.1, 0.0], [-0.1, 0.0], [5.0, 0.1]])
        assert result["duplicates"] == 1

    def test_empty_estimate(self):
        result = match_landmarks([Point2(0.0, 0.0)], [])
        assert len(result["errors"]) == 0
        assert result["duplicates"] == 0

    def test_empty_truth(self):
        with pytest.raises(ValueError):
            match_landmarks([], [Point2(1.0, 1.0)])


class TestNEES:

    def test_identity(self):
        assert compute_nees(np.array([1.0, 2.0]), np.eye(2)) == pytest.approx(5.0)

    def test_scaled(self):
        assert compute_nees(np.array([2.0]), np.array([[4.0]])) == pytest.approx(1.0)

    def test_singular_is_nan(self):
        assert np.isnan(compute_nees(np.array([1.0, 1.0]), np.zeros((2, 2))))

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            compute_nees(np.array([1.0, 1.0]), np.eye(3))

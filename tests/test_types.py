"""Unit tests for the value types exchanged with the estimator."""

import numpy as np
import pytest

from ekfslam.types import Point2, Pose2, RangeBearing, Twist2


class TestPose2:

    def test_array_round_trip(self):
        pose = Pose2(1.0, 2.0, 0.5)
        assert Pose2.from_array(pose.to_array()) == pose

    def test_identity(self):
        assert Pose2.identity() == Pose2(0.0, 0.0, 0.0)

    def test_normalized(self):
        assert abs(Pose2(0.0, 0.0, 3 * np.pi).normalized().theta) == pytest.approx(np.pi)

    @pytest.mark.parametrize("values", [(np.nan, 0.0, 0.0), (0.0, np.inf, 0.0)])
    def test_rejects_non_finite(self, values):
        with pytest.raises(ValueError, match="finite"):
            Pose2(*values)

    def test_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            Pose2.from_array([1.0, 2.0])


class TestTwist2:

    def test_defaults(self):
        assert np.array_equal(Twist2().to_array(), np.zeros(3))

    def test_from_array(self):
        assert Twist2.from_array([0.1, 0.0, -0.2]) == Twist2(v_x=0.1, omega=-0.2)


class TestRangeBearing:

    def test_point_conversion(self):
        z = RangeBearing.from_point(Point2(0.0, 2.0))
        assert z.range == pytest.approx(2.0)
        assert z.bearing == pytest.approx(np.pi / 2)
        back = z.to_point()
        assert back.x == pytest.approx(0.0, abs=1e-12)
        assert back.y == pytest.approx(2.0)

    def test_rejects_negative_range(self):
        with pytest.raises(ValueError, match="non-negative"):
            RangeBearing(-1.0, 0.0)

"""Unit tests for estimator configuration and its JSON round trip."""

import json

import pytest

from ekfslam.association import default_association_thresholds
from ekfslam.config import EKFSlamConfig, load_config, save_config
from ekfslam.types import Point2, Pose2


class TestEKFSlamConfig:

    def test_defaults(self):
        config = EKFSlamConfig()
        lower, upper = default_association_thresholds()
        assert config.initial_pose == Pose2.identity()
        assert config.initial_landmarks == []
        assert config.mahalanobis_lower == pytest.approx(lower)
        assert config.mahalanobis_upper == pytest.approx(upper)
        assert config.max_landmarks is None
        assert config.inject_process_noise is False

    def test_normalizes_plain_values(self):
        config = EKFSlamConfig(
            initial_pose=[1.0, 2.0, 0.5],
            initial_landmarks=[[3.0, 4.0], Point2(5.0, 6.0)],
            process_noise_variances=[1e-3, 1e-3, 1e-4],
        )
        assert config.initial_pose == Pose2(1.0, 2.0, 0.5)
        assert config.initial_landmarks == [Point2(3.0, 4.0), Point2(5.0, 6.0)]
        assert config.process_noise_variances == (1e-3, 1e-3, 1e-4)

    def test_upper_defaults_to_at_least_lower(self):
        config = EKFSlamConfig(mahalanobis_lower=50.0)
        assert config.mahalanobis_upper == 50.0

    @pytest.mark.parametrize("kwargs", [
        {"mahalanobis_lower": 10.0, "mahalanobis_upper": 5.0},
        {"mahalanobis_lower": -1.0},
        {"max_range": 0.0},
        {"max_range": -3.0},
        {"process_noise_variances": (1e-3, 1e-3)},
        {"measurement_noise_variances": (1e-3, -1e-4)},
        {"initial_robot_variances": (0.0, 0.0, float("nan"))},
        {"initial_landmarks": [[1.0, 1.0]], "initial_landmark_variances": (1.0, 1.0, 1.0)},
        {"initial_landmarks": [[1.0, 1.0], [2.0, 2.0]], "max_landmarks": 1},
        {"initial_pose": [0.0, 0.0]},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EKFSlamConfig(**kwargs)

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            EKFSlamConfig.from_dict({"max_range": 5.0, "frequency": 100})

    def test_dict_round_trip(self):
        config = EKFSlamConfig(
            initial_pose=Pose2(1.0, -1.0, 0.2),
            initial_landmarks=[Point2(2.0, 2.0)],
            initial_landmark_variances=(0.1, 0.2),
            max_range=4.0,
            max_landmarks=10,
            seed=3,
        )
        assert EKFSlamConfig.from_dict(config.to_dict()) == config

    def test_json_round_trip(self, tmp_path):
        config = EKFSlamConfig(initial_landmarks=[Point2(1.0, 0.0)], max_range=6.0, seed=9)
        path = tmp_path / "session.json"
        save_config(config, path)

        with open(path) as f:
            data = json.load(f)
        assert data["max_range"] == 6.0
        assert data["initial_landmarks"] == [[1.0, 0.0]]

        assert load_config(path) == config

"""
EKF-SLAM with unknown data association.

The estimator keeps one Gaussian over the robot pose and every landmark
seen so far:

    state = [x, y, θ, m_1x, m_1y, ..., m_Nx, m_Ny]ᵀ      (3 + 2N)
    Σ     = (3 + 2N) × (3 + 2N), symmetric PSD

Prediction (once per control interval):
    state' = f(state, u)             twist arc model, landmarks static
    Σ'     = A Σ Aᵀ + Q              A = ∂f/∂state at the pre-prediction state

Correction (once per observation, sequentially within a scan):
    ν = z - h_j(state)               bearing wrapped
    S = H Σ Hᵀ + R
    K = Σ Hᵀ S⁻¹
    state += K ν
    Σ = (I - K H) Σ

Observations are associated by Mahalanobis gating (see
ekfslam.association.gating). An observation far from every tracked
landmark grows the state by one landmark initialized from the inverse
observation model with "infinite" variance, and is then immediately used
to correct that new slot. Observations in the ambiguous zone between the
two thresholds are rejected.

Observations are processed one at a time because accepting one changes
the estimate (and possibly the state size) the next one is scored against.

Instances are not thread-safe; callers must serialize predict() and
msr_update() on the same estimator.
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import numpy as np

from ekfslam.association.gating import (
    AssociationDecision,
    classify,
    mahalanobis_distance_squared,
)
from ekfslam.config import EKFSlamConfig
from ekfslam.estimators.base import StateEstimator
from ekfslam.models.measurement_models import (
    LANDMARK_DIM,
    ROBOT_DIM,
    MeasurementLike,
    RangeBearingLandmarkModel,
    landmark_index,
    to_range_bearing,
)
from ekfslam.models.motion_models import TwistLike, TwistMotionModel, as_twist
from ekfslam.models.noise_models import (
    INFINITE_VARIANCE,
    build_covariance,
    grow_covariance,
    measurement_noise,
    process_noise,
)
from ekfslam.sim.noise import NoiseSampler
from ekfslam.types import Point2, Pose2, RangeBearing
from ekfslam.utils.angles import wrap_angle
from ekfslam.utils.linalg import regularized_inverse, repair_covariance

logger = logging.getLogger(__name__)


@dataclass
class UpdateReport:
    """Summary of one msr_update() call.

    Attributes:
        updated: Observations used to correct an existing landmark.
        registered: Observations that created a new landmark.
        ambiguous: Observations rejected in the ambiguous gating zone.
        out_of_range: Observations discarded for exceeding max_range.
        capacity_rejected: New landmarks refused because the map is full.
        associations: Landmark index per observation, in input order;
            -1 for every dropped observation.
    """

    updated: int = 0
    registered: int = 0
    ambiguous: int = 0
    out_of_range: int = 0
    capacity_rejected: int = 0
    associations: List[int] = field(default_factory=list)

    @property
    def accepted(self) -> int:
        return self.updated + self.registered


class EKFSlam(StateEstimator):
    """
    Extended Kalman Filter SLAM estimator.

    Attributes:
        config: Session configuration.
        state: Current state estimate (3 + 2N,).
        covariance: Current covariance ((3+2N)×(3+2N)).
        Q: Process noise expanded to the current state size.
        R: Measurement noise (2×2).
        N: Number of tracked landmarks.
        sampler: Noise sampler owned by this estimator.

    Example:
        >>> slam = EKFSlam(EKFSlamConfig(max_range=5.0))
        >>> slam.predict(Twist2(v_x=0.1, omega=0.0))
        >>> report = slam.msr_update([RangeBearing(2.0, 0.0)])
        >>> report.registered, slam.N
        (1, 1)
    """

    def __init__(
        self,
        config: Optional[EKFSlamConfig] = None,
        sampler: Optional[NoiseSampler] = None,
    ):
        """
        Initialize the estimator.

        Args:
            config: Session configuration. Defaults to EKFSlamConfig().
            sampler: Noise sampler. Defaults to a new one seeded with
                config.seed.
        """
        self.config = config if config is not None else EKFSlamConfig()
        self.N = len(self.config.initial_landmarks)
        super().__init__(ROBOT_DIM + LANDMARK_DIM * self.N)

        self.sampler = sampler if sampler is not None else NoiseSampler(self.config.seed)

        pose = self.config.initial_pose.to_array()
        pose[2] = wrap_angle(pose[2])
        landmarks = [lm.to_array() for lm in self.config.initial_landmarks]
        self.state = np.concatenate([pose] + landmarks)
        self.covariance = build_covariance(
            self.N,
            self.config.initial_robot_variances,
            self.config.initial_landmark_variances,
        )

        self.Q = process_noise(self.config.process_noise_variances, self.N)
        self.R = measurement_noise(self.config.measurement_noise_variances)

        logger.debug(
            "EKF-SLAM initialized at %s with %d landmark(s)",
            self.config.initial_pose, self.N,
        )

    @property
    def n_landmarks(self) -> int:
        return self.N

    def seed(self, seed: Optional[int]) -> None:
        """Re-seed this estimator's noise sampler."""
        self.sampler.seed(seed)

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict(self, twist: TwistLike = None, dt: float = 1.0) -> None:
        """
        Propagate the pose one control interval and grow its uncertainty.

        The Jacobian A is evaluated at the pre-prediction state. Landmark
        entries of the state are untouched and N does not change.

        Args:
            twist: Body twist (Twist2 or [v_x, v_y, omega]). None means
                the robot did not move.
            dt: Interval length; the twist is integrated over dt.
        """
        tw = as_twist(twist if twist is not None else (0.0, 0.0, 0.0))

        x_pre = self.state.copy()
        A = TwistMotionModel.full_jacobian(x_pre, tw, dt)

        self.state[:ROBOT_DIM] = TwistMotionModel.f(x_pre[:ROBOT_DIM], tw, dt)
        if self.config.inject_process_noise:
            self.state[:ROBOT_DIM] += self.sampler.multivariate(self.Q[:ROBOT_DIM, :ROBOT_DIM])
            self.state[2] = wrap_angle(self.state[2])

        self.covariance = repair_covariance(A @ self.covariance @ A.T + self.Q)

    # ------------------------------------------------------------------
    # Measurement model and gating
    # ------------------------------------------------------------------

    def inv_msr_model(self, j: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Expected observation of landmark j and its Jacobian.

        Args:
            j: Landmark index, 0 <= j < N.

        Returns:
            Tuple (z_hat, H): expected [range, bearing] (2,) and the
            observation Jacobian w.r.t. the full state (2×(3+2N)).

        Raises:
            IndexError: If j is not a tracked landmark.
        """
        if not 0 <= j < self.N:
            raise IndexError(f"Landmark index {j} out of range for {self.N} landmark(s)")
        z_hat = RangeBearingLandmarkModel.h(self.state, j)
        H = RangeBearingLandmarkModel.H(self.state, j)
        return z_hat, H

    def mahalanobis_test(self, z: MeasurementLike) -> np.ndarray:
        """
        Squared Mahalanobis distance of one observation to every landmark.

        Pure scoring: no state is modified and no association is decided.

        Args:
            z: Observation, [range, bearing] array or RangeBearing/Point2.

        Returns:
            Scores (N,); empty when no landmark is tracked.
        """
        z = self._range_bearing_vector(z)
        scores = np.empty(self.N)
        for j in range(self.N):
            z_hat, H = self.inv_msr_model(j)
            S = H @ self.covariance @ H.T + self.R
            nu = RangeBearingLandmarkModel.innovation(z, z_hat)
            scores[j] = mahalanobis_distance_squared(nu, S)
        return scores

    # ------------------------------------------------------------------
    # Correction
    # ------------------------------------------------------------------

    def msr_update(self, measurements: Iterable[MeasurementLike]) -> UpdateReport:
        """
        Sequentially incorporate a scan of relative landmark observations.

        For each observation: discard beyond max_range; score it against
        every landmark; correct the closest landmark if its score is below
        mahalanobis_lower; register a new landmark if the best score is
        above mahalanobis_upper (or the map is empty); otherwise reject it
        as ambiguous. Registration is refused once max_landmarks is
        reached.

        Args:
            measurements: Observations as RangeBearing, robot-relative
                Point2, or (x, y) pairs.

        Returns:
            UpdateReport describing what happened to each observation.

        Raises:
            ValueError: If an observation is malformed.
        """
        report = UpdateReport()
        capacity_warned = False

        for measurement in measurements:
            z = to_range_bearing(measurement)

            if z[0] > self.config.max_range:
                report.out_of_range += 1
                report.associations.append(-1)
                continue

            scores = self.mahalanobis_test(z)
            decision, j = classify(
                scores, self.config.mahalanobis_lower, self.config.mahalanobis_upper
            )

            if decision is AssociationDecision.MATCH:
                self._correct(j, z)
                report.updated += 1
                report.associations.append(j)

            elif decision is AssociationDecision.NEW:
                if self._map_full():
                    report.capacity_rejected += 1
                    report.associations.append(-1)
                    if not capacity_warned:
                        warnings.warn(
                            f"Landmark capacity ({self.config.max_landmarks}) reached; "
                            "new landmarks are rejected",
                            RuntimeWarning,
                        )
                        capacity_warned = True
                    continue
                j = self._register(z)
                report.registered += 1
                report.associations.append(j)

            else:
                logger.debug(
                    "Ambiguous observation (range=%.3f, bearing=%.3f): "
                    "best score %.3f for landmark %d, rejected",
                    z[0], z[1], scores[j], j,
                )
                report.ambiguous += 1
                report.associations.append(-1)

        return report

    def update(self, z: Iterable[MeasurementLike]) -> UpdateReport:
        """Alias of msr_update()."""
        return self.msr_update(z)

    @staticmethod
    def _range_bearing_vector(z) -> np.ndarray:
        if isinstance(z, (RangeBearing, Point2)):
            return to_range_bearing(z)
        return RangeBearing.from_array(z).to_array()

    def _correct(self, j: int, z: np.ndarray) -> np.ndarray:
        """EKF correction of the full state with observation z of landmark j."""
        z_hat, H = self.inv_msr_model(j)
        nu = RangeBearingLandmarkModel.innovation(z, z_hat)

        P = self.covariance
        S = H @ P @ H.T + self.R
        K = P @ H.T @ regularized_inverse(S)

        self.state = self.state + K @ nu
        self.state[2] = wrap_angle(self.state[2])

        I_KH = np.eye(self.state_dim) - K @ H
        self.covariance = repair_covariance(I_KH @ P)
        return nu

    def _register(self, z: np.ndarray) -> int:
        """Append a landmark initialized from z and correct it; returns its index."""
        position = RangeBearingLandmarkModel.inverse(self.state[:ROBOT_DIM], z)

        self.state = np.concatenate([self.state, position])
        self.covariance = grow_covariance(self.covariance, 1, INFINITE_VARIANCE)
        self.N += 1
        self.state_dim = len(self.state)
        self.Q = process_noise(self.config.process_noise_variances, self.N)

        j = self.N - 1
        logger.debug("Registered landmark %d at (%.3f, %.3f)", j, position[0], position[1])

        self._correct(j, z)
        return j

    def _map_full(self) -> bool:
        return self.config.max_landmarks is not None and self.N >= self.config.max_landmarks

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def return_pose(self) -> Pose2:
        """Current pose estimate."""
        return Pose2.from_array(self.state[:ROBOT_DIM])

    def return_map(self) -> List[Point2]:
        """Current landmark position estimates, in index order."""
        return [
            Point2.from_array(self.state[landmark_index(j):landmark_index(j) + LANDMARK_DIM])
            for j in range(self.N)
        ]

    def landmark_covariance(self, j: int) -> np.ndarray:
        """
        Marginal 2×2 covariance of landmark j.

        Raises:
            IndexError: If j is not a tracked landmark.
        """
        if not 0 <= j < self.N:
            raise IndexError(f"Landmark index {j} out of range for {self.N} landmark(s)")
        k = landmark_index(j)
        return self.covariance[k:k + LANDMARK_DIM, k:k + LANDMARK_DIM].copy()

    def reset_pose(self, pose: Pose2, covariance: Optional[np.ndarray] = None) -> None:
        """
        Overwrite the pose estimate, e.g. after external relocalization.

        The robot covariance block is replaced and the robot-landmark
        cross-covariances are cleared, since the new pose is independent of
        the map estimate. Landmark entries are left untouched.

        Args:
            pose: New pose.
            covariance: New 3×3 pose covariance. Defaults to the configured
                initial robot variances.

        Raises:
            ValueError: If covariance is not 3×3.
        """
        if covariance is None:
            block = np.diag(self.config.initial_robot_variances)
        else:
            block = np.asarray(covariance, dtype=float)
            if block.shape != (ROBOT_DIM, ROBOT_DIM):
                raise ValueError(f"Pose covariance must be 3x3, got shape {block.shape}")
            block = repair_covariance(block)

        self.state[:ROBOT_DIM] = pose.to_array()
        self.state[2] = wrap_angle(self.state[2])

        self.covariance[:ROBOT_DIM, :] = 0.0
        self.covariance[:, :ROBOT_DIM] = 0.0
        self.covariance[:ROBOT_DIM, :ROBOT_DIM] = block

"""EKF-SLAM Demo: circular drive through an unknown landmark field.

This example drives a simulated robot around a circle with noisy motion
and a noisy range-bearing landmark sensor, and runs the EKF-SLAM estimator
on the commanded twists and the observations:

    1. PREDICTION: propagate pose and covariance with the commanded twist
    2. ASSOCIATION: gate each observation against the tracked landmarks
    3. CORRECTION / REGISTRATION: update a matched landmark or add a new one

It prints pose and map errors, a machine-readable [SLAM_SUMMARY] JSON line,
and plots the trajectories and the landmark map with 3σ ellipses.

Usage:
    python -m demos.example_ekf_slam
    python -m demos.example_ekf_slam --steps 800 --seed 7 --no-plot
    python -m demos.example_ekf_slam --config my_session.json --save slam.png
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Ellipse
from tqdm import tqdm

from ekfslam.config import EKFSlamConfig, load_config
from ekfslam.estimators import EKFSlam
from ekfslam.eval import compute_pose_error, compute_rmse, match_landmarks
from ekfslam.models import TwistMotionModel
from ekfslam.sim import NoiseSampler, observe_landmarks
from ekfslam.types import Point2, Pose2, Twist2

logger = logging.getLogger("demos.example_ekf_slam")

# True landmark field around the circle centred at (0, 3.2)
TRUE_LANDMARKS = [
    Point2(0.0, 1.0), Point2(2.0, 1.5), Point2(2.4, 4.4), Point2(0.0, 5.5),
    Point2(-2.3, 4.3), Point2(-2.0, 1.6), Point2(3.5, -0.5), Point2(-3.6, -0.4),
    Point2(4.8, 3.2), Point2(-4.8, 3.2), Point2(0.0, 7.6),
]


def default_config(seed: int) -> EKFSlamConfig:
    """Session configuration matching the simulated noise."""
    return EKFSlamConfig(
        initial_pose=Pose2.identity(),
        process_noise_variances=(1e-4, 1e-4, 1e-5),
        measurement_noise_variances=(1e-3, 1e-4),
        max_range=3.0,
        seed=seed,
    )


def run_demo(
    config: EKFSlamConfig,
    n_steps: int = 400,
    seed: int = 42,
) -> Dict:
    """Simulate the robot and run EKF-SLAM.

    The true pose follows the commanded twist plus process noise drawn
    from the configured process noise; observations carry the configured
    measurement noise. Dead reckoning integrates the commanded twist only.

    Args:
        config: Estimator configuration.
        n_steps: Number of control intervals.
        seed: Seed of the simulation's noise sampler.

    Returns:
        Dictionary with trajectories, final estimator and update counts.
    """
    world_sampler = NoiseSampler(seed)
    slam = EKFSlam(config)

    # One full circle of radius ~3.2 m over n_steps intervals
    omega = 2.0 * np.pi / n_steps
    twist = Twist2(v_x=3.2 * omega, v_y=0.0, omega=omega)

    q_robot = np.diag(config.process_noise_variances)
    rb_std = np.sqrt(config.measurement_noise_variances)

    truth = config.initial_pose.to_array()
    dead_reckoning = truth.copy()

    true_path: List[np.ndarray] = [truth.copy()]
    est_path: List[np.ndarray] = [slam.state[:3].copy()]
    dr_path: List[np.ndarray] = [dead_reckoning.copy()]
    counts = {"updated": 0, "registered": 0, "ambiguous": 0,
              "out_of_range": 0, "capacity_rejected": 0}

    for _ in tqdm(range(n_steps), desc="EKF-SLAM", unit="step"):
        truth = TwistMotionModel.f(truth, twist) + world_sampler.multivariate(q_robot)
        dead_reckoning = TwistMotionModel.f(dead_reckoning, twist)

        slam.predict(twist)

        observations = observe_landmarks(
            Pose2.from_array(truth), TRUE_LANDMARKS,
            max_range=config.max_range, rb_std=rb_std, sampler=world_sampler,
        )
        report = slam.msr_update(observations)
        for key in counts:
            counts[key] += getattr(report, key)

        true_path.append(truth.copy())
        est_path.append(slam.state[:3].copy())
        dr_path.append(dead_reckoning.copy())

    return {
        "slam": slam,
        "true_path": np.array(true_path),
        "est_path": np.array(est_path),
        "dr_path": np.array(dr_path),
        "counts": counts,
    }


def summarize(results: Dict) -> Dict:
    """Error metrics of a demo run."""
    slam = results["slam"]
    true_final = Pose2.from_array(results["true_path"][-1])
    slam_error = compute_pose_error(true_final, slam.return_pose())
    dr_error = compute_pose_error(true_final, Pose2.from_array(results["dr_path"][-1]))

    matches = match_landmarks(TRUE_LANDMARKS, slam.return_map())
    landmark_rmse = compute_rmse(matches["errors"]) if len(matches["errors"]) else float("nan")

    path_errors = results["est_path"][:, :2] - results["true_path"][:, :2]
    dr_errors = results["dr_path"][:, :2] - results["true_path"][:, :2]

    return {
        "steps": len(results["true_path"]) - 1,
        "n_landmarks": slam.N,
        "n_true_landmarks": len(TRUE_LANDMARKS),
        "duplicates": matches["duplicates"],
        "final_position_error": float(np.hypot(slam_error[0], slam_error[1])),
        "final_heading_error": float(slam_error[2]),
        "dead_reckoning_position_error": float(np.hypot(dr_error[0], dr_error[1])),
        "landmark_rmse": float(landmark_rmse),
        "rmse": {
            "slam": float(compute_rmse(np.linalg.norm(path_errors, axis=1))),
            "dead_reckoning": float(compute_rmse(np.linalg.norm(dr_errors, axis=1))),
        },
        "counts": results["counts"],
    }


def _covariance_ellipse(center: np.ndarray, cov: np.ndarray, n_sigma: float = 3.0) -> Ellipse:
    eigvals, eigvecs = np.linalg.eigh(cov)
    eigvals = np.maximum(eigvals, 0.0)
    angle = np.degrees(np.arctan2(eigvecs[1, 1], eigvecs[0, 1]))
    width, height = 2.0 * n_sigma * np.sqrt(eigvals[::-1])
    return Ellipse(xy=center, width=width, height=height, angle=angle,
                   fill=False, color="tab:red", linewidth=1.0)


def plot_results(results: Dict, save_path: Optional[str] = None) -> None:
    """Plot trajectories and the estimated map."""
    slam = results["slam"]
    fig, ax = plt.subplots(figsize=(8, 8))

    ax.plot(results["true_path"][:, 0], results["true_path"][:, 1],
            "k-", linewidth=1.5, label="Ground truth")
    ax.plot(results["dr_path"][:, 0], results["dr_path"][:, 1],
            "g--", linewidth=1.0, label="Dead reckoning")
    ax.plot(results["est_path"][:, 0], results["est_path"][:, 1],
            "b-", linewidth=1.0, label="EKF-SLAM")

    truth = np.array([lm.to_array() for lm in TRUE_LANDMARKS])
    ax.scatter(truth[:, 0], truth[:, 1], marker="*", s=150, c="k", label="True landmarks")

    for j, landmark in enumerate(slam.return_map()):
        center = landmark.to_array()
        ax.plot(center[0], center[1], "r+", markersize=10)
        ax.add_patch(_covariance_ellipse(center, slam.landmark_covariance(j)))

    ax.set_xlabel("x [m]")
    ax.set_ylabel("y [m]")
    ax.set_title(f"EKF-SLAM: {slam.N} landmarks mapped")
    ax.axis("equal")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper right")
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        print(f"Saved figure: {save_path}")
    else:
        plt.show()
    plt.close(fig)


def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="EKF-SLAM with unknown data association on a simulated circle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--steps", type=int, default=400,
                        help="Number of control intervals (default: 400)")
    parser.add_argument("--seed", type=int, default=42,
                        help="Simulation and estimator seed (default: 42)")
    parser.add_argument("--config", type=str, default=None,
                        help="JSON estimator configuration (default: built-in)")
    parser.add_argument("--save", type=str, default=None,
                        help="Save the figure to this path instead of showing it")
    parser.add_argument("--no-plot", action="store_true",
                        help="Skip plotting")
    parser.add_argument("--verbose", action="store_true",
                        help="Log association decisions")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.config:
        if not Path(args.config).exists():
            parser.error(f"Config file not found: {args.config}")
        config = load_config(args.config)
    else:
        config = default_config(args.seed)

    print("=" * 70)
    print("EKF-SLAM DEMO")
    print("=" * 70)
    print(f"  Steps: {args.steps}   Seed: {args.seed}   Max range: {config.max_range} m")
    print(f"  Gating: lower={config.mahalanobis_lower:.3f}  upper={config.mahalanobis_upper:.3f}")

    results = run_demo(config, n_steps=args.steps, seed=args.seed)
    summary = summarize(results)

    print()
    print(f"  Landmarks mapped:          {summary['n_landmarks']} "
          f"(true: {summary['n_true_landmarks']}, duplicates: {summary['duplicates']})")
    print(f"  Final position error:      {summary['final_position_error']:.4f} m")
    print(f"  Final heading error:       {np.degrees(summary['final_heading_error']):.3f} deg")
    print(f"  Dead-reckoning error:      {summary['dead_reckoning_position_error']:.4f} m")
    print(f"  Landmark RMSE:             {summary['landmark_rmse']:.4f} m")
    print(f"  Trajectory RMSE (SLAM):    {summary['rmse']['slam']:.4f} m")
    print(f"  Trajectory RMSE (DR):      {summary['rmse']['dead_reckoning']:.4f} m")
    print(f"  Updates: {summary['counts']}")
    print()
    print(f"[SLAM_SUMMARY] {json.dumps(summary)}")

    if not args.no_plot:
        plot_results(results, save_path=args.save)


if __name__ == "__main__":
    main()

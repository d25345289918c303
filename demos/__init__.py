"""Runnable EKF-SLAM examples.

Examples:
    - example_ekf_slam.py: circular drive through an unknown landmark field

Dependencies:
    - ekfslam: estimator, models, simulation helpers
    - matplotlib: visualization
    - tqdm: progress display
"""

__all__ = []

"""
Gaussian noise sampling for simulation and synthetic testing.

A NoiseSampler owns one numpy Generator. Every estimator gets its own
sampler, so runs are reproducible from a seed and parallel estimators never
share generator state.

Correlated samples are drawn as L w, where L is the lower Cholesky factor
of the requested covariance and w ~ N(0, I). Covariances that drifted
slightly asymmetric or indefinite are first repaired with nearest_spd().
"""

from typing import Optional

import numpy as np

from ekfslam.utils.linalg import PSD_TOLERANCE, nearest_spd


class NoiseSampler:
    """
    Seedable source of standard and correlated Gaussian noise.

    Example:
        >>> sampler = NoiseSampler(seed=42)
        >>> w = sampler.standard_normal(3)
        >>> w.shape
        (3,)
        >>> v = sampler.multivariate(np.diag([0.01, 0.01, 0.001]))
        >>> v.shape
        (3,)
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            seed: Seed for a new np.random.default_rng(). Ignored if rng
                is given.
            rng: Existing generator to draw from.
        """
        if rng is not None:
            self.rng = rng
        else:
            self.rng = np.random.default_rng(seed)

    def seed(self, seed: Optional[int]) -> None:
        """Re-seed the sampler; the following draws restart deterministically."""
        self.rng = np.random.default_rng(seed)

    def standard_normal(self, dim: int, size: Optional[int] = None) -> np.ndarray:
        """
        Independent N(0, 1) draws.

        Args:
            dim: Vector dimension.
            size: Number of vectors. If None, returns a single vector (dim,);
                otherwise an array (size, dim).

        Raises:
            ValueError: If dim is negative.
        """
        if dim < 0:
            raise ValueError(f"dim must be non-negative, got {dim}")
        if size is None:
            return self.rng.standard_normal(dim)
        return self.rng.standard_normal((size, dim))

    def multivariate(self, cov: np.ndarray, size: Optional[int] = None) -> np.ndarray:
        """
        Zero-mean Gaussian noise with covariance cov.

        Args:
            cov: Covariance matrix (d×d). Need not be exactly PD: it is
                repaired to the nearest SPD matrix when Cholesky fails.
            size: Number of samples. If None, returns shape (d,);
                otherwise (size, d).

        Returns:
            Correlated noise sample(s).

        Raises:
            ValueError: If cov is not square.
        """
        cov = np.asarray(cov, dtype=float)
        if cov.ndim != 2 or cov.shape[0] != cov.shape[1]:
            raise ValueError(f"Covariance must be square, got shape {cov.shape}")

        L = cholesky_factor(cov)
        w = self.standard_normal(cov.shape[0], size)
        if size is None:
            return L @ w
        return w @ L.T


def cholesky_factor(cov: np.ndarray) -> np.ndarray:
    """
    Lower Cholesky factor of cov, repairing cov first if it is not PD.

    Args:
        cov: Square covariance matrix (d×d).

    Returns:
        Lower triangular L with L L^T ≈ cov.
    """
    cov = np.asarray(cov, dtype=float)
    # cholesky() reads only the lower triangle, so asymmetry must be caught here
    scale = max(float(np.abs(cov).max()), 1.0) if cov.size else 1.0
    if np.abs(cov - cov.T).max(initial=0.0) <= PSD_TOLERANCE * scale:
        try:
            return np.linalg.cholesky(cov)
        except np.linalg.LinAlgError:
            pass
    return np.linalg.cholesky(nearest_spd(cov))

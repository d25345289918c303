"""
Covariance repair and safe inversion utilities.

Repeated EKF updates in floating point slowly break the two properties a
covariance matrix must have: symmetry and positive semi-definiteness. This
module provides the projections used to restore them:

- nearest_psd: Higham's nearest symmetric positive semi-definite matrix
- nearest_spd: same projection, then the smallest diagonal shift that makes
  the matrix Cholesky-factorizable (needed for correlated sampling)
- repair_covariance: cheap check + projection used after every EKF step
- regularized_inverse: inverse with diagonal inflation for singular S

References:
    N. J. Higham, "Computing a nearest symmetric positive semidefinite
    matrix", Linear Algebra and its Applications 103 (1988) 103-118.
    The nearest SPSD matrix in the Frobenius norm to A is (B + H)/2, where
    B = (A + A^T)/2 and H is the symmetric polar factor of B.
"""

import logging
import warnings

import numpy as np
from scipy.linalg import polar

logger = logging.getLogger(__name__)

# Relative tolerance for symmetry / eigenvalue checks (scaled by ||A||_max)
PSD_TOLERANCE = 1e-12

# Initial diagonal inflation for singular innovation covariances
REGULARIZATION_EPSILON = 1e-9


def _check_square(A: np.ndarray) -> np.ndarray:
    A = np.asarray(A, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"Matrix must be square, got shape {A.shape}")
    if not np.all(np.isfinite(A)):
        raise ValueError("Matrix contains non-finite entries")
    return A


def symmetrize(A: np.ndarray) -> np.ndarray:
    """Return (A + A^T) / 2."""
    A = np.asarray(A, dtype=float)
    return 0.5 * (A + A.T)


def nearest_psd(A: np.ndarray) -> np.ndarray:
    """
    Project A onto the nearest symmetric positive semi-definite matrix.

    Implements Higham (1988): B = (A + A^T)/2, H = symmetric polar factor
    of B, result = (B + H)/2, symmetrized once more to remove round-off.

    Args:
        A: Square matrix (n×n), not necessarily symmetric.

    Returns:
        Symmetric PSD matrix (n×n) closest to A in the Frobenius norm.

    Raises:
        ValueError: If A is not square or contains non-finite values.

    Example:
        >>> A = np.array([[1.0, 2.0], [2.0, 1.0]])  # eigenvalues 3, -1
        >>> np.linalg.eigvalsh(nearest_psd(A)).min() >= -1e-12
        True
    """
    A = _check_square(A)
    if A.size == 0:
        return A.copy()

    B = symmetrize(A)
    # polar(B) = (U, P) with B = U @ P and P = V Σ V^T symmetric PSD
    _, H = polar(B)
    return symmetrize(0.5 * (B + H))


def nearest_spd(A: np.ndarray, max_iterations: int = 100) -> np.ndarray:
    """
    Nearest symmetric positive definite matrix (factorizable by Cholesky).

    Starts from nearest_psd(A) and, while Cholesky fails, shifts the
    diagonal by (-λ_min k² + spacing(λ_min)), k = 1, 2, ... This is the
    tweak that turns a PSD matrix with zero eigenvalues into a PD one with
    the smallest possible perturbation.

    Args:
        A: Square matrix (n×n).
        max_iterations: Maximum number of diagonal shifts.

    Returns:
        Symmetric positive definite matrix (n×n).

    Raises:
        ValueError: If A is not square or contains non-finite values.
        np.linalg.LinAlgError: If no PD matrix was found within
            max_iterations shifts.
    """
    A_hat = nearest_psd(A)
    n = A_hat.shape[0]
    if n == 0:
        return A_hat

    scale = max(float(np.abs(A_hat).max()), 1.0)
    identity = np.eye(n)
    for k in range(1, max_iterations + 1):
        try:
            np.linalg.cholesky(A_hat)
            return A_hat
        except np.linalg.LinAlgError:
            min_eig = float(np.linalg.eigvalsh(A_hat).min())
            shift = -min_eig * k**2 + np.spacing(max(abs(min_eig), scale))
            A_hat = A_hat + shift * identity

    raise np.linalg.LinAlgError(
        f"Could not make matrix positive definite in {max_iterations} iterations"
    )


def is_symmetric_psd(A: np.ndarray, tol: float = PSD_TOLERANCE) -> bool:
    """
    Check symmetry and positive semi-definiteness with a relative tolerance.

    Both the asymmetry ||A - A^T||_max and the most negative eigenvalue are
    compared against tol * max(1, ||A||_max), so the check behaves the same
    for unit-scale covariances and for ones holding large sentinel
    variances.

    Args:
        A: Square matrix.
        tol: Relative tolerance.

    Returns:
        True if A is symmetric and PSD within tolerance.
    """
    A = _check_square(A)
    if A.size == 0:
        return True

    scale = max(float(np.abs(A).max()), 1.0)
    if np.abs(A - A.T).max() > tol * scale:
        return False
    return bool(np.linalg.eigvalsh(symmetrize(A)).min() >= -tol * scale)


def repair_covariance(P: np.ndarray, tol: float = PSD_TOLERANCE) -> np.ndarray:
    """
    Restore a covariance matrix after a filter step.

    The matrix is always symmetrized; the (more expensive) nearest-PSD
    projection runs only when a negative eigenvalue beyond tolerance shows
    that numerical drift has accumulated.

    Args:
        P: Covariance matrix (n×n).
        tol: Relative tolerance passed to is_symmetric_psd().

    Returns:
        Symmetric PSD covariance (n×n).
    """
    P = symmetrize(_check_square(P))
    if is_symmetric_psd(P, tol):
        return P

    min_eig = float(np.linalg.eigvalsh(P).min())
    logger.debug("Covariance drifted (min eigenvalue %.3e); projecting to nearest PSD", min_eig)
    return nearest_psd(P)


def _well_conditioned(S: np.ndarray) -> bool:
    with np.errstate(divide="ignore", invalid="ignore"):
        cond = np.linalg.cond(S)
    return bool(np.isfinite(cond) and cond < 1.0 / np.finfo(float).eps)


def regularized_inverse(
    S: np.ndarray,
    epsilon: float = REGULARIZATION_EPSILON,
    max_attempts: int = 8,
) -> np.ndarray:
    """
    Invert a (nearly) singular covariance by inflating its diagonal.

    Args:
        S: Square covariance matrix (m×m).
        epsilon: Initial inflation, relative to mean diagonal magnitude.
            Multiplied by 10 after every failed attempt.
        max_attempts: Number of inflation attempts before giving up.

    Returns:
        Inverse of S, or of S + δI for the smallest δ tried that makes S
        well conditioned.

    Raises:
        np.linalg.LinAlgError: If S could not be inverted after
            max_attempts inflations.
    """
    S = _check_square(S)
    m = S.shape[0]

    if _well_conditioned(S):
        return np.linalg.inv(S)

    base = max(float(np.trace(np.abs(S))) / max(m, 1), 1.0)
    for attempt in range(max_attempts):
        delta = epsilon * base * 10**attempt
        S_reg = S + delta * np.eye(m)
        if _well_conditioned(S_reg):
            warnings.warn(
                f"Innovation covariance is singular; inflated diagonal by {delta:.2e}",
                RuntimeWarning,
            )
            return np.linalg.inv(S_reg)

    raise np.linalg.LinAlgError(
        f"Matrix remained singular after {max_attempts} regularization attempts"
    )

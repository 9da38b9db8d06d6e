import numpy as np

"""SMALL MATRIX HELPERS FOR THE 3-STATE KINEMATIC MODEL"""

STATE_DIM = 3


def transition_matrix(dt: float) -> np.ndarray:
    """
    Constant-acceleration state transition for [position, velocity, acceleration].

        p_k+1 = p_k + v_k*dt + 0.5*a_k*dt^2
        v_k+1 = v_k + a_k*dt
        a_k+1 = a_k
    """
    return np.array([
        [1.0, dt,  0.5 * dt * dt],
        [0.0, 1.0, dt],
        [0.0, 0.0, 1.0]
    ])


def predict_covariance(P: np.ndarray, dt: float, Q: np.ndarray) -> np.ndarray:
    """Project the error covariance ahead: P = F * P * F^T + Q."""
    F = transition_matrix(dt)
    return F @ P @ F.T + Q


def as_square_matrix(value, name: str, dim: int = STATE_DIM) -> np.ndarray:
    """
    Coerce ``value`` into a read-only (dim x dim) float matrix.

    A length-``dim`` vector is accepted as the diagonal.
    """
    m = np.array(value, dtype=float)
    if m.shape == (dim,):
        m = np.diag(m)
    if m.shape != (dim, dim):
        raise ValueError(f"{name} must be {dim}x{dim} (or a length-{dim} diagonal), got shape {m.shape}")
    if not np.all(np.isfinite(m)):
        raise ValueError(f"{name} contains non-finite entries")
    m.setflags(write=False)
    return m


def is_symmetric(m: np.ndarray, tol: float = 1e-9) -> bool:
    return bool(np.allclose(m, m.T, atol=tol, rtol=0.0))


def is_positive_semidefinite(m: np.ndarray, tol: float = 1e-9) -> bool:
    """
    True if the symmetric part of ``m`` has no eigenvalue below ``-tol``.
    """
    sym = 0.5 * (m + m.T)
    return bool(np.min(np.linalg.eigvalsh(sym)) >= -tol)

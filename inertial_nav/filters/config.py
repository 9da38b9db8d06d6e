import dataclasses
from dataclasses import dataclass, field

import numpy as np

from ..util.linalg import as_square_matrix, is_symmetric


@dataclass(frozen=True, eq=False)
class EstimatorConfig:
    """
    Tuning for a single-axis acceleration Kalman filter.

    Defaults are tuned for a handheld phone accelerometer sampled at ~10 Hz.
    Matrices may be passed as 3x3 arrays or as length-3 diagonals and are
    stored read-only, so one config can be shared by several estimators.

    Attributes:
        initial_covariance: Starting P over [position, velocity, acceleration].
        process_noise: Q, uncertainty injected by every prediction.
        measurement_noise: R, variance of one accelerometer reading (m/s^2)^2.
        bias_filter_alpha: High-pass coefficient in (0, 1).
        stationary_threshold: |filtered accel| below this (m/s^2) counts as stationary.
        zero_velocity_variance: P[1][1] forced while stationary.
        reset_covariance: If True, reset() restores initial_covariance.
        decorrelate_on_zupt: If True, the stationary clamp also zeroes the
            velocity cross-covariances so P stays positive semidefinite.
            Off by default: only P[1][1] is overwritten.
    """
    initial_covariance: np.ndarray = field(default_factory=lambda: np.diag([10.0, 5.0, 1.0]))
    process_noise: np.ndarray = field(default_factory=lambda: np.diag([0.01, 0.01, 1.0]))
    measurement_noise: float = 0.3
    bias_filter_alpha: float = 0.8
    stationary_threshold: float = 0.05
    zero_velocity_variance: float = 0.001
    reset_covariance: bool = True
    decorrelate_on_zupt: bool = False

    def __post_init__(self):
        # frozen: coerce through object.__setattr__
        object.__setattr__(self, "initial_covariance", as_square_matrix(self.initial_covariance, "initial_covariance"))
        object.__setattr__(self, "process_noise", as_square_matrix(self.process_noise, "process_noise"))
        for name in ("measurement_noise", "bias_filter_alpha", "stationary_threshold", "zero_velocity_variance"):
            object.__setattr__(self, name, float(getattr(self, name)))
        self.validate()

    def validate(self):
        """Raise ValueError if any parameter is out of range."""
        if not 0.0 < self.bias_filter_alpha < 1.0:
            raise ValueError(f"bias_filter_alpha must lie in (0, 1), got {self.bias_filter_alpha}")
        if not (np.isfinite(self.stationary_threshold) and self.stationary_threshold > 0.0):
            raise ValueError(f"stationary_threshold must be positive, got {self.stationary_threshold}")
        if not (np.isfinite(self.measurement_noise) and self.measurement_noise > 0.0):
            raise ValueError(f"measurement_noise must be positive, got {self.measurement_noise}")
        if not (np.isfinite(self.zero_velocity_variance) and self.zero_velocity_variance >= 0.0):
            raise ValueError(f"zero_velocity_variance must be non-negative, got {self.zero_velocity_variance}")

        for name in ("initial_covariance", "process_noise"):
            m = getattr(self, name)
            if not is_symmetric(m):
                raise ValueError(f"{name} must be symmetric")
            if np.any(np.diag(m) < 0.0):
                raise ValueError(f"{name} has a negative diagonal entry: {np.diag(m)}")

    def replace(self, **changes) -> "EstimatorConfig":
        """Return a copy with ``changes`` applied (validated again)."""
        return dataclasses.replace(self, **changes)


DEFAULT_ESTIMATOR_CONFIG = EstimatorConfig()

import logging
import math
from dataclasses import dataclass

import numpy as np

from .config import DEFAULT_ESTIMATOR_CONFIG, EstimatorConfig
from ..util.linalg import predict_covariance

"""
-------------------------------------------------------------------------------
SINGLE-AXIS ACCELERATION KALMAN FILTER
--- 3-STATE CONSTANT-ACCELERATION MODEL
-------------------------------------------------------------------------------
Pipeline for every accelerometer sample:
1. High-pass bias filter:   removes slowly varying offset / gravity leakage.
2. Stationary detector:     |filtered| < threshold forces zero velocity (ZUPT).
3. Predict:                 kinematic step + P = F P F^T + Q.
4. Correct:                 scalar measurement of acceleration, H = [0, 0, 1].

Conventions:
- State (x):        [position (m), velocity (m/s), acceleration (m/s^2)]
- Covariance (P):   3 x 3 numpy array
- Measurement (z):  high-pass filtered acceleration (scalar)
-------------------------------------------------------------------------------
"""

logger = logging.getLogger(__name__)

# Acceleration-only measurement model
H = np.array([0.0, 0.0, 1.0])


@dataclass
class AxisState:
    """Kinematic state along one axis, in SI units."""
    position: float = 0.0
    velocity: float = 0.0
    acceleration: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.position, self.velocity, self.acceleration])


def kalman_gain(P: np.ndarray, measurement_noise: float) -> np.ndarray:
    """
    Kalman gain for a scalar acceleration measurement (H = [0, 0, 1]).

    With that H, S = H P H^T + R collapses to P[2][2] + R and
    K = P H^T / S is just the third column of P divided by S.
    """
    S = P[2, 2] + measurement_noise
    if not S > 0.0:
        raise RuntimeError(f"Innovation variance must be positive, got S={S}. Covariance is corrupted.")
    return P[:, 2] / S


def correct_covariance(P: np.ndarray, gain: np.ndarray) -> np.ndarray:
    """
    Measurement update of the covariance, P = (I - K H) P.

    K H only has a non-zero third column, so I - K H is
    [[1, 0, -K0], [0, 1, -K1], [0, 0, 1 - K2]].
    """
    I_KH = np.eye(3)
    I_KH[:, 2] -= gain
    return I_KH @ P


def require_finite(name: str, value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a real number, got {value!r}") from e
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    return value


def validate_sample(raw_acceleration, dt) -> tuple:
    """
    Check one sample against the estimator's input contract.

    Returns:
        (raw_acceleration, dt) as floats.

    Raises:
        ValueError: non-finite input or dt <= 0.
    """
    raw_acceleration = require_finite("acceleration", raw_acceleration)
    dt = require_finite("dt", dt)
    if dt <= 0.0:
        raise ValueError(f"dt must be positive, got {dt}")
    return raw_acceleration, dt


class AxisEstimator:
    """
    Kalman estimator for position, velocity and acceleration along one axis.

    Holds the filter's memory: the kinematic state, its covariance and the
    bias filter's previous raw sample and output. ``update`` is the only
    mutating step and is not re-entrant; callers feeding it from several
    threads must serialise access.

    Args:
        config: Noise, bias-filter and stationary-detection tuning.
        name: Label used in log messages (e.g. "x").
    """
    def __init__(self, config: EstimatorConfig = DEFAULT_ESTIMATOR_CONFIG, name: str = "axis"):
        self.config = config
        self.name = name

        self._state = AxisState()
        self._P = np.array(config.initial_covariance, dtype=float)

        # High-pass filter memory
        self._previous_raw = 0.0
        self._filtered = 0.0

        self._stationary = False
        self._gain = np.zeros(3)
        self._update_count = 0

    # --- READ-ONLY VIEWS ---
    @property
    def state(self) -> AxisState:
        s = self._state
        return AxisState(s.position, s.velocity, s.acceleration)

    @property
    def covariance(self) -> np.ndarray:
        return self._P.copy()

    @property
    def filtered_acceleration(self) -> float:
        return self._filtered

    @property
    def is_stationary(self) -> bool:
        """Outcome of the stationary test in the most recent update."""
        return self._stationary

    @property
    def last_gain(self) -> np.ndarray:
        return self._gain.copy()

    @property
    def update_count(self) -> int:
        return self._update_count

    # --- FILTER STEP ---
    def update(self, raw_acceleration: float, dt: float) -> AxisState:
        """
        Fuse one raw accelerometer sample taken ``dt`` seconds after the previous one.

        Args:
            raw_acceleration: Acceleration along this axis (m/s^2, gravity excluded).
            dt: Elapsed time since the previous sample (s), must be > 0.

        Returns:
            A copy of the updated AxisState.

        Raises:
            ValueError: If either input is non-finite or dt <= 0.
            RuntimeError: If the covariance is corrupted (innovation variance <= 0).
            In both cases the estimator is left untouched.
        """
        raw_acceleration, dt = validate_sample(raw_acceleration, dt)
        cfg = self.config
        p, v, a = self._state.position, self._state.velocity, self._state.acceleration
        P = self._P.copy()

        # 1. High-pass bias filter
        filtered = cfg.bias_filter_alpha * (self._filtered + raw_acceleration - self._previous_raw)

        # 2. Stationary test / kinematic prediction
        stationary = abs(filtered) < cfg.stationary_threshold
        if stationary:
            v = 0.0
            if cfg.decorrelate_on_zupt:
                P[1, :] = 0.0
                P[:, 1] = 0.0
            P[1, 1] = cfg.zero_velocity_variance
        else:
            p, v = p + v * dt + 0.5 * a * dt * dt, v + a * dt

        # 3. Covariance prediction (runs whether or not we moved)
        P = predict_covariance(P, dt, cfg.process_noise)

        # 4. Kalman gain
        K = kalman_gain(P, cfg.measurement_noise)

        # 5. Innovation
        innovation = filtered - a

        # 6. State correction; position/velocity are held while stationary
        if not stationary:
            p += K[0] * innovation
            v += K[1] * innovation
        a += K[2] * innovation

        # 7. Covariance correction
        P = correct_covariance(P, K)

        # commit
        if stationary != self._stationary:
            logger.debug("[%s] %s (filtered=%.4f)", self.name,
                         "stationary" if stationary else "moving", filtered)
        self._filtered = filtered
        self._previous_raw = raw_acceleration
        self._stationary = stationary
        self._state.position, self._state.velocity, self._state.acceleration = p, v, a
        self._P = P
        self._gain = K
        self._update_count += 1
        return self.state

    def reset(self):
        """
        Zero the state and bias-filter memory.

        The covariance goes back to ``config.initial_covariance`` unless the
        config was built with ``reset_covariance=False``, in which case the
        converged covariance is kept.
        """
        self._state.position = 0.0
        self._state.velocity = 0.0
        self._state.acceleration = 0.0
        self._previous_raw = 0.0
        self._filtered = 0.0
        self._stationary = False
        self._gain = np.zeros(3)
        self._update_count = 0
        if self.config.reset_covariance:
            self._P[...] = self.config.initial_covariance
        logger.info("[%s] estimator reset (covariance %s)", self.name,
                    "restored" if self.config.reset_covariance else "kept")

    def __repr__(self):
        s = self._state
        return (f"AxisEstimator(name={self.name!r}, pos={s.position:.4f}, vel={s.velocity:.4f}, "
                f"acc={s.acceleration:.4f}, stationary={self._stationary})")

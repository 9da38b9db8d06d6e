import logging
import math
from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import numpy as np

from .axis_estimator import AxisEstimator, require_finite, validate_sample
from .config import DEFAULT_ESTIMATOR_CONFIG, EstimatorConfig

logger = logging.getLogger(__name__)

AXES = ("x", "y", "z")


@dataclass(frozen=True)
class MotionSample:
    """
    One estimator output: per-axis position (m), velocity (m/s) and
    acceleration (m/s^2), stamped with a timestamp (s) and a sequence number.
    """
    timestamp: float
    sequence: int

    pos_x: float
    vel_x: float
    acc_x: float

    pos_y: float
    vel_y: float
    acc_y: float

    pos_z: float
    vel_z: float
    acc_z: float

    @property
    def position_magnitude(self) -> float:
        """Euclidean distance from the origin (m)."""
        return math.sqrt(self.pos_x ** 2 + self.pos_y ** 2 + self.pos_z ** 2)

    def position(self) -> np.ndarray:
        return np.array([self.pos_x, self.pos_y, self.pos_z])

    def velocity(self) -> np.ndarray:
        return np.array([self.vel_x, self.vel_y, self.vel_z])

    def acceleration(self) -> np.ndarray:
        return np.array([self.acc_x, self.acc_y, self.acc_z])

    def as_dict(self) -> Dict[str, float]:
        """Flat row for tabular export, including the position magnitude."""
        row = asdict(self)
        row["position_magnitude"] = self.position_magnitude
        return row

    @staticmethod
    def zero(timestamp: float = 0.0) -> "MotionSample":
        return MotionSample(
            timestamp=timestamp, sequence=0,
            pos_x=0.0, vel_x=0.0, acc_x=0.0,
            pos_y=0.0, vel_y=0.0, acc_y=0.0,
            pos_z=0.0, vel_z=0.0, acc_z=0.0,
        )


class TriAxisEstimator:
    """
    Three independent AxisEstimators (X, Y, Z) driven by one accelerometer.

    Axes never share covariance or bias-filter state; cross-axis coupling
    (e.g. from device orientation) is not modelled. By default the three axes
    share one read-only config; ``axis_configs`` overrides it per axis.

    Samples are stamped with the caller's timestamp when one is given,
    otherwise with the estimator's own elapsed-time clock (sum of dt since
    construction or the last reset).
    """
    def __init__(
        self,
        config: EstimatorConfig = DEFAULT_ESTIMATOR_CONFIG,
        axis_configs: Optional[Mapping[str, EstimatorConfig]] = None,
    ):
        axis_configs = dict(axis_configs or {})
        unknown = set(axis_configs) - set(AXES)
        if unknown:
            raise ValueError(f"Unknown axis name(s) {sorted(unknown)}; expected {AXES}")

        self._axes: Dict[str, AxisEstimator] = {
            name: AxisEstimator(axis_configs.get(name, config), name=name) for name in AXES
        }
        self._elapsed = 0.0
        self._sequence = 0
        self._latest = MotionSample.zero()

    @property
    def axes(self) -> Mapping[str, AxisEstimator]:
        return MappingProxyType(self._axes)

    @property
    def latest(self) -> MotionSample:
        return self._latest

    @property
    def elapsed(self) -> float:
        return self._elapsed

    def update(
        self,
        ax: float,
        ay: float,
        az: float,
        dt: float,
        timestamp: Optional[float] = None,
    ) -> MotionSample:
        """
        Run one filter cycle on every axis with the shared ``dt``.

        All inputs are validated before any axis is touched, so a rejected
        sample never leaves the axes out of step with each other.

        Returns:
            A fresh MotionSample.

        Raises:
            ValueError: non-finite acceleration, dt or timestamp, or dt <= 0.
        """
        ax, dt = validate_sample(ax, dt)
        ay, _ = validate_sample(ay, dt)
        az, _ = validate_sample(az, dt)
        if timestamp is not None:
            timestamp = require_finite("timestamp", timestamp)

        x = self._axes["x"].update(ax, dt)
        y = self._axes["y"].update(ay, dt)
        z = self._axes["z"].update(az, dt)

        self._elapsed += dt
        self._sequence += 1
        self._latest = MotionSample(
            timestamp=self._elapsed if timestamp is None else timestamp,
            sequence=self._sequence,
            pos_x=x.position, vel_x=x.velocity, acc_x=x.acceleration,
            pos_y=y.position, vel_y=y.velocity, acc_y=y.acceleration,
            pos_z=z.position, vel_z=z.velocity, acc_z=z.acceleration,
        )
        return self._latest

    def update_vector(self, accel: np.ndarray, dt: float, timestamp: Optional[float] = None) -> MotionSample:
        """Same as ``update`` with a length-3 acceleration vector."""
        accel = np.asarray(accel, dtype=float).reshape(-1)
        if accel.shape[0] != 3:
            raise ValueError(f"Acceleration vector must have 3 components, got {accel.shape[0]}")
        return self.update(accel[0], accel[1], accel[2], dt, timestamp=timestamp)

    def reset(self):
        """Reset all three axes and restart the clock at a zero sample."""
        for estimator in self._axes.values():
            estimator.reset()
        self._elapsed = 0.0
        self._sequence = 0
        self._latest = MotionSample.zero()
        logger.info("tri-axis estimator reset")

    def __repr__(self):
        s = self._latest
        return f"TriAxisEstimator(seq={s.sequence}, pos=[{s.pos_x:.3f}, {s.pos_y:.3f}, {s.pos_z:.3f}])"

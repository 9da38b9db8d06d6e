"""Acceleration Kalman filter package.

Most client code should import conveniently from here rather than diving into
individual submodules. The single-axis filter lives in ``axis_estimator.py``,
the X/Y/Z composition in ``tri_axis.py`` and the tuning dataclass in
``config.py``.

Example::

    from inertial_nav.filters import TriAxisEstimator

    estimator = TriAxisEstimator()
    sample = estimator.update(ax, ay, az, dt=0.1)

"""

# re-export commonly used filter classes and functions from submodules
from .config import EstimatorConfig, DEFAULT_ESTIMATOR_CONFIG
from .axis_estimator import (
    AxisState,
    AxisEstimator,
    kalman_gain,
    correct_covariance,
    validate_sample,
)
from .tri_axis import AXES, MotionSample, TriAxisEstimator

__all__ = [
    # configuration
    "EstimatorConfig",
    "DEFAULT_ESTIMATOR_CONFIG",
    # single axis
    "AxisState",
    "AxisEstimator",
    "kalman_gain",
    "correct_covariance",
    "validate_sample",
    # three axes
    "AXES",
    "MotionSample",
    "TriAxisEstimator",
]

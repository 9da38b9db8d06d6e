"""Accelerometer motion estimation: per-axis Kalman filtering of position,
velocity and acceleration with bias removal and zero-velocity updates.

Example::

    from inertial_nav import MotionTracker, RecordedMotionSource

    tracker = MotionTracker()
    source = RecordedMotionSource.from_csv("walk.csv", units="g")
    tracker.attach(source)
    source.run()
    print(tracker.current.position_magnitude)

"""

__version__ = "0.1.0"

from .filters import (
    EstimatorConfig,
    DEFAULT_ESTIMATOR_CONFIG,
    AxisState,
    AxisEstimator,
    MotionSample,
    TriAxisEstimator,
)
from .sensors import (
    AccelSample,
    MotionSource,
    SimulatedMotionSource,
    RecordedMotionSource,
    TimedMotionSource,
)
from .tracking import MotionTracker

__all__ = [
    "__version__",
    "EstimatorConfig",
    "DEFAULT_ESTIMATOR_CONFIG",
    "AxisState",
    "AxisEstimator",
    "MotionSample",
    "TriAxisEstimator",
    "AccelSample",
    "MotionSource",
    "SimulatedMotionSource",
    "RecordedMotionSource",
    "TimedMotionSource",
    "MotionTracker",
]

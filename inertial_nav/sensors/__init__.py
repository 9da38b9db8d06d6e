"""Sensors package.

Most client code should import conveniently from here rather than diving into
individual submodules. The accelerometer models are in ``accelerometer.py``,
truth generators in ``motion_profiles.py`` and the sample feeds in
``motion_source.py``.

Example::

    from inertial_nav.sensors import HarmonicProfile, Accelerometer3Axis, SimulatedMotionSource

    source = SimulatedMotionSource(HarmonicProfile([0.2, 0, 0], freq_hz=0.5),
                                   Accelerometer3Axis(white_noise_std=0.02, seed=1))
    for sample in source:
        ...

"""

# re-export commonly used sensor classes from submodules
from .sensor_framework import SensorSpec, ErrorModel, BaseSensor, SimulatedSensor, HardwareSensor
from .accelerometer import (
    ACCEL_SPEC,
    Accelerometer3Axis,
    HardwareAccelerometer,
)
from .motion_profiles import (
    MotionProfile,
    StationaryProfile,
    ConstantAccelerationProfile,
    HarmonicProfile,
    StepAccelerationProfile,
)
from .motion_source import (
    AccelSample,
    MotionSource,
    SimulatedMotionSource,
    RecordedMotionSource,
    TimedMotionSource,
)

__all__ = [
    # framework
    "SensorSpec",
    "ErrorModel",
    "BaseSensor",
    "SimulatedSensor",
    "HardwareSensor",
    # accelerometers
    "ACCEL_SPEC",
    "Accelerometer3Axis",
    "HardwareAccelerometer",
    # motion profiles
    "MotionProfile",
    "StationaryProfile",
    "ConstantAccelerationProfile",
    "HarmonicProfile",
    "StepAccelerationProfile",
    # motion sources
    "AccelSample",
    "MotionSource",
    "SimulatedMotionSource",
    "RecordedMotionSource",
    "TimedMotionSource",
]

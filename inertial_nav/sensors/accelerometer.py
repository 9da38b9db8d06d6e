# -*- coding: utf-8 -*-
"""
Filename: accelerometer.py
Description: 3-axis accelerometer models for the acceleration estimator.
             1. Accelerometer3Axis: truth acceleration -> error model -> m/s^2
                (drives SimulatedMotionSource)
             2. HardwareAccelerometer: device readings (g or m/s^2) -> calibration -> m/s^2
                (drives RecordedMotionSource)
"""

from .sensor_framework import HardwareSensor, SensorSpec, SimulatedSensor
from ..util.units import unit_scale

ACCEL_SPEC = SensorSpec(
    dimension=3,
    units="m/s^2",
    description="User acceleration (gravity removed) along device X, Y, Z",
    labels=("x", "y", "z"),
)


class Accelerometer3Axis(SimulatedSensor):
    """
    Simulated 3-axis accelerometer.

    Every keyword of SimulatedSensor is accepted; scalars are broadcast to
    all three axes. Typical phone MEMS values: white_noise_std ~0.02 m/s^2,
    saturation_limit ~16 g, 16-bit quantization.
    """
    def __init__(self, sensor_id: str = "accel_sim", **kwargs):
        super().__init__(sensor_id, ACCEL_SPEC, **kwargs)


class HardwareAccelerometer(HardwareSensor):
    """
    Calibrating proxy for a real accelerometer.

    Args:
        units: "g" for devices that report multiples of gravity, "mps2" otherwise.
        calibration_bias: Per-axis offset in the device's units.
        calibration_scale: Per-axis scale factor.
    """
    def __init__(self, sensor_id: str = "accel_hw", units: str = "mps2", **kwargs):
        self.units = units
        super().__init__(sensor_id, ACCEL_SPEC, unit_scale=unit_scale(units), **kwargs)

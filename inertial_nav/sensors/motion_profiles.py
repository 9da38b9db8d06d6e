# -*- coding: utf-8 -*-
"""
Filename: motion_profiles.py
Description: Truth generators for translational motion.
             Provides motion profiles (Stationary, Constant, Harmonic, Step)
             to drive the accelerometer simulation during filter development.
"""

from typing import Sequence, Tuple

import numpy as np


def _vec3(value, name: str) -> np.ndarray:
    v = np.asarray(value, dtype=float)
    if v.ndim == 0:
        v = np.full(3, float(v))
    if v.shape != (3,):
        raise ValueError(f"{name} must be a scalar or a 3-vector, got shape {v.shape}")
    return v


class MotionProfile:
    """Base class: a rigid point moving in a fixed frame, no rotation."""

    def get_kinematics(self, t: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Override this to return (position, velocity, acceleration) 3-vectors at time t."""
        raise NotImplementedError

    def acceleration(self, t: float) -> np.ndarray:
        return self.get_kinematics(t)[2]


class StationaryProfile(MotionProfile):
    """Device lying still (optionally away from the origin)."""
    def __init__(self, position=0.0):
        self.p0 = _vec3(position, "position")

    def get_kinematics(self, t: float):
        return self.p0.copy(), np.zeros(3), np.zeros(3)


class ConstantAccelerationProfile(MotionProfile):
    """
    Uniform acceleration for ``duration`` seconds, then coasting at the
    reached velocity. ``duration=None`` accelerates forever.
    """
    def __init__(self, accel, duration: float = None):
        self.a = _vec3(accel, "accel")
        if duration is not None and duration < 0:
            raise ValueError(f"duration must be non-negative, got {duration}")
        self.duration = duration

    def get_kinematics(self, t: float):
        if self.duration is None or t <= self.duration:
            return 0.5 * self.a * t**2, self.a * t, self.a.copy()
        T = self.duration
        v_end = self.a * T
        pos = 0.5 * self.a * T**2 + v_end * (t - T)
        return pos, v_end, np.zeros(3)


class HarmonicProfile(MotionProfile):
    """Sinusoidal oscillation about the origin (shaking, walking bounce)."""
    def __init__(self, amplitude, freq_hz: float, phase=0.0):
        self.A = _vec3(amplitude, "amplitude")
        self.w = 2 * np.pi * freq_hz
        self.phi = _vec3(phase, "phase")

    def get_kinematics(self, t: float):
        arg = self.w * t + self.phi
        pos = self.A * np.sin(arg)
        vel = self.A * self.w * np.cos(arg)
        acc = -self.A * (self.w**2) * np.sin(arg)
        return pos, vel, acc


class StepAccelerationProfile(MotionProfile):
    """
    Piecewise constant acceleration: ``accels[i]`` holds for ``durations[i]``
    seconds. After the last segment the acceleration drops to zero and the
    point coasts. Velocity and position are integrated exactly per segment.
    """
    def __init__(self, accels: Sequence, durations: Sequence[float]):
        if len(accels) != len(durations) or not accels:
            raise ValueError("accels and durations must be non-empty and of equal length")
        if any(d <= 0 for d in durations):
            raise ValueError("durations must be positive")
        self.accels = [_vec3(a, "accel") for a in accels]
        self.ends = np.cumsum(durations)

        # Position / velocity at the start of each segment
        self._p0 = [np.zeros(3)]
        self._v0 = [np.zeros(3)]
        start = 0.0
        for a, end in zip(self.accels, self.ends):
            T = end - start
            self._p0.append(self._p0[-1] + self._v0[-1] * T + 0.5 * a * T**2)
            self._v0.append(self._v0[-1] + a * T)
            start = end

    def get_kinematics(self, t: float):
        # Find which segment we are in
        idx = int(np.searchsorted(self.ends, t, side="right"))
        start = 0.0 if idx == 0 else self.ends[idx - 1]
        a = self.accels[idx] if idx < len(self.accels) else np.zeros(3)
        tau = t - start
        p0, v0 = self._p0[idx], self._v0[idx]
        return p0 + v0 * tau + 0.5 * a * tau**2, v0 + a * tau, a.copy()

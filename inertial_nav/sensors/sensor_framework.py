# -*- coding: utf-8 -*-
"""
Filename: sensor_framework.py
Description: Sensor layer feeding the acceleration estimator.
             A sensor turns a physical quantity into the numbers a motion
             source delivers, in one of two ways:
             - SIMULATION: Truth -> Scale -> Bias -> Noise -> Saturation -> Quantization
             - HARDWARE:   Raw -> Calibration -> Unit conversion
"""

from collections import deque
from dataclasses import dataclass, fields
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class SensorSpec:
    """Shape and meaning of one sensor reading."""
    dimension: int
    units: str
    description: str
    labels: Tuple[str, ...]  # one per component, e.g. ('x', 'y', 'z')


@dataclass(frozen=True)
class ErrorModel:
    """
    Imperfections of a simulated sensor. Per-axis entries may be given as
    scalars and are broadcast to every component.

    Attributes:
        initial_bias: Constant offset at power-on.
        bias_instability_std: Bias random-walk density, sigma per sqrt(s).
        white_noise_std: Per-sample Gaussian noise.
        scale_factors: Multiplicative gain error (1.0 = perfect).
        saturation_limit: Output clipped to +/- this value.
        quantization_bits / quantization_range: ADC resolution over +/- range.
    """
    initial_bias: object = 0.0
    bias_instability_std: object = 0.0
    white_noise_std: object = 0.0
    scale_factors: object = 1.0
    saturation_limit: Optional[float] = None
    quantization_bits: Optional[int] = None
    quantization_range: Optional[float] = None

    @property
    def lsb(self) -> float:
        """Quantization step (0 when the output is not quantized)."""
        if not (self.quantization_bits and self.quantization_range):
            return 0.0
        return 2.0 * abs(self.quantization_range) / 2 ** self.quantization_bits

    def per_axis(self, name: str, dim: int) -> np.ndarray:
        value = np.asarray(getattr(self, name), dtype=float)
        if value.ndim == 0:
            return np.full(dim, float(value))
        if value.shape != (dim,):
            raise ValueError(f"{name} must be a scalar or have {dim} components, got shape {value.shape}")
        return value.copy()


ERROR_MODEL_FIELDS = tuple(f.name for f in fields(ErrorModel))


# ==============================================================================
# BASE
# ==============================================================================

class BaseSensor:
    """
    Dimension-agnostic sensor: keeps the latest reading, a bounded history
    and an optional output-rate limit.

    Attributes:
        sensor_id (str): Name used in logs and plots.
        spec (SensorSpec): What a reading looks like.
        update_rate_hz (float, optional): Maximum output rate; None = every call.
    """
    def __init__(self, sensor_id: str, spec: SensorSpec, buffer_size: int = 100,
                 update_rate_hz: Optional[float] = None):
        if update_rate_hz is not None and update_rate_hz <= 0:
            raise ValueError(f"update_rate_hz must be positive, got {update_rate_hz}")
        self.sensor_id = sensor_id
        self.spec = spec
        self.update_rate_hz = update_rate_hz
        self.update_period = 1.0 / update_rate_hz if update_rate_hz else 0.0

        self._times = deque(maxlen=buffer_size)
        self._values = deque(maxlen=buffer_size)
        self._last_output_time: Optional[float] = None

    def _record(self, reading: np.ndarray, timestamp: float) -> np.ndarray:
        """Check the reading against the SensorSpec and push it onto the history."""
        if reading.shape != (self.spec.dimension,):
            raise ValueError(f"{self.sensor_id}: expected {self.spec.dimension} components, got shape {reading.shape}")
        self._times.append(timestamp)
        self._values.append(reading.copy())
        return reading

    def get_latest(self) -> np.ndarray:
        """Most recent reading (zeros before the first one)."""
        if not self._values:
            return np.zeros(self.spec.dimension)
        return self._values[-1].copy()

    def should_update(self, timestamp: float) -> bool:
        """
        Rate limiter: True if a reading is due at ``timestamp``.
        The first call is always due.
        """
        if not self.update_period:
            return True
        last = self._last_output_time
        # 1e-9 s slack so a 5 Hz sensor still fires on a 0.1 s float grid
        if last is None or timestamp - last >= self.update_period - 1e-9:
            self._last_output_time = timestamp
            return True
        return False

    def get_history_with_timestamps(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Returns:
            Tuple of (timestamps (N,), readings (N x D)), oldest first.
        """
        if not self._values:
            return np.empty(0), np.empty((0, self.spec.dimension))
        return np.fromiter(self._times, dtype=float), np.vstack(self._values)

    def clear(self):
        """Drop the history and the rate-limiter clock."""
        self._times.clear()
        self._values.clear()
        self._last_output_time = None


class SimulatedSensor(BaseSensor):
    """
    Digital twin: corrupts a truth signal with an ErrorModel.

    Error keywords (initial_bias, white_noise_std, ...) may be passed directly
    instead of an ``error_model``. ``seed`` makes the noise reproducible;
    ``clear()`` rewinds both the random stream and the bias walk.
    """
    def __init__(self, sensor_id: str, spec: SensorSpec, error_model: Optional[ErrorModel] = None,
                 seed: Optional[int] = None, **kwargs):
        error_kwargs = {k: kwargs.pop(k) for k in ERROR_MODEL_FIELDS if k in kwargs}
        super().__init__(sensor_id, spec, **kwargs)
        if error_model is None:
            error_model = ErrorModel(**error_kwargs)
        elif error_kwargs:
            raise TypeError("pass either error_model or individual error keywords, not both")

        dim = spec.dimension
        self.error_model = error_model
        self.scale = error_model.per_axis("scale_factors", dim)
        self.noise_std = error_model.per_axis("white_noise_std", dim)
        self.walk_std = error_model.per_axis("bias_instability_std", dim)
        if np.any(self.noise_std < 0) or np.any(self.walk_std < 0):
            raise ValueError("noise standard deviations must be non-negative")

        self._seed = seed
        self._rewind()

    def _rewind(self):
        self.bias = self.error_model.per_axis("initial_bias", self.spec.dimension)
        self.rng = np.random.default_rng(self._seed)

    # --- ERROR STAGES ---
    def _walk_bias(self, dt: float):
        # b_k = b_k-1 + N(0, sigma^2 * dt)
        if np.any(self.walk_std):
            self.bias = self.bias + self.walk_std * np.sqrt(dt) * self.rng.standard_normal(self.spec.dimension)

    def _white_noise(self) -> np.ndarray:
        if not np.any(self.noise_std):
            return np.zeros(self.spec.dimension)
        return self.noise_std * self.rng.standard_normal(self.spec.dimension)

    def _saturate(self, x: np.ndarray) -> np.ndarray:
        limit = self.error_model.saturation_limit
        return np.clip(x, -abs(limit), abs(limit)) if limit else x

    def _quantize(self, x: np.ndarray) -> np.ndarray:
        lsb = self.error_model.lsb
        if not lsb:
            return x
        full_scale = abs(self.error_model.quantization_range)
        return np.clip(lsb * np.round(x / lsb), -full_scale, full_scale)

    def step(self, true_signal: np.ndarray, dt: float, timestamp: float) -> np.ndarray:
        """
        Produce one reading from the perfect signal.

        Args:
            true_signal: Physical quantity the sensor should see.
            dt: Time since the previous reading (drives the bias walk).
            timestamp: Time stamp stored with the reading.
        """
        self._walk_bias(dt)
        reading = self.scale * np.asarray(true_signal, dtype=float) + self.bias + self._white_noise()
        reading = self._quantize(self._saturate(reading))
        return self._record(reading, timestamp)

    def clear(self):
        super().clear()
        self._rewind()


class HardwareSensor(BaseSensor):
    """
    Front end for a physical device: undoes a lab calibration and converts
    to SI units.

        reading = (raw - calibration_bias) / calibration_scale * unit_scale

    A zero entry in ``calibration_scale`` leaves that channel unscaled.
    """
    def __init__(self, sensor_id: str, spec: SensorSpec, calibration_bias=None, calibration_scale=None,
                 unit_scale: float = 1.0, **kwargs):
        super().__init__(sensor_id, spec, **kwargs)
        self.unit_scale = float(unit_scale)
        self.recalibrate(
            np.zeros(spec.dimension) if calibration_bias is None else calibration_bias,
            np.ones(spec.dimension) if calibration_scale is None else calibration_scale,
        )

    def recalibrate(self, new_bias, new_scale):
        """Swap in new calibration parameters; affects subsequent readings only."""
        self.calib_bias = np.asarray(new_bias, dtype=float)
        scale = np.asarray(new_scale, dtype=float)
        self.calib_scale = np.where(scale == 0.0, 1.0, scale)

    def ingest(self, raw_data, timestamp: float) -> np.ndarray:
        """Calibrate one raw reading, store it and return it."""
        raw = np.asarray(raw_data, dtype=float)
        if raw.shape != (self.spec.dimension,):
            raise ValueError(f"{self.sensor_id}: expected {self.spec.dimension} components, got shape {raw.shape}")
        return self._record((raw - self.calib_bias) / self.calib_scale * self.unit_scale, timestamp)

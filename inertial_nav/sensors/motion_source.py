"""
Motion sources: where accelerometer samples come from.

A source can be consumed two ways:

- pull: ``for sample in source: ...`` yields AccelSample records;
- push: ``source.subscribe(callback)`` then ``source.run()`` (or, for a
  TimedMotionSource, ``start()``) delivers every sample to the callbacks.

``dt`` on a sample is the time elapsed since the previous delivered sample;
the first sample carries the nominal interval.
"""

import logging
import math
import threading
from typing import Callable, Iterator, List, NamedTuple, Optional

import numpy as np
import pandas as pd

from .accelerometer import Accelerometer3Axis, HardwareAccelerometer
from .motion_profiles import MotionProfile
from ..util.csv_io import load_recording

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.1  # s, 10 Hz like a phone motion-update timer


class AccelSample(NamedTuple):
    timestamp: float
    ax: float
    ay: float
    az: float
    dt: float

    @property
    def accel(self) -> np.ndarray:
        return np.array([self.ax, self.ay, self.az])


SampleCallback = Callable[[AccelSample], object]


class MotionSource:
    """Base class. Subclasses implement ``__iter__``."""

    def __init__(self):
        self._subscribers: List[SampleCallback] = []
        self._subscribers_lock = threading.Lock()

    def __iter__(self) -> Iterator[AccelSample]:
        raise NotImplementedError

    def subscribe(self, callback: SampleCallback):
        with self._subscribers_lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: SampleCallback):
        with self._subscribers_lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    @property
    def subscriber_count(self) -> int:
        with self._subscribers_lock:
            return len(self._subscribers)

    def _emit(self, sample: AccelSample):
        with self._subscribers_lock:
            callbacks = list(self._subscribers)
        for callback in callbacks:
            callback(sample)

    def run(self, limit: Optional[int] = None) -> int:
        """
        Push samples to the subscribers until the source is exhausted or
        ``limit`` samples have been delivered.

        Returns:
            Number of samples delivered.
        """
        delivered = 0
        if limit is not None and limit <= 0:
            return delivered
        for sample in self:
            self._emit(sample)
            delivered += 1
            if limit is not None and delivered >= limit:
                break
        return delivered


class SimulatedMotionSource(MotionSource):
    """
    Samples a MotionProfile through a simulated accelerometer.

    The clock advances by ``dt`` per tick; with ``jitter`` > 0 each tick is
    scaled by a uniform factor in [1 - jitter, 1 + jitter]. Ticks on which the
    accelerometer's rate limiter declines to update are skipped and their time
    is folded into the next sample's dt. Iteration is repeatable: every pass
    restarts the clock, the jitter generator and the sensor's error model.

    Args:
        profile: Truth generator.
        accelerometer: Error model; a noiseless Accelerometer3Axis by default.
        dt: Nominal tick (s).
        duration: Length of the run (s).
        jitter: Fractional tick variation in [0, 1).
        seed: Seed for the jitter generator.
    """
    def __init__(
        self,
        profile: MotionProfile,
        accelerometer: Optional[Accelerometer3Axis] = None,
        dt: float = DEFAULT_INTERVAL,
        duration: float = 10.0,
        jitter: float = 0.0,
        seed: Optional[int] = None,
    ):
        super().__init__()
        if not dt > 0:
            raise ValueError(f"dt must be positive, got {dt}")
        if not duration >= 0:
            raise ValueError(f"duration must be non-negative, got {duration}")
        if not 0.0 <= jitter < 1.0:
            raise ValueError(f"jitter must lie in [0, 1), got {jitter}")
        self.profile = profile
        self.accelerometer = accelerometer if accelerometer is not None else Accelerometer3Axis()
        self.dt = dt
        self.duration = duration
        self.jitter = jitter
        self.seed = seed

    def __iter__(self) -> Iterator[AccelSample]:
        rng = np.random.default_rng(self.seed)
        self.accelerometer.clear()
        t = 0.0
        pending = 0.0
        while True:
            step = self.dt
            if self.jitter > 0:
                step *= 1.0 + self.jitter * rng.uniform(-1.0, 1.0)
            # tolerance so duration / dt ticks survive rounding
            if t + step > self.duration + 1e-9:
                return
            t += step
            pending += step
            if not self.accelerometer.should_update(t):
                continue
            true_accel = self.profile.acceleration(t)
            measured = self.accelerometer.step(true_accel, pending, t)
            yield AccelSample(t, float(measured[0]), float(measured[1]), float(measured[2]), pending)
            pending = 0.0

    def truth(self, timestamps) -> pd.DataFrame:
        """True kinematics at ``timestamps`` as a DataFrame (for plotting against estimates)."""
        rows = []
        for t in timestamps:
            pos, vel, acc = self.profile.get_kinematics(t)
            row = {"timestamp": t}
            for i, axis in enumerate("xyz"):
                row[f"pos_{axis}"] = pos[i]
                row[f"vel_{axis}"] = vel[i]
                row[f"acc_{axis}"] = acc[i]
            rows.append(row)
        return pd.DataFrame(rows)


class RecordedMotionSource(MotionSource):
    """
    Replays a recording held in a DataFrame with ``ax, ay, az`` columns and,
    optionally, a ``timestamp`` column (s). Without timestamps the rows are
    assumed ``interval`` seconds apart.

    Readings pass through a HardwareAccelerometer, so device units ("g" or
    "mps2") and calibration are applied there. Rows with a non-finite value
    or a timestamp that does not increase are skipped with a warning.
    """
    def __init__(
        self,
        frame: pd.DataFrame,
        units: str = "mps2",
        interval: float = DEFAULT_INTERVAL,
        calibration_bias=None,
        calibration_scale=None,
    ):
        super().__init__()
        missing = [c for c in ("ax", "ay", "az") if c not in frame.columns]
        if missing:
            raise ValueError(f"Recording is missing column(s) {missing}")
        if not interval > 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.frame = frame
        self.interval = interval
        self.accelerometer = HardwareAccelerometer(
            units=units,
            calibration_bias=calibration_bias,
            calibration_scale=calibration_scale,
            buffer_size=max(len(frame), 1),
        )
        self.skipped = 0

    @classmethod
    def from_csv(cls, path, units: str = "mps2", **kwargs) -> "RecordedMotionSource":
        return cls(load_recording(path), units=units, **kwargs)

    def __len__(self):
        return len(self.frame)

    def __iter__(self) -> Iterator[AccelSample]:
        if "timestamp" in self.frame.columns:
            timestamps = self.frame["timestamp"].to_numpy(dtype=float)
        else:
            timestamps = self.interval * np.arange(1, len(self.frame) + 1)
        values = self.frame[["ax", "ay", "az"]].to_numpy(dtype=float)

        self.skipped = 0
        self.accelerometer.clear()
        previous = None
        for row, (t, raw) in enumerate(zip(timestamps, values)):
            if not (math.isfinite(t) and np.all(np.isfinite(raw))):
                logger.warning("skipping row %d: non-finite value (t=%s, accel=%s)", row, t, raw)
                self.skipped += 1
                continue
            if previous is not None and t <= previous:
                logger.warning("skipping row %d: timestamp %.6f does not advance past %.6f", row, t, previous)
                self.skipped += 1
                continue

            dt = self.interval if previous is None else t - previous
            accel = self.accelerometer.ingest(raw, t)
            yield AccelSample(float(t), float(accel[0]), float(accel[1]), float(accel[2]), float(dt))
            previous = t


class TimedMotionSource(MotionSource):
    """
    Pushes another source's samples to subscribers from a background thread,
    one every ``interval`` seconds of wall-clock time.

    Iterating a TimedMotionSource directly just iterates the wrapped source.
    An exception raised by a subscriber is logged and the feed continues.
    """
    def __init__(self, source: MotionSource, interval: float = DEFAULT_INTERVAL):
        super().__init__()
        if interval < 0:
            raise ValueError(f"interval must be non-negative, got {interval}")
        self.source = source
        self.interval = interval
        self.delivered = 0
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def __iter__(self) -> Iterator[AccelSample]:
        return iter(self.source)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the feed thread."""
        if self.running:
            raise RuntimeError("TimedMotionSource is already running")
        self._stop_event.clear()
        self.delivered = 0
        self._thread = threading.Thread(target=self._feed_loop, name="timed-motion-source", daemon=True)
        self._thread.start()
        logger.info("timed motion source started (interval=%.3fs)", self.interval)

    def stop(self, timeout: Optional[float] = None):
        """Ask the feed thread to finish and wait for it."""
        self._stop_event.set()
        self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the feed to end. Returns True if the thread has finished."""
        if self._thread is not None:
            self._thread.join(timeout)
        return not self.running

    # ----------------------- Internal methods -----------------------

    def _feed_loop(self):
        """Main loop (runs in background thread)."""
        for sample in self.source:
            if self._stop_event.is_set():
                break
            try:
                self._emit(sample)
            except Exception:
                logger.exception("subscriber failed on sample at t=%.3f", sample.timestamp)
            self.delivered += 1
            if self._stop_event.wait(self.interval):
                break
        logger.info("timed motion source stopped after %d samples", self.delivered)

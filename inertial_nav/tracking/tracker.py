import logging
import threading
from collections import deque
from typing import List, Optional

import pandas as pd

from ..filters.tri_axis import MotionSample, TriAxisEstimator
from ..sensors.motion_source import AccelSample, MotionSource
from ..util.csv_io import samples_to_frame

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 50


class MotionTracker:
    """
    Consumer side of the estimator: feeds samples in, keeps the latest
    estimate and a bounded history of past ones.

    All state changes and reads go through one lock, so a background source
    may call ``on_sample`` while another thread reads ``history`` or calls
    ``reset``.

    Args:
        estimator: TriAxisEstimator to drive; a default one is created if None.
        max_history: Number of samples kept (oldest dropped first), None for unbounded.
    """
    def __init__(self, estimator: Optional[TriAxisEstimator] = None, max_history: Optional[int] = DEFAULT_MAX_HISTORY):
        if max_history is not None and max_history < 1:
            raise ValueError(f"max_history must be at least 1, got {max_history}")
        self.estimator = estimator if estimator is not None else TriAxisEstimator()
        self.max_history = max_history

        self._lock = threading.Lock()
        self._history = deque([MotionSample.zero()], maxlen=max_history)
        self._current = MotionSample.zero()
        self._rejected = 0
        self._source: Optional[MotionSource] = None

    # --- READ-ONLY VIEWS ---
    @property
    def current(self) -> MotionSample:
        with self._lock:
            return self._current

    @property
    def history(self) -> List[MotionSample]:
        """Oldest first."""
        with self._lock:
            return list(self._history)

    @property
    def rejected_count(self) -> int:
        with self._lock:
            return self._rejected

    # --- FEEDING ---
    def update(self, ax: float, ay: float, az: float, dt: float, timestamp: Optional[float] = None) -> MotionSample:
        """Run one estimator cycle. Invalid input raises ValueError and changes nothing."""
        with self._lock:
            sample = self.estimator.update(ax, ay, az, dt, timestamp=timestamp)
            self._current = sample
            self._history.append(sample)
            return sample

    def on_sample(self, sample: AccelSample) -> Optional[MotionSample]:
        """
        Subscriber callback for a MotionSource.

        A sample the estimator rejects is logged and counted, and None is
        returned, so a background feed keeps running.
        """
        try:
            return self.update(sample.ax, sample.ay, sample.az, sample.dt, timestamp=sample.timestamp)
        except ValueError as e:
            with self._lock:
                self._rejected += 1
            logger.warning("rejected sample at t=%s: %s", sample.timestamp, e)
            return None

    def reset(self):
        """Reset the estimator and start the history over from a zero sample."""
        with self._lock:
            self.estimator.reset()
            self._current = MotionSample.zero()
            self._history.clear()
            self._history.append(self._current)
            self._rejected = 0
        logger.info("motion tracker reset")

    # --- SOURCES ---
    # MotionSource._emit calls subscribers outside its own lock
    def attach(self, source: MotionSource):
        """Subscribe to ``source`` (detaching from any previous one)."""
        with self._lock:
            self._detach_locked()
            source.subscribe(self.on_sample)
            self._source = source
        logger.info("tracker attached to %s", type(source).__name__)

    def detach(self):
        with self._lock:
            self._detach_locked()

    def _detach_locked(self):
        if self._source is None:
            return
        self._source.unsubscribe(self.on_sample)
        logger.info("tracker detached from %s", type(self._source).__name__)
        self._source = None

    @property
    def source(self) -> Optional[MotionSource]:
        with self._lock:
            return self._source

    # --- EXPORT ---
    def to_frame(self) -> pd.DataFrame:
        return samples_to_frame(self.history)

    def __len__(self):
        with self._lock:
            return len(self._history)

    def __repr__(self):
        return f"MotionTracker(samples={len(self)}, max_history={self.max_history}, current={self.current})"

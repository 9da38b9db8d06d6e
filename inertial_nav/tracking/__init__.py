"""Tracking package: consumers that turn a stream of samples into a motion history."""

from .tracker import DEFAULT_MAX_HISTORY, MotionTracker

__all__ = ["DEFAULT_MAX_HISTORY", "MotionTracker"]

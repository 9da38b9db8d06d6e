"""
Motion Tracker Simulation
=========================

Drives the tri-axis estimator with a simulated phone accelerometer and
compares the estimate against the true motion.

Flow:
1. Build a motion profile (push, coast, stop on X; gentle oscillation on Y)
2. Corrupt it with an accelerometer error model
3. Feed the samples through a MotionTracker
4. Plot truth vs estimate per axis
"""

import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

sys.path.append(str(Path(__file__).parent.parent))  # Add project root to path

from inertial_nav.filters import EstimatorConfig, TriAxisEstimator
from inertial_nav.sensors import (
    Accelerometer3Axis,
    HarmonicProfile,
    MotionProfile,
    SimulatedMotionSource,
    StepAccelerationProfile,
)
from inertial_nav.tracking import MotionTracker

SAVE_DIR = Path(__file__).parent / "images"


class CombinedProfile(MotionProfile):
    """Sum of several profiles."""
    def __init__(self, *profiles):
        self.profiles = profiles

    def get_kinematics(self, t):
        parts = [p.get_kinematics(t) for p in self.profiles]
        return tuple(sum(k[i] for k in parts) for i in range(3))


def build_source(duration=12.0, dt=0.1):
    print("[1/4] Building motion profile")
    push = StepAccelerationProfile(
        accels=[[0.0, 0, 0], [0.8, 0, 0], [0.0, 0, 0], [-0.8, 0, 0]],
        durations=[2.0, 2.0, 4.0, 2.0],
    )
    sway = HarmonicProfile(amplitude=[0.0, 0.05, 0.0], freq_hz=0.5)
    profile = CombinedProfile(push, sway)

    print("[2/4] Configuring accelerometer error model")
    accel = Accelerometer3Axis(
        white_noise_std=0.02,
        bias_instability_std=0.002,
        saturation_limit=16 * 9.81,
        quantization_bits=16,
        quantization_range=16 * 9.81,
        seed=42,
    )
    print(f"     [OK] {duration:.0f}s at {1 / dt:.0f} Hz with jitter")
    return SimulatedMotionSource(profile, accel, dt=dt, duration=duration, jitter=0.05, seed=7)


def run_tracker(source):
    print("[3/4] Running tracker")
    tracker = MotionTracker(TriAxisEstimator(EstimatorConfig()), max_history=None)
    tracker.attach(source)
    n = source.run()
    tracker.detach()
    print(f"     [OK] Processed {n} samples, final |p| = {tracker.current.position_magnitude:.3f} m")
    return tracker


def plot_results(tracker, source, show=True):
    print("[4/4] Generating visualization")
    est = tracker.to_frame()
    truth = source.truth(est["timestamp"].values)
    time = est["timestamp"].values

    fig, axes = plt.subplots(3, 3, figsize=(16, 12), sharex=True)
    fig.suptitle("Tracker Simulation: Truth vs Estimate", fontsize=16, fontweight="bold")
    quantities = [("pos", "Position", "m"), ("vel", "Velocity", "m/s"), ("acc", "Acceleration", "m/s²")]
    for row, (prefix, title, ylabel) in enumerate(quantities):
        for col, axis in enumerate("xyz"):
            ax = axes[row, col]
            ax.plot(time, truth[f"{prefix}_{axis}"].values, "g--", label="Truth", alpha=0.7, linewidth=1.2)
            ax.plot(time, est[f"{prefix}_{axis}"].values, "r-", label="Estimate", linewidth=2.0)
            ax.set_title(f"{title} - {axis.upper()} Axis")
            ax.set_ylabel(ylabel)
            ax.grid(True, alpha=0.3)
            if row == 2:
                ax.set_xlabel("Time (s)")
    axes[0, 0].legend(fontsize=9)
    plt.tight_layout()

    SAVE_DIR.mkdir(exist_ok=True)
    output_path = SAVE_DIR / "tracker_sim_results.png"
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    print(f"     [OK] Plot saved to: {output_path}")
    err = np.abs(est["pos_x"].values - truth["pos_x"].values)
    print(f"     X position error: max {err.max():.3f} m, final {err[-1]:.3f} m")

    if show:
        plt.show()


def main():
    print("=" * 80)
    print("MOTION TRACKER SIMULATION")
    print("=" * 80)
    source = build_source()
    tracker = run_tracker(source)
    plot_results(tracker, source)
    print("=" * 80)
    return 0


if __name__ == "__main__":
    sys.exit(main())

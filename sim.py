"""
Replay an accelerometer recording through the motion estimator.

    python sim.py recording.csv [--units g|mps2] [--out results.csv] [--plot]

The recording needs ax, ay, az columns (common aliases such as ax_ms2 are
accepted) and optionally a timestamp column in seconds; without one the rows
are taken to be --interval seconds apart.
"""

import argparse
import logging
import sys
from typing import Optional

import matplotlib.pyplot as plt

from inertial_nav.filters import TriAxisEstimator
from inertial_nav.sensors import RecordedMotionSource
from inertial_nav.tracking import MotionTracker
from inertial_nav.util import ACCEL_UNITS, save_samples


def replay_recording(file_path: str, units: str = "mps2", interval: float = 0.1) -> MotionTracker:
    """
    Feed every row of a recording through a MotionTracker with unbounded history.
    """
    # 1. Load the data
    print(f"[1/3] Loading recording from: {file_path}")
    source = RecordedMotionSource.from_csv(file_path, units=units, interval=interval)
    print(f"     [OK] Loaded {len(source)} rows ({units})")

    # 2. Wire the tracker to the source
    print("[2/3] Initializing estimator")
    tracker = MotionTracker(TriAxisEstimator(), max_history=None)
    tracker.attach(source)

    # 3. Replay
    print("[3/3] Replaying samples")
    delivered = source.run()
    tracker.detach()
    print(f"     [OK] Processed {delivered} samples "
          f"({source.skipped} skipped, {tracker.rejected_count} rejected)")
    return tracker


def plot_history(tracker: MotionTracker, save_path: Optional[str] = None, show: bool = True):
    """Plot position, velocity and acceleration per axis: 9 subplots (3 quantities x 3 axes)."""
    df = tracker.to_frame()
    time = df["timestamp"].values

    fig, axes = plt.subplots(3, 3, figsize=(16, 12), sharex=True)
    fig.suptitle("Motion estimate", fontsize=16, fontweight="bold")

    # (column prefix, title, ylabel)
    quantities = [
        ("pos", "Position", "m"),
        ("vel", "Velocity", "m/s"),
        ("acc", "Acceleration", "m/s²"),
    ]
    axis_labels = ["x", "y", "z"]

    for row, (prefix, title, ylabel) in enumerate(quantities):
        for col, axis in enumerate(axis_labels):
            ax = axes[row, col]
            ax.plot(time, df[f"{prefix}_{axis}"].values, "r-", linewidth=1.5)
            ax.set_title(f"{title} - {axis.upper()} Axis")
            ax.set_ylabel(ylabel)
            ax.grid(True, alpha=0.3)
            if row == 2:  # bottom row
                ax.set_xlabel("Time (s)")

    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        print(f"     [OK] Plot saved to: {save_path}")
    if show:
        plt.show()
    plt.close(fig)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay an accelerometer recording through the motion estimator")
    parser.add_argument("input", help="Recording file (csv, tsv, json, parquet, xlsx)")
    parser.add_argument("--units", choices=ACCEL_UNITS, default="mps2", help="Units of the recorded acceleration")
    parser.add_argument("-o", "--out", help="Write the estimated motion history to this CSV")
    parser.add_argument("--plot", action="store_true", help="Show position/velocity/acceleration plots")
    parser.add_argument("--plot-file", help="Save the plots to this image file instead of showing them")
    parser.add_argument("--interval", type=float, default=0.1,
                        help="Sample spacing (s) used for the first row and for recordings without timestamps")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        tracker = replay_recording(args.input, units=args.units, interval=args.interval)
    except (FileNotFoundError, ValueError) as e:
        print(f"\n[FAILED] ERROR: {e}")
        return 1

    final = tracker.current
    print(f"Final position: [{final.pos_x:.3f}, {final.pos_y:.3f}, {final.pos_z:.3f}] m "
          f"(|p| = {final.position_magnitude:.3f} m)")

    if args.out:
        out = save_samples(tracker.history, args.out)
        print(f"Wrote CSV: {out}")
    if args.plot or args.plot_file:
        plot_history(tracker, save_path=args.plot_file, show=args.plot)
    return 0


if __name__ == "__main__":
    sys.exit(main())

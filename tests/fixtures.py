import numpy as np
import pandas as pd


def recording_frame() -> pd.DataFrame:
    """Half a second at rest, one second pushing along X at 1 m/s^2, then rest (3 s at 10 Hz)."""
    t = np.round(np.arange(1, 31) * 0.1, 10)
    ax = np.where((t > 0.5) & (t <= 1.5), 1.0, 0.0)
    return pd.DataFrame({"timestamp": t, "ax": ax, "ay": 0.0, "az": 0.0})

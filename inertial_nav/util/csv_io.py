from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from .units import unit_scale

# Accepted spellings for the recording columns, lower-cased
COLUMN_ALIASES = {
    "timestamp": ("timestamp", "time", "t", "time_s", "t_s"),
    "ax": ("ax", "ax_ms2", "ax_mps2", "ax_g", "accel_x", "acc_x", "x"),
    "ay": ("ay", "ay_ms2", "ay_mps2", "ay_g", "accel_y", "acc_y", "y"),
    "az": ("az", "az_ms2", "az_mps2", "az_g", "accel_z", "acc_z", "z"),
}


def read_table(path: Union[str, Path]) -> pd.DataFrame:
    """Read a table-like file into a DataFrame.

    Supported input formats (by extension):
    - Excel: .xls, .xlsx
    - JSON: .json (line-delimited or standard)
    - Parquet: .parquet
    - Delimited text: anything else; comma, tab, semicolon or whitespace
    """
    inp = Path(path)
    if not inp.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    suffix = inp.suffix.lower()
    if suffix in ('.xls', '.xlsx'):
        return pd.read_excel(inp)
    if suffix == '.parquet':
        return pd.read_parquet(inp)
    if suffix == '.json':
        # try line-delimited first, then standard json
        try:
            return pd.read_json(inp, lines=True)
        except ValueError:
            return pd.read_json(inp)

    df = pd.read_csv(inp, sep=None, engine='python')
    if len(df.columns) == 1 and len(str(df.columns[0]).split()) > 1:
        # single column whose header holds several names: whitespace separated
        df = pd.read_csv(inp, sep=r'\s+', engine='python')
    return df


def normalise_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename known aliases to ``timestamp, ax, ay, az`` and drop other columns."""
    lookup = {str(c).strip().lower(): c for c in df.columns}
    renamed = {}
    for target, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lookup:
                renamed[lookup[alias]] = target
                break
    out = df.rename(columns=renamed)
    keep = [c for c in COLUMN_ALIASES if c in out.columns]
    return out[keep]


def load_recording(path: Union[str, Path], units: str = "mps2") -> pd.DataFrame:
    """Load an accelerometer recording.

    Returns a DataFrame with columns ``ax, ay, az`` in m/s^2 (converted from
    ``units``) and ``timestamp`` in seconds when the file has one. Cells that
    are not numbers become NaN so that replay can skip those rows.

    Raises:
        FileNotFoundError: the file does not exist.
        ValueError: an acceleration column is missing or the units are unknown.
    """
    scale = unit_scale(units)
    df = normalise_columns(read_table(path))

    missing = [c for c in ("ax", "ay", "az") if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: no column found for {missing}. "
                         f"Accepted names: {[COLUMN_ALIASES[c] for c in missing]}")

    df = df.apply(pd.to_numeric, errors='coerce')
    if scale != 1.0:
        df[["ax", "ay", "az"]] = df[["ax", "ay", "az"]] * scale
    return df.reset_index(drop=True)


def samples_to_frame(samples: Iterable) -> pd.DataFrame:
    """One row per MotionSample (``MotionSample.as_dict`` columns)."""
    return pd.DataFrame([s.as_dict() for s in samples])


def save_samples(samples: Iterable, path: Union[str, Path], overwrite: bool = True) -> str:
    """Write a motion history to CSV and return the written path."""
    outp = Path(path)
    if outp.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {outp}")
    samples_to_frame(samples).to_csv(outp, index=False)
    return str(outp)

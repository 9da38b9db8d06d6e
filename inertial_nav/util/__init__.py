"""Utility helpers package.

Most client code should import conveniently from here rather than diving into
individual submodules. The covariance helpers live in ``linalg.py``, unit
conversions in ``units.py`` and recording IO in ``csv_io.py``.

Example::

    from inertial_nav.util import load_recording, unit_scale

"""

# re-export commonly used symbols from submodules
from .linalg import (
    STATE_DIM,
    transition_matrix,
    predict_covariance,
    as_square_matrix,
    is_symmetric,
    is_positive_semidefinite,
)
from .units import STANDARD_GRAVITY, ACCEL_UNITS, unit_scale
from .csv_io import read_table, normalise_columns, load_recording, samples_to_frame, save_samples

__all__ = [
    # linalg
    "STATE_DIM",
    "transition_matrix",
    "predict_covariance",
    "as_square_matrix",
    "is_symmetric",
    "is_positive_semidefinite",
    # units
    "STANDARD_GRAVITY",
    "ACCEL_UNITS",
    "unit_scale",
    # csv
    "read_table",
    "normalise_columns",
    "load_recording",
    "samples_to_frame",
    "save_samples",
]

"""UNIT CONVERSIONS"""

# Device accelerometers report user acceleration in g; the estimator works in m/s^2.
STANDARD_GRAVITY = 9.81

ACCEL_UNITS = ("mps2", "g")


def unit_scale(units: str) -> float:
    """
    Multiplier that brings an acceleration expressed in ``units`` to m/s^2.
    """
    key = units.strip().lower()
    if key not in ACCEL_UNITS:
        raise ValueError(f"Unknown acceleration units '{units}'. Expected one of {ACCEL_UNITS}")
    return STANDARD_GRAVITY if key == "g" else 1.0

"""
Damage unit normalizer
======================

Storm damage is recorded as a magnitude plus a one-letter scale code:
K = thousands, M = millions, B = billions (US$).

The dataset also contains undocumented codes ("+", "?", digits, "h", ...).
Those are treated as "already in dollars" (multiplier 1) rather than rejected.
"""

from typing import Any, Dict

import pandas as pd

MULTIPLIERS: Dict[str, int] = {
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}


def multiplier(unit_code: Any) -> int:
    """Return the dollar multiplier for a unit code (1 if unrecognized)."""
    if unit_code is None or (not isinstance(unit_code, str) and pd.isna(unit_code)):
        return 1
    return MULTIPLIERS.get(str(unit_code).upper(), 1)


def normalize(magnitude: float, unit_code: Any) -> float:
    """Convert a (magnitude, unit code) pair into US$.

    The magnitude is trusted as-is: negative or non-finite values are scaled
    like any other number instead of raising.

    >>> normalize(2.5, "K")
    2500.0
    >>> normalize(3, "")
    3
    """
    return magnitude * multiplier(unit_code)

"""Public pension start-age adjustment.

The public pension is normally drawn from age 65.  Drawing it earlier or later
changes the monthly amount for life:

* each month drawn before 65 reduces the pension by 0.4 %;
* each month deferred after 65 increases it by 0.7 %.

The start age is clamped to the allowed window of 60 to 75, so the multiplier
ranges from 0.76 to 1.84.

Example
-------

>>> # 150 000 a month at the standard age, deferred to 70
>>> adjusted_pension(150000, 70)
213000

>>> # drawn early at 60
>>> adjusted_pension(150000, 60)
114000
"""

from __future__ import annotations

from .rounding import round_half_up

MIN_AGE = 60
MAX_AGE = 75
STANDARD_AGE = 65
EARLY_RATE_PER_MONTH = 0.004
LATE_RATE_PER_MONTH = 0.007


def pension_multiplier(start_age: float) -> float:
    """Factor applied to the standard-age pension when drawn at ``start_age``."""
    clamped = max(MIN_AGE, min(MAX_AGE, start_age))
    diff_months = (clamped - STANDARD_AGE) * 12
    if diff_months < 0:
        return 1 + diff_months * EARLY_RATE_PER_MONTH
    return 1 + diff_months * LATE_RATE_PER_MONTH


def adjusted_pension(base_pension: float, start_age: float) -> int:
    """Monthly pension drawn from ``start_age``, rounded to whole currency units.

    Parameters
    ----------
    base_pension : float
        Monthly pension at the standard age of 65.
    start_age : float
        Age at which the pension starts; clamped to [60, 75].

    Returns
    -------
    int
        Adjusted monthly pension.
    """
    return round_half_up(base_pension * pension_multiplier(start_age))


__all__ = ["pension_multiplier", "adjusted_pension"]

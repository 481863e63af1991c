"""Rounding of reported money amounts and rates.

Reported figures round halves up (towards positive infinity), so ``2.5``
becomes 3 and ``-2.5`` becomes -2, matching the web frontend that consumes
them.  Python's builtin :func:`round` would send both halves to the even
neighbour instead.

Example
-------

>>> round_half_up(2.5), round(2.5)
(3, 2)
>>> round_half_up(4.25, 1)
4.3
"""

from __future__ import annotations

import math


def round_half_up(value: float, digits: int = 0):
    """Round ``value`` to ``digits`` decimals, halves up.

    Returns an ``int`` for ``digits == 0`` and a ``float`` otherwise.
    """
    if digits == 0:
        return math.floor(value + 0.5)
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


__all__ = ["round_half_up"]

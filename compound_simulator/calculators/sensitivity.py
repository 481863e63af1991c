"""Sensitivity sweep over the monthly contribution or the withdrawal rate.

The Monte Carlo engine re-runs the plan with each requested delta applied,
on exactly the same return shocks as the plan itself, and reports one row per
delta.  This module decides which deltas are valid, turns the per-variant
figures into :class:`SensitivityRow` records and scores them.

* Rate mode with ``rate_deltas`` sweeps the withdrawal rate; invalid deltas
  leave a rate of zero or below.
* Otherwise ``contribution_deltas`` sweeps the monthly contribution; invalid
  deltas make the contribution negative.

The zero delta is always included and stands for the plan as given.

Example
-------

>>> security_score(0.05, failure_probability=0.1)
93
>>> security_label(93)
('safe', 'safe')
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .params import SimulationParameters
from .rounding import round_half_up

logger = logging.getLogger(__name__)

RATE = "rate"
CONTRIBUTION = "contribution"

# (minimum score, label, level), checked top-down
_SECURITY_LEVELS = (
    (95, "very safe", "safe"),
    (80, "safe", "safe"),
    (60, "slight caution", "caution"),
    (40, "caution", "warning"),
)


@dataclass(frozen=True)
class SensitivityRow:
    monthly_contribution: float
    delta: float
    depletion_probability: float
    security_score: int
    median_final_balance: float
    withdrawal_rate: Optional[float] = None


def sweep_deltas(params: SimulationParameters) -> Tuple[Optional[str], List[float]]:
    """Return the sweep kind and its sorted valid deltas (zero included).

    The kind is ``"rate"``, ``"contribution"`` or ``None`` when no sweep was
    requested.
    """
    if params.is_rate_mode and params.rate_deltas:
        kind, base, requested = RATE, params.annual_withdrawal_rate, params.rate_deltas
        valid = sorted(float(d) for d in {*requested, 0.0} if base + d > 0)
    elif params.contribution_deltas:
        kind, base, requested = CONTRIBUTION, params.monthly_contribution, params.contribution_deltas
        valid = sorted(float(d) for d in {*requested, 0.0} if base + d >= 0)
    else:
        return None, []

    dropped = [d for d in requested if d not in valid]
    if dropped:
        logger.warning("discarding %s deltas %s for base %s", kind, dropped, base)
    return kind, valid


def security_score(
    depletion_probability: float,
    failure_probability: Optional[float] = None,
    median_is_zero: bool = False,
) -> int:
    """Score a plan from 0 (needs review) to 100 (no depletion in any path).

    Starts from the share of paths that never ran dry, subtracts up to 20
    points for the total-return shortfall rate and caps the score at 10 when
    the median path ends at zero.
    """
    score = (1 - depletion_probability) * 100
    if failure_probability is not None:
        score -= failure_probability * 20
    if median_is_zero:
        score = min(score, 10)
    return round_half_up(max(0.0, min(100.0, score)))


def security_label(score: float) -> Tuple[str, str]:
    """Return ``(label, level)`` for a security score."""
    for minimum, label, level in _SECURITY_LEVELS:
        if score >= minimum:
            return label, level
    return "needs review", "danger"


def sensitivity_row(
    kind: str,
    params: SimulationParameters,
    delta: float,
    depletion_probability: float,
    failure_probability: float,
    median_final_balance: float,
) -> SensitivityRow:
    score = security_score(depletion_probability, failure_probability, median_final_balance <= 0)
    if kind == RATE:
        return SensitivityRow(
            monthly_contribution=params.monthly_contribution,
            delta=delta,
            depletion_probability=depletion_probability,
            security_score=score,
            median_final_balance=median_final_balance,
            withdrawal_rate=round_half_up(params.annual_withdrawal_rate + delta, 1),
        )
    return SensitivityRow(
        monthly_contribution=float(params.monthly_contribution + delta),
        delta=delta,
        depletion_probability=depletion_probability,
        security_score=score,
        median_final_balance=median_final_balance,
    )


__all__ = [
    "RATE",
    "CONTRIBUTION",
    "SensitivityRow",
    "sweep_deltas",
    "security_score",
    "security_label",
    "sensitivity_row",
]

"""Plan summary figures derived from projector and simulator output.

These helpers turn the raw yearly rows into the handful of numbers a plan
summary quotes: how the phases are laid out, which year the summary is taken
at, the first withdrawal, the total withdrawn and the spread of the Monte
Carlo fan.  Nothing here re-runs a simulation.

Example
-------

>>> timeline_pattern(10, 15, 10)
'contribute -> hold -> withdraw (contribute 10y, hold 5y, withdraw 10y)'
>>> summary_year(10, 15, 10)
15
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .monte_carlo import MonteCarloYearData
from .projection import YearlyProjection
from .rounding import round_half_up

MILESTONE_CANDIDATES = [10_000_000, 20_000_000, 50_000_000, 100_000_000, 200_000_000]


def total_years(contribution_years: int, withdrawal_start_year: int, withdrawal_years: int) -> int:
    return max(contribution_years, withdrawal_start_year + withdrawal_years)


def timeline_pattern(contribution_years: int, withdrawal_start_year: int, withdrawal_years: int) -> str:
    """Describe the phase layout in words, with the length of each phase."""
    parts = []
    if contribution_years > 0:
        parts.append(f"contribute {contribution_years}y")
    gap = withdrawal_start_year - contribution_years
    if gap > 0 and withdrawal_years > 0:
        parts.append(f"hold {gap}y")
    if withdrawal_years > 0:
        parts.append(f"withdraw {withdrawal_years}y")
    if not parts:
        return "contribute only"

    if contribution_years == 0 and withdrawal_start_year == 0:
        label = "withdraw only"
    elif withdrawal_start_year < contribution_years and withdrawal_years > 0:
        label = "contribute + withdraw"
    elif gap > 0 and withdrawal_years > 0:
        label = "contribute -> hold -> withdraw"
    elif withdrawal_years > 0:
        label = "contribute -> withdraw"
    else:
        label = "contribute only"
    return f"{label} ({', '.join(parts)})"


def summary_year(contribution_years: int, withdrawal_start_year: int, withdrawal_years: int) -> int:
    """Year the summary is taken at: withdrawal start, or end of contributions."""
    return withdrawal_start_year if withdrawal_years > 0 else contribution_years


def monthly_withdrawal_for_summary(
    mode: str,
    projections: Sequence[YearlyProjection],
    withdrawal_start_year: int,
    fixed_amount: float,
) -> float:
    """Monthly withdrawal to quote in the summary.

    In ``"rate"`` mode this is the first withdrawal year's total divided by
    12; in ``"amount"`` mode the fixed amount itself.
    """
    if mode == "rate":
        first = next((p for p in projections if p.year == withdrawal_start_year + 1), None)
        return round_half_up((first.yearly_withdrawal if first else 0) / 12)
    return fixed_amount


def drawdown_end_value(
    withdrawal_years: int,
    yearly_data: Sequence[MonteCarloYearData],
    percentile: str,
) -> Optional[float]:
    """Percentile balance at the last withdrawing year, or None without withdrawals."""
    if withdrawal_years <= 0:
        return None
    withdrawing = [d for d in yearly_data if d.is_withdrawing]
    return getattr(withdrawing[-1], percentile) if withdrawing else None


def total_withdrawal_amount(withdrawal_years: int, projections: Sequence[YearlyProjection]) -> float:
    if withdrawal_years <= 0:
        return 0
    return sum(p.yearly_withdrawal for p in projections if p.is_withdrawing)


def withdrawal_milestones(
    withdrawal_years: int,
    withdrawal_start_year: int,
    projections: Sequence[YearlyProjection],
) -> Optional[List[Dict[str, float]]]:
    """Annual withdrawal quoted some years into the withdrawal phase.

    Phases shorter than 10 years have no milestones.  Phases of 20 years or
    more are sampled after 10 and 20 years, shorter ones at their midpoint.
    Offsets past the end of the projection are skipped.
    """
    if withdrawal_years < 10:
        return None
    offsets = [10, 20] if withdrawal_years >= 20 else [withdrawal_years // 2]
    by_year = {p.year: p for p in projections}
    milestones = []
    for offset in offsets:
        proj = by_year.get(withdrawal_start_year + offset)
        if proj is not None:
            milestones.append({"year": offset, "annual": proj.yearly_withdrawal})
    return milestones


def select_milestones(max_value: float) -> List[int]:
    """Up to two round balance levels worth marking on a chart peaking at ``max_value``."""
    candidates = [m for m in MILESTONE_CANDIDATES if max_value * 0.05 < m < max_value * 0.95]
    return candidates[:2]


def fan_chart_bands(yearly_data: Sequence[MonteCarloYearData]) -> List[Dict[str, float]]:
    """Stacked band heights for a percentile fan.

    Each row starts at ``base`` (p10) and stacks the p10-p25, p25-p50,
    p50-p75 and p75-p90 gaps on top of it.
    """
    bands = []
    for d in yearly_data:
        bands.append({
            "year": d.year,
            "base": d.p10,
            "band_outer_lower": d.p25 - d.p10,
            "band_inner_lower": d.p50 - d.p25,
            "band_inner_upper": d.p75 - d.p50,
            "band_outer_upper": d.p90 - d.p75,
        })
    return bands


__all__ = [
    "total_years",
    "timeline_pattern",
    "summary_year",
    "monthly_withdrawal_for_summary",
    "drawdown_end_value",
    "total_withdrawal_amount",
    "withdrawal_milestones",
    "select_milestones",
    "fan_chart_bands",
]

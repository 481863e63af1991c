"""Shared input model for the projector and the Monte Carlo simulator.

A plan is described once by :class:`SimulationParameters` and handed to either
``projection.project_deterministic`` or ``monte_carlo.simulate_monte_carlo``.
Both calculators read the same phase rules from it:

* accumulation: years ``1 .. contribution_years``;
* withdrawal: years ``withdrawal_start_year + 1 .. withdrawal_start_year + withdrawal_years``;
* the two phases may overlap or leave an idle gap in between.

Plans usually arrive as plain dictionaries (from a JSON file or a web form),
so :meth:`SimulationParameters.from_dict` accepts the snake_case field names
as well as the camelCase keys produced by the web frontend.

Example
-------

>>> p = SimulationParameters(contribution_years=10, withdrawal_start_year=15, withdrawal_years=10)
>>> p.total_years
25
>>> p.is_contributing(12), p.is_withdrawing(12)
(False, False)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

# Keys written by the web frontend's plan export.
_CAMEL_CASE_KEYS = {
    "initialAmount": "initial_amount",
    "monthlyContribution": "monthly_contribution",
    "contributionYears": "contribution_years",
    "annualReturnRate": "annual_return_rate",
    "expenseRatio": "expense_ratio",
    "volatility": "volatility",
    "withdrawalStartYear": "withdrawal_start_year",
    "withdrawalYears": "withdrawal_years",
    "monthlyWithdrawal": "monthly_withdrawal",
    "annualWithdrawalRate": "annual_withdrawal_rate",
    "inflationRate": "inflation_rate",
    "inflationAdjustedWithdrawal": "inflation_adjusted_withdrawal",
    "monthlyPensionIncome": "monthly_pension_income",
    "pensionStartYear": "pension_start_year",
    "monthlyOtherIncome": "monthly_other_income",
    "taxFree": "tax_free",
    "contributionDeltas": "contribution_deltas",
    "rateDeltas": "rate_deltas",
}


@dataclass(frozen=True)
class SimulationParameters:
    """Savings and withdrawal schedule for one run.

    Rates (``annual_return_rate``, ``expense_ratio``, ``volatility``,
    ``annual_withdrawal_rate``, ``inflation_rate``) are given in percent.
    Money amounts are monthly unless the name says otherwise.
    """

    initial_amount: float = 0.0
    monthly_contribution: float = 0.0
    contribution_years: int = 0
    annual_return_rate: float = 0.0
    expense_ratio: float = 0.0
    volatility: float = 0.0
    withdrawal_start_year: int = 0
    withdrawal_years: int = 0
    monthly_withdrawal: float = 0.0
    annual_withdrawal_rate: Optional[float] = None
    inflation_rate: float = 0.0
    inflation_adjusted_withdrawal: bool = False
    monthly_pension_income: float = 0.0
    pension_start_year: Optional[int] = None
    monthly_other_income: float = 0.0
    tax_free: bool = False
    contribution_deltas: Tuple[float, ...] = ()
    rate_deltas: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        for name in ("contribution_years", "withdrawal_start_year", "withdrawal_years"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.initial_amount < 0:
            raise ValueError(f"initial_amount must be >= 0, got {self.initial_amount}")
        # lists coming from JSON are frozen so the dataclass stays hashable
        object.__setattr__(self, "contribution_deltas", tuple(self.contribution_deltas or ()))
        object.__setattr__(self, "rate_deltas", tuple(self.rate_deltas or ()))

    # ---- phases ----
    @property
    def total_years(self) -> int:
        return max(self.contribution_years, self.withdrawal_start_year + self.withdrawal_years)

    @property
    def withdrawal_end_year(self) -> int:
        return self.withdrawal_start_year + self.withdrawal_years

    @property
    def is_rate_mode(self) -> bool:
        """Rate mode wins whenever a positive withdrawal rate is present."""
        return self.annual_withdrawal_rate is not None and self.annual_withdrawal_rate > 0

    def is_contributing(self, year: int) -> bool:
        return 0 < year <= self.contribution_years

    def is_withdrawing(self, year: int) -> bool:
        return self.withdrawal_start_year < year <= self.withdrawal_end_year

    def monthly_income(self, year: int) -> float:
        """Income that offsets the withdrawal need in ``year``.

        Other income is always counted; the pension only once
        ``pension_start_year`` is reached.
        """
        pension_active = self.pension_start_year is not None and year >= self.pension_start_year
        return (self.monthly_pension_income if pension_active else 0.0) + self.monthly_other_income

    # ---- construction ----
    @classmethod
    def from_dict(cls, plan: Mapping[str, Any]) -> "SimulationParameters":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in plan.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        for name in ("contribution_years", "withdrawal_start_year", "withdrawal_years"):
            if name in kwargs:
                kwargs[name] = int(kwargs[name])
        if "pension_start_year" in kwargs:
            kwargs["pension_start_year"] = int(kwargs["pension_start_year"])
        return cls(**kwargs)

    @classmethod
    def coerce(cls, params: Union["SimulationParameters", Mapping[str, Any]]) -> "SimulationParameters":
        if isinstance(params, cls):
            return params
        return cls.from_dict(params)


def load_parameters(path: Union[str, Path]) -> SimulationParameters:
    """Read a plan from a JSON file.

    Parameters
    ----------
    path : str or Path
        JSON file holding a single plan object.

    Returns
    -------
    SimulationParameters
        The parsed plan.
    """
    with open(path, "r", encoding="utf-8") as f:
        plan = json.load(f)
    return SimulationParameters.from_dict(plan)


__all__ = ["SimulationParameters", "load_parameters"]

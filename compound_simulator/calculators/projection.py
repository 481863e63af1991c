from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Union

from .params import SimulationParameters
from .rounding import round_half_up
from .taxes import effective_tax_rate, settle_withdrawal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YearlyProjection:
    year: int
    principal: float
    interest: float
    tax: float
    total: float
    yearly_withdrawal: float
    is_contributing: bool
    is_withdrawing: bool


def project_deterministic(params: Union[SimulationParameters, Mapping]) -> List[YearlyProjection]:
    """Year-by-year balance at fixed return and inflation assumptions.

    Returns ``total_years + 1`` rows; row 0 is the starting balance.  Each later
    row reports the after-tax value at year end, i.e. as if the unrealised gain
    were sold and taxed on 31 December.
    """
    p = SimulationParameters.coerce(params)
    monthly_rate = (1 + (p.annual_return_rate - p.expense_ratio) / 100) ** (1 / 12) - 1
    tax_rate = effective_tax_rate(p.tax_free)
    ri = p.inflation_rate / 100
    monthly_inflation = (1 + ri) ** (1 / 12) if ri > 0 else 1.0
    rate_mode = p.is_rate_mode

    current_total = float(p.initial_amount)
    total_principal = float(p.initial_amount)
    monthly_withdrawal = float(p.monthly_withdrawal)
    # rate mode: gross amount fixed at the first withdrawing month
    fixed_withdrawal: Optional[float] = None
    first_withdrawal_year = -1

    projections = [YearlyProjection(
        year=0,
        principal=p.initial_amount,
        interest=0,
        tax=0,
        total=p.initial_amount,
        yearly_withdrawal=0,
        is_contributing=False,
        is_withdrawing=False,
    )]

    for year in range(1, p.total_years + 1):
        contributing = p.is_contributing(year)
        withdrawing = p.is_withdrawing(year)
        income = p.monthly_income(year)
        year_withdrawals = 0.0

        for month in range(12):
            current_total *= 1 + monthly_rate

            if contributing:
                current_total += p.monthly_contribution
                total_principal += p.monthly_contribution

            if withdrawing and current_total > 0:
                if rate_mode:
                    if fixed_withdrawal is None:
                        fixed_withdrawal = current_total * p.annual_withdrawal_rate / 100 / 12
                        first_withdrawal_year = year
                    elif month == 0 and year > first_withdrawal_year:
                        # constant real withdrawal: index once a year
                        fixed_withdrawal *= 1 + ri
                    gross = fixed_withdrawal
                else:
                    gross = monthly_withdrawal
                    if p.inflation_adjusted_withdrawal:
                        monthly_withdrawal *= monthly_inflation

                net = max(gross - income, 0.0)
                year_withdrawals += net
                balance, basis, _ = settle_withdrawal(current_total, total_principal, net, tax_rate)
                current_total, total_principal = float(balance), float(basis)

        # --- year end: tax the unrealised gain ---
        interest = current_total - total_principal
        tax = round_half_up(interest * tax_rate) if interest > 0 else 0
        projections.append(YearlyProjection(
            year=year,
            principal=round_half_up(min(total_principal, current_total)),
            interest=round_half_up(interest) - tax if interest > 0 else 0,
            tax=tax,
            total=round_half_up(max(current_total - tax, 0.0)),
            yearly_withdrawal=round_half_up(year_withdrawals),
            is_contributing=contributing,
            is_withdrawing=withdrawing,
        ))

    logger.debug(
        "deterministic projection: %d years, final total %s",
        p.total_years, projections[-1].total,
    )
    return projections


__all__ = ["YearlyProjection", "project_deterministic"]

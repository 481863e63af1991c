from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Union

import numpy as np

from .params import SimulationParameters
from .rounding import round_half_up
from .sampling import BoxMullerSampler, Mulberry32, UniformSource
from .sensitivity import CONTRIBUTION, RATE, SensitivityRow, sensitivity_row, sweep_deltas
from .taxes import effective_tax_rate, settle_withdrawal

logger = logging.getLogger(__name__)

N_PATHS = 5000
SEED = 42
PERCENTILES = (("p10", 0.10), ("p25", 0.25), ("p50", 0.50), ("p75", 0.75), ("p90", 0.90))
MAIN_BINS = 10
MAX_TAIL_BINS = 5


@dataclass(frozen=True)
class MonteCarloYearData:
    year: int
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    principal: float
    is_contributing: bool
    is_withdrawing: bool
    depletion_rate: Optional[float] = None
    median_yearly_withdrawal: Optional[float] = None


@dataclass(frozen=True)
class DistributionBin:
    range_end: float
    count: int
    is_depleted: bool


@dataclass(frozen=True)
class MonteCarloResult:
    yearly_data: List[MonteCarloYearData]
    failure_probability: float
    depletion_probability: float
    distribution: List[DistributionBin]
    sensitivity_rows: Optional[List[SensitivityRow]] = None


class PathEnsemble:
    """Simulated balances of one plan and its sensitivity variants.

    Every array has shape ``(variants, n_paths)``; row 0 is the plan as given.
    All rows are advanced with the same monthly growth factors, so variants
    differ from the plan only through their contribution or withdrawal rate.
    """

    def __init__(
        self,
        initial_amount: float,
        contributions: Sequence[float],
        withdrawal_rates: Optional[Sequence[float]],
        n_paths: int,
    ):
        self.contributions = np.asarray(contributions, dtype=float).reshape(-1, 1)
        self.withdrawal_rates = (
            None if withdrawal_rates is None else np.asarray(withdrawal_rates, dtype=float).reshape(-1, 1)
        )
        shape = (self.contributions.shape[0], n_paths)
        self.balances = np.full(shape, float(initial_amount))
        self.cost_basis = np.full(shape, float(initial_amount))
        # rate mode: 0 until the path's first withdrawing month
        self.fixed_withdrawal = np.zeros(shape)
        self.year_withdrawals = np.zeros(shape)
        self.cumulative_withdrawals = np.zeros(shape)
        self.contributed = np.full(shape[0], float(initial_amount))

    @property
    def n_paths(self) -> int:
        return self.balances.shape[1]

    def begin_year(self) -> None:
        self.year_withdrawals.fill(0.0)

    def step(
        self,
        growth: np.ndarray,
        contributing: bool,
        withdrawing: bool,
        monthly_withdrawal: float,
        income: float,
        tax_rate: float,
    ) -> None:
        """Advance every path by one month."""
        self.balances *= growth
        if contributing:
            self.balances += self.contributions
            self.cost_basis += self.contributions
            self.contributed += self.contributions[:, 0]
        if not withdrawing:
            return

        funded = self.balances > 0
        if self.withdrawal_rates is not None:
            unset = funded & (self.fixed_withdrawal == 0)
            self.fixed_withdrawal = np.where(
                unset, self.balances * self.withdrawal_rates / 100 / 12, self.fixed_withdrawal
            )
            gross = self.fixed_withdrawal
        else:
            gross = monthly_withdrawal

        net = np.where(funded, np.maximum(gross - income, 0.0), 0.0)
        self.year_withdrawals += net
        self.cumulative_withdrawals += net
        self.balances, self.cost_basis, _ = settle_withdrawal(self.balances, self.cost_basis, net, tax_rate)

    def depleted(self) -> np.ndarray:
        """Paths that ran dry: nothing left after withdrawing something."""
        return (self.balances <= 0) & (self.cumulative_withdrawals > 0)


def _rank(n: int, q: float) -> int:
    return min(int(n * q), n - 1)


def _median(values: np.ndarray) -> float:
    return float(np.sort(values)[_rank(values.size, 0.5)])


def _year_summary(
    year: int,
    ensemble: PathEnsemble,
    contributing: bool,
    withdrawing: bool,
    rate_mode: bool,
) -> MonteCarloYearData:
    n = ensemble.n_paths
    ordered = np.sort(ensemble.balances[0])
    pct = {name: round_half_up(float(ordered[_rank(n, q)])) for name, q in PERCENTILES}
    median_balance = float(ordered[_rank(n, 0.5)])
    principal = round_half_up(min(_median(ensemble.cost_basis[0]), median_balance))

    depletion_rate = None
    median_withdrawal = None
    if withdrawing:
        depletion_rate = int(np.count_nonzero(ensemble.depleted()[0])) / n
        if rate_mode:
            median_withdrawal = round_half_up(_median(ensemble.year_withdrawals[0]))

    return MonteCarloYearData(
        year=year,
        principal=principal,
        is_contributing=contributing,
        is_withdrawing=withdrawing,
        depletion_rate=depletion_rate,
        median_yearly_withdrawal=median_withdrawal,
        **pct,
    )


def _distribution(values: np.ndarray, depleted: np.ndarray) -> List[DistributionBin]:
    """Histogram of final balances with depleted paths in their own leading bin."""
    n = values.size
    bins: List[DistributionBin] = []
    depleted_count = int(np.count_nonzero(depleted))
    if depleted_count:
        bins.append(DistributionBin(range_end=0, count=depleted_count, is_depleted=True))

    remaining = values[~depleted]
    if remaining.size == 0:
        return bins

    p90 = float(np.sort(values)[_rank(n, 0.9)])
    bin_width = max(p90, 1.0) / MAIN_BINS
    needed = math.ceil(float(remaining.max()) / bin_width)
    needed = max(1, min(needed, MAIN_BINS + MAX_TAIL_BINS))

    # values past the last bin are folded into it
    index = np.minimum(np.floor(remaining / bin_width).astype(int), needed - 1)
    counts = np.bincount(index, minlength=needed)
    for b in range(needed):
        # a regular bin never ends at 0, which marks the depleted bin
        range_end = max(1, round_half_up((b + 1) * bin_width))
        bins.append(DistributionBin(range_end=range_end, count=int(counts[b]), is_depleted=False))
    return bins


def _sensitivity_rows(
    kind: str,
    params: SimulationParameters,
    row_deltas: Sequence[float],
    variant_deltas: Sequence[float],
    ensemble: PathEnsemble,
    depletion_probability: float,
    failure_probability: float,
) -> List[SensitivityRow]:
    n = ensemble.n_paths
    ends_withdrawing = params.is_withdrawing(params.total_years)
    # every row is judged against the plan's own cash flows so rows rank consistently
    baseline_withdrawn = ensemble.cumulative_withdrawals[0]
    baseline_contributed = ensemble.contributed[0]
    depleted = ensemble.depleted()

    rows = []
    for delta in row_deltas:
        v = variant_deltas.index(delta)
        values = ensemble.balances[v]
        median = round_half_up(_median(values))
        if delta == 0:
            depletion, failure = depletion_probability, failure_probability
        else:
            depletion = int(np.count_nonzero(depleted[v])) / n if ends_withdrawing else 0.0
            failure = int(np.count_nonzero(values + baseline_withdrawn < baseline_contributed)) / n
        rows.append(sensitivity_row(kind, params, delta, depletion, failure, median))
    return rows


def simulate_monte_carlo(
    params: Union[SimulationParameters, Mapping],
    n_paths: int = N_PATHS,
    seed: int = SEED,
    rng: Optional[UniformSource] = None,
) -> MonteCarloResult:
    """Probabilistic forecast of the plan over ``n_paths`` random return paths.

    Parameters
    ----------
    params : SimulationParameters or mapping
        The plan.  Mappings go through ``SimulationParameters.from_dict``.
    n_paths : int, optional
        Number of simulated paths (default 5000).
    seed : int, optional
        Seed of the built-in Mulberry32 generator (default 42).
    rng : object, optional
        Replacement uniform source with a ``random(size)`` method, for
        example ``numpy.random.default_rng(7)``.  ``seed`` is ignored then.

    Returns
    -------
    MonteCarloResult
        Yearly percentiles, failure and depletion probabilities, the final
        balance histogram and, when deltas were requested, sensitivity rows.

    All figures are in today's money: returns are deflated by the inflation
    rate and nominal withdrawals lose purchasing power month by month.
    """
    p = SimulationParameters.coerce(params)
    if n_paths < 1:
        raise ValueError(f"n_paths must be >= 1, got {n_paths}")

    sampler = BoxMullerSampler(rng if rng is not None else Mulberry32(seed))
    tax_rate = effective_tax_rate(p.tax_free)
    mu = (p.annual_return_rate - p.expense_ratio) / 100
    ri = p.inflation_rate / 100
    sigma = p.volatility / 100
    drift = (mu - ri - sigma ** 2 / 2) / 12
    monthly_sigma = sigma / math.sqrt(12)
    rate_mode = p.is_rate_mode

    # a fixed nominal withdrawal shrinks in real terms
    deflate = not rate_mode and not p.inflation_adjusted_withdrawal and ri > 0
    monthly_real_factor = 1 / (1 + ri) ** (1 / 12) if deflate else 1.0
    monthly_withdrawal = float(p.monthly_withdrawal)
    if deflate:
        monthly_withdrawal *= (1 + ri) ** -p.withdrawal_start_year

    kind, row_deltas = sweep_deltas(p)
    variant_deltas = [0.0] + [d for d in row_deltas if d != 0]
    contributions = [p.monthly_contribution + (d if kind == CONTRIBUTION else 0.0) for d in variant_deltas]
    rates = None
    if rate_mode:
        rates = [p.annual_withdrawal_rate + (d if kind == RATE else 0.0) for d in variant_deltas]
    ensemble = PathEnsemble(p.initial_amount, contributions, rates, n_paths)
    logger.debug(
        "monte carlo: %d paths, %d years, %d variants, seed %s",
        n_paths, p.total_years, len(variant_deltas), seed,
    )

    yearly = [MonteCarloYearData(
        year=0,
        p10=p.initial_amount,
        p25=p.initial_amount,
        p50=p.initial_amount,
        p75=p.initial_amount,
        p90=p.initial_amount,
        principal=p.initial_amount,
        is_contributing=False,
        is_withdrawing=False,
    )]

    for year in range(1, p.total_years + 1):
        contributing = p.is_contributing(year)
        withdrawing = p.is_withdrawing(year)
        income = p.monthly_income(year)
        ensemble.begin_year()

        for _month in range(12):
            if withdrawing:
                monthly_withdrawal *= monthly_real_factor
            growth = np.exp(drift + monthly_sigma * sampler.standard_normal(n_paths))
            ensemble.step(growth, contributing, withdrawing, monthly_withdrawal, income, tax_rate)

        yearly.append(_year_summary(year, ensemble, contributing, withdrawing, rate_mode))

    final = ensemble.balances[0]
    failure_probability = int(np.count_nonzero(
        final + ensemble.cumulative_withdrawals[0] < ensemble.contributed[0]
    )) / n_paths
    depletion_probability = yearly[-1].depletion_rate or 0.0
    distribution = _distribution(final, ensemble.depleted()[0])

    rows = None
    if kind is not None:
        rows = _sensitivity_rows(
            kind, p, row_deltas, variant_deltas, ensemble, depletion_probability, failure_probability
        )

    logger.debug(
        "monte carlo done: failure %.4f, depletion %.4f",
        failure_probability, depletion_probability,
    )
    return MonteCarloResult(
        yearly_data=yearly,
        failure_probability=failure_probability,
        depletion_probability=depletion_probability,
        distribution=distribution,
        sensitivity_rows=rows,
    )


__all__ = [
    "N_PATHS",
    "SEED",
    "MonteCarloYearData",
    "DistributionBin",
    "MonteCarloResult",
    "PathEnsemble",
    "simulate_monte_carlo",
]

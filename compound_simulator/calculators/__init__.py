"""Calculators behind the compound-interest and retirement simulators.

The `calculators` package contains small, focused modules that each implement
one piece of the projection logic:

* ``params`` - the shared plan model, phase rules and plan loading.
* ``taxes`` - capital-gains rate and the per-withdrawal tax settlement.
* ``projection`` - deterministic year-by-year compound-interest projection.
* ``sampling`` - seeded uniform generator and Box-Muller normal sampler.
* ``monte_carlo`` - engine simulating thousands of return paths with withdrawals.
* ``sensitivity`` - contribution / withdrawal-rate sweep and security scoring.
* ``pension`` - public pension start-age adjustment.
* ``summary`` - plan summary figures derived from the results.
* ``frames`` - pandas views of the results.
* ``rounding`` - half-up rounding of reported figures.

Each module exposes a few public functions with clear parameters and returns.  See
individual docstrings for details.
"""

from . import (  # noqa: F401
    params,
    taxes,
    projection,
    sampling,
    monte_carlo,
    sensitivity,
    pension,
    summary,
    frames,
    rounding,
)

__all__ = [
    "params",
    "taxes",
    "projection",
    "sampling",
    "monte_carlo",
    "sensitivity",
    "pension",
    "summary",
    "frames",
    "rounding",
]

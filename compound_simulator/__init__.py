"""Compound-interest projection and Monte Carlo retirement simulation."""

from .calculators.monte_carlo import (
    DistributionBin,
    MonteCarloResult,
    MonteCarloYearData,
    simulate_monte_carlo,
)
from .calculators.params import SimulationParameters, load_parameters
from .calculators.projection import YearlyProjection, project_deterministic
from .calculators.sensitivity import SensitivityRow

__version__ = "0.1.0"

__all__ = [
    "SimulationParameters",
    "load_parameters",
    "YearlyProjection",
    "project_deterministic",
    "MonteCarloYearData",
    "DistributionBin",
    "MonteCarloResult",
    "SensitivityRow",
    "simulate_monte_carlo",
]

"""Tabular views of projector and simulator output.

Each function returns a :class:`pandas.DataFrame` with one row per record and
the record's field names as columns, ready for ``to_csv`` or display.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Sequence

import pandas as pd

from .monte_carlo import DistributionBin, MonteCarloResult, MonteCarloYearData
from .projection import YearlyProjection
from .sensitivity import SensitivityRow


def _frame(records, record_type) -> pd.DataFrame:
    # keep the columns even when there are no rows
    columns = [f.name for f in fields(record_type)]
    return pd.DataFrame([asdict(r) for r in records], columns=columns)


def projection_frame(projections: Sequence[YearlyProjection]) -> pd.DataFrame:
    return _frame(projections, YearlyProjection)


def yearly_frame(result: MonteCarloResult) -> pd.DataFrame:
    return _frame(result.yearly_data, MonteCarloYearData)


def distribution_frame(result: MonteCarloResult) -> pd.DataFrame:
    return _frame(result.distribution, DistributionBin)


def sensitivity_frame(result: MonteCarloResult) -> pd.DataFrame:
    """Sensitivity rows, or an empty frame when no sweep was requested."""
    return _frame(result.sensitivity_rows or [], SensitivityRow)


__all__ = ["projection_frame", "yearly_frame", "distribution_frame", "sensitivity_frame"]

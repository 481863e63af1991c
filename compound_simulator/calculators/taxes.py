"""Capital-gains taxation of an investment account.

Gains are taxed at a single flat rate (20.315 %, the separate-taxation rate on
listed-equity gains and dividends) unless the account is tax free.  Tax is
due only on the gain portion of money leaving the account, so every
withdrawal is split between cost basis and gain in proportion to the current
unrealised gain.

Example
-------

>>> # 400 withdrawn from a 2 000 account holding 1 000 of cost basis
>>> balance, basis, tax = settle_withdrawal(2000.0, 1000.0, 400.0, TAX_RATE)
>>> round(float(tax), 2), round(float(basis), 2), round(float(balance), 2)
(40.63, 800.0, 1559.37)

The same rule is applied to a scalar balance by the deterministic projector
and to whole arrays of simulated paths by the Monte Carlo engine.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

TAX_RATE = 0.20315


def effective_tax_rate(tax_free: bool = False, rate: float = TAX_RATE) -> float:
    """Rate applied to realised gains; zero for tax-free accounts."""
    return 0.0 if tax_free else rate


def settle_withdrawal(balance, cost_basis, net_withdrawal, tax_rate: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Take ``net_withdrawal`` out of the account and pay the tax on its gain.

    Parameters
    ----------
    balance : float or ndarray
        Market value before the withdrawal.
    cost_basis : float or ndarray
        Contributed capital not yet attributed to realised gains.
    net_withdrawal : float or ndarray
        Cash taken out (after any income offsets).  Must be zero wherever
        ``balance`` is not positive.
    tax_rate : float
        Capital-gains rate applied to the realised share.

    Returns
    -------
    tuple
        ``(balance, cost_basis, tax)`` after the withdrawal.  The balance is
        clamped at zero and the basis shrinks by the withdrawn fraction of the
        portfolio (capped at the whole of it).
    """
    balance = np.asarray(balance, dtype=float)
    cost_basis = np.asarray(cost_basis, dtype=float)
    net = np.asarray(net_withdrawal, dtype=float)

    funded = balance > 0
    divisor = np.where(funded, balance, 1.0)
    gain_ratio = np.where(funded & (balance > cost_basis), (balance - cost_basis) / divisor, 0.0)
    tax = net * gain_ratio * tax_rate
    withdrawn_ratio = np.minimum(np.where(funded, net / divisor, 0.0), 1.0)

    cost_basis = cost_basis * (1.0 - withdrawn_ratio)
    balance = np.maximum(balance - net - tax, 0.0)
    return balance, cost_basis, tax


__all__ = ["TAX_RATE", "effective_tax_rate", "settle_withdrawal"]

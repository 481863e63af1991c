"""Tests for the deterministic compound-interest projector."""

import math

import pytest

from compound_simulator import SimulationParameters, project_deterministic
from compound_simulator.calculators.rounding import round_half_up
from compound_simulator.calculators.taxes import TAX_RATE


def _base_plan(**overrides) -> dict:
    plan = {
        "initial_amount": 1_000_000,
        "monthly_contribution": 0,
        "annual_return_rate": 5,
        "contribution_years": 10,
        "withdrawal_start_year": 10,
        "withdrawal_years": 0,
    }
    plan.update(overrides)
    return plan


def test_number_of_rows_and_year_zero():
    result = project_deterministic(_base_plan(initial_amount=500_000, monthly_contribution=30_000))
    assert len(result) == 11
    year0 = result[0]
    assert year0.year == 0
    assert year0.principal == 500_000
    assert year0.total == 500_000
    assert year0.interest == 0 and year0.tax == 0
    assert not year0.is_contributing and not year0.is_withdrawing


def test_accepts_camel_case_mapping():
    plan = {
        "initialAmount": 0,
        "monthlyContribution": 10_000,
        "annualReturnRate": 0,
        "contributionYears": 1,
        "withdrawalStartYear": 1,
        "withdrawalYears": 0,
    }
    final = project_deterministic(plan)[1]
    assert final.principal == 120_000
    assert final.total == 120_000
    assert final.interest == 0 and final.tax == 0


def test_zero_return_keeps_total_at_principal():
    result = project_deterministic(_base_plan(monthly_contribution=50_000, annual_return_rate=0, contribution_years=5, withdrawal_start_year=5))
    final = result[5]
    assert final.principal == 1_000_000 + 50_000 * 12 * 5
    assert final.interest == 0
    assert final.total == final.principal


def test_growth_compounds_over_time():
    result = project_deterministic(_base_plan(monthly_contribution=10_000, contribution_years=20, withdrawal_start_year=20))
    year10, year20 = result[10], result[20]
    assert year20.interest + year20.tax > (year10.interest + year10.tax) * 2
    assert year20.total > year10.total


def test_tax_on_unrealised_gain():
    """Year-end tax is 20.315 % of the pre-tax gain and total = principal + interest."""
    final = project_deterministic(_base_plan(annual_return_rate=10, contribution_years=1, withdrawal_start_year=1))[1]
    assert final.principal == 1_000_000
    assert final.tax > 0
    assert final.tax == round_half_up((final.interest + final.tax) * TAX_RATE)
    assert final.total == final.principal + final.interest


def test_tax_free_account_pays_no_tax():
    final = project_deterministic(_base_plan(annual_return_rate=10, contribution_years=1, withdrawal_start_year=1, tax_free=True))[1]
    assert final.tax == 0
    assert final.total > 1_000_000
    assert final.total == final.principal + final.interest


class TestWithdrawal:
    def test_rows_cover_withdrawal_phase(self):
        result = project_deterministic(_base_plan(
            initial_amount=10_000_000, monthly_contribution=50_000, contribution_years=20,
            withdrawal_start_year=20, monthly_withdrawal=150_000, withdrawal_years=10,
        ))
        assert len(result) == 31

    def test_zero_return_withdrawal_is_exact(self):
        result = project_deterministic(_base_plan(
            initial_amount=10_000_000, annual_return_rate=0, contribution_years=5,
            withdrawal_start_year=5, monthly_withdrawal=100_000, withdrawal_years=5,
        ))
        assert result[10].total == 4_000_000
        assert result[10].yearly_withdrawal == 1_200_000

    def test_total_clamped_at_zero(self):
        result = project_deterministic(_base_plan(
            annual_return_rate=0, contribution_years=1, withdrawal_start_year=1,
            monthly_withdrawal=500_000, withdrawal_years=5,
        ))
        assert result[-1].total == 0
        assert all(r.total >= 0 for r in result)

    def test_phase_flags(self):
        result = project_deterministic(_base_plan(
            initial_amount=5_000_000, monthly_contribution=50_000, monthly_withdrawal=100_000, withdrawal_years=5,
        ))
        assert len([r for r in result if r.is_contributing and not r.is_withdrawing]) == 10
        assert len([r for r in result if r.is_withdrawing and not r.is_contributing]) == 5

    def test_principal_runs_off_proportionally(self):
        result = project_deterministic(_base_plan(
            initial_amount=10_000_000, monthly_contribution=100_000,
            monthly_withdrawal=50_000, withdrawal_years=5,
        ))
        acc_end = result[10]
        withdrawing = [r for r in result if r.is_withdrawing]
        assert all(r.principal <= acc_end.principal for r in withdrawing)
        assert withdrawing[-1].principal < acc_end.principal

    def test_withdrawal_tax_reduces_balance(self):
        plan = _base_plan(initial_amount=10_000_000, monthly_withdrawal=100_000, withdrawal_years=10)
        taxed = project_deterministic(plan)
        untaxed = project_deterministic(dict(plan, tax_free=True))
        assert untaxed[20].total > taxed[20].total


class TestPhases:
    def test_idle_gap(self):
        result = project_deterministic(_base_plan(
            monthly_contribution=50_000, withdrawal_start_year=15, monthly_withdrawal=100_000, withdrawal_years=10,
        ))
        assert len(result) == 26
        for r in result[11:16]:
            assert not r.is_contributing and not r.is_withdrawing
        assert result[15].total > result[10].total

    def test_idle_matches_zero_contribution(self):
        idle = project_deterministic(_base_plan(
            initial_amount=5_000_000, contribution_years=0, monthly_withdrawal=100_000, withdrawal_years=10,
        ))
        contrib = project_deterministic(_base_plan(
            initial_amount=5_000_000, contribution_years=10, monthly_withdrawal=100_000, withdrawal_years=10,
        ))
        assert idle[10].total == contrib[10].total
        assert idle[20].total == contrib[20].total

    def test_principal_frozen_while_idle(self):
        result = project_deterministic(_base_plan(monthly_contribution=50_000, annual_return_rate=0, contribution_years=5))
        assert result[5].principal == 4_000_000
        for r in result[6:11]:
            assert r.principal == 4_000_000

    def test_overlap_flags(self):
        result = project_deterministic(_base_plan(
            initial_amount=10_000_000, monthly_contribution=100_000, contribution_years=20,
            withdrawal_start_year=10, monthly_withdrawal=50_000, withdrawal_years=20,
        ))
        assert len(result) == 31
        for r in result[11:21]:
            assert r.is_contributing and r.is_withdrawing

    def test_overlap_nets_contribution_and_withdrawal(self):
        result = project_deterministic(_base_plan(
            initial_amount=0, monthly_contribution=100_000, annual_return_rate=0,
            withdrawal_start_year=0, monthly_withdrawal=30_000, withdrawal_years=10,
        ))
        assert result[1].total == 840_000
        assert result[10].total == 8_400_000


def test_expense_ratio_reduces_growth():
    plain = project_deterministic(_base_plan(annual_return_rate=7))
    with_fee = project_deterministic(_base_plan(annual_return_rate=7, expense_ratio=1))
    same_net = project_deterministic(_base_plan(annual_return_rate=6))
    assert with_fee[10].total < plain[10].total
    assert with_fee[10].total == same_net[10].total


class TestRateMode:
    def test_withdrawal_fixed_at_start(self):
        result = project_deterministic({
            "initial_amount": 10_000_000,
            "annual_return_rate": 0,
            "annual_withdrawal_rate": 4,
            "withdrawal_years": 10,
        })
        withdrawing = [r for r in result if r.is_withdrawing]
        assert withdrawing[0].yearly_withdrawal == 400_000
        assert all(r.yearly_withdrawal == 400_000 for r in withdrawing)

    def test_low_rate_does_not_deplete(self):
        result = project_deterministic({
            "initial_amount": 10_000_000,
            "annual_return_rate": 5,
            "annual_withdrawal_rate": 3,
            "withdrawal_years": 50,
        })
        assert result[-1].total > 0

    def test_fixed_at_portfolio_value_after_idle_gap(self):
        result = project_deterministic({
            "initial_amount": 10_000_000,
            "annual_return_rate": 5,
            "contribution_years": 0,
            "withdrawal_start_year": 10,
            "annual_withdrawal_rate": 4,
            "withdrawal_years": 5,
        })
        # first withdrawal is taken after the month's growth
        balance_at_start = 10_000_000 * 1.05 ** (10 + 1 / 12)
        expected = round_half_up(balance_at_start * 0.04 / 12 * 12)
        assert result[11].yearly_withdrawal == pytest.approx(expected, rel=1e-3)
        assert result[15].yearly_withdrawal == result[11].yearly_withdrawal

    def test_indexed_yearly_with_inflation(self):
        result = project_deterministic({
            "initial_amount": 10_000_000,
            "annual_return_rate": 5,
            "inflation_rate": 2,
            "annual_withdrawal_rate": 4,
            "withdrawal_years": 3,
        })
        assert math.isclose(result[2].yearly_withdrawal, result[1].yearly_withdrawal * 1.02, abs_tol=2)
        assert math.isclose(result[3].yearly_withdrawal, result[1].yearly_withdrawal * 1.02 ** 2, abs_tol=2)

    def test_ignores_inflation_adjusted_flag(self):
        plan = {
            "initial_amount": 10_000_000,
            "annual_return_rate": 5,
            "annual_withdrawal_rate": 4,
            "withdrawal_years": 10,
        }
        a = project_deterministic(plan)
        b = project_deterministic(dict(plan, inflation_adjusted_withdrawal=True))
        assert [r.total for r in a] == [r.total for r in b]

    def test_rate_wins_over_amount(self):
        plan = {"initial_amount": 10_000_000, "annual_withdrawal_rate": 4, "withdrawal_years": 2}
        a = project_deterministic(plan)
        b = project_deterministic(dict(plan, monthly_withdrawal=999_999))
        assert [r.total for r in a] == [r.total for r in b]


class TestIncome:
    def _plan(self, **overrides):
        plan = {
            "initial_amount": 100_000_000,
            "annual_return_rate": 0,
            "monthly_withdrawal": 200_000,
            "withdrawal_years": 10,
        }
        plan.update(overrides)
        return plan

    def test_pension_reduces_net_withdrawal(self):
        result = project_deterministic(self._plan(monthly_pension_income=80_000, pension_start_year=0))
        assert result[1].yearly_withdrawal == 120_000 * 12

    def test_pension_exceeding_withdrawal_means_no_withdrawal(self):
        result = project_deterministic(self._plan(monthly_pension_income=300_000, pension_start_year=0))
        assert all(r.yearly_withdrawal == 0 for r in result)
        assert result[-1].total == 100_000_000

    def test_pension_starts_at_start_year(self):
        result = project_deterministic(self._plan(monthly_pension_income=80_000, pension_start_year=5))
        assert result[4].yearly_withdrawal == 200_000 * 12
        assert result[5].yearly_withdrawal == 120_000 * 12

    def test_no_pension_without_start_year(self):
        result = project_deterministic(self._plan(monthly_pension_income=80_000))
        assert all(r.yearly_withdrawal == 200_000 * 12 for r in result if r.is_withdrawing)

    def test_other_income_always_applies(self):
        result = project_deterministic(self._plan(
            monthly_other_income=50_000, monthly_pension_income=80_000, pension_start_year=5,
        ))
        assert result[1].yearly_withdrawal == 150_000 * 12
        assert result[5].yearly_withdrawal == 70_000 * 12


class TestInflationAdjustedAmount:
    def test_withdrawal_grows_with_inflation(self):
        result = project_deterministic({
            "initial_amount": 100_000_000,
            "annual_return_rate": 0,
            "inflation_rate": 2,
            "inflation_adjusted_withdrawal": True,
            "monthly_withdrawal": 100_000,
            "withdrawal_years": 10,
        })
        withdrawing = [r for r in result if r.is_withdrawing]
        assert all(b.yearly_withdrawal > a.yearly_withdrawal for a, b in zip(withdrawing, withdrawing[1:]))

    def test_depletes_faster(self):
        plan = {
            "initial_amount": 30_000_000,
            "annual_return_rate": 3,
            "inflation_rate": 2,
            "monthly_withdrawal": 150_000,
            "withdrawal_years": 20,
        }
        flat = project_deterministic(plan)
        indexed = project_deterministic(dict(plan, inflation_adjusted_withdrawal=True))
        assert indexed[-1].total < flat[-1].total


@pytest.mark.parametrize("field", ["contribution_years", "withdrawal_start_year", "withdrawal_years", "initial_amount"])
def test_negative_inputs_rejected(field):
    with pytest.raises(ValueError):
        project_deterministic(SimulationParameters.from_dict({field: -1}))

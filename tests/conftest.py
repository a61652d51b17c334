"""Shared pytest fixtures for runway simulator tests."""

from dataclasses import replace

import numpy as np
import pytest

from runway.config import SimulationConfig, TaxTreatment
from runway.trial import Trial, TrajectoryType


@pytest.fixture
def deterministic_config() -> SimulationConfig:
    """$100k cash, no income, $2k/month expenses, no randomness (depletes at month 50)."""
    return SimulationConfig(
        current_cash=100_000.0,
        current_investments=0.0,
        monthly_income=0.0,
        monthly_expenses=2_000.0,
        investment_return_annual=0.0,
        investment_volatility_annual=0.0,
        expense_volatility=0.0,
        income_volatility=0.0,
        emergency_probability_monthly=0.0,
        emergency_mean_cost=0.0,
        emergency_std_dev=0.0,
        num_simulations=100,
        time_horizon_months=120,
    )


@pytest.fixture
def emergency_config(deterministic_config) -> SimulationConfig:
    """Deterministic config with a $500 emergency every month (depletes at month 40)."""
    return replace(
        deterministic_config,
        emergency_probability_monthly=1.0,
        emergency_mean_cost=500.0,
        emergency_std_dev=0.0,
    )


@pytest.fixture
def volatile_config() -> SimulationConfig:
    """Realistic volatile household with a seeded generator."""
    return SimulationConfig(
        current_cash=20_000.0,
        current_investments=80_000.0,
        monthly_income=3_000.0,
        monthly_expenses=4_000.0,
        investment_return_annual=0.07,
        investment_volatility_annual=0.15,
        expense_volatility=0.15,
        income_volatility=0.10,
        emergency_probability_monthly=0.05,
        emergency_mean_cost=2_000.0,
        emergency_std_dev=1_000.0,
        num_simulations=500,
        time_horizon_months=120,
        inflation_rate=0.03,
        tax_treatment=TaxTreatment(taxable_percent=0.3, tax_advantage_percent=0.7),
        seed=42,
    )


@pytest.fixture
def growth_config() -> SimulationConfig:
    """Strong expected return, modest volatility, low burn over a short horizon."""
    return SimulationConfig(
        current_cash=10_000.0,
        current_investments=200_000.0,
        monthly_income=0.0,
        monthly_expenses=500.0,
        investment_return_annual=0.10,
        investment_volatility_annual=0.10,
        expense_volatility=0.05,
        income_volatility=0.0,
        emergency_probability_monthly=0.0,
        emergency_mean_cost=0.0,
        emergency_std_dev=0.0,
        num_simulations=1_000,
        time_horizon_months=24,
        seed=7,
    )


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator for reproducible draws."""
    return np.random.default_rng(123)


def make_trial(
    months: int,
    horizon: int = 120,
    final_balance: float | None = None,
    emergencies: int = 0,
    trial_id: int = 0,
) -> Trial:
    """Build a trial with a linear net-worth path for aggregation tests."""
    depleted = months < horizon
    if final_balance is None:
        final_balance = 0.0 if depleted else 1_000.0 * months
    path = np.zeros(horizon + 1)
    path[: months + 1] = np.linspace(1_000.0 * months, final_balance, months + 1)
    return Trial(
        trial_id=trial_id,
        months_of_runway=months,
        final_balance=final_balance,
        monthly_balances=path.copy(),
        monthly_net_worth=path,
        emergency_count=emergencies,
        trajectory=TrajectoryType.DEPLETED if depleted else TrajectoryType.SUCCESS,
        starting_balance=1_000.0 * months,
    )

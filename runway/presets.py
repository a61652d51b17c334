"""Risk-profile presets for building simulation configurations."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Literal

from runway.config import SimulationConfig

RiskProfileName = Literal["conservative", "moderate", "aggressive"]

DEFAULT_NUM_SIMULATIONS = 10_000
DEFAULT_HORIZON_MONTHS = 120  # 10 years
DEFAULT_PRESET_INFLATION = 0.03

# Emergency cost as a share of monthly expenses
EMERGENCY_MEAN_SHARE = 0.5
EMERGENCY_STD_SHARE = 0.25


@dataclass(frozen=True)
class RiskProfile:
    """
    Volatility assumptions for a household's risk tolerance.

    Attributes:
        name: Profile identifier
        investment_return: Expected annual investment return
        investment_volatility: Annual investment volatility
        expense_volatility: Expense standard deviation as a fraction of expenses
        income_volatility: Income standard deviation as a fraction of income
        emergency_probability: Monthly probability of an emergency
    """

    name: str
    investment_return: float
    investment_volatility: float
    expense_volatility: float
    income_volatility: float
    emergency_probability: float


PROFILE_CONSERVATIVE = RiskProfile(
    name="conservative",
    investment_return=0.05,
    investment_volatility=0.10,
    expense_volatility=0.10,
    income_volatility=0.05,
    emergency_probability=0.03,
)

PROFILE_MODERATE = RiskProfile(
    name="moderate",
    investment_return=0.07,
    investment_volatility=0.15,
    expense_volatility=0.15,
    income_volatility=0.10,
    emergency_probability=0.05,
)

PROFILE_AGGRESSIVE = RiskProfile(
    name="aggressive",
    investment_return=0.09,
    investment_volatility=0.20,
    expense_volatility=0.20,
    income_volatility=0.15,
    emergency_probability=0.07,
)

RISK_PROFILES: dict[str, RiskProfile] = {
    profile.name: profile
    for profile in (PROFILE_CONSERVATIVE, PROFILE_MODERATE, PROFILE_AGGRESSIVE)
}


def get_risk_profile(name: str) -> RiskProfile:
    """Look up a risk profile by name."""
    try:
        return RISK_PROFILES[name]
    except KeyError:
        raise ValueError(
            f"Unknown risk profile '{name}'; expected one of {sorted(RISK_PROFILES)}"
        ) from None


def create_simulation_config(
    current_net_worth: float,
    current_cash: float,
    monthly_income: float,
    monthly_expenses: float,
    risk_profile: RiskProfileName = "moderate",
    **overrides: Any,
) -> SimulationConfig:
    """
    Build a SimulationConfig from household numbers and a risk profile.

    Everything not held as cash is treated as invested. Emergencies cost
    half a month of expenses on average.

    Args:
        current_net_worth: Total liquid plus invested assets
        current_cash: Portion held as cash
        monthly_income: Baseline monthly income
        monthly_expenses: Baseline monthly expenses
        risk_profile: conservative, moderate or aggressive
        **overrides: Any SimulationConfig field to replace

    Returns:
        SimulationConfig ready to dispatch
    """
    profile = get_risk_profile(risk_profile)

    config = SimulationConfig(
        current_cash=current_cash,
        current_investments=max(current_net_worth - current_cash, 0.0),
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        investment_return_annual=profile.investment_return,
        investment_volatility_annual=profile.investment_volatility,
        expense_volatility=profile.expense_volatility,
        income_volatility=profile.income_volatility,
        emergency_probability_monthly=profile.emergency_probability,
        emergency_mean_cost=monthly_expenses * EMERGENCY_MEAN_SHARE,
        emergency_std_dev=monthly_expenses * EMERGENCY_STD_SHARE,
        num_simulations=DEFAULT_NUM_SIMULATIONS,
        time_horizon_months=DEFAULT_HORIZON_MONTHS,
        inflation_rate=DEFAULT_PRESET_INFLATION,
    )

    if overrides:
        config = replace(config, **overrides)
    return config

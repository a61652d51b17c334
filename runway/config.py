"""Simulation configuration and documented defaults."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

DEFAULT_TAX_RATE = 0.15  # Long-term capital gains
DEFAULT_INFLATION_RATE = 0.0
DEFAULT_CASH_BUFFER_MONTHS = 3.0

# Surviving trials ending above this multiple of the starting balance are "growing"
GROWTH_THRESHOLD = 1.5

# Sanity limits enforced by validation
MAX_SIMULATIONS = 1_000_000
MAX_HORIZON_MONTHS = 1_200


@dataclass(frozen=True)
class TaxTreatment:
    """
    Split of invested assets between taxable and tax-advantaged accounts.

    Attributes:
        taxable_percent: Fraction held in taxable brokerage accounts (e.g., 0.30)
        tax_advantage_percent: Fraction held in 401k/IRA style accounts (e.g., 0.70)
    """

    taxable_percent: float
    tax_advantage_percent: float

    @classmethod
    def from_dict(cls, data: dict[str, float]) -> "TaxTreatment":
        """Create from the camelCase protocol mapping."""
        return cls(
            taxable_percent=data.get("taxablePercent", data.get("taxable_percent", 1.0)),
            tax_advantage_percent=data.get(
                "taxAdvantagePercent", data.get("tax_advantage_percent", 0.0)
            ),
        )


# Protocol (camelCase) field names -> dataclass field names
_CAMEL_CASE_FIELDS = {
    "currentCash": "current_cash",
    "currentInvestments": "current_investments",
    "currentOther": "current_other",
    "monthlyIncome": "monthly_income",
    "monthlyExpenses": "monthly_expenses",
    "investmentReturnAnnual": "investment_return_annual",
    "investmentVolatilityAnnual": "investment_volatility_annual",
    "expenseVolatility": "expense_volatility",
    "incomeVolatility": "income_volatility",
    "emergencyProbabilityMonthly": "emergency_probability_monthly",
    "emergencyMeanCost": "emergency_mean_cost",
    "emergencyStdDev": "emergency_std_dev",
    "numSimulations": "num_simulations",
    "timeHorizonMonths": "time_horizon_months",
    "inflationRate": "inflation_rate",
    "taxTreatment": "tax_treatment",
    "taxRate": "tax_rate",
    "cashBufferMonths": "cash_buffer_months",
    "seed": "seed",
}


@dataclass(frozen=True)
class SimulationConfig:
    """
    Household balance sheet and uncertainty assumptions for one simulation run.

    Attributes:
        current_cash: Starting liquid balance
        current_investments: Starting invested balance
        current_other: Non-growing assets (vehicles, etc.) that cannot fund runway
        monthly_income: Baseline monthly income
        monthly_expenses: Baseline monthly expenses
        investment_return_annual: Expected annual return (e.g., 0.07 for 7%)
        investment_volatility_annual: Annual volatility (e.g., 0.15 for 15%)
        expense_volatility: Standard deviation as a fraction of expenses
        income_volatility: Standard deviation as a fraction of income
        emergency_probability_monthly: Probability of an emergency each month
        emergency_mean_cost: Mean cost of an emergency
        emergency_std_dev: Standard deviation of emergency cost
        num_simulations: Number of Monte Carlo trials
        time_horizon_months: Months to project
        inflation_rate: Annual inflation applied to the expense baseline
        tax_treatment: Taxable vs tax-advantaged split (None = fully taxable)
        tax_rate: Tax rate on realized gains
        cash_buffer_months: Months of expenses kept liquid before sweeping to investments
        seed: Optional seed for reproducible runs
    """

    current_cash: float
    current_investments: float
    monthly_income: float
    monthly_expenses: float
    investment_return_annual: float
    investment_volatility_annual: float
    expense_volatility: float
    income_volatility: float
    emergency_probability_monthly: float
    emergency_mean_cost: float
    emergency_std_dev: float
    num_simulations: int
    time_horizon_months: int
    current_other: float = 0.0
    inflation_rate: float = DEFAULT_INFLATION_RATE
    tax_treatment: TaxTreatment | None = None
    tax_rate: float = DEFAULT_TAX_RATE
    cash_buffer_months: float = DEFAULT_CASH_BUFFER_MONTHS
    seed: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimulationConfig":
        """
        Create from a protocol payload.

        Accepts either the camelCase names used on the wire or the
        dataclass field names. Unknown keys (e.g. currentNetWorth, which is
        derived here) are ignored.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_CASE_FIELDS.get(key, key)
            if name in known:
                kwargs[name] = value

        tax_treatment = kwargs.get("tax_treatment")
        if isinstance(tax_treatment, dict):
            kwargs["tax_treatment"] = TaxTreatment.from_dict(tax_treatment)
        for optional in ("inflation_rate", "tax_rate", "current_other"):
            if optional in kwargs and kwargs[optional] is None:
                del kwargs[optional]

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a plain mapping of field names."""
        return asdict(self)

    @property
    def starting_balance(self) -> float:
        """Liquid plus invested balance available to fund expenses."""
        return self.current_cash + self.current_investments

    @property
    def current_net_worth(self) -> float:
        """Starting balance including non-growing assets."""
        return self.starting_balance + self.current_other

    @property
    def taxable_fraction(self) -> float:
        """Share of investment withdrawals subject to gains tax."""
        if self.tax_treatment is None:
            return 1.0
        return self.tax_treatment.taxable_percent

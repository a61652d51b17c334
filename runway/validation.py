"""Input validation for simulation configurations."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field

from runway.config import MAX_HORIZON_MONTHS, MAX_SIMULATIONS, SimulationConfig
from runway.exceptions import ValidationError

_FRACTION_FIELDS = (
    "investment_volatility_annual",
    "expense_volatility",
    "income_volatility",
    "emergency_probability_monthly",
    "tax_rate",
)

_NON_NEGATIVE_FIELDS = (
    "current_cash",
    "current_investments",
    "current_other",
    "monthly_income",
    "monthly_expenses",
    "emergency_mean_cost",
    "emergency_std_dev",
    "cash_buffer_months",
)


@dataclass
class ValidationResult:
    """Result of validation containing any errors found."""

    errors: list[tuple[str, str]] = field(default_factory=list)

    def add_error(self, field_name: str, message: str) -> None:
        """Add a validation error."""
        self.errors.append((field_name, message))

    def is_valid(self) -> bool:
        """Return True if no validation errors."""
        return len(self.errors) == 0

    def error_messages(self) -> list[str]:
        """Return formatted error messages."""
        return [f"{field_name}: {message}" for field_name, message in self.errors]


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def validate_simulation_params(num_simulations: int, time_horizon_months: int) -> ValidationResult:
    """Validate trial count and horizon."""
    result = ValidationResult()

    if not isinstance(num_simulations, numbers.Integral) or isinstance(num_simulations, bool):
        result.add_error("num_simulations", "Must be an integer")
    elif num_simulations <= 0:
        result.add_error("num_simulations", "Must run at least 1 simulation")
    elif num_simulations > MAX_SIMULATIONS:
        result.add_error(
            "num_simulations", f"Cannot run more than {MAX_SIMULATIONS:,} simulations"
        )

    if not isinstance(time_horizon_months, numbers.Integral) or isinstance(time_horizon_months, bool):
        result.add_error("time_horizon_months", "Must be an integer")
    elif time_horizon_months <= 0:
        result.add_error("time_horizon_months", "Must simulate at least 1 month")
    elif time_horizon_months > MAX_HORIZON_MONTHS:
        result.add_error(
            "time_horizon_months", f"Cannot simulate more than {MAX_HORIZON_MONTHS} months"
        )

    return result


def validate_rates(config: SimulationConfig) -> ValidationResult:
    """Validate volatilities, probabilities, rates and amounts."""
    result = ValidationResult()

    for name in _FRACTION_FIELDS + _NON_NEGATIVE_FIELDS + (
        "investment_return_annual",
        "inflation_rate",
    ):
        value = getattr(config, name)
        if not _is_number(value) or not math.isfinite(value):
            result.add_error(name, "Must be a finite number")

    if not result.is_valid():
        return result

    for name in _FRACTION_FIELDS:
        value = getattr(config, name)
        if value < 0 or value > 1:
            result.add_error(name, "Must be between 0 and 1")

    for name in _NON_NEGATIVE_FIELDS:
        if getattr(config, name) < 0:
            result.add_error(name, "Cannot be negative")

    if config.investment_return_annual <= -1:
        result.add_error("investment_return_annual", "Must be greater than -100%")
    if config.inflation_rate <= -1:
        result.add_error("inflation_rate", "Must be greater than -100%")

    return result


def validate_tax_treatment(config: SimulationConfig) -> ValidationResult:
    """Validate the taxable / tax-advantaged split."""
    result = ValidationResult()
    treatment = config.tax_treatment
    if treatment is None:
        return result

    for name in ("taxable_percent", "tax_advantage_percent"):
        value = getattr(treatment, name)
        if not _is_number(value) or not math.isfinite(value) or value < 0 or value > 1:
            result.add_error(f"tax_treatment.{name}", "Must be between 0 and 1")

    if result.is_valid():
        total = treatment.taxable_percent + treatment.tax_advantage_percent
        # Allow small floating point tolerance
        if abs(total - 1.0) > 0.001:
            result.add_error("tax_treatment", "Taxable and tax-advantaged shares must sum to 100%")

    return result


def validate_simulation_config(config: SimulationConfig) -> ValidationResult:
    """Run all validations and combine results."""
    combined = ValidationResult()

    validations = [
        validate_simulation_params(config.num_simulations, config.time_horizon_months),
        validate_rates(config),
        validate_tax_treatment(config),
    ]

    for result in validations:
        combined.errors.extend(result.errors)

    return combined


def ensure_valid(config: SimulationConfig) -> None:
    """Raise ValidationError if the configuration has any errors."""
    result = validate_simulation_config(config)
    if result.is_valid():
        return

    if len(result.errors) == 1:
        raise ValidationError(*result.errors[0])
    raise ValidationError("config", "; ".join(result.error_messages()))

"""Month-by-month household balance simulation for a batch of independent trials."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from runway.config import GROWTH_THRESHOLD, SimulationConfig
from runway.sampling import bernoulli, box_muller
from utils.helpers import annual_to_monthly_rate

# Balances below a hundredth of a cent count as depleted
DEPLETION_EPSILON = 1e-4


class TrajectoryType(str, Enum):
    """Terminal outcome of a trial."""

    DEPLETED = "depleted"
    SUCCESS = "success"


@dataclass(frozen=True)
class Trial:
    """
    One simulated household trajectory.

    Series are indexed from month 0 (the starting balance sheet) through the
    full horizon. Months after depletion hold zero liquid balance and a net
    worth equal to the non-growing assets.

    Attributes:
        trial_id: Index of the trial within its run
        months_of_runway: Month the balance first reached zero, or the horizon
        final_balance: Liquid plus invested balance at the end of the trial
        monthly_balances: Liquid balance per month
        monthly_net_worth: Liquid + invested + other assets per month
        emergency_count: Number of emergency events encountered
        trajectory: DEPLETED or SUCCESS
        starting_balance: Liquid plus invested balance at month 0
    """

    trial_id: int
    months_of_runway: int
    final_balance: float
    monthly_balances: np.ndarray
    monthly_net_worth: np.ndarray
    emergency_count: int
    trajectory: TrajectoryType
    starting_balance: float

    @property
    def depleted(self) -> bool:
        return self.trajectory is TrajectoryType.DEPLETED

    @property
    def final_net_worth(self) -> float:
        return float(self.monthly_net_worth[-1])

    @property
    def is_growing(self) -> bool:
        """Survived and ended meaningfully above the starting balance."""
        if self.depleted:
            return False
        return self.final_balance > self.starting_balance * GROWTH_THRESHOLD


def simulate_trials(
    config: SimulationConfig,
    n_trials: int,
    rng: np.random.Generator,
    first_trial_id: int = 0,
) -> list[Trial]:
    """
    Simulate independent trials month by month.

    State is vectorized across the batch; each month only trials that have
    not yet depleted draw random samples and update their balances.

    Args:
        config: Simulation configuration (validated by the caller)
        n_trials: Number of trials in this batch
        rng: Random generator owned by the current request
        first_trial_id: Identifier assigned to the first trial of the batch

    Returns:
        List of Trial results in trial-id order
    """
    horizon = config.time_horizon_months
    other = float(config.current_other)

    liquid = np.full(n_trials, float(config.current_cash))
    invested = np.full(n_trials, float(config.current_investments))
    # Starting investments carry no unrealized gains
    cost_basis = invested.copy()
    emergency_counts = np.zeros(n_trials, dtype=int)
    runway = np.full(n_trials, horizon, dtype=int)
    active = np.ones(n_trials, dtype=bool)

    balance_paths = np.zeros((n_trials, horizon + 1))
    net_worth_paths = np.full((n_trials, horizon + 1), other)
    balance_paths[:, 0] = liquid
    net_worth_paths[:, 0] = liquid + invested + other

    monthly_drift = config.investment_return_annual / 12
    monthly_vol = config.investment_volatility_annual / np.sqrt(12)
    monthly_inflation = annual_to_monthly_rate(config.inflation_rate)
    gains_tax_rate = config.taxable_fraction * config.tax_rate

    for month in range(1, horizon + 1):
        idx = np.flatnonzero(active)
        if idx.size == 0:
            break
        n = idx.size

        cash = liquid[idx]
        inv = invested[idx]
        basis = cost_basis[idx]

        # Investment growth
        returns = np.maximum(box_muller(rng, monthly_drift, monthly_vol, n), -1.0)
        inv = inv * (1.0 + returns)

        # Income and expenses with multiplicative noise, expenses inflated
        expense_baseline = config.monthly_expenses * (1 + monthly_inflation) ** (month - 1)
        income = np.maximum(
            config.monthly_income * (1.0 + box_muller(rng, 0.0, config.income_volatility, n)),
            0.0,
        )
        expenses = np.maximum(
            expense_baseline * (1.0 + box_muller(rng, 0.0, config.expense_volatility, n)),
            0.0,
        )

        # Emergency events
        hits = bernoulli(rng, config.emergency_probability_monthly, n)
        emergency_costs = np.zeros(n)
        n_hits = int(hits.sum())
        if n_hits:
            emergency_costs[hits] = np.maximum(
                box_muller(rng, config.emergency_mean_cost, config.emergency_std_dev, n_hits),
                0.0,
            )
            emergency_counts[idx[hits]] += 1

        # Net cash flow
        net = income - expenses - emergency_costs
        surplus = np.maximum(net, 0.0)
        deficit = np.maximum(-net, 0.0)

        # Surplus: credit liquid, sweep anything above the buffer into investments
        cash = cash + surplus
        buffer = config.cash_buffer_months * expense_baseline
        excess = np.where(net >= 0, np.maximum(cash - buffer, 0.0), 0.0)
        cash = cash - excess
        inv = inv + excess
        basis = basis + excess

        # Deficit: liquid first, then investments with tax on realized gains
        from_cash = np.minimum(deficit, cash)
        cash = cash - from_cash
        shortfall = deficit - from_cash
        gain_fraction = np.divide(inv - basis, inv, out=np.zeros_like(inv), where=inv > 0)
        gain_fraction = np.clip(gain_fraction, 0.0, 1.0)
        tax = shortfall * gain_fraction * gains_tax_rate
        drain = np.minimum(shortfall + tax, inv)
        remaining_share = np.divide(inv - drain, inv, out=np.zeros_like(inv), where=inv > 0)
        basis = basis * remaining_share
        inv = inv - drain

        # Depletion: clamp to zero and stop the trial
        depleted_now = cash + inv <= DEPLETION_EPSILON
        cash = np.where(depleted_now, 0.0, cash)
        inv = np.where(depleted_now, 0.0, inv)
        basis = np.where(depleted_now, 0.0, basis)

        liquid[idx] = cash
        invested[idx] = inv
        cost_basis[idx] = basis

        # Record the month
        balance_paths[idx, month] = cash
        net_worth_paths[idx, month] = cash + inv + other

        stopped = idx[depleted_now]
        runway[stopped] = month
        active[stopped] = False

    starting_balance = config.starting_balance
    final_balances = liquid + invested

    trials = []
    for i in range(n_trials):
        trials.append(
            Trial(
                trial_id=first_trial_id + i,
                months_of_runway=int(runway[i]),
                final_balance=float(final_balances[i]),
                monthly_balances=balance_paths[i],
                monthly_net_worth=net_worth_paths[i],
                emergency_count=int(emergency_counts[i]),
                trajectory=TrajectoryType.SUCCESS if active[i] else TrajectoryType.DEPLETED,
                starting_balance=starting_balance,
            )
        )
    return trials

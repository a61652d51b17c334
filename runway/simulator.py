"""Monte Carlo runway simulation engine."""

from __future__ import annotations

import logging
import math
from typing import Callable

import numpy as np

from runway.config import SimulationConfig
from runway.exceptions import SimulationError
from runway.risk_metrics import AggregatedResult, aggregate_trials
from runway.trial import Trial, simulate_trials
from runway.validation import ensure_valid

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# Trials per batch; progress is reported after each batch
DEFAULT_CHUNK_SIZE = 1_000


def run_trials(
    config: SimulationConfig,
    rng: np.random.Generator | None = None,
    progress_callback: ProgressCallback | None = None,
    chunk_size: int | None = None,
) -> list[Trial]:
    """
    Run ``config.num_simulations`` independent trials.

    Trials are simulated in batches with fresh random draws; there is no
    state shared between trials.

    Args:
        config: Validated simulation configuration
        rng: Random generator for this run (a fresh one if None)
        progress_callback: Called with the completed fraction after each batch
        chunk_size: Trials per batch (defaults to DEFAULT_CHUNK_SIZE)

    Returns:
        List of exactly ``num_simulations`` trials with ids 0..n-1
    """
    if rng is None:
        rng = np.random.default_rng(config.seed)
    chunk_size = chunk_size or DEFAULT_CHUNK_SIZE

    total = config.num_simulations
    trials: list[Trial] = []
    while len(trials) < total:
        batch = min(chunk_size, total - len(trials))
        trials.extend(simulate_trials(config, batch, rng, first_trial_id=len(trials)))
        if progress_callback is not None:
            progress_callback(len(trials) / total)

    return trials


def check_finite_trials(trials: list[Trial]) -> None:
    """Raise SimulationError if any trial's balances overflowed."""
    for trial in trials:
        if not math.isfinite(trial.final_balance) or not np.all(
            np.isfinite(trial.monthly_net_worth)
        ):
            raise SimulationError(
                f"Trial {trial.trial_id} produced a non-finite balance; "
                "check for extreme return or cost inputs"
            )


def run_monte_carlo(
    config: SimulationConfig,
    progress_callback: ProgressCallback | None = None,
    chunk_size: int | None = None,
) -> AggregatedResult:
    """
    Validate, simulate and aggregate a runway simulation.

    Args:
        config: Simulation configuration
        progress_callback: Receives the completed fraction (0-1) as batches finish
        chunk_size: Trials per batch

    Returns:
        AggregatedResult for the configuration

    Raises:
        ValidationError: If the configuration is invalid (no trial is run)
        SimulationError: If the simulation produced non-finite balances
    """
    ensure_valid(config)

    rng = np.random.default_rng(config.seed)
    logger.info(
        f"Running {config.num_simulations} trials over {config.time_horizon_months} months"
    )

    trials = run_trials(config, rng, progress_callback, chunk_size)
    check_finite_trials(trials)

    return aggregate_trials(trials, config.time_horizon_months, rng)

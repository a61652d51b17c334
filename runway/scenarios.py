"""Net-worth projections across a fixed set of market return assumptions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Sequence

import numpy as np
import pandas as pd

from runway.bands import net_worth_percentiles, percentile_bands_frame
from runway.config import SimulationConfig
from runway.simulator import ProgressCallback, check_finite_trials, run_trials
from runway.validation import ensure_valid
from utils.helpers import Percentiles

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReturnScenario:
    """
    A market environment to project net worth under.

    Attributes:
        name: Display name
        description: What the assumption represents
        annual_return: Expected annual investment return
        volatility: Annual investment volatility
    """

    name: str
    description: str
    annual_return: float
    volatility: float


DEFAULT_RETURN_SCENARIOS: tuple[ReturnScenario, ...] = (
    ReturnScenario("Conservative", "3% annual return (recession or bonds)", 0.03, 0.08),
    ReturnScenario("Below Average", "4% annual return (mixed bonds/stocks)", 0.04, 0.10),
    ReturnScenario("Moderate", "5% annual return (conservative stocks)", 0.05, 0.12),
    ReturnScenario("Above Average", "6% annual return (balanced portfolio)", 0.06, 0.14),
    ReturnScenario("Historical Average", "7% annual return (S&P 500 real return)", 0.07, 0.15),
)

# Probability of reaching a target at or below each final band, lowest band first
_TARGET_PROBABILITIES = (
    ("p5", 0.95),
    ("p25", 0.75),
    ("p50", 0.50),
    ("p75", 0.25),
    ("p95", 0.05),
)
_BEYOND_BANDS_PROBABILITY = 0.01


@dataclass(frozen=True)
class ScenarioResult:
    """Net-worth bands for one return scenario."""

    scenario: ReturnScenario
    bands: Percentiles
    mean: list[float]
    frame: pd.DataFrame
    final_median: float
    final_mean: float


@dataclass(frozen=True)
class ScenarioComparison:
    """Best and worst final median net worth across scenarios."""

    best_scenario: str
    best_value: float
    worst_scenario: str
    worst_value: float

    @property
    def spread(self) -> float:
        return self.best_value - self.worst_value


@dataclass(frozen=True)
class MultiScenarioResult:
    scenarios: list[ScenarioResult]
    comparison: ScenarioComparison

    def get(self, name: str) -> ScenarioResult:
        """Look up a scenario result by name."""
        for result in self.scenarios:
            if result.scenario.name == name:
                return result
        raise KeyError(name)


def run_scenario(
    config: SimulationConfig,
    scenario: ReturnScenario,
    start_date: date | None = None,
    progress_callback: ProgressCallback | None = None,
) -> ScenarioResult:
    """
    Simulate one return scenario and reduce it to per-month bands.

    Every scenario starts from a generator seeded with ``config.seed``, so a
    seeded analysis compares scenarios on the same random draws.
    """
    scenario_config = replace(
        config,
        investment_return_annual=scenario.annual_return,
        investment_volatility_annual=scenario.volatility,
    )
    rng = np.random.default_rng(config.seed)
    trials = run_trials(scenario_config, rng, progress_callback)
    check_finite_trials(trials)

    bands = net_worth_percentiles(trials)
    frame = percentile_bands_frame(trials, start_date=start_date)
    mean = frame["mean"].tolist()

    return ScenarioResult(
        scenario=scenario,
        bands=bands,
        mean=mean,
        frame=frame,
        final_median=bands.p50[-1],
        final_mean=mean[-1],
    )


def compare_scenarios(results: Sequence[ScenarioResult]) -> ScenarioComparison:
    """Pick the scenarios with the highest and lowest final median."""
    if not results:
        raise ValueError("No scenario results to compare")
    best = max(results, key=lambda r: r.final_median)
    worst = min(results, key=lambda r: r.final_median)
    return ScenarioComparison(
        best_scenario=best.scenario.name,
        best_value=best.final_median,
        worst_scenario=worst.scenario.name,
        worst_value=worst.final_median,
    )


def run_multi_scenario_analysis(
    config: SimulationConfig,
    scenarios: Sequence[ReturnScenario] = DEFAULT_RETURN_SCENARIOS,
    start_date: date | None = None,
    progress_callback: ProgressCallback | None = None,
) -> MultiScenarioResult:
    """
    Project net worth under each return scenario.

    The household, its cash flows and the trial count come from ``config``;
    only the investment return and volatility change between scenarios.

    Args:
        config: Base simulation configuration
        scenarios: Return assumptions to compare
        start_date: Optional first month for date-indexed frames
        progress_callback: Receives the completed fraction across all scenarios

    Returns:
        MultiScenarioResult with one ScenarioResult per scenario, in order

    Raises:
        ValidationError: If the base configuration is invalid
        ValueError: If no scenarios are given
    """
    if not scenarios:
        raise ValueError("At least one return scenario is required")
    ensure_valid(config)

    results = []
    total = len(scenarios)
    for i, scenario in enumerate(scenarios):
        logger.info(
            f"Scenario {scenario.name}: {scenario.annual_return:.1%} return, "
            f"{scenario.volatility:.1%} volatility"
        )

        scenario_progress = None
        if progress_callback is not None:
            def scenario_progress(fraction: float, done: int = i) -> None:
                progress_callback((done + fraction) / total)

        results.append(run_scenario(config, scenario, start_date, scenario_progress))

    return MultiScenarioResult(scenarios=results, comparison=compare_scenarios(results))


def calculate_target_probability(bands: Percentiles, target: float) -> float:
    """
    Coarse probability of ending at or above ``target``.

    Reads where the target falls among the final-month percentile bands:
    at or below p5 is very likely (0.95), above p95 very unlikely (0.01).
    """
    if not bands.p50:
        raise ValueError("Percentile bands are empty")
    for band, probability in _TARGET_PROBABILITIES:
        if target <= getattr(bands, band)[-1]:
            return probability
    return _BEYOND_BANDS_PROBABILITY

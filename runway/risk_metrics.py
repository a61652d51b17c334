"""Aggregation of simulated trials into runway percentiles and risk metrics."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from runway.trial import Trial

KEY_PERCENTILES = (10, 25, 50, 75, 90)
DEPLETION_CHECKPOINTS = (12, 24, 36)
SAMPLE_PATH_COUNT = 20
HISTOGRAM_MAX_BUCKETS = 50


@dataclass(frozen=True)
class HistogramBucket:
    """Count of trials whose runway falls in [months, months + bucket width)."""

    months: int
    count: int
    percentage: float


@dataclass(frozen=True)
class SamplePaths:
    """
    Representative monthly net-worth paths for charting.

    Attributes:
        worst: Trial ranked nearest the 10th percentile
        median: Trial ranked nearest the 50th percentile
        best: Trial ranked nearest the 90th percentile
        samples: Small random subsample for overlay plots
    """

    worst: np.ndarray
    median: np.ndarray
    best: np.ndarray
    samples: list[np.ndarray] = field(default_factory=list)


@dataclass(frozen=True)
class ScenarioSummary:
    """Averages over one decile of trials."""

    avg_months: float
    avg_final_net_worth: float
    avg_emergencies: float


@dataclass(frozen=True)
class ScenarioSummaries:
    worst: ScenarioSummary
    median: ScenarioSummary
    best: ScenarioSummary


@dataclass(frozen=True)
class AggregatedResult:
    """
    Summary of a Monte Carlo runway simulation.

    Percentiles, VaR and CVaR are expressed in months of runway. The full
    trial list is kept so consumers can compute further cross-sectional
    statistics without re-running the simulation.
    """

    p10_months: float
    p25_months: float
    p50_months: float
    p75_months: float
    p90_months: float
    mean_months: float
    median_months: float
    std_dev_months: float
    probability_depleted_by_12mo: float
    probability_depleted_by_24mo: float
    probability_depleted_by_36mo: float
    value_at_risk_95: float  # 95% chance of at least this many months
    conditional_var_95: float  # Mean runway in the worst 5% of trials
    distribution: list[HistogramBucket]
    sample_paths: SamplePaths
    scenarios: ScenarioSummaries
    trials: list[Trial]

    @property
    def num_trials(self) -> int:
        return len(self.trials)

    @property
    def success_rate(self) -> float:
        """Fraction of trials that never depleted."""
        if not self.trials:
            return 0.0
        return sum(not t.depleted for t in self.trials) / len(self.trials)


def runway_months(trials: Sequence[Trial]) -> np.ndarray:
    """Return months of runway for each trial."""
    return np.array([t.months_of_runway for t in trials], dtype=float)


def calculate_percentiles(
    months: np.ndarray,
    percentiles: Sequence[float] = KEY_PERCENTILES,
) -> list[float]:
    """Percentiles with linear interpolation between adjacent ranks."""
    return [float(v) for v in np.percentile(months, list(percentiles))]


def calculate_depletion_probability(trials: Sequence[Trial], months: int) -> float:
    """
    Probability that a trial has run out of money by the given month.

    Only depleted trials count. A survivor's runway equals the horizon, so a
    plain ``months_of_runway <= months`` count would report every survivor as
    depleted whenever the horizon is shorter than ``months``; survivors are
    excluded here on purpose.
    """
    if not trials:
        return 0.0
    depleted = sum(1 for t in trials if t.depleted and t.months_of_runway <= months)
    return depleted / len(trials)


def calculate_var(months: np.ndarray, confidence: float = 0.95) -> float:
    """Runway exceeded in ``confidence`` of trials (the 5th percentile at 95%)."""
    if len(months) == 0:
        return 0.0
    return float(np.percentile(months, (1 - confidence) * 100))


def calculate_cvar(
    months: np.ndarray,
    confidence: float = 0.95,
) -> float:
    """
    Calculate Conditional Value at Risk on months of runway.

    CVaR is the average runway among the trials at or below the VaR
    threshold, capturing how severe the pessimistic tail is rather than
    only where it starts.

    Args:
        months: Months of runway per trial
        confidence: Confidence level (e.g., 0.95 for 95%)

    Returns:
        Average runway in the worst (1-confidence)% of trials
    """
    if len(months) == 0:
        return 0.0

    var_threshold = calculate_var(months, confidence)

    # CVaR is the average of all values at or below VaR
    tail_values = months[months <= var_threshold]

    if len(tail_values) == 0:
        return var_threshold

    return float(np.mean(tail_values))


def build_histogram(
    months: np.ndarray,
    time_horizon_months: int,
    max_buckets: int = HISTOGRAM_MAX_BUCKETS,
) -> list[HistogramBucket]:
    """
    Bucket months of runway into fixed-width bins.

    Bins are contiguous across the observed range (empty bins included) so
    counts always sum to the number of trials.
    """
    if len(months) == 0:
        return []

    bucket_size = max(1, math.ceil(time_horizon_months / max_buckets))
    bucket_index = (months // bucket_size).astype(int)
    first = int(bucket_index.min())
    counts = np.bincount(bucket_index - first)
    total = len(months)

    return [
        HistogramBucket(
            months=(first + i) * bucket_size,
            count=int(count),
            percentage=float(count) / total * 100,
        )
        for i, count in enumerate(counts)
    ]


def _rank_index(n: int, percentile: float) -> int:
    return int(round(percentile / 100 * (n - 1)))


def select_sample_paths(
    trials: Sequence[Trial],
    rng: np.random.Generator,
    n_samples: int = SAMPLE_PATH_COUNT,
) -> SamplePaths:
    """
    Pick representative net-worth paths.

    Trials are ranked by runway, ties broken by final balance; the trials
    nearest the 10th, 50th and 90th percentile ranks stand for the worst,
    median and best outcomes. A random subsample without replacement is
    added for overlay charts.
    """
    ranked = sorted(trials, key=lambda t: (t.months_of_runway, t.final_balance))
    n = len(ranked)

    sample_size = min(n_samples, n)
    sample_idx = rng.choice(n, size=sample_size, replace=False) if sample_size else []

    return SamplePaths(
        worst=ranked[_rank_index(n, 10)].monthly_net_worth,
        median=ranked[_rank_index(n, 50)].monthly_net_worth,
        best=ranked[_rank_index(n, 90)].monthly_net_worth,
        samples=[trials[int(i)].monthly_net_worth for i in sample_idx],
    )


def _summarize(group: Sequence[Trial]) -> ScenarioSummary:
    return ScenarioSummary(
        avg_months=float(np.mean([t.months_of_runway for t in group])),
        avg_final_net_worth=float(np.mean([t.final_net_worth for t in group])),
        avg_emergencies=float(np.mean([t.emergency_count for t in group])),
    )


def summarize_scenarios(trials: Sequence[Trial], p50: float) -> ScenarioSummaries:
    """
    Average duration, final net worth and emergencies per decile.

    Worst and best are the shortest and longest runways; median is the
    decile of trials whose runway lies closest to the median.
    """
    decile = max(1, len(trials) // 10)
    by_runway = sorted(trials, key=lambda t: (t.months_of_runway, t.final_balance))
    by_distance = sorted(trials, key=lambda t: abs(t.months_of_runway - p50))

    return ScenarioSummaries(
        worst=_summarize(by_runway[:decile]),
        median=_summarize(by_distance[:decile]),
        best=_summarize(by_runway[-decile:]),
    )


def aggregate_trials(
    trials: list[Trial],
    time_horizon_months: int,
    rng: np.random.Generator | None = None,
) -> AggregatedResult:
    """
    Reduce a trial collection into an AggregatedResult.

    Args:
        trials: Trials from a single simulation run (at least one)
        time_horizon_months: Horizon used for the run (sets histogram bin width)
        rng: Generator for the random sample paths

    Returns:
        AggregatedResult including the full trial list
    """
    if not trials:
        raise ValueError("Cannot aggregate an empty trial collection")
    if rng is None:
        rng = np.random.default_rng()

    months = runway_months(trials)
    p10, p25, p50, p75, p90 = calculate_percentiles(months)
    by_12, by_24, by_36 = (
        calculate_depletion_probability(trials, checkpoint)
        for checkpoint in DEPLETION_CHECKPOINTS
    )

    return AggregatedResult(
        p10_months=p10,
        p25_months=p25,
        p50_months=p50,
        p75_months=p75,
        p90_months=p90,
        mean_months=float(np.mean(months)),
        median_months=p50,
        std_dev_months=float(np.std(months)),
        probability_depleted_by_12mo=by_12,
        probability_depleted_by_24mo=by_24,
        probability_depleted_by_36mo=by_36,
        value_at_risk_95=calculate_var(months, 0.95),
        conditional_var_95=calculate_cvar(months, 0.95),
        distribution=build_histogram(months, time_horizon_months),
        sample_paths=select_sample_paths(trials, rng),
        scenarios=summarize_scenarios(trials, p50),
        trials=trials,
    )

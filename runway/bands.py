"""Per-month net-worth percentile bands derived from a trial collection."""

from __future__ import annotations

from datetime import date
from typing import Sequence

import numpy as np
import pandas as pd

from runway.trial import Trial
from utils.helpers import Percentiles

BAND_PERCENTILES = (5, 25, 50, 75, 95)


def _net_worth_matrix(trials: Sequence[Trial]) -> np.ndarray:
    """Stack net-worth series into shape (n_trials, n_months + 1)."""
    if not trials:
        return np.zeros((0, 0))
    return np.vstack([t.monthly_net_worth for t in trials])


def net_worth_percentiles(trials: Sequence[Trial]) -> Percentiles:
    """Compute the 5/25/50/75/95 percentile band of net worth at every month."""
    paths = _net_worth_matrix(trials)
    if paths.size == 0:
        return Percentiles(p5=[], p25=[], p50=[], p75=[], p95=[])

    p5, p25, p50, p75, p95 = np.percentile(paths, BAND_PERCENTILES, axis=0)
    return Percentiles(
        p5=p5.tolist(),
        p25=p25.tolist(),
        p50=p50.tolist(),
        p75=p75.tolist(),
        p95=p95.tolist(),
    )


def net_worth_percentile_at(trials: Sequence[Trial], month: int, percentile: float) -> float:
    """
    Percentile of net worth across trials at a fixed month offset.

    Args:
        trials: Trials from one simulation run
        month: Month offset (0 = starting balance sheet)
        percentile: Percentile rank in [0, 100]

    Returns:
        Interpolated net worth at that month
    """
    paths = _net_worth_matrix(trials)
    if paths.size == 0:
        raise ValueError("No trials to compute percentiles from")
    if month < 0 or month >= paths.shape[1]:
        raise IndexError(f"Month {month} outside simulated range 0-{paths.shape[1] - 1}")
    return float(np.percentile(paths[:, month], percentile))


def percentile_bands_frame(
    trials: Sequence[Trial],
    start_date: date | None = None,
) -> pd.DataFrame:
    """
    Percentile bands and mean net worth as a DataFrame for charting.

    The index is the month offset, or calendar month starts beginning at
    ``start_date`` when one is given.
    """
    bands = net_worth_percentiles(trials)
    paths = _net_worth_matrix(trials)

    frame = pd.DataFrame(
        {
            "p5": bands.p5,
            "p25": bands.p25,
            "p50": bands.p50,
            "p75": bands.p75,
            "p95": bands.p95,
            "mean": paths.mean(axis=0) if paths.size else [],
        }
    )

    if start_date is not None:
        frame.index = pd.date_range(
            start=pd.Timestamp(start_date),
            periods=len(frame),
            freq=pd.DateOffset(months=1),
        )
        frame.index.name = "date"
    else:
        frame.index.name = "month"

    return frame

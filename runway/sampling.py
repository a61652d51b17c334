"""Normal and Bernoulli sampling primitives for the trial engine."""

from __future__ import annotations

import numpy as np


def box_muller(
    rng: np.random.Generator,
    mean: float = 0.0,
    std_dev: float = 1.0,
    size: int | tuple[int, ...] | None = None,
) -> np.ndarray | float:
    """
    Draw normally distributed samples using the Box-Muller transform.

    Two independent uniform draws feed the transform. ``rng.random()`` is in
    [0, 1), so the log term uses ``1 - u1`` which is in (0, 1] and can never
    produce ``-inf``.

    Args:
        rng: Random generator owned by the caller (one per request)
        mean: Mean of the target distribution
        std_dev: Standard deviation of the target distribution
        size: Output shape; None returns a single float

    Returns:
        Sample(s) from Normal(mean, std_dev)
    """
    u1 = 1.0 - rng.random(size)
    u2 = rng.random(size)
    z0 = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
    samples = mean + z0 * std_dev
    if size is None:
        return float(samples)
    return samples


def bernoulli(
    rng: np.random.Generator,
    probability: float,
    size: int | tuple[int, ...] | None = None,
) -> np.ndarray | bool:
    """Roll independent events that each occur with the given probability."""
    hits = rng.random(size) < probability
    if size is None:
        return bool(hits)
    return hits

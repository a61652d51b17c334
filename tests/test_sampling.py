"""Tests for the sampling primitives."""

import numpy as np
import pytest

from runway.sampling import bernoulli, box_muller


class _ZeroGenerator:
    """Generator stub whose uniform draws are always exactly zero."""

    def random(self, size=None):
        if size is None:
            return 0.0
        return np.zeros(size)


class TestBoxMuller:
    """Tests for the Box-Muller normal sampler."""

    def test_moments(self, rng):
        """Large samples match the requested mean and standard deviation."""
        samples = box_muller(rng, mean=5.0, std_dev=2.0, size=200_000)
        assert abs(samples.mean() - 5.0) < 0.03
        assert abs(samples.std() - 2.0) < 0.03

    def test_scalar_draw(self, rng):
        """No size returns a single float."""
        sample = box_muller(rng, 0.0, 1.0)
        assert isinstance(sample, float)

    def test_shape(self, rng):
        """Requested shape is honored."""
        samples = box_muller(rng, 0.0, 1.0, size=(3, 4))
        assert samples.shape == (3, 4)

    def test_zero_std_dev_returns_mean(self, rng):
        """Zero standard deviation collapses to the mean exactly."""
        samples = box_muller(rng, mean=0.005, std_dev=0.0, size=100)
        assert np.all(samples == 0.005)

    def test_zero_uniform_draw_is_finite(self):
        """A zero uniform draw never produces -inf in the log term."""
        samples = box_muller(_ZeroGenerator(), 0.0, 1.0, size=10)
        assert np.all(np.isfinite(samples))


class TestBernoulli:
    """Tests for event rolls."""

    def test_never(self, rng):
        """Probability 0 never fires."""
        assert not bernoulli(rng, 0.0, 1_000).any()

    def test_always(self, rng):
        """Probability 1 always fires."""
        assert bernoulli(rng, 1.0, 1_000).all()

    def test_frequency(self, rng):
        """Hit rate approximates the probability."""
        hits = bernoulli(rng, 0.25, 100_000)
        assert hits.mean() == pytest.approx(0.25, abs=0.01)

    def test_scalar_roll(self, rng):
        """No size returns a bool."""
        assert isinstance(bernoulli(rng, 0.5), bool)

"""Tests for the background execution bridge.

These start a real worker process, so they take a few seconds each.
"""

from concurrent.futures import wait
from dataclasses import replace

import pytest

from runway.bridge import ExecutionBridge
from runway.exceptions import (
    BridgeUnavailableError,
    SimulationCancelledError,
    SimulationError,
    ValidationError,
)
from runway.protocol import ProgressResponse, RequestState

# Seconds to wait for a worker to finish a small run
RESULT_TIMEOUT = 60


@pytest.fixture
def bridge():
    bridge = ExecutionBridge()
    yield bridge
    bridge.terminate()


@pytest.fixture
def heavy_config(deterministic_config):
    """Long-running request that never depletes."""
    return replace(
        deterministic_config,
        monthly_income=3_000.0,
        num_simulations=20_000,
        time_horizon_months=600,
    )


class TestDispatch:
    """Tests for running simulations through the worker."""

    def test_small_run(self, bridge, deterministic_config):
        """A dispatched run resolves with every trial and full progress."""
        progress = []
        future = bridge.run_simulation(deterministic_config, on_progress=progress.append)

        result = future.result(timeout=RESULT_TIMEOUT)
        assert result.num_trials == deterministic_config.num_simulations
        assert result.p50_months == 50
        assert progress[0] == 0.0
        assert progress[-1] == 1.0
        assert bridge.pending_count() == 0

    def test_validation_error(self, bridge, deterministic_config):
        """Invalid configurations fail without reaching the worker."""
        future = bridge.run_simulation(replace(deterministic_config, num_simulations=0))

        with pytest.raises(ValidationError) as exc_info:
            future.result(timeout=RESULT_TIMEOUT)
        assert exc_info.value.field == "num_simulations"
        assert bridge.pending_count() == 0

    def test_concurrent_requests_do_not_cross(self, bridge, deterministic_config):
        """Each future receives its own result."""
        frugal = bridge.run_simulation(replace(deterministic_config, monthly_expenses=1_000.0))
        lavish = bridge.run_simulation(replace(deterministic_config, monthly_expenses=5_000.0))

        wait([frugal, lavish], timeout=RESULT_TIMEOUT)
        assert frugal.result().p50_months == 100
        assert lavish.result().p50_months == 20

    def test_progress_for_unknown_request_ignored(self, bridge, deterministic_config):
        """Stray responses leave pending requests untouched."""
        bridge._deliver(ProgressResponse("no-such-request", 0.5))
        result = bridge.run_simulation(deterministic_config).result(timeout=RESULT_TIMEOUT)
        assert result.p50_months == 50


class TestLifecycle:
    """Tests for terminate, restart and worker failure."""

    def test_terminate_rejects_pending(self, bridge, heavy_config):
        """Terminating fails in-flight work and refuses new work."""
        future = bridge.run_simulation(heavy_config)
        bridge.terminate()

        with pytest.raises(SimulationCancelledError):
            future.result(timeout=RESULT_TIMEOUT)
        assert bridge.pending_count() == 0
        assert not bridge.is_running

        with pytest.raises(BridgeUnavailableError):
            bridge.run_simulation(heavy_config).result(timeout=RESULT_TIMEOUT)

    def test_restart_after_terminate(self, bridge, deterministic_config):
        """start() brings the bridge back into service."""
        bridge.terminate()
        assert bridge.start()
        result = bridge.run_simulation(deterministic_config).result(timeout=RESULT_TIMEOUT)
        assert result.p50_months == 50

    def test_worker_death_fails_pending(self, bridge, heavy_config):
        """A crashed worker fails every outstanding request."""
        future = bridge.run_simulation(heavy_config)
        bridge._process.kill()

        with pytest.raises(SimulationError):
            future.result(timeout=RESULT_TIMEOUT)
        assert bridge.pending_count() == 0

    def test_request_state_tracked(self, bridge, heavy_config):
        """Dispatched requests are visible until they settle."""
        bridge.run_simulation(heavy_config)
        with bridge._lock:
            (request_id,) = bridge._pending
        assert bridge.request_state(request_id) in (
            RequestState.DISPATCHED,
            RequestState.PROGRESS,
        )
        bridge.terminate()
        assert bridge.request_state(request_id) is None

    def test_unsupported_start_method(self, deterministic_config):
        """A host without the requested start method reports no support."""
        bridge = ExecutionBridge(start_method="bogus")
        assert not bridge.is_background_execution_supported()

        with pytest.raises(BridgeUnavailableError):
            bridge.run_simulation(deterministic_config).result(timeout=RESULT_TIMEOUT)

    def test_supported_before_start(self, deterministic_config):
        """Support is reported before the worker is started."""
        bridge = ExecutionBridge(autostart=False)
        assert bridge.is_background_execution_supported()
        assert not bridge.is_running

        with pytest.raises(BridgeUnavailableError, match="start"):
            bridge.run_simulation(deterministic_config).result(timeout=RESULT_TIMEOUT)

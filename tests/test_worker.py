"""Tests for the worker-side request loop."""

import queue
from dataclasses import replace

import runway.worker as worker
from runway.protocol import (
    CompleteResponse,
    ErrorResponse,
    MessageKind,
    ProgressResponse,
    RunSimulationRequest,
)
from runway.worker import handle_request, serve


class TestHandleRequest:
    """Tests for serving a single request."""

    def test_progress_then_complete(self, deterministic_config):
        """Progress starts at 0.0, ends at 1.0, then the result arrives."""
        emitted = []
        handle_request(RunSimulationRequest("req-1", deterministic_config), emitted.append)

        progress = [m.progress for m in emitted if isinstance(m, ProgressResponse)]
        assert progress[0] == 0.0
        assert progress[-1] == 1.0
        assert progress == sorted(progress)

        assert isinstance(emitted[-1], CompleteResponse)
        assert emitted[-1].request_id == "req-1"
        assert emitted[-1].result.p50_months == 50
        assert all(m.request_id == "req-1" for m in emitted)

    def test_validation_error_carries_field(self, deterministic_config):
        """Invalid configurations come back as an error naming the field."""
        emitted = []
        config = replace(deterministic_config, time_horizon_months=0)
        handle_request(RunSimulationRequest("req-2", config), emitted.append)

        assert isinstance(emitted[-1], ErrorResponse)
        assert emitted[-1].field == "time_horizon_months"
        assert not any(isinstance(m, CompleteResponse) for m in emitted)

    def test_unknown_message(self):
        """Unrecognized messages get an error response."""
        emitted = []
        handle_request(ProgressResponse("req-3", 0.5), emitted.append)

        assert len(emitted) == 1
        assert emitted[0].kind is MessageKind.ERROR
        assert "Unknown message type" in emitted[0].message

    def test_unexpected_exception_reported(self, deterministic_config, monkeypatch):
        """Unexpected failures are reported instead of raised."""

        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(worker, "run_monte_carlo", explode)
        emitted = []
        handle_request(RunSimulationRequest("req-4", deterministic_config), emitted.append)

        assert isinstance(emitted[-1], ErrorResponse)
        assert emitted[-1].message == "RuntimeError: boom"
        assert emitted[-1].field is None


class TestServe:
    """Tests for the request loop."""

    def test_fifo_order(self, deterministic_config):
        """Requests complete in the order they were queued."""
        requests = queue.Queue()
        responses = queue.Queue()
        frugal = replace(deterministic_config, monthly_expenses=1_000.0)
        lavish = replace(deterministic_config, monthly_expenses=5_000.0)
        requests.put(RunSimulationRequest("first", frugal))
        requests.put(RunSimulationRequest("second", lavish))
        requests.put(None)

        serve(requests, responses)

        completed = []
        while not responses.empty():
            message = responses.get()
            if isinstance(message, CompleteResponse):
                completed.append((message.request_id, message.result.p50_months))
        assert completed == [("first", 100), ("second", 20)]

    def test_keeps_serving_after_error(self, deterministic_config):
        """An invalid request does not stop the loop."""
        requests = queue.Queue()
        responses = queue.Queue()
        requests.put(RunSimulationRequest("bad", replace(deterministic_config, num_simulations=0)))
        requests.put(RunSimulationRequest("good", deterministic_config))
        requests.put(None)

        serve(requests, responses)

        final = {}
        while not responses.empty():
            message = responses.get()
            final[message.request_id] = message.kind
        assert final == {"bad": MessageKind.ERROR, "good": MessageKind.COMPLETE}

"""Background execution bridge for running simulations off the caller's thread."""

from __future__ import annotations

import logging
import multiprocessing as mp
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable

from runway.config import SimulationConfig
from runway.exceptions import (
    BridgeUnavailableError,
    SimulationCancelledError,
    SimulationError,
    ValidationError,
)
from runway.protocol import (
    MessageKind,
    RequestState,
    RunSimulationRequest,
    new_request_id,
)
from runway.risk_metrics import AggregatedResult
from runway.validation import ensure_valid
from runway.worker import serve

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# Seconds between worker liveness checks while waiting for responses
_POLL_INTERVAL = 0.1
_JOIN_TIMEOUT = 5.0


@dataclass
class _PendingRequest:
    future: Future
    on_progress: ProgressCallback | None
    state: RequestState = RequestState.CREATED


class ExecutionBridge:
    """
    Owns a single background worker process and the request/response protocol.

    Every dispatch gets a fresh correlation id and a Future. A listener
    thread on the caller side routes progress, completion and error
    responses to the matching pending entry. There is exactly one worker
    process, so concurrently dispatched requests are served one after the
    other in dispatch order.

    There is no per-request cancellation and no built-in timeout. A caller
    wanting a timeout can use ``future.result(timeout=...)`` and must call
    ``terminate()`` and ``start()`` to actually stop in-flight work.

    Example:
        >>> with ExecutionBridge() as bridge:
        ...     result = bridge.run_simulation(config).result()
    """

    def __init__(self, start_method: str = "spawn", autostart: bool = True) -> None:
        self._start_method = start_method
        self._lock = threading.Lock()
        self._pending: dict[str, _PendingRequest] = {}
        self._process: Any | None = None
        self._requests: Any | None = None
        self._responses: Any | None = None
        self._listener: threading.Thread | None = None
        self._stop_listening = threading.Event()
        # Refined by start(): False if the worker cannot actually be created
        self._supported = start_method in mp.get_all_start_methods()

        if autostart:
            self.start()

    def __enter__(self) -> "ExecutionBridge":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.terminate()

    @property
    def is_running(self) -> bool:
        """True while the worker process is alive and accepting requests."""
        process = self._process
        return process is not None and process.is_alive()

    def is_background_execution_supported(self) -> bool:
        """
        Whether this host offers the configured start method.

        Before ``start()`` this only checks the start method is available;
        after a failed ``start()`` it is False.
        """
        return self._supported

    def start(self) -> bool:
        """
        Create the worker process, its queues and the response listener.

        Returns:
            True if a worker is running, False if the host cannot provide one
        """
        if self.is_running:
            return True

        try:
            ctx = mp.get_context(self._start_method)
            requests = ctx.Queue()
            responses = ctx.Queue()
            process = ctx.Process(
                target=serve,
                args=(requests, responses),
                name="runway-simulation-worker",
                daemon=True,
            )
            process.start()
        except (OSError, ValueError, ImportError) as e:
            logger.error(f"Failed to start simulation worker: {e}")
            self._supported = False
            return False

        stop_listening = threading.Event()
        listener = threading.Thread(
            target=self._listen,
            args=(responses, process, stop_listening),
            name="runway-response-listener",
            daemon=True,
        )

        with self._lock:
            self._process = process
            self._requests = requests
            self._responses = responses
            self._stop_listening = stop_listening
            self._listener = listener
            self._supported = True

        listener.start()
        logger.info(f"Simulation worker started (pid={process.pid})")
        return True

    def run_simulation(
        self,
        config: SimulationConfig,
        on_progress: ProgressCallback | None = None,
    ) -> "Future[AggregatedResult]":
        """
        Dispatch a simulation to the worker without blocking.

        Args:
            config: Simulation configuration
            on_progress: Called with the completed fraction (0-1); runs on
                the listener thread

        Returns:
            Future resolving to the AggregatedResult, or failing with
            ValidationError, SimulationError, SimulationCancelledError or
            BridgeUnavailableError
        """
        future: Future = Future()
        future.set_running_or_notify_cancel()

        if not self.is_running:
            future.set_exception(
                BridgeUnavailableError(
                    "Simulation worker is not running; call start() to reinitialize"
                    if self._supported
                    else "Background execution is not supported on this host"
                )
            )
            return future

        try:
            ensure_valid(config)
        except ValidationError as e:
            future.set_exception(e)
            return future

        request_id = new_request_id()
        with self._lock:
            while request_id in self._pending:
                request_id = new_request_id()
            entry = _PendingRequest(future=future, on_progress=on_progress)
            self._pending[request_id] = entry
            requests = self._requests
            entry.state = RequestState.DISPATCHED

        try:
            requests.put(RunSimulationRequest(request_id=request_id, config=config))
        except (OSError, ValueError, AttributeError) as e:
            with self._lock:
                dropped = self._pending.pop(request_id, None)
            # terminate() may already have rejected it
            if dropped is not None:
                future.set_exception(BridgeUnavailableError(f"Failed to dispatch request: {e}"))
            return future

        logger.info(f"Dispatched simulation {request_id} ({config.num_simulations} trials)")
        return future

    def pending_count(self) -> int:
        """Number of requests awaiting completion."""
        with self._lock:
            return len(self._pending)

    def request_state(self, request_id: str) -> RequestState | None:
        """State of a pending request, or None once it has settled."""
        with self._lock:
            entry = self._pending.get(request_id)
            return entry.state if entry is not None else None

    def terminate(self) -> None:
        """
        Tear down the worker and reject every pending request.

        The bridge cannot run simulations again until ``start()`` is called.
        """
        with self._lock:
            pending = list(self._pending.items())
            self._pending.clear()
            process, self._process = self._process, None
            requests, self._requests = self._requests, None
            responses, self._responses = self._responses, None
            listener, self._listener = self._listener, None
            self._stop_listening.set()

        for request_id, entry in pending:
            entry.state = RequestState.CANCELLED
            entry.future.set_exception(SimulationCancelledError(request_id))

        if process is not None:
            process.terminate()
            process.join(timeout=_JOIN_TIMEOUT)

        if listener is not None and listener is not threading.current_thread():
            listener.join(timeout=_JOIN_TIMEOUT)

        for q in (requests, responses):
            if q is not None:
                q.cancel_join_thread()
                q.close()

        if process is not None:
            logger.info(f"Simulation worker terminated, {len(pending)} pending request(s) rejected")

    def _listen(self, responses: Any, process: Any, stop_listening: threading.Event) -> None:
        while not stop_listening.is_set():
            try:
                message = responses.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if not process.is_alive() and not stop_listening.is_set():
                    self._handle_worker_exit(process)
                    return
                continue
            except (EOFError, OSError, ValueError):
                # Queue closed underneath us by terminate()
                return

            self._deliver(message)

    def _deliver(self, message: Any) -> None:
        request_id = getattr(message, "request_id", None)
        kind = getattr(message, "kind", None)

        with self._lock:
            entry = self._pending.get(request_id)
            if entry is None:
                logger.warning(f"Ignoring {kind} response for unknown request {request_id}")
                return

            if kind is MessageKind.PROGRESS:
                entry.state = RequestState.PROGRESS
            elif kind is MessageKind.COMPLETE:
                entry.state = RequestState.COMPLETE
                del self._pending[request_id]
            elif kind is MessageKind.ERROR:
                entry.state = RequestState.ERROR
                del self._pending[request_id]
            else:
                logger.warning(f"Ignoring response of unknown kind {kind} for {request_id}")
                return

        if kind is MessageKind.PROGRESS:
            logger.debug(f"Simulation {request_id} progress {message.progress:.0%}")
            if entry.on_progress is not None:
                try:
                    entry.on_progress(message.progress)
                except Exception:
                    logger.exception(f"Progress callback for {request_id} raised")
        elif kind is MessageKind.COMPLETE:
            logger.info(f"Simulation {request_id} complete")
            entry.future.set_result(message.result)
        else:
            logger.info(f"Simulation {request_id} failed: {message.message}")
            if message.field is not None:
                entry.future.set_exception(ValidationError(message.field, message.message))
            else:
                entry.future.set_exception(SimulationError(message.message))

    def _handle_worker_exit(self, process: Any) -> None:
        with self._lock:
            if self._process is not process:
                return
            pending = list(self._pending.items())
            self._pending.clear()

        logger.error(
            f"Simulation worker exited unexpectedly (exitcode={process.exitcode}), "
            f"failing {len(pending)} pending request(s)"
        )
        for request_id, entry in pending:
            entry.state = RequestState.ERROR
            entry.future.set_exception(
                SimulationError(f"Simulation worker exited before completing {request_id}")
            )

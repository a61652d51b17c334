"""Request loop executed inside the background worker process."""

from __future__ import annotations

import logging
from typing import Any, Callable

from runway.exceptions import RunwayError, ValidationError
from runway.protocol import (
    CompleteResponse,
    ErrorResponse,
    MessageKind,
    ProgressResponse,
    Response,
    RunSimulationRequest,
)
from runway.simulator import run_monte_carlo

logger = logging.getLogger(__name__)

Emit = Callable[[Response], None]


def handle_request(request: Any, emit: Emit) -> None:
    """
    Serve a single request, emitting progress then completion or an error.

    Never raises: every failure is reported as an ErrorResponse so the
    worker keeps serving subsequent requests.
    """
    request_id = getattr(request, "request_id", "")
    kind = getattr(request, "kind", None)

    if kind is not MessageKind.RUN_SIMULATION or not isinstance(request, RunSimulationRequest):
        emit(ErrorResponse(request_id=request_id, message=f"Unknown message type: {kind}"))
        return

    def report(progress: float) -> None:
        emit(ProgressResponse(request_id=request_id, progress=progress))

    try:
        report(0.0)
        result = run_monte_carlo(request.config, progress_callback=report)
    except ValidationError as e:
        logger.warning(f"Rejected request {request_id}: {e}")
        emit(ErrorResponse(request_id=request_id, message=e.message, field=e.field))
    except RunwayError as e:
        logger.error(f"Simulation {request_id} failed: {e}")
        emit(ErrorResponse(request_id=request_id, message=str(e)))
    except Exception as e:
        logger.exception(f"Unexpected error in simulation {request_id}")
        emit(ErrorResponse(request_id=request_id, message=f"{type(e).__name__}: {e}"))
    else:
        emit(CompleteResponse(request_id=request_id, result=result))


def serve(requests: Any, responses: Any) -> None:
    """
    Drain the request queue in FIFO order until a None sentinel arrives.

    Args:
        requests: Queue of RunSimulationRequest objects
        responses: Queue receiving Response objects
    """
    logger.info("Simulation worker started")
    while True:
        request = requests.get()
        if request is None:
            break
        handle_request(request, responses.put)
    logger.info("Simulation worker stopped")

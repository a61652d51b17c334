"""Request/response envelopes exchanged with the background worker."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from enum import Enum
from typing import Union

from runway.config import SimulationConfig
from runway.risk_metrics import AggregatedResult


class MessageKind(str, Enum):
    RUN_SIMULATION = "RUN_SIMULATION"
    PROGRESS = "PROGRESS"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"


class RequestState(str, Enum):
    """Lifecycle of a request as tracked by the bridge."""

    CREATED = "created"
    DISPATCHED = "dispatched"
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RunSimulationRequest:
    request_id: str
    config: SimulationConfig
    kind: MessageKind = MessageKind.RUN_SIMULATION


@dataclass(frozen=True)
class ProgressResponse:
    request_id: str
    progress: float  # 0.0 - 1.0
    kind: MessageKind = MessageKind.PROGRESS


@dataclass(frozen=True)
class CompleteResponse:
    request_id: str
    result: AggregatedResult
    kind: MessageKind = MessageKind.COMPLETE


@dataclass(frozen=True)
class ErrorResponse:
    """
    Failure report for a request.

    ``field`` is set when the failure was a configuration error so the
    caller side can raise a ValidationError for the same field.
    """

    request_id: str
    message: str
    field: str | None = None
    kind: MessageKind = MessageKind.ERROR


Response = Union[ProgressResponse, CompleteResponse, ErrorResponse]


def new_request_id() -> str:
    """Millisecond timestamp plus a random suffix, unique across outstanding requests."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"

"""prefect-trigger - trigger Prefect deployment runs.

Creates a flow run from a Prefect deployment (Cloud or self-hosted) and
optionally waits until it reaches a terminal state.
"""

from prefect_trigger.connection import ApiRequest, build_request, create_http_client, flow_run_url
from prefect_trigger.exceptions import (
    ApiConnectionError,
    ApiError,
    ConfigurationError,
    DecodeError,
    PrefectTriggerError,
    ProtocolError,
    RunError,
    RunFailedError,
    WaitCancelledError,
)
from prefect_trigger.models import (
    ConnectionConfig,
    RunHandle,
    RunRequest,
    RunResult,
    StateType,
)
from prefect_trigger.response import parse_response
from prefect_trigger.runner import FlowRunTrigger, run_flow
from prefect_trigger.tasks import (
    CloudCreateFlowRun,
    CreateFlowRun,
    CreateFlowRunOutput,
    load_task,
)

__version__ = "0.1.0"

__all__ = [
    # Base exception
    "PrefectTriggerError",
    # Errors
    "ConfigurationError",
    "ApiConnectionError",
    "ApiError",
    "DecodeError",
    "ProtocolError",
    "RunError",
    "RunFailedError",
    "WaitCancelledError",
    # Models
    "ConnectionConfig",
    "RunRequest",
    "RunHandle",
    "RunResult",
    "StateType",
    # Connection and responses
    "ApiRequest",
    "build_request",
    "create_http_client",
    "flow_run_url",
    "parse_response",
    # Runner
    "FlowRunTrigger",
    "run_flow",
    # Tasks
    "CreateFlowRun",
    "CloudCreateFlowRun",
    "CreateFlowRunOutput",
    "load_task",
]

"""Data model for triggering and tracking Prefect flow runs.

All models are pydantic so they validate at construction time and
serialize to JSON for CLI output. Values that describe the past (results)
or a fixed target (connection) are frozen.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_core import PydanticSerializationError, to_jsonable_python

from prefect_trigger.exceptions import ConfigurationError

PREFECT_CLOUD_API_URL = "https://api.prefect.cloud/api"
PREFECT_CLOUD_UI_URL = "https://app.prefect.cloud"


class StateType(str, Enum):
    """Prefect flow run state types.

    Handles keep the raw token reported by the server, so tokens missing
    from this enum are still accepted and treated as non-terminal.
    """

    SCHEDULED = "SCHEDULED"
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CRASHED = "CRASHED"
    CANCELLED = "CANCELLED"
    CANCELLING = "CANCELLING"


TERMINAL_SUCCESS_STATES = frozenset({StateType.COMPLETED.value})
TERMINAL_FAILURE_STATES = frozenset(
    {StateType.FAILED.value, StateType.CRASHED.value, StateType.CANCELLED.value}
)
# Ends the wait without raising.
TERMINAL_PENDING_CANCEL_STATES = frozenset({StateType.CANCELLING.value})
TERMINAL_STATES = TERMINAL_SUCCESS_STATES | TERMINAL_FAILURE_STATES | TERMINAL_PENDING_CANCEL_STATES


def is_terminal(state_type: str | None) -> bool:
    """Return True if the state ends the wait loop."""
    return state_type in TERMINAL_STATES


def is_failure(state_type: str | None) -> bool:
    """Return True if the state means the run failed."""
    return state_type in TERMINAL_FAILURE_STATES


class ConnectionConfig(BaseModel):
    """How to reach the Prefect API.

    Cloud mode is selected when both account_id and workspace_id are set;
    anything else is a self-hosted server addressed by base_url alone.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default=PREFECT_CLOUD_API_URL, description="Prefect API URL")
    api_key: str | None = Field(default=None, description="API key or Basic token")
    account_id: str | None = Field(default=None, description="Prefect Cloud account ID")
    workspace_id: str | None = Field(default=None, description="Prefect Cloud workspace ID")

    @property
    def is_cloud(self) -> bool:
        """Check if the connection targets Prefect Cloud."""
        return self.account_id is not None and self.workspace_id is not None


class RunRequest(BaseModel):
    """Inputs needed to create a flow run from a deployment."""

    model_config = ConfigDict(frozen=True)

    deployment_id: str
    parameters: dict[str, Any] | None = None

    def request_body(self) -> dict[str, Any]:
        """Build the create_flow_run JSON body.

        Always a JSON object; the parameters key is omitted when empty.
        Dates and other values YAML or Python produce are converted to
        their JSON form (dates become ISO-8601 strings).

        Raises:
            ConfigurationError: If a parameter has no JSON representation
        """
        body: dict[str, Any] = {}
        if self.parameters:
            try:
                body["parameters"] = to_jsonable_python(self.parameters)
            except PydanticSerializationError as e:
                raise ConfigurationError(f"Flow run parameters are not JSON serializable: {e}") from e
        return body


class RunHandle(BaseModel):
    """Identifier and latest known state of a triggered flow run."""

    model_config = ConfigDict(frozen=True)

    id: str
    state_type: str | None = None
    state_name: str | None = None
    state_message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.state_type)


class RunResult(BaseModel):
    """Final outcome of a trigger invocation."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    state_type: str | None
    view_url: str


# Response payloads


class FlowRunStatePayload(BaseModel):
    """The `state` object of a flow run response."""

    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    name: str | None = None
    message: str | None = None


class FlowRunPayload(BaseModel):
    """The subset of a flow run response this package reads."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    state: FlowRunStatePayload | None = None

    def to_handle(self, run_id: str) -> RunHandle:
        state = self.state or FlowRunStatePayload()
        return RunHandle(
            id=run_id,
            state_type=state.type,
            state_name=state.name,
            state_message=state.message,
        )

"""Caller-facing task definitions.

A task is the set of inputs a hosting workflow engine hands over, already
rendered: where Prefect lives, which deployment to run, and whether to
wait. Field names accept both the camelCase spelling used in task files
(apiUrl, pollFrequency) and snake_case.

Example task file:

    type: CreateFlowRun
    apiUrl: "http://127.0.0.1:4200/api"
    deploymentId: "6d4f..."
    wait: true
    pollFrequency: PT10S
    parameters:
      region: us-east-1
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import Any, ClassVar

import httpx
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel, to_snake

from prefect_trigger.exceptions import ConfigurationError
from prefect_trigger.models import PREFECT_CLOUD_API_URL, ConnectionConfig, RunHandle, RunRequest
from prefect_trigger.runner import run_flow


class CreateFlowRunOutput(BaseModel):
    """Outputs published back to the hosting workflow."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    flow_run_id: str = Field(description="ID of the created flow run")
    state: str | None = Field(
        description="Final state if the task waited, otherwise the initial state"
    )
    flow_run_url: str = Field(description="URL of the flow run in the Prefect UI")


class _FlowRunTask(BaseModel, ABC):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    # Name of the field holding the API URL
    url_field: ClassVar[str] = "api_url"

    deployment_id: str = Field(description="Deployment UUID used to create the flow run")
    parameters: dict[str, Any] | None = Field(
        default=None, description="Parameters passed to the flow run"
    )
    wait: bool = Field(
        default=True,
        description="Block until the flow run is terminal; FAILED/CRASHED/CANCELLED raise",
    )
    poll_frequency: timedelta = Field(
        default=timedelta(seconds=5), description="Polling interval while waiting"
    )

    @field_validator("poll_frequency")
    @classmethod
    def _check_poll_frequency(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("pollFrequency must be greater than zero")
        return value

    @abstractmethod
    def connection_config(self) -> ConnectionConfig:
        """Connection settings for the Prefect API."""

    def run(
        self,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] | None = None,
        cancel_event: threading.Event | None = None,
        on_created: Callable[[RunHandle], None] | None = None,
    ) -> CreateFlowRunOutput:
        """Trigger the deployment and return the task outputs."""
        result = run_flow(
            self.connection_config(),
            RunRequest(deployment_id=self.deployment_id, parameters=self.parameters),
            wait=self.wait,
            poll_interval=self.poll_frequency.total_seconds(),
            client=client,
            sleep=sleep,
            cancel_event=cancel_event,
            on_created=on_created,
        )
        return CreateFlowRunOutput(
            flow_run_id=result.run_id,
            state=result.state_type,
            flow_run_url=result.view_url,
        )


class CreateFlowRun(_FlowRunTask):
    """Trigger a Prefect deployment run.

    Works with Prefect Cloud (accountId and workspaceId set) and with
    self-hosted servers (neither set).
    """

    api_url: str = Field(default=PREFECT_CLOUD_API_URL, description="Prefect API endpoint")
    api_key: str | None = Field(
        default=None,
        description=(
            "Cloud API key (sent as Bearer) or self-hosted Basic token; "
            "leave empty for unauthenticated servers"
        ),
    )
    account_id: str | None = Field(default=None, description="Prefect Cloud account ID")
    workspace_id: str | None = Field(default=None, description="Prefect Cloud workspace ID")

    def connection_config(self) -> ConnectionConfig:
        return ConnectionConfig(
            base_url=self.api_url,
            api_key=self.api_key,
            account_id=self.account_id,
            workspace_id=self.workspace_id,
        )


class CloudCreateFlowRun(_FlowRunTask):
    """Trigger a Prefect Cloud deployment run.

    Older Cloud-only form of CreateFlowRun: account, workspace and API key
    are all required, and the URL field is called baseUrl.
    """

    url_field: ClassVar[str] = "base_url"

    base_url: str = Field(default=PREFECT_CLOUD_API_URL, description="Prefect Cloud API URL")
    api_key: str = Field(description="Prefect Cloud API key")
    account_id: str = Field(description="Prefect Cloud account ID")
    workspace_id: str = Field(description="Prefect Cloud workspace ID")

    def connection_config(self) -> ConnectionConfig:
        if not self.api_key:
            raise ConfigurationError("apiKey is required for Prefect Cloud")
        return ConnectionConfig(
            base_url=self.base_url,
            api_key=self.api_key,
            account_id=self.account_id,
            workspace_id=self.workspace_id,
        )


TASK_TYPES: dict[str, type[_FlowRunTask]] = {
    "CreateFlowRun": CreateFlowRun,
    "CloudCreateFlowRun": CloudCreateFlowRun,
}


def resolve_task_type(raw_type: str | None) -> type[_FlowRunTask]:
    """Map a task "type" value to its class.

    Only the last dotted segment is used, so fully qualified names work.

    Raises:
        ConfigurationError: If the type is unknown
    """
    if raw_type is None:
        return CreateFlowRun
    task_type = raw_type.rsplit(".", 1)[-1]
    # Qualified names under a "cloud" package refer to the Cloud-only task
    if task_type == "CreateFlowRun" and ".cloud." in raw_type:
        task_type = "CloudCreateFlowRun"
    task_cls = TASK_TYPES.get(task_type)
    if task_cls is None:
        raise ConfigurationError(
            f"Unknown task type '{raw_type}'. Expected one of: {', '.join(TASK_TYPES)}"
        )
    return task_cls


def parse_task(data: dict[str, Any]) -> _FlowRunTask:
    """Build a task from a mapping of inputs.

    An optional "type" key selects the task class.

    Raises:
        ConfigurationError: If the type is unknown or the inputs are invalid
    """
    data = dict(data)
    raw_type = data.pop("type", None)
    task_cls = resolve_task_type(None if raw_type is None else str(raw_type))

    try:
        return task_cls.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {task_cls.__name__} task: {e}") from e


def read_task_file(path: Path) -> dict[str, Any]:
    """Read task inputs from a YAML file, keyed by snake_case field name.

    The inputs may sit at the top level or under a "task:" key.

    Raises:
        ConfigurationError: If the file is missing, not YAML, or not a mapping
    """
    if not path.exists():
        raise ConfigurationError(f"Task file not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if isinstance(content, dict) and isinstance(content.get("task"), dict):
        content = content["task"]
    if not isinstance(content, dict):
        raise ConfigurationError(f"Task file {path} must contain a mapping of task inputs")

    # Parameter names are user data and keep their spelling
    return {to_snake(str(key)): value for key, value in content.items()}


def load_task(path: Path) -> _FlowRunTask:
    """Load a task definition from a YAML file.

    Example:
        task = load_task(Path("trigger.yaml"))
        output = task.run()
        print(output.flow_run_url)
    """
    return parse_task(read_task_file(path))

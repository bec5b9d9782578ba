"""Trigger command - create a Prefect flow run and optionally wait for it."""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from rich.markup import escape

from prefect_trigger.connection import create_http_client
from prefect_trigger.display import (
    console,
    print_error,
    print_flow_run,
    print_info,
    print_success,
)
from prefect_trigger.env import get_settings
from prefect_trigger.exceptions import ConfigurationError, PrefectTriggerError
from prefect_trigger.models import RunHandle
from prefect_trigger.tasks import read_task_file, resolve_task_type

logger = logging.getLogger(__name__)


def parse_param(item: str) -> tuple[str, Any]:
    """Parse a KEY=VALUE option; the value is read as a YAML scalar.

    "retries=2" gives ("retries", 2) and "region=us-east-1" gives
    ("region", "us-east-1").
    """
    key, sep, value = item.partition("=")
    key = key.strip()
    if not sep or not key:
        raise ConfigurationError(f"Invalid parameter '{item}': expected KEY=VALUE")
    try:
        parsed = yaml.safe_load(value) if value else ""
    except yaml.YAMLError:
        parsed = value
    return key, parsed


def load_params_file(path: Path) -> dict[str, Any]:
    """Load flow run parameters from a YAML or JSON file."""
    if not path.exists():
        raise ConfigurationError(f"Parameters file not found: {path}")
    try:
        content = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid parameters file {path}: {e}") from e
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Parameters file {path} must contain a mapping")
    return content


def trigger_command(
    deployment_id: str | None,
    api_url: str | None = None,
    api_key: str | None = None,
    account_id: str | None = None,
    workspace_id: str | None = None,
    params: list[str] | None = None,
    params_file: Path | None = None,
    wait: bool | None = None,
    poll_frequency: float | None = None,
    task_file: Path | None = None,
    as_json: bool = False,
) -> None:
    """Trigger a Prefect deployment run.

    Inputs are merged with precedence: CLI options, then the task file,
    then PREFECT_* environment settings, then defaults.
    """
    created: list[RunHandle] = []

    def on_created(handle: RunHandle) -> None:
        created.append(handle)
        if not as_json:
            print_success(f"Created flow run [cyan]{escape(handle.id)}[/]")
            if task.wait:
                console.print(
                    f"[dim]Waiting for a terminal state "
                    f"(polling every {task.poll_frequency.total_seconds():g}s)[/]"
                )

    try:
        file_data = read_task_file(task_file) if task_file else {}
        raw_type = file_data.pop("type", None)
        task_cls = resolve_task_type(None if raw_type is None else str(raw_type))
        settings = get_settings()

        data: dict[str, Any] = {
            task_cls.url_field: settings.api_url,
            "api_key": settings.api_key,
            "account_id": settings.account_id,
            "workspace_id": settings.workspace_id,
            "poll_frequency": settings.poll_frequency,
        }
        data = {key: value for key, value in data.items() if value}
        data.update(file_data)

        overrides: dict[str, Any] = {
            task_cls.url_field: api_url,
            "api_key": api_key,
            "account_id": account_id,
            "workspace_id": workspace_id,
            "deployment_id": deployment_id,
            "wait": wait,
            "poll_frequency": poll_frequency,
        }
        data.update({key: value for key, value in overrides.items() if value is not None})

        parameters = dict(data.get("parameters") or {})
        if params_file:
            parameters.update(load_params_file(params_file))
        for item in params or []:
            key, value = parse_param(item)
            parameters[key] = value
        if parameters:
            data["parameters"] = parameters

        if not data.get("deployment_id"):
            raise ConfigurationError("A deployment ID is required (argument or task file)")

        try:
            task = task_cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {task_cls.__name__} task: {e}") from e

        if not as_json:
            print_info(f"Creating flow run for deployment [cyan]{task.deployment_id}[/]")

        with create_http_client(timeout=settings.http_timeout) as client:
            output = task.run(client=client, on_created=on_created)

    except PrefectTriggerError as e:
        print_error(escape(e.message))
        raise SystemExit(1)
    except KeyboardInterrupt:
        if created:
            print_error(
                f"Interrupted. Flow run {escape(created[0].id)} keeps running on the Prefect server."
            )
        else:
            print_error("Interrupted before the flow run was created.")
        raise SystemExit(130)

    logger.debug("Trigger output: %s", output)
    if as_json:
        console.print_json(json.dumps(output.model_dump(by_alias=True)))
    else:
        print_flow_run(output, waited=task.wait)

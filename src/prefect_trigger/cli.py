"""prefect-trigger CLI - Main entry point.

Commands:
- run: Create a flow run from a deployment and optionally wait for it
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from prefect_trigger import __version__
from prefect_trigger.commands import trigger_command

app = typer.Typer(
    help="prefect-trigger - Trigger Prefect deployment runs.\n\n"
    "Works with Prefect Cloud and self-hosted Prefect servers.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"prefect-trigger {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log requests and polled states")
    ] = False,
) -> None:
    """prefect-trigger - Trigger Prefect deployment runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def run(
    deployment_id: Annotated[
        Optional[str],
        typer.Argument(help="Deployment UUID (may come from --task-file instead)"),
    ] = None,
    api_url: Annotated[
        Optional[str],
        typer.Option("--api-url", help="Prefect API URL [env: PREFECT_API_URL]"),
    ] = None,
    api_key: Annotated[
        Optional[str],
        typer.Option("--api-key", help="Cloud API key or self-hosted Basic token"),
    ] = None,
    account_id: Annotated[
        Optional[str],
        typer.Option("--account-id", help="Prefect Cloud account ID"),
    ] = None,
    workspace_id: Annotated[
        Optional[str],
        typer.Option("--workspace-id", help="Prefect Cloud workspace ID"),
    ] = None,
    param: Annotated[
        Optional[list[str]],
        typer.Option("--param", "-p", help="Flow parameter as KEY=VALUE (repeatable)"),
    ] = None,
    params_file: Annotated[
        Optional[Path],
        typer.Option("--params-file", help="YAML or JSON file with flow parameters"),
    ] = None,
    wait: Annotated[
        Optional[bool],
        typer.Option("--wait/--no-wait", help="Wait for a terminal state (default: wait)"),
    ] = None,
    poll_frequency: Annotated[
        Optional[float],
        typer.Option("--poll-frequency", min=0.0, help="Seconds between status polls"),
    ] = None,
    task_file: Annotated[
        Optional[Path],
        typer.Option("--task-file", "-f", help="YAML task definition"),
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the outputs as JSON")
    ] = False,
) -> None:
    """Create a flow run from a deployment.

    Examples:
        prefect-trigger run 6d4f... --api-url http://127.0.0.1:4200/api
        prefect-trigger run 6d4f... --no-wait --json
        prefect-trigger run 6d4f... -p region=us-east-1 -p retries=2
        prefect-trigger run --task-file trigger.yaml
    """
    trigger_command(
        deployment_id,
        api_url=api_url,
        api_key=api_key,
        account_id=account_id,
        workspace_id=workspace_id,
        params=param,
        params_file=params_file,
        wait=wait,
        poll_frequency=poll_frequency,
        task_file=task_file,
        as_json=as_json,
    )


if __name__ == "__main__":
    app()

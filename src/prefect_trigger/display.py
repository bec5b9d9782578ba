"""Rich display utilities for the prefect-trigger CLI."""

from rich.console import Console
from rich.panel import Panel

from prefect_trigger.tasks import CreateFlowRunOutput

console = Console()


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]✓[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]✗[/] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[bold blue]ℹ[/] {message}")


def print_flow_run(output: CreateFlowRunOutput, waited: bool) -> None:
    """Print the outcome of a trigger invocation."""
    title = "[bold green]✓ Flow run finished[/]" if waited else "[bold green]✓ Flow run created[/]"
    console.print()
    console.print(
        Panel(
            f"[bold]Flow run:[/] {output.flow_run_id}\n"
            f"[bold]State:[/] {output.state or 'unknown'}\n"
            f"[bold]URL:[/] {output.flow_run_url}",
            title=title,
            border_style="green",
        )
    )

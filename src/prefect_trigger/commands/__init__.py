"""prefect-trigger CLI commands.

Each command module contains the business logic for a CLI command.
The cli.py module handles Typer options and argument parsing,
then delegates to these command functions.
"""

from prefect_trigger.commands.trigger import trigger_command

__all__ = [
    "trigger_command",
]

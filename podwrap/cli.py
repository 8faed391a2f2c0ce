#!/usr/bin/env python3
"""podwrap CLI - Wrap command-line programs in container-backed Python modules."""

from typing import Optional

import typer
from rich.console import Console

from podwrap.cli_module_commands import register_module_commands
from podwrap.cli_support import setup_file_logging
from podwrap.core.logger import get_logger, set_console_level

app = typer.Typer(
    name="podwrap",
    help="""podwrap - Wrap command-line programs in container-backed Python modules

One program, one container, one Python function.

Quick start:
  podwrap create-skeleton --repo-user me --program-name figlet --docker-user me
  podwrap build --path pw_figlet --build-image
  podwrap check --path pw_figlet
  podwrap test --path pw_figlet
  podwrap upload --path pw_figlet --code-sharing --container-registry

More commands: podwrap --help
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--debug", "--verbose", help="Enable debug logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """Global options."""
    set_console_level(verbose)
    if log_file:
        setup_file_logging(log_file=log_file, verbose=verbose)


# Attach modular subcommands
register_module_commands(app, console)

if __name__ == "__main__":
    app()

import logging

import typer
from typing import Annotated

from .config import get_config, setup_logging
from .messages.app import app as messages_app
from .messages.report import render_interfaces
from .schemas.registry import default_registry

app = typer.Typer()
app.add_typer(messages_app, name="messages", help="Encode, decode and validate messages")

logger = logging.getLogger()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
) -> None:
    ctx.obj = get_config()  # Ensure config is loaded
    setup_logging(verbose)
    if verbose:
        logger.debug("Verbose mode enabled")


@app.command()
def interfaces() -> None:
    """List the interfaces with a registered request/response schema."""
    render_interfaces(default_registry())


if __name__ == "__main__":
    app()

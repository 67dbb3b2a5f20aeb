#!/usr/bin/env python3

from __future__ import annotations
import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from controller.agent import ConnectionAgent
from controller.core.ConnectionState import ConnectionState
from shared.config import CONTROLLER_ENDPOINT
from shared.log import configure_root_logging, get_logger

app = typer.Typer(help="Lightrain controller connection agent")
console = Console()
logger = get_logger(__name__)


async def _serve(agent: ConnectionAgent) -> Optional[ConnectionState]:
    agent.open()
    await agent.wait_closed()
    return agent.state


@app.command()
def run(
    log_level: str = typer.Option("INFO", "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
):
    """Connect to the controller, greet it and log events until the connection ends."""
    configure_root_logging(log_level)
    agent = ConnectionAgent()
    console.print(f"[bold green]Lightrain agent starting[/] -> {agent.uri}")
    try:
        state = asyncio.run(_serve(agent))
    except KeyboardInterrupt:
        console.print("[dim]Interrupted[/]")
        return
    logger.debug(f"Agent finished with state {state}")
    colour = "red" if state is ConnectionState.ERRORED else "yellow"
    console.print(f"Connection finished: [{colour}]{state.value if state else 'never opened'}[/]")


@app.command()
def endpoint():
    """Show the fixed controller endpoint."""
    table = Table(title="Controller endpoint")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("scheme", CONTROLLER_ENDPOINT.scheme)
    table.add_row("host", CONTROLLER_ENDPOINT.host)
    table.add_row("port", str(CONTROLLER_ENDPOINT.port))
    table.add_row("path", CONTROLLER_ENDPOINT.path)
    table.add_row("uri", CONTROLLER_ENDPOINT.uri)
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

"""CLI Agent Bridge command line entry point."""

import click

from cli_agent_bridge.cli.commands.enqueue import enqueue
from cli_agent_bridge.cli.commands.pending import pending
from cli_agent_bridge.cli.commands.run import run


@click.group()
def cli():
    """CLI Agent Bridge - relay chat messages to a terminal agent session."""
    pass


cli.add_command(run)
cli.add_command(enqueue)
cli.add_command(pending)


if __name__ == "__main__":
    cli()

"""Pending command: show the decision the agent is blocked on."""

import click

from cli_agent_bridge.config import ConfigError, load_settings
from cli_agent_bridge.models.interaction import PendingInteractionSlot
from cli_agent_bridge.services.interaction import render_prompt


@click.command()
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="JSON settings file")
def pending(config_file):
    """Print the pending interaction prompt, if any."""
    try:
        settings = load_settings(config_file)
    except ConfigError as e:
        raise click.ClickException(str(e))

    interaction = PendingInteractionSlot(settings.pending_interaction_file).peek()
    if interaction is None:
        click.echo("No pending interaction")
        return
    click.echo(render_prompt(interaction))

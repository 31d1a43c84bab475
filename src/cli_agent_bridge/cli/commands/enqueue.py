"""Enqueue command: drop a message into the inbound queue."""

import click

from cli_agent_bridge.config import ConfigError, load_settings
from cli_agent_bridge.models.queue import QueuedMessage
from cli_agent_bridge.utils import queue_files


@click.command()
@click.option("--channel", required=True, help="Channel the reply goes back to (e.g. discord)")
@click.option("--sender", required=True, help="Display name of the sender")
@click.option("--sender-id", help="Platform identifier of the sender")
@click.option("--message-id", help="Message id (default: generated)")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="JSON settings file")
@click.argument("message")
def enqueue(channel, sender, sender_id, message_id, config_file, message):
    """Queue MESSAGE for the agent."""
    try:
        settings = load_settings(config_file)
    except ConfigError as e:
        raise click.ClickException(str(e))

    queued = QueuedMessage(
        channel=channel,
        sender=sender,
        sender_id=sender_id,
        message=message,
        timestamp=queue_files.now_ms(),
        message_id=message_id or queue_files.new_message_id(),
    )
    path = queue_files.enqueue_message(settings.incoming_dir, queued)
    click.echo(f"Queued: {path}")

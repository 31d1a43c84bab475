"""Run command: start the queue coordinator."""

import logging
import signal

import click

from cli_agent_bridge.clients.tmux import tmux_client
from cli_agent_bridge.config import ConfigError, load_settings
from cli_agent_bridge.constants import CAPTURE_MODE_PANE
from cli_agent_bridge.models.interaction import PendingInteractionSlot
from cli_agent_bridge.services.queue_service import QueueCoordinator
from cli_agent_bridge.services.reply_encoder import PaneInjector
from cli_agent_bridge.utils.logging import setup_logging
from cli_agent_bridge.waiters.manager import create_waiter

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    help="JSON settings file (env vars still take precedence)",
)
@click.option("--once", is_flag=True, help="Process the current queue once and exit")
def run(config_file, once):
    """Relay queued messages to the agent pane and write its responses."""
    try:
        settings = load_settings(config_file)
    except ConfigError as e:
        raise click.ClickException(str(e))

    settings.ensure_dirs()
    setup_logging(settings.log_file, settings.log_level)
    logger.info(f"Tmux target: {settings.tmux_target}")
    logger.info(f"Capture mode: {settings.capture_mode}")

    session_name = settings.tmux_target.split(":", 1)[0]
    if not tmux_client.session_exists(session_name):
        logger.warning(f"tmux session '{session_name}' not found, prompts will fail until it exists")

    pane_mode = settings.capture_mode == CAPTURE_MODE_PANE
    if pane_mode:
        settings.pane_log_file.touch()
        tmux_client.pipe_pane(settings.tmux_target, str(settings.pane_log_file))
    else:
        logger.info(f"Session logs: {settings.session_log_dir}")

    coordinator = QueueCoordinator(
        settings,
        waiter=create_waiter(settings),
        injector=PaneInjector(settings.tmux_target),
        slot=PendingInteractionSlot(settings.pending_interaction_file),
    )

    def _signal_handler(signum, _frame):
        logger.info(f"Caught {signal.Signals(signum).name}, shutting down queue processor...")
        coordinator.stop()

    if once:
        processed = coordinator.process_queue()
        click.echo(f"Processed {processed} message(s)")
    else:
        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)
        coordinator.run_forever()

    if pane_mode:
        tmux_client.stop_pipe_pane(settings.tmux_target)

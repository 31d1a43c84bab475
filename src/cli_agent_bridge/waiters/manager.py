"""Waiter construction from settings."""

from cli_agent_bridge.config import BridgeSettings
from cli_agent_bridge.constants import CAPTURE_MODE_PANE
from cli_agent_bridge.services.interaction import InteractionExtractor
from cli_agent_bridge.services.shard_locator import LogShardLocator
from cli_agent_bridge.waiters.base import BaseTurnWaiter
from cli_agent_bridge.waiters.pane_output import PaneOutputWaiter
from cli_agent_bridge.waiters.session_log import TurnWaiter


def create_waiter(settings: BridgeSettings) -> BaseTurnWaiter:
    """Create the waiter for the configured capture mode."""
    if settings.capture_mode == CAPTURE_MODE_PANE:
        return PaneOutputWaiter(
            settings.pane_log_file,
            poll_interval=settings.turn_poll_interval,
            quiet_threshold=settings.quiet_threshold,
            timeout=settings.response_timeout,
        )
    return TurnWaiter(
        LogShardLocator(settings.session_log_dir),
        InteractionExtractor(settings.plans_dir),
        poll_interval=settings.turn_poll_interval,
        quiet_threshold=settings.quiet_threshold,
        timeout=settings.response_timeout,
    )

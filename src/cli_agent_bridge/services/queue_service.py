"""Queue coordinator: relays queued chat messages to the agent, one turn at a time."""

import logging
import time
from pathlib import Path
from typing import Callable

from cli_agent_bridge.clients.tmux import tmux_client
from cli_agent_bridge.config import BridgeSettings
from cli_agent_bridge.constants import TRUNCATION_MARGIN, TRUNCATION_SUFFIX
from cli_agent_bridge.models.interaction import PendingInteractionSlot
from cli_agent_bridge.models.queue import QueuedMessage, ResponseMessage
from cli_agent_bridge.services.reply_encoder import PaneInjector, encode_prompt, encode_reply
from cli_agent_bridge.utils import queue_files
from cli_agent_bridge.waiters.base import BaseTurnWaiter, TurnResult

logger = logging.getLogger(__name__)


def truncate_response(text: str, max_chars: int) -> str:
    """Cut oversized responses for chat platforms; max_chars <= 0 disables."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[: max(0, max_chars - TRUNCATION_MARGIN)] + TRUNCATION_SUFFIX


class QueueCoordinator:
    """Processes the inbound queue strictly one message at a time.

    Claiming a message is a rename from incoming to processing; any failure after
    the claim renames it back so a later cycle retries it. The pending-interaction
    slot is owned here and only touched from this single loop.
    """

    def __init__(
        self,
        settings: BridgeSettings,
        waiter: BaseTurnWaiter,
        injector: PaneInjector,
        slot: PendingInteractionSlot,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.waiter = waiter
        self.injector = injector
        self.slot = slot
        self._sleep = sleep
        self._stop_requested = False

    def _dispatch(self, message: QueuedMessage) -> None:
        interaction = self.slot.peek()
        if interaction is None:
            self.injector.send(encode_prompt(message.message, self.settings.input_step_delay))
            logger.info(f"Sent prompt to agent pane ({self.settings.tmux_target})")
            return

        events = encode_reply(interaction, message.message, self.settings.input_step_delay)
        self.injector.send(events)
        # Consumed only once the answer actually reached the pane
        self.slot.clear()
        logger.info(
            f"Answered pending {interaction.kind.value} interaction {interaction.tool_use_id}"
        )

    def _log_timeout(self, result: TurnResult) -> None:
        if result.timed_out:
            try:
                tail = tmux_client.get_history(self.settings.tmux_target, tail_lines=15)
                logger.warning(f"Turn timed out; pane tail:\n{tail}")
            except Exception as e:
                logger.warning(f"Turn timed out; could not capture pane: {e}")

    def process_message(self, message_file: Path) -> bool:
        """Claim, dispatch, wait and respond. Returns True when a response was written."""
        try:
            processing_file = queue_files.claim(message_file, self.settings.processing_dir)
        except FileNotFoundError:
            logger.debug(f"{message_file.name} was claimed by another coordinator")
            return False
        except OSError as e:
            logger.error(f"Could not claim {message_file.name}: {e}")
            return False

        try:
            message = queue_files.read_message(processing_file)
            logger.info(
                f"Processing [{message.channel}] from {message.sender}: "
                f"{message.message[:50]}..."
            )

            snapshot = self.waiter.snapshot()
            self._dispatch(message)
            result = self.waiter.wait(snapshot)
            self._log_timeout(result)

            response_text = truncate_response(result.text, self.settings.max_response_chars)
            response = ResponseMessage(
                channel=message.channel,
                sender=message.sender,
                message=response_text,
                original_message=message.message,
                timestamp=queue_files.now_ms(),
                message_id=message.message_id,
            )
            queue_files.write_response(self.settings.outgoing_dir, response)
            logger.info(
                f"Response ready [{message.channel}] {message.sender} "
                f"({len(response_text)} chars, {result.signal})"
            )

            processing_file.unlink()

            # Stored only after the rendered prompt was handed to the chat
            if result.interaction is not None:
                self.slot.put(result.interaction)
                logger.info(f"Agent is waiting on a {result.interaction.kind.value} interaction")
            return True

        except Exception as e:
            logger.error(f"Processing error for {message_file.name}: {e}")
            if processing_file.exists():
                try:
                    queue_files.restore(processing_file, self.settings.incoming_dir)
                except OSError as restore_error:
                    logger.error(f"Failed to move {processing_file.name} back: {restore_error}")
            return False

    def process_queue(self) -> int:
        """Process every queued message, oldest first. Returns how many got a response."""
        try:
            files = queue_files.list_incoming(self.settings.incoming_dir)
        except OSError as e:
            logger.error(f"Queue processing error: {e}")
            return 0

        if files:
            logger.debug(f"Found {len(files)} message(s) in queue")

        processed = 0
        for message_file in files:
            if self._stop_requested:
                break
            if self.process_message(message_file):
                processed += 1
        return processed

    def run_forever(self) -> None:
        logger.info(f"Queue coordinator started, watching {self.settings.incoming_dir}")
        while not self._stop_requested:
            self.process_queue()
            if not self._stop_requested:
                self._sleep(self.settings.queue_poll_interval)
        logger.info("Queue coordinator stopped")

    def stop(self) -> None:
        """Finish the current message, then leave the loop."""
        self._stop_requested = True

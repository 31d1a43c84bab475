"""Turn waiter driven by raw pane output piped to a file.

Fallback for agents that keep no structured log: the turn is considered over once
the pane has been quiet for the threshold after producing some output. It never
detects pending interactions.
"""

import logging
import time
from pathlib import Path
from typing import Callable

from cli_agent_bridge.constants import NO_CAPTURE_PLACEHOLDER, TIMEOUT_PLACEHOLDER
from cli_agent_bridge.utils.terminal import clean_terminal_output
from cli_agent_bridge.waiters.base import BaseTurnWaiter, TurnResult

logger = logging.getLogger(__name__)


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def _read_from(path: Path, start_byte: int) -> str:
    try:
        with path.open("rb") as f:
            f.seek(start_byte)
            return f.read().decode("utf-8", errors="replace")
    except OSError:
        return ""


class PaneOutputWaiter(BaseTurnWaiter):
    """Watches the size of the pipe-pane log file."""

    def __init__(
        self,
        output_log: Path,
        poll_interval: float,
        quiet_threshold: float,
        timeout: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(poll_interval, quiet_threshold, timeout, clock=clock, sleep=sleep)
        self.output_log = output_log

    def snapshot(self) -> int:
        return _file_size(self.output_log)

    def wait(self, snapshot: int) -> TurnResult:
        start_byte = snapshot
        started_at = self._clock()
        last_size = start_byte
        last_change = started_at

        while True:
            now = self._clock()
            size = _file_size(self.output_log)
            if size > last_size:
                last_size = size
                last_change = now
            elif size < start_byte:
                # Log was truncated underneath us; read from the top
                logger.warning(f"{self.output_log} shrank, restarting from offset 0")
                start_byte = 0
                last_size = size
                last_change = now
            elif last_size > start_byte and now - last_change >= self.quiet_threshold:
                text = clean_terminal_output(_read_from(self.output_log, start_byte))
                return TurnResult(text=text or NO_CAPTURE_PLACEHOLDER, signal="quiet_output")

            if now - started_at >= self.timeout:
                text = clean_terminal_output(_read_from(self.output_log, start_byte))
                return TurnResult(
                    text=text or TIMEOUT_PLACEHOLDER, signal="timeout", timed_out=True
                )

            self._sleep(self.poll_interval)

"""Base class for turn waiters."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from cli_agent_bridge.models.interaction import PendingInteraction


@dataclass
class TurnResult:
    """Outcome of waiting on one dispatched message.

    ``text`` is what goes back to the chat: the agent's reply, a placeholder, or
    the rendered prompt of ``interaction`` when the agent is blocked on a decision.
    """

    text: str
    signal: str
    interaction: Optional[PendingInteraction] = None
    timed_out: bool = False


class BaseTurnWaiter(ABC):
    """Decides when the agent finished responding to a dispatched message."""

    def __init__(
        self,
        poll_interval: float,
        quiet_threshold: float,
        timeout: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.poll_interval = poll_interval
        self.quiet_threshold = quiet_threshold
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep

    @abstractmethod
    def snapshot(self) -> Any:
        """Capture output state right before dispatch."""
        pass

    @abstractmethod
    def wait(self, snapshot: Any) -> TurnResult:
        """Poll until the turn resolves or times out."""
        pass

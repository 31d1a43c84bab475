"""Turn waiter driven by the agent's JSONL session logs."""

import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from cli_agent_bridge.models.log_entry import LogEntry
from cli_agent_bridge.services.boundary import BoundaryEvaluator, TickContext, response_text
from cli_agent_bridge.services.interaction import InteractionExtractor, render_prompt
from cli_agent_bridge.services.shard_locator import LogShardLocator, ShardActivityState
from cli_agent_bridge.utils.session_log import count_lines, read_entries
from cli_agent_bridge.waiters.base import BaseTurnWaiter, TurnResult

logger = logging.getLogger(__name__)

# Pending interactions are checked after the authoritative marker and before the
# weak marker: an unanswered blocking call means the agent is waiting on us.
INTERACTION_RANK = 20


class TurnWaiter(BaseTurnWaiter):
    """Polls session log shards until the dispatched turn ends or blocks."""

    def __init__(
        self,
        locator: LogShardLocator,
        extractor: InteractionExtractor,
        poll_interval: float,
        quiet_threshold: float,
        timeout: float,
        evaluator: Optional[BoundaryEvaluator] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(poll_interval, quiet_threshold, timeout, clock=clock, sleep=sleep)
        self.locator = locator
        self.extractor = extractor
        self.evaluator = evaluator or BoundaryEvaluator()

    def snapshot(self) -> Dict[Path, int]:
        return self.locator.snapshot()

    def _interaction_result(self, ctx: TickContext) -> Optional[TurnResult]:
        # Gated like the weak marker: a tool call may still be mid-elaboration
        if not ctx.is_quiet or not ctx.entries:
            return None
        interaction = self.extractor.extract(ctx.entries)
        if interaction is None:
            return None
        return TurnResult(
            text=render_prompt(interaction),
            signal="pending_interaction",
            interaction=interaction,
        )

    def resolve(self, ctx: TickContext) -> Optional[TurnResult]:
        """Run the ranked cascade for one tick, with the interaction check at its rank."""
        signal = self.evaluator.evaluate(ctx)
        if signal is None or signal.rank > INTERACTION_RANK:
            result = self._interaction_result(ctx)
            if result is not None:
                return result
        if signal is None:
            return None
        return TurnResult(
            text=response_text(ctx.entries, timed_out=signal.timed_out),
            signal=signal.name,
            timed_out=signal.timed_out,
        )

    def _observe(self, state: ShardActivityState, now: float) -> List[LogEntry]:
        """Read the active shard's new entries and record growth."""
        count = count_lines(state.path)
        if count > state.last_line_count:
            state.last_line_count = count
            state.last_growth_at = now
        return read_entries(state.path, state.offset)

    def tick(
        self,
        snapshot: Dict[Path, int],
        state: Optional[ShardActivityState],
        started_at: float,
        deadline: float,
    ) -> tuple[Optional[ShardActivityState], Optional[TurnResult]]:
        """One poll: locate/rotate, read, then run the ranked cascade."""
        now = self._clock()

        if state is None:
            state = self.locator.locate(snapshot, now)
        else:
            self.locator.check_rotation(state, snapshot, now)

        if state is not None:
            entries = self._observe(state, now)
            last_growth_at = state.last_growth_at
        else:
            entries = []
            last_growth_at = started_at

        ctx = TickContext(
            entries=entries,
            now=now,
            last_growth_at=last_growth_at,
            deadline=deadline,
            quiet_threshold=self.quiet_threshold,
        )
        return state, self.resolve(ctx)

    def wait(self, snapshot: Dict[Path, int]) -> TurnResult:
        started_at = self._clock()
        deadline = started_at + self.timeout
        state: Optional[ShardActivityState] = None

        while True:
            state, result = self.tick(snapshot, state, started_at, deadline)
            if result is not None:
                shard = state.path.name if state else "none"
                logger.info(
                    f"Turn resolved by {result.signal} after "
                    f"{self._clock() - started_at:.1f}s (shard={shard})"
                )
                return result
            self._sleep(self.poll_interval)

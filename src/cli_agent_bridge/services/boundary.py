"""Boundary signal evaluation: has the agent finished the turn?

Signals are kept in an explicit ranked tuple and evaluated in rank order every
tick, so an authoritative marker always wins over a heuristic one. Completion is
never inferred from silence alone: the quiet period only gates the weak marker,
and plain silence ends a turn only at the hard deadline.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from cli_agent_bridge.constants import NO_RESPONSE_PLACEHOLDER, TIMEOUT_PLACEHOLDER
from cli_agent_bridge.models.log_entry import LogEntry


@dataclass
class TickContext:
    """Everything a signal may look at on one poll tick."""

    entries: List[LogEntry]
    now: float
    last_growth_at: float
    deadline: float
    quiet_threshold: float

    @property
    def quiet_for(self) -> float:
        return self.now - self.last_growth_at

    @property
    def is_quiet(self) -> bool:
        return self.quiet_for >= self.quiet_threshold


@dataclass(frozen=True)
class BoundarySignal:
    name: str
    rank: int
    fires: Callable[[TickContext], bool]
    timed_out: bool = False


def has_turn_duration(ctx: TickContext) -> bool:
    return any(entry.is_turn_duration for entry in ctx.entries)


def has_quiet_stop_marker(ctx: TickContext) -> bool:
    return ctx.is_quiet and bool(ctx.entries) and ctx.entries[-1].is_weak_boundary


def deadline_passed(ctx: TickContext) -> bool:
    return ctx.now >= ctx.deadline


TURN_DURATION_SIGNAL = BoundarySignal("turn_duration", 10, has_turn_duration)
QUIET_STOP_SIGNAL = BoundarySignal("quiet_stop_marker", 30, has_quiet_stop_marker)
TIMEOUT_SIGNAL = BoundarySignal("timeout", 90, deadline_passed, timed_out=True)

BOUNDARY_SIGNALS: Tuple[BoundarySignal, ...] = (
    TURN_DURATION_SIGNAL,
    QUIET_STOP_SIGNAL,
    TIMEOUT_SIGNAL,
)


class BoundaryEvaluator:
    """Evaluates ranked boundary signals against a tick's new entries."""

    def __init__(self, signals: Sequence[BoundarySignal] = BOUNDARY_SIGNALS):
        self.signals = sorted(signals, key=lambda signal: signal.rank)

    def evaluate(self, ctx: TickContext) -> Optional[BoundarySignal]:
        """Return the highest-ranked signal that fires, or None to keep waiting."""
        for signal in self.signals:
            if signal.fires(ctx):
                return signal
        return None


def latest_assistant_text(entries: Sequence[LogEntry]) -> Optional[str]:
    """Text of the most recent assistant entry that has any, blocks joined by a blank line."""
    for entry in reversed(entries):
        if not entry.is_assistant:
            continue
        blocks = entry.text_blocks()
        if blocks:
            return "\n\n".join(blocks)
    return None


def response_text(entries: Sequence[LogEntry], timed_out: bool = False) -> str:
    """Final response text with distinct placeholders for silence and timeout."""
    text = latest_assistant_text(entries)
    if text is not None:
        return text
    return TIMEOUT_PLACEHOLDER if timed_out else NO_RESPONSE_PLACEHOLDER

"""Unit tests for the session-log turn waiter, driven by a fake clock."""

from unittest.mock import MagicMock

from log_fixtures import (
    FakeClock,
    append_lines,
    ask_question_input,
    assistant_text,
    assistant_tool_use,
    system,
    user_prompt,
    write_lines,
)

from cli_agent_bridge.constants import TIMEOUT_PLACEHOLDER
from cli_agent_bridge.models.interaction import InteractionKind
from cli_agent_bridge.models.log_entry import LogEntry
from cli_agent_bridge.services.boundary import TIMEOUT_SIGNAL, BoundaryEvaluator, TickContext
from cli_agent_bridge.services.interaction import InteractionExtractor
from cli_agent_bridge.services.shard_locator import LogShardLocator
from cli_agent_bridge.waiters.session_log import TurnWaiter


def _waiter(tmp_path, clock, timeout=600.0):
    return TurnWaiter(
        LogShardLocator(tmp_path / "logs"),
        InteractionExtractor(tmp_path / "plans"),
        poll_interval=0.5,
        quiet_threshold=5.0,
        timeout=timeout,
        clock=clock,
        sleep=clock.sleep,
    )


def _history(tmp_path, lines=3):
    logs = tmp_path / "logs"
    logs.mkdir(exist_ok=True)
    shard = logs / "a.jsonl"
    write_lines(shard, [user_prompt("earlier"), assistant_text("Earlier reply.")] + [system("x")] * (lines - 2))
    return shard


class TestTurnWaiter:
    def test_turn_duration_ends_turn(self, tmp_path):
        """Shard grows 3 -> 5 with the marker last; resolved on the tick it appears."""
        shard = _history(tmp_path)
        clock = FakeClock(
            actions={
                1: lambda: append_lines(
                    shard, [assistant_text("All systems nominal."), system("turn_duration")]
                )
            }
        )
        waiter = _waiter(tmp_path, clock)
        result = waiter.wait(waiter.snapshot())

        assert result.text == "All systems nominal."
        assert result.signal == "turn_duration"
        assert not result.timed_out
        assert result.interaction is None
        assert len(clock.sleeps) == 1

    def test_earlier_turn_text_is_never_returned(self, tmp_path):
        shard = _history(tmp_path)
        clock = FakeClock(actions={1: lambda: append_lines(shard, [system("turn_duration")])})
        waiter = _waiter(tmp_path, clock)
        result = waiter.wait(waiter.snapshot())
        assert result.text == "(Agent finished without a text response)"

    def test_weak_marker_waits_for_quiet(self, tmp_path):
        """stop_hook_summary alone is not enough until the quiet threshold passes."""
        shard = _history(tmp_path)
        clock = FakeClock(
            actions={
                1: lambda: append_lines(shard, [assistant_text("Done."), system("stop_hook_summary")])
            }
        )
        waiter = _waiter(tmp_path, clock)
        result = waiter.wait(waiter.snapshot())

        assert result.signal == "quiet_stop_marker"
        assert result.text == "Done."
        # growth seen at t+0.5, quiet reached 5s later
        assert clock.now - 1000.0 >= 5.5

    def test_activity_resets_quiet_period(self, tmp_path):
        shard = _history(tmp_path)
        clock = FakeClock(
            actions={
                1: lambda: append_lines(shard, [assistant_text("Working"), system("stop_hook_summary")]),
                6: lambda: append_lines(shard, [assistant_text("Still working.")]),
                8: lambda: append_lines(shard, [system("turn_duration")]),
            }
        )
        waiter = _waiter(tmp_path, clock)
        result = waiter.wait(waiter.snapshot())
        assert result.signal == "turn_duration"
        assert result.text == "Still working."

    def test_pending_question(self, tmp_path):
        shard = _history(tmp_path)
        clock = FakeClock(
            actions={
                1: lambda: append_lines(
                    shard,
                    [
                        assistant_text("Quick question.", msg_id="msg_q"),
                        assistant_tool_use(
                            "AskUserQuestion", ask_question_input(["A", "B"]), "toolu_q", "msg_q"
                        ),
                    ],
                )
            }
        )
        waiter = _waiter(tmp_path, clock)
        result = waiter.wait(waiter.snapshot())

        assert result.signal == "pending_interaction"
        assert result.interaction.kind == InteractionKind.QUESTION
        assert result.interaction.tool_use_id == "toolu_q"
        assert result.text.startswith("The agent is asking:")
        assert "  1. A - A desc" in result.text

    def test_pending_interaction_outranks_weak_marker(self, tmp_path):
        """Blocked on a plan and a stop hook fired -> surface the plan, not a reply."""
        shard = _history(tmp_path)
        clock = FakeClock(
            actions={
                1: lambda: append_lines(
                    shard,
                    [assistant_tool_use("ExitPlanMode", {"plan": "Plan A"}, "toolu_p"), system("stop_hook_summary")],
                )
            }
        )
        waiter = _waiter(tmp_path, clock)
        result = waiter.wait(waiter.snapshot())
        assert result.signal == "pending_interaction"
        assert result.interaction.kind == InteractionKind.PLAN

    def test_timeout_without_output(self, tmp_path):
        _history(tmp_path)
        clock = FakeClock()
        waiter = _waiter(tmp_path, clock, timeout=3.0)
        result = waiter.wait(waiter.snapshot())

        assert result.timed_out
        assert result.signal == "timeout"
        assert result.text == TIMEOUT_PLACEHOLDER

    def test_timeout_returns_partial_text(self, tmp_path):
        shard = _history(tmp_path)
        clock = FakeClock(actions={1: lambda: append_lines(shard, [assistant_text("Halfway")])})
        waiter = _waiter(tmp_path, clock, timeout=10.0)
        result = waiter.wait(waiter.snapshot())
        assert result.timed_out
        assert result.text == "Halfway"

    def test_follows_rotated_shard(self, tmp_path):
        shard = _history(tmp_path)
        rotated = tmp_path / "logs" / "b.jsonl"
        clock = FakeClock(
            actions={
                1: lambda: append_lines(shard, [assistant_text("Compacting")]),
                2: lambda: write_lines(
                    rotated, [assistant_text("From the new session."), system("turn_duration")]
                ),
            }
        )
        waiter = _waiter(tmp_path, clock)
        result = waiter.wait(waiter.snapshot())
        assert result.text == "From the new session."

    def test_log_directory_created_mid_turn(self, tmp_path):
        clock = FakeClock(
            actions={
                2: lambda: (
                    (tmp_path / "logs").mkdir(),
                    write_lines(tmp_path / "logs" / "s.jsonl", [assistant_text("Hi"), system("turn_duration")]),
                )
            }
        )
        waiter = _waiter(tmp_path, clock)
        snapshot = waiter.snapshot()
        assert snapshot == {}
        assert waiter.wait(snapshot).text == "Hi"


class TestTurnWaiterResolve:
    """The per-tick cascade: boundary signals from the evaluator plus the interaction check."""

    def _ctx(self, lines, now=20.0, last_growth_at=10.0, deadline=100.0):
        return TickContext(
            entries=[LogEntry.from_line(line) for line in lines],
            now=now,
            last_growth_at=last_growth_at,
            deadline=deadline,
            quiet_threshold=5.0,
        )

    def _question_lines(self):
        return [assistant_tool_use("AskUserQuestion", ask_question_input(["A", "B"]), "toolu_q")]

    def test_authoritative_marker_beats_pending_question(self, tmp_path):
        waiter = _waiter(tmp_path, FakeClock())
        result = waiter.resolve(self._ctx(self._question_lines() + [system("turn_duration")]))
        assert result.signal == "turn_duration"
        assert result.interaction is None

    def test_pending_question_beats_weak_marker(self, tmp_path):
        waiter = _waiter(tmp_path, FakeClock())
        result = waiter.resolve(self._ctx(self._question_lines() + [system("stop_hook_summary")]))
        assert result.signal == "pending_interaction"

    def test_pending_question_beats_deadline(self, tmp_path):
        waiter = _waiter(tmp_path, FakeClock())
        result = waiter.resolve(self._ctx(self._question_lines(), now=100.0, deadline=100.0))
        assert result.signal == "pending_interaction"
        assert not result.timed_out

    def test_question_not_surfaced_before_quiet(self, tmp_path):
        waiter = _waiter(tmp_path, FakeClock())
        assert waiter.resolve(self._ctx(self._question_lines(), now=12.0)) is None

    def test_boundary_tiers_come_from_evaluator(self, tmp_path):
        evaluator = MagicMock(spec=BoundaryEvaluator)
        evaluator.evaluate.return_value = TIMEOUT_SIGNAL
        waiter = TurnWaiter(
            LogShardLocator(tmp_path / "logs"),
            InteractionExtractor(tmp_path / "plans"),
            poll_interval=0.5,
            quiet_threshold=5.0,
            timeout=600.0,
            evaluator=evaluator,
        )
        ctx = self._ctx([assistant_text("partial")], now=12.0)
        result = waiter.resolve(ctx)

        evaluator.evaluate.assert_called_once_with(ctx)
        assert result.signal == "timeout"
        assert result.timed_out
        assert result.text == "partial"

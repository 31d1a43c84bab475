"""Unit tests for reply encoding and pane injection."""

from unittest.mock import MagicMock, call, patch

import pytest

from cli_agent_bridge.models.interaction import (
    InteractionKind,
    PendingInteraction,
    QuestionEntry,
    QuestionOption,
)
from cli_agent_bridge.services.reply_encoder import (
    InjectionEvent,
    PaneInjector,
    encode_plan_reply,
    encode_prompt,
    encode_question_reply,
    encode_reply,
    key,
    pause,
    text,
)

DELAY = 0.3


def _questions(*option_counts):
    return PendingInteraction(
        kind=InteractionKind.QUESTION,
        tool_use_id="toolu_1",
        questions=[
            QuestionEntry(
                question=f"Q{i}",
                options=[QuestionOption(label=f"opt{n}") for n in range(count)],
            )
            for i, count in enumerate(option_counts)
        ],
    )


def _keys(events):
    return [e.value for e in events if e.kind == "key"]


class TestEncodePrompt:
    def test_prompt(self):
        assert encode_prompt("hello", DELAY) == [text("hello"), pause(DELAY), key("Enter")]


class TestEncodeQuestionReply:
    def test_single_option_selection(self):
        events = encode_question_reply(_questions(3), "2", DELAY)
        assert events == [key("Down"), key("Enter"), key("Enter")]

    def test_first_option_needs_no_movement(self):
        assert encode_question_reply(_questions(3), "1", DELAY) == [key("Enter"), key("Enter")]

    def test_multiple_answers_single_final_submit(self):
        events = encode_question_reply(_questions(2, 2), "2,1", DELAY)
        assert events == [
            key("Down"),
            key("Enter"),
            key("Right"),
            key("Enter"),
            key("Enter"),
        ]
        assert _keys(events).count("Right") == 1

    def test_out_of_range_number_is_custom_answer(self):
        events = encode_question_reply(_questions(2), "3", DELAY)
        assert events == [
            key("Down"),
            key("Down"),
            key("Enter"),
            pause(DELAY),
            text("3"),
            key("Enter"),
        ]

    def test_free_text_answer(self):
        events = encode_question_reply(_questions(2), "use MySQL, please", DELAY)
        # A comma splits answers, so only the first part reaches the single question
        assert text("use MySQL") in events
        assert events[-1] == key("Enter")

    def test_fewer_answers_reuse_first(self):
        events = encode_question_reply(_questions(3, 3), "2", DELAY)
        assert events == [
            key("Down"),
            key("Enter"),
            key("Right"),
            key("Down"),
            key("Enter"),
            key("Enter"),
        ]

    def test_whitespace_around_answers(self):
        assert encode_question_reply(_questions(2, 2), " 1 , 2 ", DELAY) == encode_question_reply(
            _questions(2, 2), "1,2", DELAY
        )


class TestEncodePlanReply:
    @pytest.mark.parametrize("reply", ["yes", "Y", "approve", "  ok! ", "LGTM"])
    def test_approval_never_selects_default(self, reply):
        events = encode_plan_reply(reply, DELAY)
        assert events == [key("Down"), key("Enter")]
        assert events[0] != key("Enter")

    def test_feedback(self):
        events = encode_plan_reply("yes but skip step 2", DELAY)
        assert events == [
            key("Down"),
            key("Down"),
            key("Down"),
            key("Enter"),
            pause(DELAY),
            text("yes but skip step 2"),
            pause(DELAY),
            key("Enter"),
        ]

    def test_encode_reply_dispatches_on_kind(self):
        plan = PendingInteraction(kind=InteractionKind.PLAN, tool_use_id="t", plan="p")
        assert encode_reply(plan, "yes", DELAY) == [key("Down"), key("Enter")]
        assert encode_reply(_questions(2), "1", DELAY) == [key("Enter"), key("Enter")]


class TestPaneInjector:
    @patch("cli_agent_bridge.services.reply_encoder.tmux_client")
    def test_send_in_order(self, mock_tmux):
        sleep = MagicMock()
        manager = MagicMock()
        manager.attach_mock(mock_tmux.send_text, "send_text")
        manager.attach_mock(mock_tmux.send_key, "send_key")
        manager.attach_mock(sleep, "sleep")

        PaneInjector("tinyclaw:claude.0", sleep=sleep).send(
            [text("hi"), pause(0.3), key("Enter")]
        )

        assert manager.mock_calls == [
            call.send_text("tinyclaw:claude.0", "hi"),
            call.sleep(0.3),
            call.send_key("tinyclaw:claude.0", "Enter"),
        ]

    @patch("cli_agent_bridge.services.reply_encoder.tmux_client")
    def test_unknown_event(self, mock_tmux):
        with pytest.raises(ValueError):
            PaneInjector("t", sleep=MagicMock()).send([InjectionEvent("mouse")])

    @patch("cli_agent_bridge.services.reply_encoder.tmux_client")
    def test_injection_error_propagates(self, mock_tmux):
        mock_tmux.send_text.side_effect = RuntimeError("no pane")
        with pytest.raises(RuntimeError):
            PaneInjector("t", sleep=MagicMock()).send([text("hi")])
        mock_tmux.send_key.assert_not_called()

"""Reply encoding: turn a chat reply into the key presses that answer a pending decision.

The agent's TUI needs a short pause between a menu selection and any text typed
after it; pauses are encoded as explicit events so the sequence is inspectable.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, List

from cli_agent_bridge.clients.tmux import tmux_client
from cli_agent_bridge.constants import (
    INPUT_STEP_DELAY,
    KEY_CONFIRM,
    KEY_NEXT_OPTION,
    KEY_NEXT_QUESTION,
    PLAN_APPROVE_INDEX,
    PLAN_APPROVE_PATTERN,
    PLAN_FEEDBACK_INDEX,
)
from cli_agent_bridge.models.interaction import InteractionKind, PendingInteraction, QuestionEntry

logger = logging.getLogger(__name__)

KEY = "key"
TEXT = "text"
PAUSE = "pause"


@dataclass(frozen=True)
class InjectionEvent:
    """One simulated input action for the agent pane."""

    kind: str
    value: str = ""
    seconds: float = 0.0


def key(name: str) -> InjectionEvent:
    return InjectionEvent(KEY, name)


def text(value: str) -> InjectionEvent:
    return InjectionEvent(TEXT, value)


def pause(seconds: float) -> InjectionEvent:
    return InjectionEvent(PAUSE, seconds=seconds)


def encode_prompt(message: str, step_delay: float = INPUT_STEP_DELAY) -> List[InjectionEvent]:
    """A fresh conversation turn: type the message and submit it."""
    return [text(message), pause(step_delay), key(KEY_CONFIRM)]


def _select_option(position: int) -> List[InjectionEvent]:
    """Move from the default cursor (first entry) down to a 0-based position and confirm."""
    return [key(KEY_NEXT_OPTION)] * position + [key(KEY_CONFIRM)]


def _encode_answer(question: QuestionEntry, answer: str, step_delay: float) -> List[InjectionEvent]:
    try:
        choice = int(answer)
    except ValueError:
        choice = 0
    if 1 <= choice <= len(question.options):
        return _select_option(choice - 1)

    # The free-form entry sits right after the listed options
    return _select_option(len(question.options)) + [pause(step_delay), text(answer)]


def encode_question_reply(
    interaction: PendingInteraction, reply: str, step_delay: float = INPUT_STEP_DELAY
) -> List[InjectionEvent]:
    """Answer each question positionally from a comma-separated reply.

    When fewer answers than questions are given, the first answer is reused for
    the remaining questions rather than rejecting the reply.
    """
    answers = [part.strip() for part in reply.split(",")]
    events: List[InjectionEvent] = []
    for index, question in enumerate(interaction.questions):
        answer = answers[index] if index < len(answers) else answers[0]
        if index > 0:
            events.append(key(KEY_NEXT_QUESTION))
        events.extend(_encode_answer(question, answer, step_delay))
    events.append(key(KEY_CONFIRM))
    return events


def encode_plan_reply(reply: str, step_delay: float = INPUT_STEP_DELAY) -> List[InjectionEvent]:
    """Approve without the context-clearing default option, or send feedback."""
    if re.match(PLAN_APPROVE_PATTERN, reply, re.IGNORECASE):
        return _select_option(PLAN_APPROVE_INDEX)
    return _select_option(PLAN_FEEDBACK_INDEX) + [
        pause(step_delay),
        text(reply),
        pause(step_delay),
        key(KEY_CONFIRM),
    ]


def encode_reply(
    interaction: PendingInteraction, reply: str, step_delay: float = INPUT_STEP_DELAY
) -> List[InjectionEvent]:
    if interaction.kind == InteractionKind.QUESTION:
        return encode_question_reply(interaction, reply, step_delay)
    return encode_plan_reply(reply, step_delay)


class PaneInjector:
    """Delivers injection events to the agent's tmux pane."""

    def __init__(self, target: str, sleep: Callable[[float], None] = time.sleep):
        self.target = target
        self._sleep = sleep

    def send(self, events: List[InjectionEvent]) -> None:
        for event in events:
            if event.kind == PAUSE:
                self._sleep(event.seconds)
            elif event.kind == TEXT:
                tmux_client.send_text(self.target, event.value)
            elif event.kind == KEY:
                tmux_client.send_key(self.target, event.value)
            else:
                raise ValueError(f"Unknown injection event kind: {event.kind}")
        logger.debug(f"Injected {len(events)} events into {self.target}")

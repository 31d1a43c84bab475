"""Interaction extraction: is the agent blocked on a question set or plan approval?"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError

from cli_agent_bridge.constants import ASK_QUESTION_TOOL, EXIT_PLAN_TOOL
from cli_agent_bridge.models.interaction import (
    InteractionKind,
    PendingInteraction,
    QuestionEntry,
    QuestionOption,
)
from cli_agent_bridge.models.log_entry import ContentBlock, LogEntry

logger = logging.getLogger(__name__)

BLOCKING_TOOLS = {ASK_QUESTION_TOOL, EXIT_PLAN_TOOL}

REPLY_INSTRUCTIONS = (
    "Reply with a number to pick an option, comma-separated numbers to answer "
    'each question in order (e.g. "1,2"), or any other text for a custom answer.'
)
PLAN_INSTRUCTIONS = 'Reply "yes" to approve the plan, or send feedback to keep planning.'
# Replies are encoded as a single choice per question
MULTI_SELECT_NOTE = "(multi-select: only one option can be picked from chat)"


def _parse_questions(tool_input: dict) -> List[QuestionEntry]:
    questions = []
    for raw in tool_input.get("questions") or []:
        if not isinstance(raw, dict):
            continue
        options = []
        for option in raw.get("options") or []:
            if isinstance(option, dict) and option.get("label"):
                options.append(
                    QuestionOption(
                        label=str(option["label"]),
                        description=str(option.get("description") or ""),
                    )
                )
            elif isinstance(option, str):
                options.append(QuestionOption(label=option))
        try:
            questions.append(
                QuestionEntry(
                    question=str(raw.get("question") or ""),
                    header=raw.get("header"),
                    options=options,
                    multi_select=bool(raw.get("multiSelect", False)),
                )
            )
        except ValidationError as e:
            logger.debug(f"Skipping malformed question: {e}")
    return questions


def _context_text(entries: Sequence[LogEntry], index: int) -> Optional[str]:
    """Free text said alongside the blocking call in the same assistant message.

    Claude Code writes one content block per log entry, so text preceding a tool
    call lives in earlier entries sharing the same API message id.
    """
    entry = entries[index]
    blocks = list(entry.text_blocks())
    if entry.message_id:
        i = index - 1
        while i >= 0 and entries[i].is_assistant and entries[i].message_id == entry.message_id:
            blocks = entries[i].text_blocks() + blocks
            i -= 1
    return "\n\n".join(blocks) if blocks else None


def _session_slug(entries: Sequence[LogEntry]) -> Optional[str]:
    for entry in reversed(entries):
        if entry.slug:
            return entry.slug
    return None


def _read_plan(plans_dir: Path, slug: Optional[str]) -> Optional[str]:
    if not slug:
        return None
    try:
        text = (plans_dir / f"{slug}.md").read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return text or None


class InteractionExtractor:
    """Materializes an unanswered blocking tool call into a PendingInteraction."""

    def __init__(self, plans_dir: Path):
        self.plans_dir = plans_dir

    def extract(self, entries: Sequence[LogEntry]) -> Optional[PendingInteraction]:
        index = None
        for i in range(len(entries) - 1, -1, -1):
            if entries[i].is_assistant:
                index = i
                break
        if index is None:
            return None

        candidate: Optional[ContentBlock] = None
        for block in entries[index].tool_uses():
            if block.name in BLOCKING_TOOLS and block.id:
                candidate = block
        if candidate is None:
            return None

        # Answered already (e.g. someone resolved it at the terminal)
        for later in entries[index + 1 :]:
            if later.is_user and later.answers_tool_use(candidate.id):
                return None

        if candidate.name == ASK_QUESTION_TOOL:
            questions = _parse_questions(candidate.input)
            if not questions:
                logger.warning(f"{ASK_QUESTION_TOOL} call {candidate.id} has no questions")
                return None
            return PendingInteraction(
                kind=InteractionKind.QUESTION,
                tool_use_id=candidate.id,
                questions=questions,
                context=_context_text(entries, index),
                session_slug=_session_slug(entries),
            )

        slug = _session_slug(entries)
        plan = _read_plan(self.plans_dir, slug)
        if plan is None:
            embedded: Any = candidate.input.get("plan")
            if isinstance(embedded, str) and embedded.strip():
                plan = embedded.strip()
        if plan is None:
            logger.warning(f"No plan document found for session slug {slug!r}")
        return PendingInteraction(
            kind=InteractionKind.PLAN,
            tool_use_id=candidate.id,
            plan=plan,
            plan_found=plan is not None,
            context=_context_text(entries, index),
            session_slug=slug,
        )


def render_prompt(interaction: PendingInteraction) -> str:
    """Human-readable prompt sent back to the chat in place of a response."""
    parts: List[str] = []

    if interaction.kind == InteractionKind.PLAN:
        parts.append("The agent has a plan ready for approval.")
        if interaction.context:
            parts.append(interaction.context)
        if interaction.plan:
            parts.append(interaction.plan)
        else:
            parts.append("(Plan document not found)")
        parts.append(PLAN_INSTRUCTIONS)
        return "\n\n".join(parts)

    parts.append("The agent is asking:")
    if interaction.context:
        parts.append(interaction.context)
    numbered = len(interaction.questions) > 1
    for q_index, question in enumerate(interaction.questions, start=1):
        title = question.question
        if question.header:
            title = f"[{question.header}] {title}"
        if numbered:
            title = f"Q{q_index}. {title}"
        if question.multi_select:
            title += f" {MULTI_SELECT_NOTE}"
        lines = [title]
        for o_index, option in enumerate(question.options, start=1):
            line = f"  {o_index}. {option.label}"
            if option.description:
                line += f" - {option.description}"
            lines.append(line)
        parts.append("\n".join(lines))
    parts.append(REPLY_INSTRUCTIONS)
    return "\n\n".join(parts)

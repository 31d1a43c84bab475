"""Pending interaction models: decisions the agent is blocked on."""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class InteractionKind(str, Enum):
    """Kind of structured decision."""

    QUESTION = "question"
    PLAN = "plan"


class QuestionOption(BaseModel):
    label: str
    description: str = ""


class QuestionEntry(BaseModel):
    question: str
    header: Optional[str] = None
    options: List[QuestionOption] = []
    multi_select: bool = False


class PendingInteraction(BaseModel):
    """A captured, not-yet-answered question set or plan approval."""

    kind: InteractionKind
    tool_use_id: str
    questions: List[QuestionEntry] = []
    context: Optional[str] = None
    plan: Optional[str] = None
    plan_found: bool = True
    session_slug: Optional[str] = None


class PendingInteractionSlot:
    """Single-slot holder for the interaction awaiting the next human reply.

    Owned by the queue coordinator. Only one turn is ever in flight, so a single
    optional value is enough; when a path is given the slot is mirrored to disk
    so a restart does not lose an open decision.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = path
        self._interaction: Optional[PendingInteraction] = None
        if path is not None:
            self._interaction = self._load()

    def _load(self) -> Optional[PendingInteraction]:
        try:
            return PendingInteraction.model_validate_json(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable pending interaction {self._path}: {e}")
            return None

    def is_empty(self) -> bool:
        return self._interaction is None

    def peek(self) -> Optional[PendingInteraction]:
        return self._interaction

    def put(self, interaction: PendingInteraction) -> None:
        if self._interaction is not None:
            logger.warning(
                f"Replacing unanswered {self._interaction.kind.value} interaction "
                f"{self._interaction.tool_use_id}"
            )
        self._interaction = interaction
        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(interaction.model_dump_json(indent=2), encoding="utf-8")

    def clear(self) -> None:
        self._interaction = None
        if self._path is not None:
            self._path.unlink(missing_ok=True)

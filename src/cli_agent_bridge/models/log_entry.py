"""Structured records decoded from the agent's JSONL session logs."""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from cli_agent_bridge.constants import (
    ENTRY_ASSISTANT,
    ENTRY_SYSTEM,
    ENTRY_USER,
    TURN_DURATION_SUBTYPE,
    WEAK_BOUNDARY_SUBTYPES,
)


class ContentBlock(BaseModel):
    """One block of an assistant or user message."""

    model_config = ConfigDict(extra="ignore")

    type: str
    text: Optional[str] = None
    id: Optional[str] = None
    name: Optional[str] = None
    input: Dict[str, Any] = {}
    tool_use_id: Optional[str] = None


class LogEntry(BaseModel):
    """A single session log line.

    Only the fields the bridge reasons about are kept; everything else in the
    record is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    type: str
    subtype: Optional[str] = None
    slug: Optional[str] = None
    session_id: Optional[str] = None
    uuid: Optional[str] = None
    message_id: Optional[str] = None
    content: List[ContentBlock] = []

    @classmethod
    def from_line(cls, line: str) -> Optional["LogEntry"]:
        """Decode one JSONL line, returning None for anything malformed."""
        line = line.strip()
        if not line:
            return None
        try:
            raw = json.loads(line)
        except json.JSONDecodeError:
            return None
        if not isinstance(raw, dict) or not isinstance(raw.get("type"), str):
            return None

        message = raw.get("message")
        if not isinstance(message, dict):
            message = {}
        content = message.get("content", [])
        if isinstance(content, str):
            # Plain-string content (typed prompts) is a single text block
            content = [{"type": "text", "text": content}]
        elif not isinstance(content, list):
            content = []

        try:
            return cls(
                type=raw["type"],
                subtype=raw.get("subtype"),
                slug=raw.get("slug"),
                session_id=raw.get("sessionId"),
                uuid=raw.get("uuid"),
                message_id=message.get("id"),
                content=[block for block in content if isinstance(block, dict)],
            )
        except ValidationError:
            return None

    @property
    def is_assistant(self) -> bool:
        return self.type == ENTRY_ASSISTANT

    @property
    def is_user(self) -> bool:
        return self.type == ENTRY_USER

    @property
    def is_turn_duration(self) -> bool:
        return self.type == ENTRY_SYSTEM and self.subtype == TURN_DURATION_SUBTYPE

    @property
    def is_weak_boundary(self) -> bool:
        return self.type == ENTRY_SYSTEM and self.subtype in WEAK_BOUNDARY_SUBTYPES

    def text_blocks(self) -> List[str]:
        """Non-empty text blocks, stripped, in order."""
        return [
            block.text.strip()
            for block in self.content
            if block.type == "text" and block.text and block.text.strip()
        ]

    def tool_uses(self) -> List[ContentBlock]:
        return [block for block in self.content if block.type == "tool_use"]

    def answers_tool_use(self, tool_use_id: str) -> bool:
        """Whether this entry carries a tool_result for the given invocation."""
        return any(
            block.type == "tool_result" and block.tool_use_id == tool_use_id
            for block in self.content
        )

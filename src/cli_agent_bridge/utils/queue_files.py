"""On-disk queue handoff: holding (incoming) -> in-progress (processing) -> consumed.

Moving a file between directories is an atomic rename, which makes it the
ownership-transfer primitive between competing coordinator instances.
"""

import json
import os
import time
import uuid
from pathlib import Path
from typing import List

from cli_agent_bridge.constants import HEARTBEAT_CHANNEL
from cli_agent_bridge.models.queue import QueuedMessage, ResponseMessage


def now_ms() -> int:
    return int(time.time() * 1000)


def list_incoming(incoming_dir: Path) -> List[Path]:
    """Queued message files, oldest first (mtime, then name)."""
    files = []
    for path in incoming_dir.glob("*.json"):
        try:
            files.append((path.stat().st_mtime, path.name, path))
        except FileNotFoundError:
            # Claimed by another coordinator between glob and stat
            continue
    return [path for _, _, path in sorted(files)]


def claim(message_file: Path, processing_dir: Path) -> Path:
    """Move a message into processing; raises FileNotFoundError if someone else won."""
    processing_file = processing_dir / message_file.name
    os.rename(message_file, processing_file)
    return processing_file


def restore(processing_file: Path, incoming_dir: Path) -> Path:
    """Move an in-progress message back to incoming so a later cycle retries it."""
    message_file = incoming_dir / processing_file.name
    os.rename(processing_file, message_file)
    return message_file


def read_message(path: Path) -> QueuedMessage:
    return QueuedMessage.model_validate_json(path.read_text(encoding="utf-8"))


def _write_json_atomic(path: Path, payload: str) -> None:
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    os.replace(tmp_path, path)


def response_path(outgoing_dir: Path, response: ResponseMessage) -> Path:
    """Heartbeat replies reuse one file per message id; others get a unique name."""
    if response.channel == HEARTBEAT_CHANNEL:
        return outgoing_dir / f"{response.message_id}.json"
    return outgoing_dir / f"{response.channel}_{response.message_id}_{response.timestamp}.json"


def write_response(outgoing_dir: Path, response: ResponseMessage) -> Path:
    path = response_path(outgoing_dir, response)
    _write_json_atomic(path, json.dumps(response.model_dump(by_alias=True), indent=2))
    return path


def enqueue_message(incoming_dir: Path, message: QueuedMessage) -> Path:
    """Write an inbound artifact the way the chat clients do."""
    incoming_dir.mkdir(parents=True, exist_ok=True)
    path = incoming_dir / f"{message.channel}_{message.message_id}.json"
    _write_json_atomic(path, json.dumps(message.model_dump(by_alias=True), indent=2))
    return path


def new_message_id() -> str:
    return f"{now_ms()}_{uuid.uuid4().hex[:8]}"

"""Read helpers for append-only JSONL session log shards.

Every helper treats I/O failures as "nothing there yet": shards appear, grow and
rotate underneath the bridge at any time.
"""

import logging
from pathlib import Path
from typing import Dict, List

from cli_agent_bridge.constants import SHARD_GLOB
from cli_agent_bridge.models.log_entry import LogEntry

logger = logging.getLogger(__name__)


def list_shards(log_dir: Path, pattern: str = SHARD_GLOB) -> List[Path]:
    """Candidate shards in a stable (path) order; empty if the directory is missing."""
    try:
        return sorted(p for p in log_dir.glob(pattern) if p.is_file())
    except OSError:
        return []


def count_lines(path: Path) -> int:
    """Number of newline-terminated lines; a partial trailing line is not counted."""
    try:
        with path.open("rb") as f:
            return sum(chunk.count(b"\n") for chunk in iter(lambda: f.read(65536), b""))
    except OSError:
        return 0


def snapshot_line_counts(log_dir: Path, pattern: str = SHARD_GLOB) -> Dict[Path, int]:
    return {path: count_lines(path) for path in list_shards(log_dir, pattern)}


def read_entries(path: Path, start_line: int = 0) -> List[LogEntry]:
    """Decode entries from start_line (0-based) to the end, skipping malformed lines."""
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Could not read shard {path}: {e}")
        return []

    # Split on "\n" only so offsets agree with count_lines (U+2028 may appear raw)
    entries = []
    for line in text.split("\n")[start_line:]:
        entry = LogEntry.from_line(line)
        if entry is not None:
            entries.append(entry)
    return entries

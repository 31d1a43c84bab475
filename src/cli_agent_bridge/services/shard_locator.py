"""Log shard locator: which session log is receiving the dispatched turn."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from cli_agent_bridge.constants import SHARD_GLOB
from cli_agent_bridge.utils.session_log import count_lines, list_shards, snapshot_line_counts

logger = logging.getLogger(__name__)


@dataclass
class ShardActivityState:
    """Per-turn view of the active shard.

    Lines before ``offset`` belong to earlier turns and are never re-read.
    """

    path: Path
    offset: int
    last_line_count: int
    last_growth_at: float
    rotated: bool = False


class LogShardLocator:
    """Finds the shard a turn writes to by diffing line counts against a snapshot."""

    def __init__(self, log_dir: Path, pattern: str = SHARD_GLOB):
        self.log_dir = log_dir
        self.pattern = pattern

    def snapshot(self) -> Dict[Path, int]:
        """Line counts of every candidate shard, taken right before dispatch."""
        return snapshot_line_counts(self.log_dir, self.pattern)

    def locate(self, snapshot: Dict[Path, int], now: float) -> Optional[ShardActivityState]:
        """Select the shard receiving output, or None if nothing moved yet.

        A shard that did not exist at snapshot time wins (offset 0), since a turn's
        first write can create it; otherwise the first shard that grew is selected
        with offset equal to its snapshotted count.
        """
        current = {path: count_lines(path) for path in list_shards(self.log_dir, self.pattern)}

        for path, count in current.items():
            if path not in snapshot:
                logger.info(f"Selected new shard {path.name} ({count} lines)")
                return ShardActivityState(
                    path=path, offset=0, last_line_count=0, last_growth_at=now
                )

        for path, count in current.items():
            before = snapshot[path]
            if count > before:
                logger.info(f"Selected shard {path.name} (grew {before} -> {count})")
                return ShardActivityState(
                    path=path, offset=before, last_line_count=before, last_growth_at=now
                )
        return None

    def check_rotation(
        self, state: ShardActivityState, snapshot: Dict[Path, int], now: float
    ) -> bool:
        """Switch to a brand-new non-empty shard if the agent started a new session.

        Returns True when the active shard changed. Only one rotation is honoured
        per turn.
        """
        if state.rotated:
            return False

        for path in list_shards(self.log_dir, self.pattern):
            if path == state.path or path in snapshot:
                continue
            if count_lines(path) > 0:
                logger.info(f"Shard rotated: {state.path.name} -> {path.name}")
                state.path = path
                state.offset = 0
                state.last_line_count = 0
                state.last_growth_at = now
                state.rotated = True
                return True
        return False

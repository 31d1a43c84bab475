"""Constants for CLI Agent Bridge (CAB).

This module defines the defaults used throughout the bridge: queue layout, agent log
locations, polling/timeout tuning, placeholder texts, and the key protocol of the
agent's interactive menus.

The bridge relays chat messages to a long-running Claude Code session inside a tmux
pane and infers turn completion from the agent's append-only session logs.
"""

from pathlib import Path

# =============================================================================
# Directory Structure
# =============================================================================
# Base directory for bridge state (queue, logs, pending interaction)
DEFAULT_HOME_DIR = Path.cwd() / ".tinyclaw"

QUEUE_DIR_NAME = "queue"
INCOMING_DIR_NAME = "incoming"
PROCESSING_DIR_NAME = "processing"
OUTGOING_DIR_NAME = "outgoing"

LOG_DIR_NAME = "logs"
QUEUE_LOG_FILE_NAME = "queue.log"
PANE_LOG_FILE_NAME = "pane-output.log"  # tmux pipe-pane target for pane capture mode

STATE_DIR_NAME = "state"
PENDING_INTERACTION_FILE_NAME = "pending-interaction.json"

# Claude Code writes one JSONL session log ("shard") per conversation under
# ~/.claude/projects/<project-slug>/ and plan documents under ~/.claude/plans/
CLAUDE_PROJECTS_DIR = Path.home() / ".claude" / "projects"
CLAUDE_PLANS_DIR = Path.home() / ".claude" / "plans"
SHARD_GLOB = "*.jsonl"

# =============================================================================
# Tmux Configuration
# =============================================================================
# Pane running the persistent agent session (session:window.pane)
DEFAULT_TMUX_TARGET = "tinyclaw:claude.0"

# Lines of pane history captured for diagnostics
TMUX_HISTORY_LINES = 200

# =============================================================================
# Capture Modes
# =============================================================================
CAPTURE_MODE_SESSION_LOG = "session_log"
CAPTURE_MODE_PANE = "pane"
CAPTURE_MODES = [CAPTURE_MODE_SESSION_LOG, CAPTURE_MODE_PANE]

# =============================================================================
# Polling / Timeout Configuration (seconds)
# =============================================================================
QUEUE_POLL_INTERVAL = 1.0
TURN_POLL_INTERVAL = 0.5

# Quiet time after the last log growth before weak signals are trusted
QUIET_THRESHOLD = 5.0

# Hard wall-clock limit for a single turn
RESPONSE_TIMEOUT = 600.0

# Delay between structurally distinct input steps (menu selection vs. typing)
INPUT_STEP_DELAY = 0.3

# =============================================================================
# Session Log Markers
# =============================================================================
ENTRY_ASSISTANT = "assistant"
ENTRY_USER = "user"
ENTRY_SYSTEM = "system"

# Written by Claude Code when a turn is over
TURN_DURATION_SUBTYPE = "turn_duration"
# Lower-confidence end-of-turn hints, only trusted after a quiet period
WEAK_BOUNDARY_SUBTYPES = frozenset({"stop_hook_summary"})

ASK_QUESTION_TOOL = "AskUserQuestion"
EXIT_PLAN_TOOL = "ExitPlanMode"

# =============================================================================
# Interactive Menu Key Protocol
# =============================================================================
KEY_NEXT_OPTION = "Down"
KEY_NEXT_QUESTION = "Right"
KEY_CONFIRM = "Enter"

# ExitPlanMode menu: 0 "Yes, clear context and auto-accept edits" (default),
# 1 "Yes, auto-accept edits", 2 "Yes, manually approve edits", 3 "No, keep planning"
PLAN_APPROVE_INDEX = 1
PLAN_FEEDBACK_INDEX = 3

PLAN_APPROVE_PATTERN = r"^\s*(yes|y|approve|accept|ok|go|lgtm)\s*[.!]*\s*$"

# =============================================================================
# Responses
# =============================================================================
HEARTBEAT_CHANNEL = "heartbeat"

MAX_RESPONSE_CHARS = 4000
TRUNCATION_MARGIN = 100
TRUNCATION_SUFFIX = "\n\n[Response truncated...]"

TIMEOUT_PLACEHOLDER = "(Response timed out)"
NO_RESPONSE_PLACEHOLDER = "(Agent finished without a text response)"
NO_CAPTURE_PLACEHOLDER = "(No response captured - check tmux session)"

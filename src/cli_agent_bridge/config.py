"""Bridge settings: JSON config file + env vars + defaults.

Precedence (highest to lowest): env vars > JSON file > defaults. Empty env vars
are treated as unset.
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cli_agent_bridge import constants


class ConfigError(Exception):
    """Raised for an unreadable or invalid configuration."""

    pass


# (json_key, env_var_name)
_CONFIG_KEYS: list[tuple[str, str]] = [
    ("home_dir", "CAB_HOME"),
    ("tmux_target", "CAB_TMUX_TARGET"),
    ("working_directory", "CAB_WORKING_DIRECTORY"),
    ("claude_projects_dir", "CAB_CLAUDE_PROJECTS_DIR"),
    ("plans_dir", "CAB_PLANS_DIR"),
    ("session_log_dir", "CAB_SESSION_LOG_DIR"),
    ("capture_mode", "CAB_CAPTURE_MODE"),
    ("queue_poll_interval", "CAB_QUEUE_POLL_INTERVAL"),
    ("turn_poll_interval", "CAB_TURN_POLL_INTERVAL"),
    ("quiet_threshold", "CAB_QUIET_THRESHOLD"),
    ("response_timeout", "CAB_RESPONSE_TIMEOUT"),
    ("max_response_chars", "CAB_MAX_RESPONSE_CHARS"),
    ("input_step_delay", "CAB_INPUT_STEP_DELAY"),
    ("log_level", "CAB_LOG_LEVEL"),
]


def project_log_dir(projects_dir: Path, working_directory: Path) -> Path:
    """Return the session log directory Claude Code uses for a working directory.

    Claude Code names the directory after the absolute path with every character
    other than ASCII letters and digits replaced by "-".
    """
    slug = re.sub(r"[^A-Za-z0-9]", "-", str(working_directory))
    return projects_dir / slug


class BridgeSettings(BaseModel):
    """Runtime settings for the queue coordinator and turn waiters."""

    model_config = ConfigDict(populate_by_name=True)

    home_dir: Path = constants.DEFAULT_HOME_DIR
    tmux_target: str = constants.DEFAULT_TMUX_TARGET
    working_directory: Path = Path.cwd()
    claude_projects_dir: Path = constants.CLAUDE_PROJECTS_DIR
    plans_dir: Path = constants.CLAUDE_PLANS_DIR
    session_log_dir_override: Optional[Path] = Field(default=None, alias="session_log_dir")
    capture_mode: str = constants.CAPTURE_MODE_SESSION_LOG
    queue_poll_interval: float = constants.QUEUE_POLL_INTERVAL
    turn_poll_interval: float = constants.TURN_POLL_INTERVAL
    quiet_threshold: float = constants.QUIET_THRESHOLD
    response_timeout: float = constants.RESPONSE_TIMEOUT
    max_response_chars: int = constants.MAX_RESPONSE_CHARS
    input_step_delay: float = constants.INPUT_STEP_DELAY
    log_level: str = "INFO"

    @field_validator("capture_mode")
    @classmethod
    def _check_capture_mode(cls, value: str) -> str:
        if value not in constants.CAPTURE_MODES:
            raise ValueError(
                f"Invalid capture mode '{value}'. Available: {', '.join(constants.CAPTURE_MODES)}"
            )
        return value

    @field_validator(
        "home_dir", "working_directory", "claude_projects_dir", "plans_dir", "session_log_dir_override"
    )
    @classmethod
    def _expand_path(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None

    @property
    def incoming_dir(self) -> Path:
        return self.home_dir / constants.QUEUE_DIR_NAME / constants.INCOMING_DIR_NAME

    @property
    def processing_dir(self) -> Path:
        return self.home_dir / constants.QUEUE_DIR_NAME / constants.PROCESSING_DIR_NAME

    @property
    def outgoing_dir(self) -> Path:
        return self.home_dir / constants.QUEUE_DIR_NAME / constants.OUTGOING_DIR_NAME

    @property
    def log_file(self) -> Path:
        return self.home_dir / constants.LOG_DIR_NAME / constants.QUEUE_LOG_FILE_NAME

    @property
    def pane_log_file(self) -> Path:
        return self.home_dir / constants.LOG_DIR_NAME / constants.PANE_LOG_FILE_NAME

    @property
    def pending_interaction_file(self) -> Path:
        return self.home_dir / constants.STATE_DIR_NAME / constants.PENDING_INTERACTION_FILE_NAME

    @property
    def session_log_dir(self) -> Path:
        """Explicit override, else the directory derived from working_directory."""
        if self.session_log_dir_override is not None:
            return self.session_log_dir_override
        return project_log_dir(self.claude_projects_dir, self.working_directory.resolve())

    def ensure_dirs(self) -> None:
        for directory in (
            self.incoming_dir,
            self.processing_dir,
            self.outgoing_dir,
            self.log_file.parent,
        ):
            directory.mkdir(parents=True, exist_ok=True)


def _read_config_file(config_file: Path) -> Dict[str, Any]:
    if not config_file.is_file():
        raise ConfigError(f"Config file not found: {config_file}")
    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Invalid JSON in config file {config_file}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_file} must contain a JSON object")

    known = {json_key for json_key, _ in _CONFIG_KEYS}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    return data


def load_settings(
    config_file: Optional[Path] = None, env: Optional[Dict[str, str]] = None
) -> BridgeSettings:
    """Build settings from an optional JSON file, env var overrides, and defaults."""
    if env is None:
        env = dict(os.environ)

    values: Dict[str, Any] = {}
    if config_file is not None:
        values.update(_read_config_file(Path(config_file)))

    for json_key, env_var in _CONFIG_KEYS:
        raw = env.get(env_var)
        if raw is None or raw == "":
            continue
        values[json_key] = raw

    try:
        return BridgeSettings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}")

"""Logging setup for the bridge processes."""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_file: Optional[Path] = None, level: str = "INFO") -> None:
    """Log to the console and, when given, append to log_file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # libtmux logs every tmux invocation at DEBUG
    logging.getLogger("libtmux").setLevel(logging.WARNING)

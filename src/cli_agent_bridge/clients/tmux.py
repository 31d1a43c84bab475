"""Tmux client used to inject input into the agent's pane."""

import logging
import shlex
from typing import Optional

import libtmux

from cli_agent_bridge.constants import TMUX_HISTORY_LINES

logger = logging.getLogger(__name__)


class InjectionError(Exception):
    """Raised when tmux rejects an input event for the agent pane."""

    pass


class TmuxClient:
    """Thin wrapper over a libtmux server addressing panes by tmux target."""

    def __init__(self) -> None:
        self._server: Optional[libtmux.Server] = None

    @property
    def server(self) -> libtmux.Server:
        if self._server is None:
            self._server = libtmux.Server()
        return self._server

    def _run(self, *args: str) -> list:
        result = self.server.cmd(*args)
        if result.stderr:
            raise InjectionError(f"tmux {args[0]} failed: {' '.join(result.stderr)}")
        return result.stdout

    def session_exists(self, session_name: str) -> bool:
        return self.server.has_session(session_name)

    def send_text(self, target: str, text: str) -> None:
        """Type text literally into the pane, without pressing Enter."""
        self._run("send-keys", "-t", target, "-l", "--", text)

    def send_key(self, target: str, key: str) -> None:
        """Send one symbolic key (Enter, Down, Right, ...)."""
        self._run("send-keys", "-t", target, key)

    def get_history(self, target: str, tail_lines: Optional[int] = None) -> str:
        """Capture recent pane content including escape sequences."""
        lines = tail_lines if tail_lines is not None else TMUX_HISTORY_LINES
        stdout = self._run("capture-pane", "-e", "-p", "-t", target, "-S", f"-{lines}")
        return "\n".join(stdout)

    def pipe_pane(self, target: str, file_path: str) -> None:
        """Append all pane output to file_path."""
        self._run("pipe-pane", "-o", "-t", target, f"cat >> {shlex.quote(file_path)}")
        logger.info(f"Piping pane {target} to {file_path}")

    def stop_pipe_pane(self, target: str) -> None:
        self._run("pipe-pane", "-t", target)


tmux_client = TmuxClient()

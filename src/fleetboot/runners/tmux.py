from __future__ import annotations

import logging
import shlex
import subprocess
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..errors import TmuxError

logger = logging.getLogger("fleetboot.tmux")


def _run_tmux(args: List[str], *, timeout_s: float = 3.0) -> Tuple[int, str, str]:
    try:
        p = subprocess.run(
            ["tmux", *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout_s,
            check=False,
        )
        return int(p.returncode), (p.stdout or ""), (p.stderr or "")
    except subprocess.TimeoutExpired:
        return 124, "", "tmux timeout"
    except OSError as e:
        return 1, "", str(e)


def _check(args: List[str], what: str, *, timeout_s: float = 3.0) -> str:
    code, out, err = _run_tmux(args, timeout_s=timeout_s)
    if code != 0:
        raise TmuxError(f"tmux {what} failed: {err.strip() or f'exit {code}'}", returncode=code, stderr=err)
    return out


def env_prefix(env: Optional[Dict[str, str]]) -> str:
    """`K=V ...` shell prefix; invalid keys and non-string values are skipped."""
    if not env:
        return ""
    parts = []
    for k, v in env.items():
        if not isinstance(k, str) or not k.strip():
            continue
        if not isinstance(v, str):
            continue
        parts.append(f"{k.strip()}={shlex.quote(v)}")
    return " ".join(parts)


class Tmux:
    """Handle on the tmux server; also the default nudger for bootstrap delivery."""

    def __init__(self, *, timeout_s: float = 3.0, submit_delay_s: float = 0.15) -> None:
        self.timeout_s = timeout_s
        self.submit_delay_s = submit_delay_s

    def has_session(self, session: str) -> bool:
        code, _, _ = _run_tmux(["has-session", "-t", f"={session}"], timeout_s=self.timeout_s)
        return code == 0

    def new_session(self, session: str, *, cwd: Path, command: str = "") -> None:
        cwd_path = Path(cwd).expanduser()
        if not cwd_path.exists():
            raise TmuxError(f"work dir does not exist: {cwd_path}")
        args = ["new-session", "-d", "-s", session, "-c", str(cwd_path)]
        if command:
            args.append(command)
        _check(args, "new-session", timeout_s=self.timeout_s)

    def kill_session(self, session: str) -> None:
        _check(["kill-session", "-t", f"={session}"], "kill-session", timeout_s=self.timeout_s)

    def send_literal(self, session: str, text: str) -> None:
        # Leave copy-mode first or the keys are swallowed.
        code, out, _ = _run_tmux(["display-message", "-p", "-t", session, "#{pane_in_mode}"], timeout_s=self.timeout_s)
        if code == 0 and (out or "").strip() in ("1", "on", "yes", "true"):
            _run_tmux(["send-keys", "-t", session, "-X", "cancel"], timeout_s=self.timeout_s)
        _check(["send-keys", "-t", session, "-l", text], "send-keys", timeout_s=self.timeout_s)

    def send_enter(self, session: str) -> None:
        _check(["send-keys", "-t", session, "Enter"], "send-keys", timeout_s=self.timeout_s)

    def nudge_session(self, session_id: str, message: str) -> None:
        """Type `message` into the session and submit it."""
        self.send_literal(session_id, message)
        if self.submit_delay_s > 0:
            time.sleep(self.submit_delay_s)
        self.send_enter(session_id)
        logger.debug("nudged session", extra={"session_id": session_id})

    def run_shell_background(self, script: str) -> None:
        """Hand `script` to tmux so it runs after this process is gone."""
        _check(["run-shell", "-b", script], "run-shell", timeout_s=self.timeout_s)

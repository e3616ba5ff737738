"""Detection, installation and execution of the wrapped ``claude`` executable.

``auo`` never talks to the API itself. It resolves the current profile,
projects it into an environment overlay (:mod:`auo.environment`) and hands
control to ``claude`` with the user's arguments unchanged.
"""

from __future__ import annotations

import shutil
import signal
import subprocess
from collections.abc import Mapping, Sequence

from auo.environment import merge_environment
from auo.exceptions import LauncherError
from auo.output import debug, info, success

CLAUDE_COMMAND = "claude"
CLAUDE_PACKAGE = "@anthropic-ai/claude-code"
VERSION_MARKER = "Claude Code"
CHECK_TIMEOUT_SECONDS = 5


def _resolve(command: str) -> str:
    # shutil.which also finds ``claude.cmd`` shims on Windows.
    return shutil.which(command) or command


def check_claude_code(timeout: float = CHECK_TIMEOUT_SECONDS) -> bool:
    """Return True if ``claude --version`` reports Claude Code.

    Any failure (missing binary, timeout, unexpected output) counts as not
    installed.
    """
    try:
        result = subprocess.run(
            [_resolve(CLAUDE_COMMAND), "--version"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        debug(f"claude --version failed: {exc}")
        return False

    output = (result.stdout or "") + (result.stderr or "")
    return VERSION_MARKER in output


def install_claude_code() -> None:
    """Install Claude Code globally with npm.

    Raises:
        LauncherError: If npm is missing or the install exits non-zero.
    """
    info("Installing Claude Code, please wait...")
    try:
        result = subprocess.run([_resolve("npm"), "install", "-g", CLAUDE_PACKAGE])
    except OSError as exc:
        raise LauncherError(f"Cannot run npm to install {CLAUDE_PACKAGE}: {exc}") from exc

    if result.returncode != 0:
        raise LauncherError(f"Installation failed with exit code: {result.returncode}")
    success("Claude Code installation completed")


def run_claude_code(args: Sequence[str], overlay: Mapping[str, str]) -> int:
    """Run ``claude`` in the foreground and return its exit code.

    Args:
        args: Command-line arguments passed through unchanged.
        overlay: Variables laid over the current process environment.

    Raises:
        LauncherError: If the executable cannot be started.
    """
    env = merge_environment(overlay)
    debug(f"Running {CLAUDE_COMMAND} with {sorted(overlay)} set")

    # Ctrl-C belongs to claude while it runs; the terminal delivers it to both.
    previous = signal.signal(signal.SIGINT, _ignore_interrupt)
    try:
        completed = subprocess.run([_resolve(CLAUDE_COMMAND), *args], env=env)
    except OSError as exc:
        raise LauncherError(
            f"Claude Code execution failed: {exc}. Try reinstalling: npm install -g {CLAUDE_PACKAGE}"
        ) from exc
    finally:
        signal.signal(signal.SIGINT, previous)
    return completed.returncode


def _ignore_interrupt(signum: int, frame: object) -> None:
    pass

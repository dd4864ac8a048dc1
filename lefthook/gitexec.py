"""Running git (and other) commands in the operating system."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence

logger = logging.getLogger(__name__)


class GitCommandError(Exception):
    """A command could not be started or exited with a non-zero status."""

    def __init__(self, command: Sequence[str], output: str = "", returncode: int | None = None):
        self.command = list(command)
        self.output = output
        self.returncode = returncode
        message = f"command {' '.join(self.command)!r} failed"
        if returncode is not None:
            message += f" with exit status {returncode}"
        if output.strip():
            message += f": {output.strip()}"
        super().__init__(message)


class OsExec:
    """Executes commands in the OS, optionally inside a root directory.

    Every command runs with ``LEFTHOOK=0`` in its environment so that git
    invoked from a hook does not trigger further lefthook hooks.
    """

    def __init__(self, root: str | None = None):
        self._root = root

    def set_root_path(self, root: str) -> None:
        """Set the directory in which subsequent commands run."""
        self._root = root

    def cmd(self, args: Sequence[str]) -> str:
        """Run a command and return its combined output with surrounding whitespace trimmed."""
        return self._run(args).strip()

    def cmd_lines(self, args: Sequence[str]) -> list[str]:
        """Run a command and return its trimmed combined output split by newline."""
        return self._run(args).strip().split("\n")

    def _run(self, args: Sequence[str]) -> str:
        if not args:
            raise ValueError("no command given")

        logger.debug("[lefthook] cmd: %s", list(args))
        env = {**os.environ, "LEFTHOOK": "0"}
        try:
            completed = subprocess.run(
                list(args),
                cwd=self._root or None,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as exc:
            logger.debug("[lefthook] err: %s", exc)
            raise GitCommandError(args, str(exc)) from exc

        logger.debug("[lefthook] dir: %s", self._root)
        logger.debug("[lefthook] out: %s", completed.stdout)
        if completed.returncode != 0:
            logger.debug("[lefthook] err: exit status %d", completed.returncode)
            raise GitCommandError(args, completed.stdout, completed.returncode)

        return completed.stdout
"""
Crucible Build - Blocking toolchain invocation
"""

import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from crucible.core.logger import log


@dataclass
class CommandResult:
    """Exit status plus combined stdout/stderr of one toolchain call."""
    command: list[str]
    exit_code: int
    output: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.command)


def run_command(
    cmd: str,
    args: Sequence[str],
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """
    Runs a command to completion, stderr merged into stdout.

    `env` is layered over the current process environment. There is no
    timeout: a hung toolchain blocks until the process is killed.
    Raises FileNotFoundError when `cmd` is not installed.
    """
    command = [cmd, *[str(a) for a in args]]
    where = f" in {cwd}" if cwd else ""
    log.step(f"Running {shlex.join(command)}{where}")

    child_env = None
    if env:
        child_env = {**os.environ, **env}

    completed = subprocess.run(
        command,
        cwd=cwd,
        env=child_env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
    )
    output = completed.stdout.decode("utf-8", errors="replace")
    return CommandResult(command=command, exit_code=completed.returncode, output=output)

"""Subprocess helpers shared by the hardware probes."""

from __future__ import annotations

from dataclasses import dataclass
import shutil
import subprocess
from typing import Sequence

from core.logging import logger

DEFAULT_TIMEOUT_S = 30.0


class ProbeError(RuntimeError):
    """A probe could not produce a reading."""


class ProbeTimeout(ProbeError):
    """A probe command did not finish within its timeout."""


class ToolNotFoundError(ProbeError):
    """The external tool backing a probe is not installed."""


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a finished command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


def find_tool(name: str) -> str | None:
    return shutil.which(name)


def run_command(
    args: Sequence[str],
    timeout_s: float = DEFAULT_TIMEOUT_S,
    *,
    check: bool = True,
) -> CommandResult:
    """Run a command and capture its output as text.

    Output is decoded as UTF-8 with undecodable bytes replaced by U+FFFD.

    Args:
        args: Command and arguments.
        timeout_s: Seconds to wait before the command is killed.
        check: Raise ``ProbeError`` on a non-zero exit status.

    Returns:
        Captured command result.

    Raises:
        ToolNotFoundError: The executable does not exist.
        ProbeTimeout: The command exceeded ``timeout_s``.
        ProbeError: The command exited non-zero and ``check`` is set.
    """

    cmd = tuple(str(arg) for arg in args)
    logger.debug("Running %s (timeout %.0fs)", " ".join(cmd), timeout_s)
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout_s,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(f"{cmd[0]} not found in PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise ProbeTimeout(f"{cmd[0]} timed out after {timeout_s:.0f}s") from exc

    result = CommandResult(
        args=cmd,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
    if check and result.returncode != 0:
        message = result.stderr.strip() or f"exit status {result.returncode}"
        raise ProbeError(f"{cmd[0]} failed: {message}")
    return result

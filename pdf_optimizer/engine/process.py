"""External process invocation for the optimizer and archiver binaries."""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one external command.

    A command that never started (missing binary, permission denied) and one
    that started and failed are kept apart for logging, but both mean there is
    no usable output.
    """

    command: tuple[str, ...]
    started: bool
    returncode: Optional[int] = None
    timed_out: bool = False
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.started and not self.timed_out and self.returncode == 0

    def describe(self) -> str:
        if not self.started:
            return f"could not start '{self.command[0]}'"
        if self.timed_out:
            return f"'{self.command[0]}' timed out"
        return f"'{self.command[0]}' exited with code {self.returncode}"


def run_process(
    cmd: Sequence[str],
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> ProcessResult:
    """Run a command to completion and report how it ended.

    Never raises for process-level failures; ``subprocess.run`` kills the child
    when ``timeout`` expires.
    """
    command = tuple(str(part) for part in cmd)
    try:
        result = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        stderr = exc.stderr or ""
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        logger.warning("Process timed out after %ss: %s", timeout, command[0])
        return ProcessResult(command=command, started=True, timed_out=True, stderr=stderr)
    except OSError as exc:
        logger.error("Process failed to start: %s (%s)", command[0], exc)
        return ProcessResult(command=command, started=False, stderr=str(exc))

    return ProcessResult(
        command=command,
        started=True,
        returncode=result.returncode,
        stderr=result.stderr or "",
    )


def is_command_available(name: str) -> bool:
    return shutil.which(name) is not None

"""Per-request working directories.

Each request gets one directory under the temp root, named
``pdf-optimizer-<ts36>-<hrtime36>-<rand36>``. The name alone keeps concurrent
requests apart; creation is exclusive, so a collision is retried instead of
being shared.
"""

from __future__ import annotations

import logging
import secrets
import shutil
import threading
import time
from pathlib import Path

from pdf_optimizer.core.utils import to_base36

logger = logging.getLogger(__name__)

DIR_PREFIX = "pdf-optimizer"
OUTPUT_SUBDIR = "optimized"
_MAX_CREATE_ATTEMPTS = 5


def make_workdir_name() -> str:
    parts = (
        DIR_PREFIX,
        to_base36(time.time_ns() // 1_000_000),
        to_base36(time.perf_counter_ns()),
        to_base36(secrets.randbits(52)),
    )
    return "-".join(parts)


class WorkingDirectory:
    """A request-scoped temp directory with an idempotent release.

    Usable as a context manager; ``release`` may also be handed to
    ``Response.call_on_close`` so removal happens after the body is sent.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._released = False

    @classmethod
    def create(cls, temp_root: Path) -> "WorkingDirectory":
        temp_root.mkdir(parents=True, exist_ok=True)
        for _ in range(_MAX_CREATE_ATTEMPTS):
            candidate = temp_root / make_workdir_name()
            try:
                candidate.mkdir()
            except FileExistsError:
                logger.warning("Working directory name collision: %s", candidate.name)
                continue
            logger.debug("Created working directory %s", candidate)
            return cls(candidate)
        raise FileExistsError(f"Could not create a unique working directory under {temp_root}")

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def released(self) -> bool:
        return self._released

    def output_dir(self) -> Path:
        out = self.path / OUTPUT_SUBDIR
        out.mkdir(exist_ok=True)
        return out

    def release(self) -> None:
        """Remove the directory tree. Safe to call more than once; never raises."""
        with self._lock:
            if self._released:
                return
            self._released = True

        try:
            shutil.rmtree(self.path)
            logger.info("Cleaned up: %s", self.path.name)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Cleanup error for %s: %s", self.path.name, e)

    def __enter__(self) -> "WorkingDirectory":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

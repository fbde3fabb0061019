"""Application configuration loading."""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from pdf_optimizer.core import utils

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_MAX_CONTENT_LENGTH = 1024 * 1024 * 1024  # 1 GiB
DEFAULT_PROCESS_TIMEOUT_SECONDS = 600.0
DEFAULT_MAX_WORKERS_CAP = 8


def _default_max_workers() -> int:
    return max(1, min(DEFAULT_MAX_WORKERS_CAP, utils.get_effective_cpu_count()))


@dataclass(frozen=True)
class RuntimeConfig:
    """Runtime configuration values consumed by the Flask app.

    Built once at process start and handed to ``create_app``; nothing below the
    factory reads the environment directly.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    temp_root: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH
    optimizer_command: str = "ps2pdf"
    archiver_command: str = "zip"
    max_workers: int = field(default_factory=_default_max_workers)
    process_timeout_seconds: float | None = DEFAULT_PROCESS_TIMEOUT_SECONDS
    pdf_precheck_enabled: bool = True
    log_level: str = "INFO"


def load_runtime_config() -> RuntimeConfig:
    """Load runtime configuration from the environment."""
    port = utils.env_int("PORT", DEFAULT_PORT)
    if not 0 < port < 65536:
        port = DEFAULT_PORT

    max_content_length = utils.env_int("MAX_CONTENT_LENGTH", DEFAULT_MAX_CONTENT_LENGTH)
    if max_content_length <= 0:
        max_content_length = DEFAULT_MAX_CONTENT_LENGTH

    # 0 (or below) disables the per-process timeout entirely.
    timeout = utils.env_float("PROCESS_TIMEOUT_SECONDS", DEFAULT_PROCESS_TIMEOUT_SECONDS)

    return RuntimeConfig(
        host=utils.env_str("HOST", DEFAULT_HOST),
        port=port,
        temp_root=Path(utils.env_str("TEMP_ROOT", tempfile.gettempdir())),
        max_content_length=max_content_length,
        optimizer_command=utils.env_str("OPTIMIZER_COMMAND", "ps2pdf"),
        archiver_command=utils.env_str("ARCHIVER_COMMAND", "zip"),
        max_workers=max(1, utils.env_int("OPTIMIZER_MAX_WORKERS", _default_max_workers())),
        process_timeout_seconds=timeout if timeout > 0 else None,
        pdf_precheck_enabled=utils.env_bool("PDF_PRECHECK_ENABLED", True),
        log_level=utils.env_str("LOG_LEVEL", "INFO").upper(),
    )

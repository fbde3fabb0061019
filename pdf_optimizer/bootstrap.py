"""Process-wide runtime bootstrap: logging and the startup config snapshot."""

from __future__ import annotations

import logging
import sys
import threading

from pdf_optimizer.config import RuntimeConfig
from pdf_optimizer.engine.process import is_command_available

logger = logging.getLogger(__name__)

_bootstrap_lock = threading.Lock()
_bootstrap_started = False

_BOX_LABEL_WIDTH = 26
_BOX_VALUE_WIDTH = 38
_BOX_INNER_WIDTH = _BOX_LABEL_WIDTH + _BOX_VALUE_WIDTH + 5


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stdout,
    )


def _truncate(value: object, width: int) -> str:
    text = str(value)
    if len(text) <= width:
        return text
    return text[: max(0, width - 3)] + "..."


def _box(title: str, rows: list[tuple[str, str]]) -> list[str]:
    title_border = "+" + "=" * _BOX_INNER_WIDTH + "+"
    row_border = "+" + "-" * (_BOX_LABEL_WIDTH + 2) + "+" + "-" * (_BOX_VALUE_WIDTH + 2) + "+"
    lines = [title_border, f"|{' ' + title + ' ':^{_BOX_INNER_WIDTH}}|", title_border, row_border]
    for label, value in rows:
        lines.append(
            f"| {_truncate(label, _BOX_LABEL_WIDTH):<{_BOX_LABEL_WIDTH}} "
            f"| {_truncate(value, _BOX_VALUE_WIDTH):<{_BOX_VALUE_WIDTH}} |"
        )
    lines.append(row_border)
    return lines


def _tool_label(command: str) -> str:
    return f"{command} ({'found' if is_command_available(command) else 'MISSING'})"


def log_effective_config(config: RuntimeConfig) -> None:
    timeout = config.process_timeout_seconds
    rows = [
        ("HOST", config.host),
        ("PORT", str(config.port)),
        ("TEMP_ROOT", str(config.temp_root)),
        ("MAX_CONTENT_LENGTH", f"{config.max_content_length / (1024 * 1024):.0f}MB"),
        ("OPTIMIZER_COMMAND", _tool_label(config.optimizer_command)),
        ("ARCHIVER_COMMAND", _tool_label(config.archiver_command)),
        ("OPTIMIZER_MAX_WORKERS", str(config.max_workers)),
        ("PROCESS_TIMEOUT_SECONDS", f"{timeout:g}" if timeout else "off"),
        ("PDF_PRECHECK_ENABLED", "yes" if config.pdf_precheck_enabled else "no"),
    ]
    logger.info("\n%s", "\n".join(_box("CONFIG SNAPSHOT (startup)", rows)))


def bootstrap_runtime(config: RuntimeConfig) -> None:
    """Configure logging and report the effective config once per process."""
    global _bootstrap_started
    with _bootstrap_lock:
        if _bootstrap_started:
            return

        configure_logging(config.log_level)
        log_effective_config(config)
        _bootstrap_started = True


def is_bootstrapped() -> bool:
    """Expose runtime bootstrap state for diagnostics/tests."""
    return _bootstrap_started

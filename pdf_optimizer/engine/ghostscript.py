"""Ghostscript (ps2pdf) invocation for PDF optimization."""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pdf_optimizer.core.utils import get_file_size_mb
from pdf_optimizer.engine import process

logger = logging.getLogger(__name__)


class CompressionSetting(Enum):
    """Client-facing quality choice and the -dPDFSETTINGS profile behind it."""

    BEST = ("best", "screen")
    MEDIUM = ("medium", "printer")
    LOW = ("low", "prepress")
    DEFAULT = ("default", "default")

    def __init__(self, label: str, profile: str) -> None:
        self.label = label
        self.profile = profile

    @classmethod
    def from_form(cls, raw: Optional[str]) -> "CompressionSetting":
        """Resolve a form value by exact label; anything else falls back to DEFAULT."""
        for setting in cls:
            if setting.label == raw:
                return setting
        return cls.DEFAULT


def build_optimizer_command(
    command: str,
    input_path: Path,
    output_path: Path,
    setting: CompressionSetting,
) -> List[str]:
    return [
        command,
        "-dBATCH",
        "-dNOPAUSE",
        "-dCompressFonts=true",
        f"-dPDFSETTINGS=/{setting.profile}",
        str(input_path),
        str(output_path),
    ]


def translate_ghostscript_error(stderr: str, return_code: Optional[int]) -> str:
    """Translate Ghostscript stderr to a short, user-facing reason.

    Also logs the full stderr for debugging purposes.
    """
    logger.error(f"Ghostscript failed (exit code {return_code}). Full error:\n{stderr}")

    stderr_lower = (stderr or "").lower()

    if "invalidfileaccess" in stderr_lower or "password" in stderr_lower:
        return "PDF is password-protected or locked. Please remove the password and try again."

    if "typecheck" in stderr_lower or "rangecheck" in stderr_lower:
        return "PDF has corrupted internal data. Try re-saving it from the original program."

    if any(x in stderr_lower for x in ["undefined", "ioerror", "syntaxerror", "eofread"]):
        return "PDF is damaged or corrupted. Please use a different copy of the file."

    return f"PDF processing failed (Ghostscript exit code {return_code}). The file may be corrupted."


def optimize_pdf(
    input_path: Path,
    output_path: Path,
    setting: CompressionSetting,
    command: str = "ps2pdf",
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> Tuple[bool, str]:
    """
    Optimize one PDF with ps2pdf at the given quality profile.

    Args:
        input_path: Staged upload
        output_path: Destination for the optimized PDF
        setting: Resolved compression setting
        command: Optimizer binary
        cwd: Working directory for the process (the request's staging area)
        timeout: Seconds before the process is killed; None waits forever

    Returns:
        (success, message) tuple where message contains reduction % or error
    """
    cmd = build_optimizer_command(command, input_path, output_path, setting)
    file_mb = get_file_size_mb(input_path) if input_path.exists() else 0.0

    logger.info(f"Optimizing {input_path.name} ({file_mb:.1f}MB) with /{setting.profile}")

    result = process.run_process(cmd, cwd=cwd or input_path.parent, timeout=timeout)

    if not result.started:
        return False, "The PDF optimizer is not available on this server."
    if result.timed_out:
        return False, "Timeout exceeded"
    if result.returncode != 0:
        return False, translate_ghostscript_error(result.stderr, result.returncode)

    if not output_path.exists():
        return False, "Output file not created"

    out_mb = get_file_size_mb(output_path)
    reduction = ((file_mb - out_mb) / file_mb) * 100 if file_mb > 0 else 0.0

    logger.info(f"Result: {file_mb:.1f}MB -> {out_mb:.1f}MB ({reduction:.1f}% reduction)")

    return True, f"{reduction:.1f}% reduction"

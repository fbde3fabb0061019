"""Bundle optimized files into a single zip with the external archiver."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from pdf_optimizer.engine import process

logger = logging.getLogger(__name__)

ARCHIVE_NAME = "optimized.zip"


def build_archive_command(command: str, archive_name: str, members: Sequence[Path]) -> List[str]:
    # -0: store only, the PDFs are already compressed. --junk-paths: flat entries.
    return [command, "-0", "--junk-paths", archive_name, *[str(m) for m in members]]


def create_archive(
    members: Sequence[Path],
    output_dir: Path,
    command: str = "zip",
    archive_name: str = ARCHIVE_NAME,
    timeout: Optional[float] = None,
) -> process.ProcessResult:
    """Write ``archive_name`` into ``output_dir`` holding every member.

    The caller decides what an empty member list means; this function always
    invokes the archiver.
    """
    cmd = build_archive_command(command, archive_name, members)
    result = process.run_process(cmd, cwd=output_dir, timeout=timeout)

    if result.ok:
        archive_path = output_dir / archive_name
        size = archive_path.stat().st_size if archive_path.exists() else 0
        logger.info("Archived %d file(s) into %s (%d bytes)", len(members), archive_name, size)
    else:
        logger.error("Archiver failed: %s\n%s", result.describe(), result.stderr)
    return result

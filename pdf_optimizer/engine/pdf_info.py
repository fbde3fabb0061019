"""Lightweight PDF inspection used for request logging."""

import logging
from pathlib import Path
from typing import Optional

from PyPDF2 import PdfReader

logger = logging.getLogger(__name__)


def count_pages(path: Path) -> Optional[int]:
    """Return the page count, or None when PyPDF2 cannot read the file.

    The optimizer decides whether a file is usable; a failed read here is only
    worth a warning.
    """
    try:
        with open(path, "rb") as handle:
            reader = PdfReader(handle, strict=False)
            if reader.is_encrypted:
                try:
                    reader.decrypt("")
                except Exception:
                    pass
            return len(reader.pages)
    except Exception as exc:
        logger.warning("PDF pre-check could not read %s (continuing): %s", path.name, exc)
        return None

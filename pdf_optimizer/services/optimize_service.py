"""Request orchestration for PDF optimization.

A request moves through intake, staging, optimization (fanned out over a
thread pool), archiving (batch only) and the response. The working directory
is released exactly once: by ``Response.call_on_close`` after the body has been
sent, or immediately when the pipeline fails before a response exists.
"""

from __future__ import annotations

import logging
import secrets
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Iterable, List, Optional, Sequence

from flask import Response, current_app, request, send_file
from werkzeug.datastructures import FileStorage

from pdf_optimizer.config import RuntimeConfig
from pdf_optimizer.core.exceptions import (
    ArchiveError,
    NoValidUploadsError,
    OptimizationError,
    TooManyFieldsError,
)
from pdf_optimizer.core.utils import get_file_size_mb
from pdf_optimizer.engine import archive, ghostscript, pdf_info
from pdf_optimizer.engine.ghostscript import CompressionSetting
from pdf_optimizer.services.workspace import WorkingDirectory

logger = logging.getLogger(__name__)

EXTENSION_KEY = "pdf_optimizer"
PDF_FIELD = "pdf"
COMPRESSION_FIELD = "compression"
PDF_MIMETYPES = frozenset({"application/pdf", "application/x-pdf"})
SINGLE_FORM_FIELD_LIMIT = 1
DEFAULT_FILENAME = "document.pdf"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Surrogate-Control": "no-store",
}


@dataclass(frozen=True)
class Upload:
    """One accepted file part, staged inside the working directory."""

    original_name: str
    content_type: str
    staged_path: Path


def clean_filename(raw: Optional[str], default: str = DEFAULT_FILENAME) -> str:
    """Reduce a client-supplied filename to a bare, printable basename.

    Unlike ``secure_filename`` this keeps non-ASCII names intact, since they
    end up as archive entries and download names the user will see.
    """
    if not raw:
        return default
    name = PureWindowsPath(PurePosixPath(raw).name).name
    name = "".join(ch for ch in name if ch.isprintable()).strip()
    if name in ("", ".", ".."):
        return default
    return name


def is_pdf_part(part: FileStorage) -> bool:
    return bool(part.filename) and part.mimetype in PDF_MIMETYPES


def accept_pdf_parts(parts: Iterable[FileStorage], request_id: str) -> List[FileStorage]:
    """Keep file parts that declare a PDF content type; drop the rest quietly."""
    accepted = []
    for part in parts:
        if is_pdf_part(part):
            accepted.append(part)
        else:
            logger.info(
                "[%s] Dropped upload %r (content type %s)",
                request_id,
                part.filename,
                part.mimetype or "none",
            )
    return accepted


def reserve_output_paths(names: Sequence[str], output_dir: Path) -> List[Path]:
    """Map each name to a distinct path in ``output_dir``.

    The first file with a given name keeps it; later ones get an underscore
    prefix (repeated until free), so duplicates never overwrite each other.
    The archive name is always taken.
    """
    taken: set[str] = {archive.ARCHIVE_NAME}
    if output_dir.exists():
        taken.update(p.name for p in output_dir.iterdir())
    paths = []
    for name in names:
        candidate = name
        while candidate in taken:
            candidate = f"_{candidate}"
        taken.add(candidate)
        paths.append(output_dir / candidate)
    return paths


def single_output_path(upload: Upload) -> Path:
    ext = Path(upload.original_name).suffix.replace("%", "") or ".pdf"
    staged = upload.staged_path
    return staged.with_name(f"{staged.name}.optimized{ext}")


def send_download(path: Path, download_name: str, mimetype: str) -> Response:
    """Stream ``path`` as an attachment with caching disabled end to end."""
    response = send_file(
        path,
        mimetype=mimetype,
        as_attachment=True,
        download_name=download_name,
        conditional=False,
        etag=False,
    )
    # Passthrough hands the file wrapper straight to the server and skips
    # Response.close, which is where the working directory gets released.
    response.direct_passthrough = False
    response.headers.update(NO_CACHE_HEADERS)
    return response


class Orchestrator:
    """Runs optimization requests against one immutable runtime config."""

    def __init__(self, config: RuntimeConfig) -> None:
        self.config = config

    def _stage(self, workdir: WorkingDirectory, parts: Sequence[FileStorage], request_id: str) -> List[Upload]:
        uploads = []
        for part in parts:
            staged_path = workdir.path / secrets.token_hex(16)
            part.save(staged_path)
            upload = Upload(
                original_name=clean_filename(part.filename),
                content_type=part.mimetype,
                staged_path=staged_path,
            )
            uploads.append(upload)

            size_mb = get_file_size_mb(staged_path)
            if self.config.pdf_precheck_enabled:
                pages = pdf_info.count_pages(staged_path)
                logger.info(
                    "[%s] Staged %s (%.1fMB, %s pages)",
                    request_id,
                    upload.original_name,
                    size_mb,
                    pages if pages is not None else "?",
                )
            else:
                logger.info("[%s] Staged %s (%.1fMB)", request_id, upload.original_name, size_mb)
        return uploads

    def _optimize_one(
        self,
        upload: Upload,
        output_path: Path,
        setting: CompressionSetting,
        request_id: str,
    ) -> tuple[Optional[Path], str]:
        # Ghostscript expands % in output names: write to the staged token
        # name, then move the result under the client's name.
        work_path = single_output_path(upload)
        try:
            ok, message = ghostscript.optimize_pdf(
                upload.staged_path,
                work_path,
                setting,
                command=self.config.optimizer_command,
                cwd=upload.staged_path.parent,
                timeout=self.config.process_timeout_seconds,
            )
            if ok and work_path != output_path:
                work_path.replace(output_path)
        except Exception as e:
            logger.exception("[%s] Unexpected error optimizing %s", request_id, upload.original_name)
            return None, str(e)

        if not ok:
            logger.warning("[%s] %s not optimized: %s", request_id, upload.original_name, message)
            return None, message
        return output_path, message

    def _fan_out(
        self,
        uploads: Sequence[Upload],
        targets: Sequence[Path],
        setting: CompressionSetting,
        request_id: str,
    ) -> List[Optional[Path]]:
        workers = max(1, min(self.config.max_workers, len(uploads)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"optimize-{request_id}") as executor:
            futures = [
                executor.submit(self._optimize_one, upload, target, setting, request_id)
                for upload, target in zip(uploads, targets)
            ]
            return [future.result()[0] for future in futures]

    def optimize_batch(self, parts: Sequence[FileStorage], setting: CompressionSetting, request_id: str) -> Response:
        """Optimize every part in parallel and return the successes as one zip."""
        if not parts:
            raise NoValidUploadsError.for_field(PDF_FIELD)

        start = time.time()
        workdir = WorkingDirectory.create(self.config.temp_root)
        try:
            uploads = self._stage(workdir, parts, request_id)
            output_dir = workdir.output_dir()
            targets = reserve_output_paths([u.original_name for u in uploads], output_dir)

            results = self._fan_out(uploads, targets, setting, request_id)
            successes = [path for path in results if path is not None]
            logger.info(
                "[%s] Optimized %d/%d file(s) with /%s",
                request_id,
                len(successes),
                len(uploads),
                setting.profile,
            )

            if not successes:
                raise ArchiveError.nothing_to_archive(len(uploads))

            zipped = archive.create_archive(
                successes,
                output_dir,
                command=self.config.archiver_command,
                timeout=self.config.process_timeout_seconds,
            )
            if not zipped.ok:
                raise ArchiveError.archiver_failed(zipped.describe())

            response = send_download(output_dir / archive.ARCHIVE_NAME, archive.ARCHIVE_NAME, "application/zip")
        except Exception:
            workdir.release()
            raise

        response.call_on_close(workdir.release)
        logger.info("[%s] Batch ready in %.2fs", request_id, time.time() - start)
        return response

    def optimize_single(self, part: Optional[FileStorage], setting: CompressionSetting, request_id: str) -> Response:
        """Optimize one part and return the PDF itself under its original name."""
        if part is None:
            raise NoValidUploadsError.for_field(PDF_FIELD)

        workdir = WorkingDirectory.create(self.config.temp_root)
        try:
            upload = self._stage(workdir, [part], request_id)[0]
            output_path, message = self._optimize_one(upload, single_output_path(upload), setting, request_id)
            if output_path is None:
                raise OptimizationError.for_file(upload.original_name, message)

            response = send_download(output_path, upload.original_name, "application/pdf")
        except Exception:
            workdir.release()
            raise

        response.call_on_close(workdir.release)
        return response


def get_orchestrator() -> Orchestrator:
    return current_app.extensions[EXTENSION_KEY]


def _new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def _count_form_fields() -> int:
    return len(list(request.form.items(multi=True)))


# Routes
def optimize_batch():
    """
    Optimize one or more uploaded PDFs and return them as optimized.zip.

    Accepts multipart/form-data with any number of 'pdf' file parts and an
    optional 'compression' field (best, medium, low). Files the optimizer
    rejects are left out of the archive; the request only fails when none
    succeed.
    """
    request_id = _new_request_id()
    parts = accept_pdf_parts(request.files.getlist(PDF_FIELD), request_id)
    setting = CompressionSetting.from_form(request.form.get(COMPRESSION_FIELD))
    logger.info("[%s] Batch request: %d PDF part(s), compression=%s", request_id, len(parts), setting.label)
    return get_orchestrator().optimize_batch(parts, setting, request_id)


def optimize_single():
    """
    Optimize a single uploaded PDF and return it directly.

    Accepts multipart/form-data with one 'pdf' file part and at most one other
    form field ('compression'). Any optimizer failure fails the request.
    """
    request_id = _new_request_id()
    field_count = _count_form_fields()
    if field_count > SINGLE_FORM_FIELD_LIMIT:
        raise TooManyFieldsError.for_count(field_count, SINGLE_FORM_FIELD_LIMIT)

    parts = accept_pdf_parts(request.files.getlist(PDF_FIELD), request_id)
    if len(parts) > 1:
        logger.warning("[%s] Single-file request carried %d PDFs; using the first", request_id, len(parts))
    setting = CompressionSetting.from_form(request.form.get(COMPRESSION_FIELD))
    logger.info("[%s] Single request: compression=%s", request_id, setting.label)
    return get_orchestrator().optimize_single(parts[0] if parts else None, setting, request_id)

"""Custom exceptions for PDF optimization requests.

Every exception carries the HTTP status the request should end with, so the
Flask error handlers can turn any of them into a response without a lookup
table. Messages are written for the person who uploaded the files.
"""

from typing import Optional


class PDFOptimizerError(Exception):
    """Base exception for all PDF optimizer errors."""

    error_type: str = "PDFOptimizerError"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ClientInputError(PDFOptimizerError):
    """The request itself is unusable; the client has to fix and resubmit."""

    error_type: str = "ClientInputError"
    status_code: int = 400


class NoValidUploadsError(ClientInputError):
    """No file part with a PDF content type was received."""

    error_type: str = "NoValidUploadsError"
    status_code: int = 404

    @staticmethod
    def for_field(field_name: str) -> "NoValidUploadsError":
        return NoValidUploadsError(
            f"No PDF files were received in the '{field_name}' field. "
            f"Only files uploaded as application/pdf are accepted."
        )


class TooManyFieldsError(ClientInputError):
    """Single-file uploads accept exactly one non-file form field."""

    error_type: str = "TooManyFieldsError"

    @staticmethod
    def for_count(count: int, limit: int) -> "TooManyFieldsError":
        return TooManyFieldsError(
            f"Too many form fields ({count}). This endpoint accepts at most {limit}."
        )


class OptimizationError(PDFOptimizerError):
    """The optimizer could not produce an output for a file.

    User-friendly message examples:
    - "'report.pdf' could not be optimized. The optimizer is not installed."
    - "'report.pdf' could not be optimized. PDF is damaged or corrupted."
    """

    error_type: str = "OptimizationError"

    @staticmethod
    def for_file(filename: str, detail: str = "") -> "OptimizationError":
        base_msg = f"'{filename}' could not be optimized."
        if detail:
            return OptimizationError(f"{base_msg} {detail}")
        return OptimizationError(base_msg)


class ArchiveError(PDFOptimizerError):
    """Optimized files could not be bundled into a single archive."""

    error_type: str = "ArchiveError"

    @staticmethod
    def nothing_to_archive(total: int) -> "ArchiveError":
        return ArchiveError(
            f"None of the {total} uploaded file(s) could be optimized, "
            f"so there is nothing to download."
        )

    @staticmethod
    def archiver_failed(detail: str) -> "ArchiveError":
        return ArchiveError(f"Optimized files could not be archived: {detail}")

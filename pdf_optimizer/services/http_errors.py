"""Error responses and Flask error handler registration."""

import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException, MethodNotAllowed, NotFound, RequestEntityTooLarge

from pdf_optimizer.core.exceptions import PDFOptimizerError

logger = logging.getLogger(__name__)


def create_error_response(error: Exception, status_code: int = 500):
    """Create a standardized JSON error response."""
    if isinstance(error, PDFOptimizerError):
        return jsonify({
            "success": False,
            "error": error.message,
            "error_type": error.error_type,
            "error_message": error.message,
        }), status_code

    if isinstance(error, HTTPException):
        message = error.description or error.name
        return jsonify({
            "success": False,
            "error": message,
            "error_type": type(error).__name__,
            "error_message": message,
        }), status_code

    return jsonify({
        "success": False,
        "error": "Internal server error",
        "error_type": "UnknownError",
        "error_message": "Internal server error",
    }), status_code


def handle_large_file(e):
    max_bytes = request.max_content_length or 0
    max_mb = int(max_bytes / (1024 * 1024))
    message = f"Upload too large (max {max_mb}MB)"
    logger.warning("413 %s %s: %s", request.method, request.path, message)
    return jsonify({
        "success": False,
        "error": message,
        "error_type": "FileTooLarge",
        "error_message": message,
    }), 413


def handle_http_exception(e):
    # Unsupported methods on known paths are reported like unknown paths.
    if isinstance(e, MethodNotAllowed):
        e = NotFound()
    if isinstance(e, NotFound):
        logger.info("404 %s %s", request.method, request.path)
    else:
        logger.warning("HTTP %s on %s %s: %s", e.code, request.method, request.path, e.description)
    return create_error_response(e, e.code or 400)


def handle_optimizer_error(e: PDFOptimizerError):
    if e.status_code >= 500:
        logger.error("%s on %s %s: %s", e.error_type, request.method, request.path, e.message)
    else:
        logger.info("%s on %s %s: %s", e.error_type, request.method, request.path, e.message)
    return create_error_response(e, e.status_code)


def handle_error(e):
    logger.exception("Unhandled error")
    return create_error_response(e, 500)


def register_error_handlers(app) -> None:
    """Register HTTP and framework error handlers."""
    app.register_error_handler(RequestEntityTooLarge, handle_large_file)
    app.register_error_handler(HTTPException, handle_http_exception)
    app.register_error_handler(PDFOptimizerError, handle_optimizer_error)
    app.register_error_handler(Exception, handle_error)

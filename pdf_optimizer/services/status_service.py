"""Upload form, health snapshot and response hardening."""

from datetime import datetime, timezone
from typing import Any, Dict

from flask import current_app, jsonify, render_template

from pdf_optimizer.engine.ghostscript import CompressionSetting
from pdf_optimizer.engine.process import is_command_available
from pdf_optimizer.services.optimize_service import COMPRESSION_FIELD, PDF_FIELD, get_orchestrator

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-Download-Options": "noopen",
    "X-DNS-Prefetch-Control": "off",
}


def build_health_snapshot() -> Dict[str, Any]:
    """Build a lightweight snapshot of tool availability and limits."""
    config = get_orchestrator().config
    optimizer_ok = is_command_available(config.optimizer_command)
    archiver_ok = is_command_available(config.archiver_command)

    return {
        "status": "healthy" if optimizer_ok and archiver_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "optimizer": {
            "available": optimizer_ok,
            "command": config.optimizer_command,
        },
        "archiver": {
            "available": archiver_ok,
            "command": config.archiver_command,
        },
        "storage": {
            "temp_root": str(config.temp_root),
        },
        "limits": {
            "max_content_length": config.max_content_length,
            "max_workers": config.max_workers,
            "process_timeout_seconds": config.process_timeout_seconds,
        },
    }


def apply_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


# Routes
def upload_form():
    """Serve the upload form."""
    settings = [s for s in CompressionSetting if s is not CompressionSetting.DEFAULT]
    return render_template(
        "index.html",
        settings=settings,
        pdf_field=PDF_FIELD,
        compression_field=COMPRESSION_FIELD,
        max_mb=int(current_app.config["MAX_CONTENT_LENGTH"] / (1024 * 1024)),
    )


def health():
    """Health check endpoint with tool availability."""
    return jsonify(build_health_snapshot())

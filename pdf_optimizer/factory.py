"""Flask app factory."""

from __future__ import annotations

from typing import Optional

from flask import Flask

from pdf_optimizer import bootstrap
from pdf_optimizer.config import RuntimeConfig, load_runtime_config
from pdf_optimizer.routes.api_routes import api_bp
from pdf_optimizer.routes.web_routes import web_bp
from pdf_optimizer.services import http_errors, status_service
from pdf_optimizer.services.optimize_service import EXTENSION_KEY, Orchestrator


def create_app(config: Optional[RuntimeConfig] = None) -> Flask:
    """Create and configure the Flask application."""
    runtime_config = config or load_runtime_config()

    app = Flask(__name__, template_folder="templates")
    app.config["RUNTIME_CONFIG"] = runtime_config
    app.config["MAX_CONTENT_LENGTH"] = runtime_config.max_content_length
    # Batch uploads may carry any number of parts; the body size cap bounds them.
    app.config["MAX_FORM_PARTS"] = None
    app.extensions[EXTENSION_KEY] = Orchestrator(runtime_config)

    app.register_blueprint(web_bp)
    app.register_blueprint(api_bp)
    http_errors.register_error_handlers(app)
    app.after_request(status_service.apply_security_headers)

    bootstrap.bootstrap_runtime(runtime_config)
    return app

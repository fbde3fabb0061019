"""Route blueprints."""

from pdf_optimizer.routes.api_routes import api_bp
from pdf_optimizer.routes.web_routes import web_bp

__all__ = ["api_bp", "web_bp"]

"""Web and health routes."""

from flask import Blueprint

from pdf_optimizer.services import status_service

web_bp = Blueprint("web", __name__)


@web_bp.get("/")
def upload_form():
    return status_service.upload_form()


@web_bp.get("/health")
def health():
    return status_service.health()

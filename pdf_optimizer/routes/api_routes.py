"""API routes."""

from flask import Blueprint

from pdf_optimizer.services import optimize_service

api_bp = Blueprint("api", __name__)

api_bp.add_url_rule(
    "/",
    endpoint="optimize_batch",
    view_func=optimize_service.optimize_batch,
    methods=["POST"],
)
api_bp.add_url_rule(
    "/single",
    endpoint="optimize_single",
    view_func=optimize_service.optimize_single,
    methods=["POST"],
)

# Overview: Flask API route for the dashboard summary.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth
from ..services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/summary")
@require_auth
def dashboard_summary_route():
    return jsonify(dashboard_service.get_summary(g.user_id))

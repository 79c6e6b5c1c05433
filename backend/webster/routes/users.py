# Overview: Flask API routes for the caller's own profile.

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..decorators import require_auth
from ..services import auth_service
from ..services.auth_service import UserValidationError


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/me")
@require_auth
def get_current_user_route():
    return jsonify(g.current_user.to_dict())


@users_bp.put("/me")
@require_auth
def update_current_user_route():
    """
    Update the caller's name and email.

    Body: {"name": "...", "email": "..."}
    """
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.update_profile(
            g.current_user,
            name=data.get("name"),
            email=data.get("email"),
        )
        return jsonify(user.to_dict())
    except UserValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update user profile")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for team member operations; parses input and returns JSON responses.

"""
Team Member Routes

Team members are the initials offered on pack check and scan-out forms.
They are scoped to the caller; initials are unique per caller.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..decorators import require_auth
from ..services import team_service
from ..services.ownership_service import AccessDeniedError
from ..validation import ConflictError, NotFoundError, ValidationError


team_bp = Blueprint("team", __name__, url_prefix="/api/team-members")


@team_bp.get("")
@require_auth
def list_team_members_route():
    """
    Query parameters:
    - active_only: true to hide inactive members (default: false)
    """
    active_only = request.args.get("active_only", "false").lower() == "true"
    members = team_service.list_team_members(g.user_id, active_only=active_only)
    return jsonify({
        "items": [m.to_dict() for m in members],
        "count": len(members),
    })


@team_bp.post("")
@require_auth
def create_team_member_route():
    """
    Request body:
    {
        "initials": "JD",        // required, 2-3 letters
        "full_name": "Jane Doe", // required
        "email": "...", "role": "..."
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        member = team_service.create_team_member(g.user_id, data)
        return jsonify(member.to_dict()), 201
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create team member")
        return jsonify({"error": "Internal server error"}), 500


@team_bp.put("/<int:member_id>")
@require_auth
def update_team_member_route(member_id: int):
    data = request.get_json(silent=True) or {}

    try:
        member = team_service.update_team_member(member_id, g.user_id, data)
        return jsonify(member.to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update team member")
        return jsonify({"error": "Internal server error"}), 500


@team_bp.delete("/<int:member_id>")
@require_auth
def delete_team_member_route(member_id: int):
    try:
        team_service.delete_team_member(member_id, g.user_id)
        return jsonify({"message": "Team member deleted"})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete team member")
        return jsonify({"error": "Internal server error"}), 500


@team_bp.post("/<int:member_id>/toggle")
@require_auth
def toggle_team_member_route(member_id: int):
    try:
        member = team_service.toggle_team_member_status(member_id, g.user_id)
        return jsonify(member.to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to toggle team member")
        return jsonify({"error": "Internal server error"}), 500

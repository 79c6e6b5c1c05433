# Overview: Flask API routes for single-medication operations.

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..decorators import require_auth
from ..services import medication_service
from ..services.ownership_service import AccessDeniedError
from ..validation import NotFoundError, ValidationError


medications_bp = Blueprint("medications", __name__, url_prefix="/api/medications")


@medications_bp.put("/<int:medication_id>")
@require_auth
def update_medication_route(medication_id: int):
    """
    Patch a medication.

    Sending "frequency" replaces all four time slots; the result must still
    have at least one slot > 0.
    """
    data = request.get_json(silent=True) or {}

    try:
        medication = medication_service.update_medication(medication_id, g.user_id, data)
        return jsonify(medication.to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update medication")
        return jsonify({"error": "Internal server error"}), 500


@medications_bp.delete("/<int:medication_id>")
@require_auth
def delete_medication_route(medication_id: int):
    try:
        medication_service.delete_medication(medication_id, g.user_id)
        return jsonify({"message": "Medication deleted"})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete medication")
        return jsonify({"error": "Internal server error"}), 500


@medications_bp.post("/<int:medication_id>/toggle")
@require_auth
def toggle_medication_route(medication_id: int):
    try:
        medication = medication_service.toggle_medication_status(medication_id, g.user_id)
        return jsonify(medication.to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to toggle medication")
        return jsonify({"error": "Internal server error"}), 500

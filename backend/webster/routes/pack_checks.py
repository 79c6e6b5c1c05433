# Overview: Flask API routes for pack check operations; parses input and returns JSON responses.

"""
Pack Check Routes

SECURITY: All routes require authentication. Listing and creation are
platform-wide unless SCOPE_PACK_CHECKS_TO_OWNER is set; preview and
exists always check customer ownership.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..decorators import require_auth
from ..services import pack_check_service
from ..services.ownership_service import AccessDeniedError
from ..validation import NotFoundError, ValidationError


pack_checks_bp = Blueprint("pack_checks", __name__, url_prefix="/api/pack-checks")


@pack_checks_bp.post("")
@require_auth
def create_pack_check_route():
    """
    Save a completed pack check.

    Request body:
    {
        "customer_id": 1,               // required
        "pharmacist_initials": "JD",    // required
        "webster_pack_id": "WP-001",    // required
        "pack_type": "blister_packs",   // optional, default blister_packs
        "notes": "...",                 // optional
        "status": "checked",            // optional, pending or checked
        "checked_medications": [
            {"medication_id": 3, "name": "...", "form": "tablet", "strength": "500mg",
             "morning": 1, "afternoon": 0, "evening": 0, "night": 0,
             "correct": true, "comment": ""}
        ]
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        pack_check = pack_check_service.create_pack_check(
            owner_user_id=g.user_id,
            customer_id=data.get("customer_id"),
            pharmacist_initials=data.get("pharmacist_initials"),
            webster_pack_id=data.get("webster_pack_id"),
            pack_type=data.get("pack_type"),
            notes=data.get("notes"),
            checked_medications=data.get("checked_medications"),
            status=data.get("status") or "checked",
        )
        return jsonify(pack_check.to_dict()), 201
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create pack check")
        return jsonify({"error": "Internal server error"}), 500


@pack_checks_bp.get("")
@require_auth
def list_pack_checks_route():
    """The 50 most recent pack checks with a customer summary (null if deleted)."""
    rows = pack_check_service.list_pack_checks(g.user_id)
    return jsonify({
        "items": [pack_check_service.to_listing_dict(pc, customer) for pc, customer in rows],
        "count": len(rows),
    })


@pack_checks_bp.get("/preview")
@require_auth
def preview_pack_check_route():
    """
    Check entries for a customer, one per (medication, time slot).

    Query parameters:
    - customer_id: required
    """
    customer_id = request.args.get("customer_id", type=int)
    if customer_id is None:
        return jsonify({"error": "customer_id is required"}), 400

    try:
        entries = pack_check_service.preview_check_entries(customer_id, g.user_id)
        groups = pack_check_service.group_by_time_slot(entries)
        return jsonify({
            "entries": [entry.to_dict() for entry in entries],
            "by_time_slot": {
                slot: [entry.to_dict() for entry in slot_entries]
                for slot, slot_entries in groups.items()
            },
        })
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403


@pack_checks_bp.get("/exists")
@require_auth
def pack_check_exists_route():
    """
    Whether a pack has been checked for a customer.

    Query parameters:
    - customer_id: required
    - webster_pack_id: required
    """
    customer_id = request.args.get("customer_id", type=int)
    webster_pack_id = (request.args.get("webster_pack_id") or "").strip()
    if customer_id is None or not webster_pack_id:
        return jsonify({"error": "customer_id and webster_pack_id are required"}), 400

    try:
        pack_check = pack_check_service.check_pack_exists(customer_id, webster_pack_id, g.user_id)
        return jsonify({
            "is_checked": pack_check is not None,
            "pack_check": pack_check.to_dict() if pack_check else None,
        })
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403

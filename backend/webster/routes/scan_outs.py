# Overview: Flask API routes for scan-out operations; parses input and returns JSON responses.

"""
Scan-Out Routes

Scanning out a pack that has no pack check answers 409 with
requires_confirmation=true. Resubmit with "acknowledge_unchecked": true
to record it anyway.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..decorators import require_auth
from ..services import scan_out_service
from ..services.ownership_service import AccessDeniedError
from ..services.scan_out_service import UncheckedPackError
from ..validation import NotFoundError, ValidationError


scan_outs_bp = Blueprint("scan_outs", __name__, url_prefix="/api/scan-outs")


@scan_outs_bp.post("")
@require_auth
def create_scan_out_route():
    """
    Request body:
    {
        "customer_id": 1,               // required
        "pharmacist_initials": "JD",    // required
        "webster_pack_id": "WP-001",    // required
        "pack_type": "blister_packs",   // optional
        "notes": "...",                 // optional
        "status": "scanned_out",        // optional, scanned_out or delivered
        "acknowledge_unchecked": false  // set after a 409 to confirm
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        scan_out = scan_out_service.create_scan_out(
            owner_user_id=g.user_id,
            customer_id=data.get("customer_id"),
            pharmacist_initials=data.get("pharmacist_initials"),
            webster_pack_id=data.get("webster_pack_id"),
            pack_type=data.get("pack_type"),
            notes=data.get("notes"),
            status=data.get("status"),
            acknowledge_unchecked=data.get("acknowledge_unchecked") is True,
        )
        return jsonify(scan_out.to_dict()), 201
    except UncheckedPackError as e:
        return jsonify({"error": str(e), "requires_confirmation": True}), 409
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create scan-out")
        return jsonify({"error": "Internal server error"}), 500


@scan_outs_bp.get("")
@require_auth
def list_scan_outs_route():
    """The caller's 50 most recent scan-outs with a customer summary."""
    rows = scan_out_service.list_scan_outs(g.user_id)
    return jsonify({
        "items": [scan_out_service.to_listing_dict(so, customer) for so, customer in rows],
        "count": len(rows),
    })


@scan_outs_bp.patch("/<int:scan_out_id>/status")
@require_auth
def update_scan_out_status_route(scan_out_id: int):
    """Body: {"status": "delivered"}"""
    data = request.get_json(silent=True) or {}

    try:
        scan_out = scan_out_service.update_scan_out_status(scan_out_id, g.user_id, data.get("status"))
        return jsonify(scan_out.to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update scan-out status")
        return jsonify({"error": "Internal server error"}), 500

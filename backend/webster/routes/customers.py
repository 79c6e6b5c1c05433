# Overview: Flask API routes for customer operations; parses input and returns JSON responses.

"""
Customer Routes

SECURITY: All routes require authentication. Customers are scoped to the
caller (g.user_id); another user's customer answers 403.

A customer's medications are listed and created here; single-medication
operations live in routes/medications.py.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..decorators import require_auth
from ..services import customer_service, medication_service
from ..services.ownership_service import AccessDeniedError
from ..validation import ConflictError, NotFoundError, ValidationError


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    """
    List the caller's customers, newest first.

    Query parameters:
    - search: substring over name, email, customer code, company, phone
    - status: active, in_hospital, disabled or all (default: all)
    """
    try:
        customers = customer_service.list_customers(
            g.user_id,
            search=request.args.get("search"),
            status=request.args.get("status"),
        )
        return jsonify({
            "items": [c.to_dict() for c in customers],
            "count": len(customers),
        })
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to list customers")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.post("")
@require_auth
def create_customer_route():
    """
    Create a customer.

    Request body:
    {
        "first_name": "Jane",          // required
        "last_name": "Doe",            // required
        "date_of_birth": "1950-03-14", // required
        "email": "jane@example.com",   // required
        "status": "active",            // required
        "customer_code": "...",        // optional, generated when blank
        "phone": "...", "address": "...", "company": "...", "notes": "..."
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        customer = customer_service.create_customer(g.user_id, data)
        return jsonify(customer.to_dict()), 201
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(customer_id, g.user_id)
        return jsonify(customer.to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    """Patch any writable customer field."""
    data = request.get_json(silent=True) or {}

    try:
        customer = customer_service.update_customer(customer_id, g.user_id, data)
        return jsonify(customer.to_dict())
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
        current_app.logger.exception("Failed to update customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer_route(customer_id: int):
    try:
        customer_service.delete_customer(customer_id, g.user_id)
        return jsonify({"message": "Customer deleted"})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<int:customer_id>/medications")
@require_auth
def list_customer_medications_route(customer_id: int):
    """
    List a customer's medications, newest first.

    Query parameters:
    - active_only: true to hide inactive medications (default: false)
    """
    active_only = request.args.get("active_only", "false").lower() == "true"

    try:
        medications = medication_service.list_for_customer(
            customer_id, g.user_id, active_only=active_only
        )
        return jsonify({
            "items": [m.to_dict() for m in medications],
            "count": len(medications),
        })
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403


@customers_bp.post("/<int:customer_id>/medications")
@require_auth
def create_customer_medication_route(customer_id: int):
    """
    Add a medication to a customer.

    Request body:
    {
        "name": "Metformin",                 // required
        "form": "tablet",                    // required
        "strength": "500mg",                 // required
        "start_date": "2024-01-01",          // required
        "frequency": {"morning": 1, "evening": 1},  // at least one slot > 0
        "end_date": "...", "instructions": "..."
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        medication = medication_service.create_medication(customer_id, g.user_id, data)
        return jsonify(medication.to_dict()), 201
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create medication")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Service-layer operations for customers; encapsulates business logic and database work.

"""
Customer Service

OWNERSHIP: Customers are scoped to the owning user via owner_user_id.

CUSTOMER CODES: customer_code is the human-facing id printed on packs.
It is generated when the caller leaves it blank:

    CUST-<epoch milliseconds in base 36>-<6 random base 36 chars>

upper-cased. Uniqueness is checked on create and on code change. By
default the lookups are NOT filtered by owner (legacy behavior):
- create fails only when the first record holding the code belongs to
  the caller; a code held by another owner is accepted
- update fails when any other record, of any owner, holds the code
Set STRICT_CUSTOMER_CODE_SCOPE to check the caller's own records only.

DELETE: Hard delete. Medications, pack checks and scan-outs are left in
place unless CASCADE_CUSTOMER_DELETE is set.
"""

import secrets
import time

from flask import current_app

from ..extensions import db
from ..models import Customer, Medication, PackCheck, ScanOut, CUSTOMER_STATUSES
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    require_choice,
    validate_payload,
)
from .ownership_service import get_owned
from webster.time_utils import utcnow


_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_code", "first_name", "last_name", "date_of_birth", "email",
        "phone", "address", "company", "notes", "status",
    },
    required_on_create={"first_name", "last_name", "date_of_birth", "email", "status"},
)


class CustomerNotFoundError(NotFoundError):
    """Raised when a customer is not found."""
    pass


class DuplicateCustomerIdError(ConflictError):
    """Raised when a customer code is already taken."""
    pass


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_customer_code() -> str:
    """Generate a CUST-<ts36>-<rand6> customer code."""
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"CUST-{timestamp}-{random_part}".upper()


def _strict_code_scope() -> bool:
    return bool(current_app.config.get("STRICT_CUSTOMER_CODE_SCOPE", False))


def _code_taken_on_create(owner_user_id: int, code: str) -> bool:
    if _strict_code_scope():
        return db.session.query(Customer.id).filter(
            Customer.owner_user_id == owner_user_id,
            Customer.customer_code == code,
        ).first() is not None

    # Legacy: only the first record with this code is inspected
    existing = db.session.query(Customer).filter(
        Customer.customer_code == code,
    ).order_by(Customer.id.asc()).first()
    return existing is not None and existing.owner_user_id == owner_user_id


def _code_taken_on_update(customer: Customer, code: str) -> bool:
    query = db.session.query(Customer.id).filter(
        Customer.customer_code == code,
        Customer.id != customer.id,
    )
    if _strict_code_scope():
        query = query.filter(Customer.owner_user_id == customer.owner_user_id)
    return query.first() is not None


def _validate_status(patch: dict) -> None:
    if "status" in patch:
        require_choice(patch["status"], CUSTOMER_STATUSES, "status")


def get_customer(customer_id: int, owner_user_id: int) -> Customer:
    """
    Get a customer owned by the caller.

    Raises:
        CustomerNotFoundError: If the customer does not exist
        AccessDeniedError: If it belongs to another user
    """
    return get_owned(
        Customer,
        customer_id,
        owner_user_id,
        not_found=CustomerNotFoundError,
        label="Customer",
    )


def list_customers(
    owner_user_id: int,
    *,
    search: str | None = None,
    status: str | None = None,
) -> list[Customer]:
    """
    List the caller's customers.

    Args:
        owner_user_id: Caller
        search: Case-insensitive substring over first name, last name,
            "first last", email, customer code and company, or a plain
            substring of the phone number
        status: Exact status filter; None or "all" disables it

    Returns:
        Customers, newest first (no pagination)
    """
    query = db.session.query(Customer).filter(Customer.owner_user_id == owner_user_id)

    if search:
        term = search.strip()
        if term:
            full_name = Customer.first_name + " " + Customer.last_name
            query = query.filter(
                db.or_(
                    Customer.first_name.icontains(term, autoescape=True),
                    Customer.last_name.icontains(term, autoescape=True),
                    full_name.icontains(term, autoescape=True),
                    Customer.email.icontains(term, autoescape=True),
                    Customer.customer_code.icontains(term, autoescape=True),
                    Customer.company.icontains(term, autoescape=True),
                    Customer.phone.contains(term, autoescape=True),
                )
            )

    status = validate_status_filter(status)
    if status and status != "all":
        query = query.filter(Customer.status == status)

    return query.order_by(Customer.created_at.desc(), Customer.id.desc()).all()


def create_customer(owner_user_id: int, payload: dict) -> Customer:
    """
    Create a customer for the caller.

    Raises:
        ValidationError: If fields are missing or malformed
        DuplicateCustomerIdError: If the code is already taken
    """
    payload = dict(payload or {})
    code = payload.get("customer_code")
    if code is None or (isinstance(code, str) and not code.strip()):
        payload["customer_code"] = generate_customer_code()

    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    _validate_status(patch)

    if _code_taken_on_create(owner_user_id, patch["customer_code"]):
        raise DuplicateCustomerIdError("Customer ID already exists")

    now = utcnow()
    customer = Customer(owner_user_id=owner_user_id, created_at=now, updated_at=now, **patch)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(customer_id: int, owner_user_id: int, payload: dict) -> Customer:
    """
    Patch a customer owned by the caller.

    Raises:
        CustomerNotFoundError / AccessDeniedError: See get_customer
        ValidationError: If fields are malformed
        DuplicateCustomerIdError: If the new code is already taken
    """
    customer = get_customer(customer_id, owner_user_id)

    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    _validate_status(patch)

    new_code = patch.get("customer_code")
    if new_code is not None and new_code != customer.customer_code:
        if _code_taken_on_update(customer, new_code):
            raise DuplicateCustomerIdError("Customer ID already exists")

    for key, value in patch.items():
        setattr(customer, key, value)
    customer.updated_at = utcnow()

    db.session.commit()
    return customer


def delete_customer(customer_id: int, owner_user_id: int) -> None:
    """
    Hard-delete a customer owned by the caller.

    Dependent medications, pack checks and scan-outs are only removed when
    CASCADE_CUSTOMER_DELETE is enabled.
    """
    customer = get_customer(customer_id, owner_user_id)

    if current_app.config.get("CASCADE_CUSTOMER_DELETE", False):
        _delete_dependents(customer.id)

    db.session.delete(customer)
    db.session.commit()


def _delete_dependents(customer_id: int) -> None:
    medications = db.session.query(Medication).filter(Medication.customer_id == customer_id).delete(
        synchronize_session=False
    )
    # Items go through the ORM cascade on PackCheck.items
    pack_checks = db.session.query(PackCheck).filter(PackCheck.customer_id == customer_id).all()
    for pack_check in pack_checks:
        db.session.delete(pack_check)
    scan_outs = db.session.query(ScanOut).filter(ScanOut.customer_id == customer_id).delete(
        synchronize_session=False
    )
    current_app.logger.info(
        "Cascade delete for customer %s: %s medications, %s pack checks, %s scan-outs",
        customer_id, medications, len(pack_checks), scan_outs,
    )


def validate_status_filter(status: str | None) -> str | None:
    """Normalize a status query parameter ("" -> None)."""
    if status is None or status == "":
        return None
    if status not in CUSTOMER_STATUSES + ("all",):
        raise ValidationError(f"status must be one of: {', '.join(CUSTOMER_STATUSES + ('all',))}")
    return status

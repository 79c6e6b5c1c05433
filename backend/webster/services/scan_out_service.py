# Overview: Service-layer operations for scan-outs; encapsulates business logic and database work.

"""
Scan-Out Service

A scan-out records a Webster pack leaving the pharmacy. Its status then
moves from scanned_out to delivered.

UNCHECKED PACKS: Scanning out a pack with no pack check for the same
(customer, pack id) is allowed, but only after the caller acknowledges it.
Without acknowledge_unchecked the call raises UncheckedPackError and
nothing is written.

OWNERSHIP: Scan-outs have no owner column. They are owned through their
customer; a scan-out whose customer was deleted belongs to nobody.
"""

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Customer, ScanOut, PACK_TYPES, SCAN_OUT_STATUSES
from ..validation import ConflictError, NotFoundError, ValidationError, normalize_initials, require_choice
from .customer_service import get_customer
from .ownership_service import require_owner
from .pack_check_service import check_pack_exists
from webster.time_utils import utcnow


SCAN_OUT_LIST_LIMIT = 50


class ScanOutNotFoundError(NotFoundError):
    """Raised when a scan-out is not found."""
    pass


class UncheckedPackError(ConflictError):
    """Raised when a pack with no pack check is scanned out unacknowledged."""
    pass


def create_scan_out(
    *,
    owner_user_id: int,
    customer_id: int,
    pharmacist_initials: str,
    webster_pack_id: str,
    pack_type: str | None = None,
    notes: str | None = None,
    status: str | None = None,
    acknowledge_unchecked: bool = False,
) -> ScanOut:
    """
    Record a pack leaving the pharmacy.

    Raises:
        CustomerNotFoundError / AccessDeniedError: Customer check
        InvalidInitialsFormatError / ValidationError: Malformed input
        UncheckedPackError: No pack check exists and the caller did not
            acknowledge it

    The customer may be in any status; restricting the form to active
    customers is left to the client (GET /api/customers?status=active).
    """
    if isinstance(customer_id, bool) or not isinstance(customer_id, int):
        raise ValidationError("customer_id must be an integer")
    customer = get_customer(customer_id, owner_user_id)

    initials = normalize_initials(pharmacist_initials)
    if not isinstance(webster_pack_id, str) or not webster_pack_id.strip():
        raise ValidationError("webster_pack_id is required")
    pack_id = webster_pack_id.strip()
    if len(pack_id) > 128:
        raise ValidationError("webster_pack_id exceeds max length 128")
    pack_type = require_choice(pack_type or "blister_packs", PACK_TYPES, "pack_type")
    status = require_choice(status or "scanned_out", SCAN_OUT_STATUSES, "status")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")

    if not acknowledge_unchecked and check_pack_exists(customer.id, pack_id, owner_user_id) is None:
        raise UncheckedPackError("This pack has not been checked yet")

    now = utcnow()
    scan_out = ScanOut(
        customer_id=customer.id,
        pharmacist_initials=initials,
        webster_pack_id=pack_id,
        pack_type=pack_type,
        notes=(notes or "").strip() or None,
        status=status,
        created_at=now,
        updated_at=now,
    )
    db.session.add(scan_out)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Scan-out %s recorded for customer %s pack %s (%s%s)",
        scan_out.id, customer.id, pack_id, status,
        ", unchecked" if acknowledge_unchecked else "",
    )
    return scan_out


def list_scan_outs(owner_user_id: int, *, limit: int = SCAN_OUT_LIST_LIMIT) -> list[tuple[ScanOut, Customer]]:
    """The caller's most recent scan-outs with their customer, newest first."""
    return db.session.query(ScanOut, Customer).join(
        Customer, Customer.id == ScanOut.customer_id
    ).filter(
        Customer.owner_user_id == owner_user_id
    ).order_by(ScanOut.created_at.desc(), ScanOut.id.desc()).limit(limit).all()


def get_scan_out(scan_out_id: int, owner_user_id: int) -> ScanOut:
    """
    Load a scan-out owned (through its customer) by the caller.

    A scan-out whose customer no longer exists is denied.
    """
    scan_out = db.session.get(ScanOut, scan_out_id)
    if scan_out is None:
        raise ScanOutNotFoundError("Scan-out not found")
    customer = db.session.get(Customer, scan_out.customer_id)
    require_owner(
        customer.owner_user_id if customer else None,
        owner_user_id,
        label="Scan-out",
        record_id=scan_out_id,
    )
    return scan_out


def update_scan_out_status(scan_out_id: int, owner_user_id: int, status: str) -> ScanOut:
    """Set the delivery status. Either value is accepted in either direction."""
    scan_out = get_scan_out(scan_out_id, owner_user_id)
    status = require_choice(status, SCAN_OUT_STATUSES, "status")

    previous = scan_out.status
    scan_out.status = status
    scan_out.updated_at = utcnow()
    db.session.commit()

    current_app.logger.info("Scan-out %s status %s -> %s", scan_out.id, previous, status)
    return scan_out


def count_awaiting_delivery(owner_user_id: int) -> int:
    return db.session.query(ScanOut).join(
        Customer, Customer.id == ScanOut.customer_id
    ).filter(
        Customer.owner_user_id == owner_user_id,
        ScanOut.status == "scanned_out",
    ).count()


def to_listing_dict(scan_out: ScanOut, customer: Customer | None) -> dict:
    data = scan_out.to_dict()
    data["customer"] = customer.summary_dict() if customer else None
    return data

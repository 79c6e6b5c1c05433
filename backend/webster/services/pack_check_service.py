# Overview: Service-layer operations for pack checks; encapsulates business logic and database work.

"""
Pack Check Service

A pack check records a pharmacist verifying one Webster pack against the
customer's medications. The check is built in three client-side steps
(see pack_check_wizard.py) and persisted with a single insert here.

FAN-OUT: Every medication with a positive dose in a time slot yields one
check entry per slot. A medication taken morning and evening yields two
independent entries. Entries default to correct=True with an empty
comment.

VISIBILITY: By default every authenticated user can list and create
checks for any customer (legacy behavior). Set SCOPE_PACK_CHECKS_TO_OWNER
to restrict both to the caller's customers.
"""

from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Customer, Medication, PackCheck, PackCheckItem, PACK_TYPES, PACK_CHECK_STATUSES
from ..validation import (
    TIME_SLOTS,
    ValidationError,
    normalize_initials,
    require_choice,
)
from .customer_service import CustomerNotFoundError, get_customer
from . import medication_service
from webster.time_utils import utcnow


PACK_CHECK_LIST_LIMIT = 50


@dataclass
class CheckEntry:
    """One (medication, time slot) line reviewed during a pack check."""
    medication_id: int
    name: str
    form: str
    strength: str
    time_slot: str
    quantity: int
    correct: bool = True
    comment: str = ""

    def slot_doses(self) -> dict:
        """Dose columns with only this entry's slot filled in."""
        return {slot: (self.quantity if slot == self.time_slot else 0) for slot in TIME_SLOTS}

    def to_dict(self) -> dict:
        return {
            "medication_id": self.medication_id,
            "name": self.name,
            "form": self.form,
            "strength": self.strength,
            "time_slot": self.time_slot,
            "quantity": self.quantity,
            **self.slot_doses(),
            "correct": self.correct,
            "comment": self.comment,
        }

    def to_item(self) -> dict:
        """Persisted projection: drops time_slot and quantity."""
        return {
            "medication_id": self.medication_id,
            "name": self.name,
            "form": self.form,
            "strength": self.strength,
            **self.slot_doses(),
            "correct": self.correct,
            "comment": self.comment,
        }


def expand_check_entries(medications: list[Medication]) -> list[CheckEntry]:
    """
    Fan medications out into per-slot check entries.

    Order: medication order as given, then morning, afternoon, evening,
    night within a medication. Slots that are NULL or 0 produce nothing.
    """
    entries: list[CheckEntry] = []
    for med in medications:
        for slot in TIME_SLOTS:
            quantity = getattr(med, slot)
            if quantity and quantity > 0:
                entries.append(CheckEntry(
                    medication_id=med.id,
                    name=med.name,
                    form=med.form,
                    strength=med.strength,
                    time_slot=slot,
                    quantity=quantity,
                ))
    return entries


def project_check_entries(entries: list[CheckEntry]) -> list[dict]:
    return [entry.to_item() for entry in entries]


def group_by_time_slot(entries: list[CheckEntry]) -> dict[str, list[CheckEntry]]:
    """Bucket entries into the four time slots, always in fixed slot order."""
    groups: dict[str, list[CheckEntry]] = {slot: [] for slot in TIME_SLOTS}
    for entry in entries:
        groups[entry.time_slot].append(entry)
    return groups


def preview_check_entries(customer_id: int, owner_user_id: int) -> list[CheckEntry]:
    """Fan-out entries for a customer owned by the caller."""
    medications = medication_service.list_for_customer(customer_id, owner_user_id)
    return expand_check_entries(medications)


def _scoped_to_owner() -> bool:
    return bool(current_app.config.get("SCOPE_PACK_CHECKS_TO_OWNER", False))


def _require_text(value, field_name: str, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{field_name} exceeds max length {max_length}")
    return value


def _optional_text(value, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value.strip() or None


def _optional_dose(value, field_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    if value < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return value


def _validate_item(raw, index: int) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError(f"checked_medications[{index}] must be an object")

    medication_id = raw.get("medication_id")
    if isinstance(medication_id, bool) or not isinstance(medication_id, int):
        raise ValidationError(f"checked_medications[{index}].medication_id must be an integer")

    correct = raw.get("correct")
    if not isinstance(correct, bool):
        raise ValidationError(f"checked_medications[{index}].correct must be true or false")

    item = {
        "medication_id": medication_id,
        "name": _require_text(raw.get("name"), f"checked_medications[{index}].name", 255),
        "form": _require_text(raw.get("form"), f"checked_medications[{index}].form", 16),
        "strength": _require_text(raw.get("strength"), f"checked_medications[{index}].strength", 64),
        "correct": correct,
        "comment": _optional_text(raw.get("comment"), f"checked_medications[{index}].comment"),
    }
    for slot in TIME_SLOTS:
        item[slot] = _optional_dose(raw.get(slot), f"checked_medications[{index}].{slot}")
    return item


def create_pack_check(
    *,
    owner_user_id: int,
    customer_id: int,
    pharmacist_initials: str,
    webster_pack_id: str,
    pack_type: str | None = None,
    notes: str | None = None,
    checked_medications: list | None = None,
    status: str = "checked",
) -> PackCheck:
    """
    Persist a pack check and its checked medications in one commit.

    Args:
        owner_user_id: Caller (used for the customer check when pack checks
            are scoped to owners)
        customer_id: Customer the pack belongs to
        pharmacist_initials: Initials attested on the check (2-3 letters)
        webster_pack_id: Scanned or typed pack identifier
        pack_type: blister_packs (default) or sachet_rolls
        notes: Optional free text
        checked_medications: Projected entries (see CheckEntry.to_item)
        status: pending or checked

    Returns:
        Created PackCheck

    Raises:
        ValidationError: Malformed input
        CustomerNotFoundError: Unknown customer
        AccessDeniedError: Customer owned by someone else (scoped mode only)
    """
    if isinstance(customer_id, bool) or not isinstance(customer_id, int):
        raise ValidationError("customer_id must be an integer")

    if _scoped_to_owner():
        get_customer(customer_id, owner_user_id)
    elif db.session.get(Customer, customer_id) is None:
        raise CustomerNotFoundError("Customer not found")

    initials = normalize_initials(pharmacist_initials)
    pack_id = _require_text(webster_pack_id, "webster_pack_id", 128)
    pack_type = require_choice(pack_type or "blister_packs", PACK_TYPES, "pack_type")
    status = require_choice(status, PACK_CHECK_STATUSES, "status")

    if checked_medications is None:
        checked_medications = []
    if not isinstance(checked_medications, list):
        raise ValidationError("checked_medications must be a list")
    items = [_validate_item(raw, i) for i, raw in enumerate(checked_medications)]

    now = utcnow()
    pack_check = PackCheck(
        customer_id=customer_id,
        pharmacist_initials=initials,
        webster_pack_id=pack_id,
        pack_type=pack_type,
        notes=_optional_text(notes, "notes"),
        status=status,
        created_at=now,
        updated_at=now,
    )
    for position, item in enumerate(items):
        pack_check.items.append(PackCheckItem(position=position, **item))

    db.session.add(pack_check)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Pack check %s saved for customer %s pack %s (%s items, %s incorrect)",
        pack_check.id, customer_id, pack_id, len(items),
        sum(1 for item in items if not item["correct"]),
    )
    return pack_check


def list_pack_checks(owner_user_id: int, *, limit: int = PACK_CHECK_LIST_LIMIT) -> list[tuple[PackCheck, Customer | None]]:
    """
    Most recent pack checks with their customer (None if deleted).

    Platform-wide unless SCOPE_PACK_CHECKS_TO_OWNER is set.
    """
    query = db.session.query(PackCheck, Customer).outerjoin(
        Customer, Customer.id == PackCheck.customer_id
    )
    if _scoped_to_owner():
        query = query.filter(Customer.owner_user_id == owner_user_id)

    return query.order_by(PackCheck.created_at.desc(), PackCheck.id.desc()).limit(limit).all()


def check_pack_exists(customer_id: int, webster_pack_id: str, owner_user_id: int) -> PackCheck | None:
    """
    Return the first pack check for this (customer, pack id), or None.

    Raises CustomerNotFoundError / AccessDeniedError if the caller does not
    own the customer.
    """
    get_customer(customer_id, owner_user_id)

    return db.session.query(PackCheck).filter(
        PackCheck.customer_id == customer_id,
        PackCheck.webster_pack_id == (webster_pack_id or "").strip(),
    ).order_by(PackCheck.id.asc()).first()


def count_recent_pack_checks(owner_user_id: int, since) -> int:
    query = db.session.query(PackCheck).filter(PackCheck.created_at >= since)
    if _scoped_to_owner():
        query = query.join(Customer, Customer.id == PackCheck.customer_id).filter(
            Customer.owner_user_id == owner_user_id
        )
    return query.count()


def to_listing_dict(pack_check: PackCheck, customer: Customer | None) -> dict:
    data = pack_check.to_dict()
    data["customer"] = customer.summary_dict() if customer else None
    return data


# Overview: Service-layer operations for medications; encapsulates business logic and database work.

"""
Medication Service

Medications belong to one customer and one owning user. Listing and
creation are ownership-checked through the parent customer; update,
delete and toggle check the medication's own owner.

FREQUENCY: Clients send {"frequency": {"morning": 1, "evening": 2}}.
Each slot is an optional non-negative integer and at least one slot must
be > 0, on create and on every update that touches the frequency.
Sending a frequency object replaces all four slots.
"""

from ..extensions import db
from ..models import Medication, MEDICATION_FORMS
from ..validation import (
    TIME_SLOTS,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_medication_dates,
    enforce_rules_medication_frequency,
    require_choice,
    validate_payload,
)
from .customer_service import get_customer
from .ownership_service import get_owned
from webster.time_utils import utcnow


MEDICATION_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "form", "strength", "instructions", "start_date", "end_date", "is_active",
        *TIME_SLOTS,
    },
    required_on_create={"name", "form", "strength", "start_date"},
)


class MedicationNotFoundError(NotFoundError):
    """Raised when a medication is not found."""
    pass


def _flatten_frequency(payload: dict | None) -> dict:
    """Move frequency.{slot} keys to top-level slot columns."""
    payload = dict(payload or {})
    if "frequency" not in payload:
        return payload

    frequency = payload.pop("frequency")
    if frequency is None:
        frequency = {}
    if not isinstance(frequency, dict):
        raise ValidationError("frequency must be an object")

    unknown = set(frequency) - set(TIME_SLOTS)
    if unknown:
        raise ValidationError(f"Unknown frequency slot: {', '.join(sorted(unknown))}")

    for slot in TIME_SLOTS:
        payload[slot] = frequency.get(slot)
    return payload


def get_medication(medication_id: int, owner_user_id: int) -> Medication:
    return get_owned(
        Medication,
        medication_id,
        owner_user_id,
        not_found=MedicationNotFoundError,
        label="Medication",
    )


def list_for_customer(customer_id: int, owner_user_id: int, *, active_only: bool = False) -> list[Medication]:
    """
    List a customer's medications, newest first.

    Raises CustomerNotFoundError / AccessDeniedError if the caller does not
    own the customer.
    """
    get_customer(customer_id, owner_user_id)

    query = db.session.query(Medication).filter(Medication.customer_id == customer_id)
    if active_only:
        query = query.filter(Medication.is_active.is_(True))
    return query.order_by(Medication.created_at.desc(), Medication.id.desc()).all()


def create_medication(customer_id: int, owner_user_id: int, payload: dict) -> Medication:
    """
    Create a medication for a customer owned by the caller.

    Raises:
        CustomerNotFoundError / AccessDeniedError: Parent customer check
        InvalidFrequencyError: No slot has a positive dose
        ValidationError: Other malformed fields
    """
    customer = get_customer(customer_id, owner_user_id)

    payload = _flatten_frequency(payload)
    payload.pop("is_active", None)  # New medications always start active

    patch = validate_payload(model=Medication, payload=payload, policy=MEDICATION_POLICY, partial=False)
    require_choice(patch["form"], MEDICATION_FORMS, "form")
    enforce_rules_medication_frequency(patch)
    enforce_rules_medication_dates(patch)

    now = utcnow()
    medication = Medication(
        owner_user_id=owner_user_id,
        customer_id=customer.id,
        is_active=True,
        created_at=now,
        updated_at=now,
        **patch,
    )
    db.session.add(medication)
    db.session.commit()
    return medication


def update_medication(medication_id: int, owner_user_id: int, payload: dict) -> Medication:
    """Patch a medication owned by the caller."""
    medication = get_medication(medication_id, owner_user_id)

    payload = _flatten_frequency(payload)
    patch = validate_payload(model=Medication, payload=payload, policy=MEDICATION_POLICY, partial=True)

    if "form" in patch:
        require_choice(patch["form"], MEDICATION_FORMS, "form")

    merged = {
        "start_date": medication.start_date,
        "end_date": medication.end_date,
        **medication.frequency(),
        **patch,
    }
    enforce_rules_medication_frequency(merged)
    enforce_rules_medication_dates(merged)

    for key, value in patch.items():
        setattr(medication, key, value)
    medication.updated_at = utcnow()

    db.session.commit()
    return medication


def delete_medication(medication_id: int, owner_user_id: int) -> None:
    medication = get_medication(medication_id, owner_user_id)
    db.session.delete(medication)
    db.session.commit()


def toggle_medication_status(medication_id: int, owner_user_id: int) -> Medication:
    """Flip is_active and stamp updated_at; nothing else changes."""
    medication = get_medication(medication_id, owner_user_id)
    medication.is_active = not medication.is_active
    medication.updated_at = utcnow()
    db.session.commit()
    return medication

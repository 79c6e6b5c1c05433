from __future__ import annotations

from ..extensions import db
from webster.time_utils import to_iso_date, to_utc_z, utcnow


MEDICATION_FORMS = ("tablet", "capsule", "liquid", "injection", "cream", "inhaler", "patch", "other")


class Medication(db.Model):
    """
    Medication prescribed to a customer.

    Dose counts are stored per time slot (morning, afternoon, evening,
    night). A NULL slot means "not taken at that time"; at least one slot
    holds a positive count.

    customer_id has no database foreign key: customer deletion does not
    cascade and must not be blocked by medications left behind.
    """
    __tablename__ = "medications"
    __table_args__ = (
        db.Index("ix_medications_owner", "owner_user_id"),
        db.Index("ix_medications_customer", "customer_id"),
        db.Index("ix_medications_customer_active", "customer_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    customer_id = db.Column(db.Integer, nullable=False)

    name = db.Column(db.String(255), nullable=False)
    form = db.Column(db.String(16), nullable=False)  # tablet, capsule, liquid, ...
    strength = db.Column(db.String(64), nullable=False)  # e.g. "500mg", "10ml"

    morning = db.Column(db.Integer, nullable=True)
    afternoon = db.Column(db.Integer, nullable=True)
    evening = db.Column(db.Integer, nullable=True)
    night = db.Column(db.Integer, nullable=True)

    instructions = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def frequency(self) -> dict:
        return {
            "morning": self.morning,
            "afternoon": self.afternoon,
            "evening": self.evening,
            "night": self.night,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "customer_id": self.customer_id,
            "name": self.name,
            "form": self.form,
            "strength": self.strength,
            "frequency": self.frequency(),
            "instructions": self.instructions,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

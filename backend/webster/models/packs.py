from __future__ import annotations

from ..extensions import db
from webster.time_utils import to_utc_z, utcnow


PACK_TYPES = ("blister_packs", "sachet_rolls")
PACK_CHECK_STATUSES = ("pending", "checked")
SCAN_OUT_STATUSES = ("scanned_out", "delivered")


class PackCheck(db.Model):
    """
    Pharmacist verification of one Webster pack.

    APPEND-ONLY: One row per physical verification event, never updated.
    The checked medications are PackCheckItem rows written in the same
    transaction as the header.

    pharmacist_initials is a point-in-time attestation, not a reference
    to team_members.
    """
    __tablename__ = "pack_checks"
    __table_args__ = (
        db.Index("ix_pack_checks_customer", "customer_id"),
        db.Index("ix_pack_checks_customer_pack", "customer_id", "webster_pack_id"),
        db.Index("ix_pack_checks_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, nullable=False)

    pharmacist_initials = db.Column(db.String(3), nullable=False)
    webster_pack_id = db.Column(db.String(128), nullable=False)
    pack_type = db.Column(db.String(16), nullable=False, default="blister_packs")
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="checked")  # pending, checked

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    items = db.relationship(
        "PackCheckItem",
        backref="pack_check",
        lazy=True,
        order_by="PackCheckItem.position",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "pharmacist_initials": self.pharmacist_initials,
            "webster_pack_id": self.webster_pack_id,
            "pack_type": self.pack_type,
            "notes": self.notes,
            "checked_medications": [item.to_dict() for item in self.items],
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PackCheckItem(db.Model):
    """
    One verified (medication, time slot) entry of a pack check.

    Medication fields are copied at check time; medication_id is kept for
    reference only and may point at a medication that was later deleted.
    """
    __tablename__ = "pack_check_items"
    __table_args__ = (
        db.Index("ix_pack_check_items_check_position", "pack_check_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    pack_check_id = db.Column(db.Integer, db.ForeignKey("pack_checks.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False)

    medication_id = db.Column(db.Integer, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    form = db.Column(db.String(16), nullable=False)
    strength = db.Column(db.String(64), nullable=False)

    morning = db.Column(db.Integer, nullable=True)
    afternoon = db.Column(db.Integer, nullable=True)
    evening = db.Column(db.Integer, nullable=True)
    night = db.Column(db.Integer, nullable=True)

    correct = db.Column(db.Boolean, nullable=False, default=True)
    comment = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "medication_id": self.medication_id,
            "name": self.name,
            "form": self.form,
            "strength": self.strength,
            "morning": self.morning,
            "afternoon": self.afternoon,
            "evening": self.evening,
            "night": self.night,
            "correct": self.correct,
            "comment": self.comment,
        }


class ScanOut(db.Model):
    """
    A Webster pack leaving the pharmacy, tracked through delivery.

    Status is scanned_out or delivered. The UI only moves forward, but the
    update operation accepts either value.
    """
    __tablename__ = "scan_outs"
    __table_args__ = (
        db.Index("ix_scan_outs_customer", "customer_id"),
        db.Index("ix_scan_outs_pack", "webster_pack_id"),
        db.Index("ix_scan_outs_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, nullable=False)

    pharmacist_initials = db.Column(db.String(3), nullable=False)
    webster_pack_id = db.Column(db.String(128), nullable=False)
    pack_type = db.Column(db.String(16), nullable=False, default="blister_packs")
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="scanned_out")  # scanned_out, delivered

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "pharmacist_initials": self.pharmacist_initials,
            "webster_pack_id": self.webster_pack_id,
            "pack_type": self.pack_type,
            "notes": self.notes,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

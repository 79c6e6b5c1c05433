from __future__ import annotations

from ..extensions import db
from webster.time_utils import to_iso_date, to_utc_z, utcnow


CUSTOMER_STATUSES = ("active", "in_hospital", "disabled")


class Customer(db.Model):
    """
    Pharmacy customer (patient) receiving Webster packs.

    OWNERSHIP: Customers are scoped to the owning user via owner_user_id.

    customer_code is the human-facing identifier printed on packs. It is
    indexed on its own (not with the owner) because the legacy uniqueness
    check looks it up across all owners; see customer_service.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_owner", "owner_user_id"),
        db.Index("ix_customers_code", "customer_code"),
        db.Index("ix_customers_owner_status", "owner_user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    customer_code = db.Column(db.String(64), nullable=False)

    first_name = db.Column(db.String(128), nullable=False)
    last_name = db.Column(db.String(128), nullable=False)
    date_of_birth = db.Column(db.Date, nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(512), nullable=True)
    company = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="active")  # active, in_hospital, disabled

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def summary_dict(self) -> dict:
        """Minimal projection embedded in pack check and scan-out listings."""
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "customer_code": self.customer_code,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "customer_code": self.customer_code,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "date_of_birth": to_iso_date(self.date_of_birth),
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "company": self.company,
            "notes": self.notes,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

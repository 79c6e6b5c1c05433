from __future__ import annotations

from ..extensions import db
from webster.time_utils import to_utc_z, utcnow


class TeamMember(db.Model):
    """
    Pharmacist or technician selectable on check and scan-out forms.

    Not a login identity. Pack checks and scan-outs copy the initials as a
    string at the time of the event, so renaming a member never rewrites
    history.
    """
    __tablename__ = "team_members"
    __table_args__ = (
        db.UniqueConstraint("owner_user_id", "initials", name="uq_team_members_owner_initials"),
        db.Index("ix_team_members_owner", "owner_user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    initials = db.Column(db.String(3), nullable=False)  # Upper-cased, 2-3 letters
    full_name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(64), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "initials": self.initials,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

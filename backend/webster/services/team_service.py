# Overview: Service-layer operations for team members; encapsulates business logic and database work.

"""
Team Member Service

Team members are the pharmacists and technicians whose initials are
recorded on pack checks and scan-outs. They are scoped to the owning user.

INITIALS: 2-3 letters, stored upper-cased, unique per owner. Uniqueness is
checked after upper-casing, so "jd" collides with an existing "JD".
"""

from ..extensions import db
from ..models import TeamMember
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    normalize_initials,
    validate_payload,
)
from .ownership_service import get_owned
from webster.time_utils import utcnow


TEAM_MEMBER_POLICY = ModelValidationPolicy(
    writable_fields={"initials", "full_name", "email", "role", "is_active"},
    required_on_create={"initials", "full_name"},
)


class TeamMemberNotFoundError(NotFoundError):
    """Raised when a team member is not found."""
    pass


class DuplicateInitialsError(ConflictError):
    """Raised when initials are already used by another team member."""
    pass


def _initials_taken(owner_user_id: int, initials: str, *, exclude_id: int | None = None) -> bool:
    query = db.session.query(TeamMember.id).filter(
        TeamMember.owner_user_id == owner_user_id,
        TeamMember.initials == initials,
    )
    if exclude_id is not None:
        query = query.filter(TeamMember.id != exclude_id)
    return query.first() is not None


def get_team_member(member_id: int, owner_user_id: int) -> TeamMember:
    return get_owned(
        TeamMember,
        member_id,
        owner_user_id,
        not_found=TeamMemberNotFoundError,
        label="Team member",
    )


def list_team_members(owner_user_id: int, *, active_only: bool = False) -> list[TeamMember]:
    """List the caller's team members, newest first."""
    query = db.session.query(TeamMember).filter(TeamMember.owner_user_id == owner_user_id)
    if active_only:
        query = query.filter(TeamMember.is_active.is_(True))
    return query.order_by(TeamMember.created_at.desc(), TeamMember.id.desc()).all()


def create_team_member(owner_user_id: int, payload: dict) -> TeamMember:
    """
    Create a team member.

    Raises:
        InvalidInitialsFormatError: If initials are not 2-3 letters
        DuplicateInitialsError: If the owner already has these initials
        ValidationError: For other malformed fields
    """
    payload = dict(payload or {})
    payload.pop("is_active", None)  # New members always start active
    if "initials" in payload:
        payload["initials"] = normalize_initials(payload["initials"])

    patch = validate_payload(model=TeamMember, payload=payload, policy=TEAM_MEMBER_POLICY, partial=False)

    if _initials_taken(owner_user_id, patch["initials"]):
        raise DuplicateInitialsError("Team member with these initials already exists")

    now = utcnow()
    member = TeamMember(
        owner_user_id=owner_user_id,
        is_active=True,
        created_at=now,
        updated_at=now,
        **patch,
    )
    db.session.add(member)
    db.session.commit()
    return member


def update_team_member(member_id: int, owner_user_id: int, payload: dict) -> TeamMember:
    """
    Patch a team member.

    Historical pack checks and scan-outs keep the initials they were
    recorded with.
    """
    member = get_team_member(member_id, owner_user_id)

    payload = dict(payload or {})
    if "initials" in payload:
        payload["initials"] = normalize_initials(payload["initials"])

    patch = validate_payload(model=TeamMember, payload=payload, policy=TEAM_MEMBER_POLICY, partial=True)

    new_initials = patch.get("initials")
    if new_initials is not None and new_initials != member.initials:
        if _initials_taken(owner_user_id, new_initials, exclude_id=member.id):
            raise DuplicateInitialsError("Team member with these initials already exists")

    for key, value in patch.items():
        setattr(member, key, value)
    member.updated_at = utcnow()

    db.session.commit()
    return member


def delete_team_member(member_id: int, owner_user_id: int) -> None:
    member = get_team_member(member_id, owner_user_id)
    db.session.delete(member)
    db.session.commit()


def toggle_team_member_status(member_id: int, owner_user_id: int) -> TeamMember:
    """Flip is_active and stamp updated_at."""
    member = get_team_member(member_id, owner_user_id)
    member.is_active = not member.is_active
    member.updated_at = utcnow()
    db.session.commit()
    return member

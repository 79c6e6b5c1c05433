# Overview: Service-layer aggregation for the dashboard summary.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import Customer, Medication, TeamMember, CUSTOMER_STATUSES
from . import pack_check_service, scan_out_service
from webster.time_utils import utcnow


RECENT_PACK_CHECK_DAYS = 7


def get_summary(owner_user_id: int) -> dict:
    """
    Counts shown on the dashboard for one user.

    Pack checks follow the same visibility as the pack-check listing
    (platform-wide unless SCOPE_PACK_CHECKS_TO_OWNER is set).
    """
    status_rows = db.session.query(Customer.status, db.func.count(Customer.id)).filter(
        Customer.owner_user_id == owner_user_id
    ).group_by(Customer.status).all()
    customers_by_status = {status: 0 for status in CUSTOMER_STATUSES}
    for status, count in status_rows:
        customers_by_status[status] = count

    active_medications = db.session.query(Medication).filter(
        Medication.owner_user_id == owner_user_id,
        Medication.is_active.is_(True),
    ).count()

    active_team_members = db.session.query(TeamMember).filter(
        TeamMember.owner_user_id == owner_user_id,
        TeamMember.is_active.is_(True),
    ).count()

    since = utcnow() - timedelta(days=RECENT_PACK_CHECK_DAYS)

    return {
        "customers": {
            "total": sum(customers_by_status.values()),
            "by_status": customers_by_status,
        },
        "active_medications": active_medications,
        "active_team_members": active_team_members,
        "pack_checks_last_7_days": pack_check_service.count_recent_pack_checks(owner_user_id, since),
        "awaiting_delivery": scan_out_service.count_awaiting_delivery(owner_user_id),
    }

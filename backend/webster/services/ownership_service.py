"""
Ownership Service: Record Ownership Checks

WHY: Every customer, medication, team member and scan-out belongs to one
user account. Reads and writes must be scoped to the caller, and
cross-owner access must be explicitly denied.

SECURITY INVARIANTS:
1. Every authenticated request has g.user_id set (see require_auth)
2. Record ids from client input are resolved and checked against g.user_id
3. Records owned through a parent (medications, scan-outs) are checked
   against the parent customer's owner
4. Cross-owner access attempts are logged as security events

USAGE:
    from webster.services.ownership_service import get_owned

    customer = get_owned(Customer, customer_id, g.user_id,
                         not_found=CustomerNotFoundError, label="Customer")
"""

from flask import has_request_context, request

from ..extensions import db
from ..validation import NotFoundError
from .security_service import log_security_event


class NotAuthenticatedError(Exception):
    """Raised when no caller identity is available."""
    pass


class AccessDeniedError(Exception):
    """Raised when the caller does not own the targeted record."""
    pass


def require_owner(owner_user_id: int | None, caller_user_id: int, *, label: str, record_id=None) -> None:
    """
    Verify a resolved owner id matches the caller.

    Raises AccessDeniedError (and logs a security event) on mismatch.
    """
    if caller_user_id is None:
        raise NotAuthenticatedError("Not authenticated")
    if owner_user_id != caller_user_id:
        _log_cross_owner_attempt(
            f"{label} {record_id} is not owned by user {caller_user_id}",
            user_id=caller_user_id,
        )
        raise AccessDeniedError(f"{label} access denied")


def get_owned(model, record_id: int, caller_user_id: int, *, not_found=NotFoundError, label: str = "Record"):
    """
    Load a record that carries owner_user_id and verify the caller owns it.

    Raises:
        not_found: if the record does not exist
        AccessDeniedError: if it belongs to another user
    """
    record = db.session.get(model, record_id)
    if record is None:
        raise not_found(f"{label} not found")
    require_owner(record.owner_user_id, caller_user_id, label=label, record_id=record_id)
    return record


def _log_cross_owner_attempt(reason: str, *, user_id: int | None) -> None:
    """Log cross-owner access attempt as security event."""
    if has_request_context():
        resource = request.path
        action = request.method
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")
    else:
        resource = action = ip_address = user_agent = None

    log_security_event(
        user_id=user_id,
        event_type="CROSS_OWNER_ACCESS_DENIED",
        success=False,
        resource=resource,
        action=action,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
    )

# Overview: Pytest coverage for authentication and cross-owner access.

"""
Ownership Tests

SECURITY TESTS: Prove that every resource route needs a bearer token and
that one account cannot read or change another account's records.
"""

import pytest

from webster.models import SecurityEvent
from webster.services import customer_service, scan_out_service
from webster.services.customer_service import CustomerNotFoundError
from webster.services.ownership_service import AccessDeniedError


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All resource endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/users/me"),
            ("GET", "/api/customers"),
            ("POST", "/api/customers"),
            ("GET", "/api/customers/1"),
            ("PUT", "/api/customers/1"),
            ("DELETE", "/api/customers/1"),
            ("GET", "/api/customers/1/medications"),
            ("POST", "/api/customers/1/medications"),
            ("PUT", "/api/medications/1"),
            ("POST", "/api/medications/1/toggle"),
            ("GET", "/api/team-members"),
            ("POST", "/api/team-members"),
            ("POST", "/api/team-members/1/toggle"),
            ("GET", "/api/pack-checks"),
            ("POST", "/api/pack-checks"),
            ("GET", "/api/pack-checks/preview?customer_id=1"),
            ("GET", "/api/pack-checks/exists?customer_id=1&webster_pack_id=WP"),
            ("GET", "/api/scan-outs"),
            ("POST", "/api/scan-outs"),
            ("PATCH", "/api/scan-outs/1/status"),
            ("GET", "/api/dashboard/summary"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/customers", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401


# =============================================================================
# CROSS-OWNER ACCESS: 403
# =============================================================================


class TestCrossOwnerAccess:
    @pytest.fixture
    def records(self, owner_a, make_customer, make_team_member, make_medication):
        customer = make_customer(owner_a)
        medication = make_medication(owner_a, customer)
        member = make_team_member(owner_a)
        scan_out = scan_out_service.create_scan_out(
            owner_user_id=owner_a.id, customer_id=customer.id, pharmacist_initials="JD",
            webster_pack_id="WP-1", acknowledge_unchecked=True,
        )
        return {"customer": customer, "medication": medication, "member": member, "scan_out": scan_out}

    def test_customer_routes(self, client, headers_b, records):
        customer_id = records["customer"].id
        assert client.get(f"/api/customers/{customer_id}", headers=headers_b).status_code == 403
        assert client.put(f"/api/customers/{customer_id}", headers=headers_b,
                          json={"first_name": "Hacked"}).status_code == 403
        assert client.delete(f"/api/customers/{customer_id}", headers=headers_b).status_code == 403
        assert client.get(f"/api/customers/{customer_id}/medications", headers=headers_b).status_code == 403

    def test_medication_routes(self, client, headers_b, records):
        medication_id = records["medication"].id
        assert client.put(f"/api/medications/{medication_id}", headers=headers_b,
                          json={"strength": "1g"}).status_code == 403
        assert client.post(f"/api/medications/{medication_id}/toggle", headers=headers_b).status_code == 403
        assert client.delete(f"/api/medications/{medication_id}", headers=headers_b).status_code == 403

    def test_team_routes(self, client, headers_b, records):
        member_id = records["member"].id
        assert client.put(f"/api/team-members/{member_id}", headers=headers_b,
                          json={"full_name": "X"}).status_code == 403
        assert client.post(f"/api/team-members/{member_id}/toggle", headers=headers_b).status_code == 403
        assert client.delete(f"/api/team-members/{member_id}", headers=headers_b).status_code == 403

    def test_scan_out_and_pack_check_routes(self, client, headers_b, records):
        scan_out_id = records["scan_out"].id
        customer_id = records["customer"].id
        assert client.patch(f"/api/scan-outs/{scan_out_id}/status", headers=headers_b,
                            json={"status": "delivered"}).status_code == 403
        assert client.get(f"/api/pack-checks/preview?customer_id={customer_id}",
                          headers=headers_b).status_code == 403
        assert client.get(f"/api/pack-checks/exists?customer_id={customer_id}&webster_pack_id=WP-1",
                          headers=headers_b).status_code == 403

    def test_denial_is_logged(self, client, db_session, headers_b, owner_b, records):
        client.get(f"/api/customers/{records['customer'].id}", headers=headers_b)

        events = db_session.query(SecurityEvent).filter_by(event_type="CROSS_OWNER_ACCESS_DENIED").all()
        assert len(events) == 1
        assert events[0].user_id == owner_b.id
        assert events[0].resource == f"/api/customers/{records['customer'].id}"
        assert events[0].action == "GET"

    def test_records_unchanged(self, client, db_session, headers_b, owner_a, records):
        client.put(f"/api/customers/{records['customer'].id}", headers=headers_b, json={"first_name": "Hacked"})
        db_session.expire_all()
        assert customer_service.get_customer(records["customer"].id, owner_a.id).first_name == "Jane"


class TestServiceGuards:
    def test_missing_vs_foreign(self, owner_a, owner_b, make_customer):
        customer = make_customer(owner_a)
        with pytest.raises(AccessDeniedError):
            customer_service.get_customer(customer.id, owner_b.id)
        with pytest.raises(CustomerNotFoundError):
            customer_service.get_customer(9999, owner_b.id)

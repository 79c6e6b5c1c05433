# Overview: Pytest coverage for pack check fan-out, persistence and lookup.

"""
Pack Check Tests

Covers:
- Fan-out of medications into per-slot check entries
- Round-trip of correct/comment values through a saved pack check
- checkPackExists before and after a check is saved
- Platform-wide listing and the SCOPE_PACK_CHECKS_TO_OWNER flag
"""

import pytest

from webster.models import PackCheck, PackCheckItem
from webster.services import customer_service, pack_check_service
from webster.services.customer_service import CustomerNotFoundError
from webster.services.ownership_service import AccessDeniedError
from webster.validation import InvalidInitialsFormatError, ValidationError


class TestFanOut:
    def test_morning_and_evening_only(self, owner_a, make_customer, make_medication):
        customer = make_customer(owner_a)
        medication = make_medication(
            owner_a, customer, frequency={"morning": 1, "afternoon": 0, "evening": 2, "night": 0}
        )

        entries = pack_check_service.expand_check_entries([medication])

        assert [(e.time_slot, e.quantity) for e in entries] == [("morning", 1), ("evening", 2)]
        evening = entries[1].to_dict()
        assert evening["evening"] == 2
        assert evening["morning"] == 0
        assert evening["afternoon"] == 0
        assert evening["night"] == 0
        assert evening["correct"] is True
        assert evening["comment"] == ""

    def test_order_is_medication_then_slot(self, owner_a, make_customer, make_medication):
        customer = make_customer(owner_a)
        first = make_medication(owner_a, customer, name="First", frequency={"night": 1, "morning": 1})
        second = make_medication(owner_a, customer, name="Second", frequency={"afternoon": 1})

        entries = pack_check_service.expand_check_entries([first, second])
        assert [(e.name, e.time_slot) for e in entries] == [
            ("First", "morning"), ("First", "night"), ("Second", "afternoon"),
        ]

    def test_group_by_time_slot_has_all_buckets(self, owner_a, make_customer, make_medication):
        customer = make_customer(owner_a)
        medication = make_medication(owner_a, customer, frequency={"evening": 1})
        groups = pack_check_service.group_by_time_slot(pack_check_service.expand_check_entries([medication]))

        assert list(groups) == ["morning", "afternoon", "evening", "night"]
        assert [len(v) for v in groups.values()] == [0, 0, 1, 0]

    def test_projection_drops_slot_and_quantity(self, owner_a, make_customer, make_medication):
        customer = make_customer(owner_a)
        medication = make_medication(owner_a, customer, frequency={"morning": 3})
        item = pack_check_service.project_check_entries(pack_check_service.expand_check_entries([medication]))[0]
        assert "time_slot" not in item
        assert "quantity" not in item
        assert item["morning"] == 3


class TestCreatePackCheck:
    def test_round_trip_preserves_marks(self, db_session, owner_a, make_customer, make_medication):
        customer = make_customer(owner_a)
        make_medication(owner_a, customer, name="A", frequency={"morning": 1, "evening": 2})
        make_medication(owner_a, customer, name="B", frequency={"night": 1})

        entries = pack_check_service.preview_check_entries(customer.id, owner_a.id)
        entries[1].correct = False
        entries[1].comment = "Missing one tablet"

        pack_check = pack_check_service.create_pack_check(
            owner_user_id=owner_a.id,
            customer_id=customer.id,
            pharmacist_initials="jd",
            webster_pack_id="WP-100",
            checked_medications=pack_check_service.project_check_entries(entries),
        )

        saved = db_session.get(PackCheck, pack_check.id).to_dict()
        assert saved["pharmacist_initials"] == "JD"
        assert saved["pack_type"] == "blister_packs"
        assert saved["status"] == "checked"
        assert len(saved["checked_medications"]) == len(entries) == 3
        for entry, item in zip(entries, saved["checked_medications"]):
            assert item["medication_id"] == entry.medication_id
            assert item["correct"] == entry.correct
            assert (item["comment"] or "") == entry.comment

    def test_invalid_item_writes_nothing(self, db_session, owner_a, make_customer):
        customer = make_customer(owner_a)
        with pytest.raises(ValidationError):
            pack_check_service.create_pack_check(
                owner_user_id=owner_a.id,
                customer_id=customer.id,
                pharmacist_initials="JD",
                webster_pack_id="WP-1",
                checked_medications=[{"medication_id": 1, "name": "X"}],
            )
        assert db_session.query(PackCheck).count() == 0
        assert db_session.query(PackCheckItem).count() == 0

    def test_bad_initials(self, owner_a, make_customer):
        customer = make_customer(owner_a)
        with pytest.raises(InvalidInitialsFormatError):
            pack_check_service.create_pack_check(
                owner_user_id=owner_a.id, customer_id=customer.id,
                pharmacist_initials="J1", webster_pack_id="WP-1",
            )

    def test_unknown_customer(self, owner_a):
        with pytest.raises(CustomerNotFoundError):
            pack_check_service.create_pack_check(
                owner_user_id=owner_a.id, customer_id=9999,
                pharmacist_initials="JD", webster_pack_id="WP-1",
            )

    def test_other_owners_customer_allowed_by_default(self, owner_a, owner_b, make_customer):
        customer = make_customer(owner_b)
        pack_check = pack_check_service.create_pack_check(
            owner_user_id=owner_a.id, customer_id=customer.id,
            pharmacist_initials="JD", webster_pack_id="WP-1",
        )
        assert pack_check.customer_id == customer.id

    def test_other_owners_customer_denied_when_scoped(self, app, monkeypatch, owner_a, owner_b, make_customer):
        monkeypatch.setitem(app.config, "SCOPE_PACK_CHECKS_TO_OWNER", True)
        customer = make_customer(owner_b)
        with pytest.raises(AccessDeniedError):
            pack_check_service.create_pack_check(
                owner_user_id=owner_a.id, customer_id=customer.id,
                pharmacist_initials="JD", webster_pack_id="WP-1",
            )


class TestPackExists:
    def test_exists_before_and_after(self, owner_a, make_customer):
        customer = make_customer(owner_a)
        assert pack_check_service.check_pack_exists(customer.id, "WP-7", owner_a.id) is None

        pack_check_service.create_pack_check(
            owner_user_id=owner_a.id, customer_id=customer.id,
            pharmacist_initials="JD", webster_pack_id="WP-7",
        )

        assert pack_check_service.check_pack_exists(customer.id, "WP-7", owner_a.id) is not None
        assert pack_check_service.check_pack_exists(customer.id, "WP-8", owner_a.id) is None

    def test_exists_is_per_customer(self, owner_a, make_customer):
        first = make_customer(owner_a)
        second = make_customer(owner_a)
        pack_check_service.create_pack_check(
            owner_user_id=owner_a.id, customer_id=first.id,
            pharmacist_initials="JD", webster_pack_id="WP-7",
        )
        assert pack_check_service.check_pack_exists(second.id, "WP-7", owner_a.id) is None

    def test_exists_route(self, client, headers_a, owner_a, make_customer):
        customer = make_customer(owner_a)
        url = f"/api/pack-checks/exists?customer_id={customer.id}&webster_pack_id=WP-9"

        resp = client.get(url, headers=headers_a)
        assert resp.status_code == 200
        assert resp.json == {"is_checked": False, "pack_check": None}

        client.post("/api/pack-checks", headers=headers_a, json={
            "customer_id": customer.id,
            "pharmacist_initials": "JD",
            "webster_pack_id": "WP-9",
        })

        resp = client.get(url, headers=headers_a)
        assert resp.json["is_checked"] is True
        assert resp.json["pack_check"]["webster_pack_id"] == "WP-9"

    def test_exists_route_requires_params(self, client, headers_a):
        assert client.get("/api/pack-checks/exists", headers=headers_a).status_code == 400


class TestPackCheckListing:
    def _check(self, owner, customer, pack_id):
        return pack_check_service.create_pack_check(
            owner_user_id=owner.id, customer_id=customer.id,
            pharmacist_initials="JD", webster_pack_id=pack_id,
        )

    def test_listing_is_platform_wide(self, client, headers_a, owner_a, owner_b, make_customer):
        self._check(owner_a, make_customer(owner_a, last_name="Alpha"), "WP-A")
        self._check(owner_b, make_customer(owner_b, last_name="Beta"), "WP-B")

        resp = client.get("/api/pack-checks", headers=headers_a)
        assert resp.status_code == 200
        assert [item["webster_pack_id"] for item in resp.json["items"]] == ["WP-B", "WP-A"]
        assert resp.json["items"][0]["customer"]["last_name"] == "Beta"

    def test_listing_scoped_to_owner(self, app, monkeypatch, client, headers_a, owner_a, owner_b, make_customer):
        self._check(owner_a, make_customer(owner_a), "WP-A")
        self._check(owner_b, make_customer(owner_b), "WP-B")
        monkeypatch.setitem(app.config, "SCOPE_PACK_CHECKS_TO_OWNER", True)

        resp = client.get("/api/pack-checks", headers=headers_a)
        assert [item["webster_pack_id"] for item in resp.json["items"]] == ["WP-A"]

    def test_deleted_customer_shows_null(self, client, headers_a, owner_a, make_customer):
        customer = make_customer(owner_a)
        self._check(owner_a, customer, "WP-A")
        customer_service.delete_customer(customer.id, owner_a.id)

        resp = client.get("/api/pack-checks", headers=headers_a)
        assert resp.json["items"][0]["customer"] is None

    def test_listing_capped_at_50(self, owner_a, make_customer):
        customer = make_customer(owner_a)
        for i in range(55):
            self._check(owner_a, customer, f"WP-{i}")
        rows = pack_check_service.list_pack_checks(owner_a.id)
        assert len(rows) == 50
        assert rows[0][0].webster_pack_id == "WP-54"

    def test_preview_route(self, client, headers_a, owner_a, make_customer, make_medication):
        customer = make_customer(owner_a)
        make_medication(owner_a, customer, frequency={"morning": 1, "night": 1})

        resp = client.get(f"/api/pack-checks/preview?customer_id={customer.id}", headers=headers_a)
        assert resp.status_code == 200
        assert len(resp.json["entries"]) == 2
        assert len(resp.json["by_time_slot"]["night"]) == 1

    def test_route_recovers_after_database_failure(self, client, headers_a, owner_a, make_customer, failing_inserts):
        customer = make_customer(owner_a)
        payload = {"customer_id": customer.id, "pharmacist_initials": "JD", "webster_pack_id": "WP-12"}

        failing_inserts("pack_checks")
        resp = client.post("/api/pack-checks", headers=headers_a, json=payload)
        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error"}

        failing_inserts("pack_checks", restore=True)
        resp = client.post("/api/pack-checks", headers=headers_a, json=payload)
        assert resp.status_code == 201
        assert pack_check_service.check_pack_exists(customer.id, "WP-12", owner_a.id) is not None

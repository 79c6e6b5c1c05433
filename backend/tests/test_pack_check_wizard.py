# Overview: Pytest coverage for the three-step pack check wizard.

import pytest
from sqlalchemy.exc import SQLAlchemyError

from webster.models import PackCheck
from webster.services import pack_check_service
from webster.services.pack_check_wizard import PackCheckWizard, WizardError, WizardStep


@pytest.fixture
def setup(owner_a, make_customer, make_team_member, make_medication):
    customer = make_customer(owner_a)
    make_team_member(owner_a, initials="JD", full_name="Jane Doe")
    make_team_member(owner_a, initials="AB", full_name="Al Brown")
    make_medication(owner_a, customer, name="Metformin", frequency={"morning": 1, "evening": 2})
    return customer


def _selected_wizard(owner, customer, **overrides) -> PackCheckWizard:
    wizard = PackCheckWizard(owner.id)
    fields = {"customer_id": customer.id, "pharmacist_initials": "JD", "webster_pack_id": "WP-1"}
    fields.update(overrides)
    wizard.select(**fields)
    return wizard


class TestSelectionStep:
    def test_missing_fields_block_next(self, owner_a, setup):
        wizard = PackCheckWizard(owner_a.id)
        wizard.select(customer_id=setup.id, pharmacist_initials="JD")
        with pytest.raises(WizardError, match="Please fill all required fields."):
            wizard.next()
        assert wizard.step == WizardStep.SELECTION

    def test_customer_without_medications(self, owner_a, make_customer, setup):
        empty = make_customer(owner_a, last_name="Empty")
        wizard = _selected_wizard(owner_a, empty)
        with pytest.raises(WizardError, match="No medications found for this customer."):
            wizard.next()
        assert wizard.step == WizardStep.SELECTION

    def test_inactive_pharmacist_rejected(self, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup, pharmacist_initials="ZZ")
        with pytest.raises(WizardError):
            wizard.next()

    def test_next_fans_out_entries(self, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup)
        assert wizard.next() == WizardStep.VERIFICATION
        assert [(e.time_slot, e.quantity) for e in wizard.entries] == [("morning", 1), ("evening", 2)]
        assert [len(v) for v in wizard.entries_by_slot().values()] == [1, 0, 1, 0]


class TestNavigation:
    def test_back_preserves_marks(self, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup, notes="Step one notes")
        wizard.next()
        wizard.mark(1, correct=False, comment="Wrong strength")

        assert wizard.back() == WizardStep.SELECTION
        assert wizard.webster_pack_id == "WP-1"
        assert wizard.notes == "Step one notes"

        wizard.next()
        assert wizard.entries[1].correct is False
        assert wizard.entries[1].comment == "Wrong strength"

    def test_back_from_confirmation(self, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup)
        wizard.next()
        wizard.next()
        wizard.confirm(final_initials="AB", final_notes="Final")
        assert wizard.back() == WizardStep.VERIFICATION
        assert wizard.final_initials == "AB"
        assert len(wizard.entries) == 2

    def test_verification_advances_with_incorrect_entries(self, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup)
        wizard.next()
        wizard.mark(0, correct=False)
        wizard.mark(1, correct=False)
        assert wizard.next() == WizardStep.CONFIRMATION

    def test_mark_out_of_range(self, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup)
        wizard.next()
        with pytest.raises(WizardError):
            wizard.mark(5, correct=False)

    def test_select_only_in_selection_step(self, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup)
        wizard.next()
        with pytest.raises(WizardError):
            wizard.select(webster_pack_id="WP-2")


class TestCommit:
    def test_commit_requires_final_initials(self, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup)
        wizard.next()
        wizard.next()
        with pytest.raises(WizardError, match="Please select your initials to confirm."):
            wizard.commit()
        assert wizard.step == WizardStep.CONFIRMATION

    def test_commit_saves_and_resets(self, db_session, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup, pack_type="sachet_rolls")
        wizard.next()
        wizard.mark(0, correct=False, comment="Loose tablet")
        wizard.next()
        wizard.confirm(final_initials="ab", final_notes="Final notes")

        pack_check = wizard.commit()

        saved = db_session.get(PackCheck, pack_check.id).to_dict()
        # Step-1 pharmacist is attested; final notes fill in for empty step-1 notes
        assert saved["pharmacist_initials"] == "JD"
        assert saved["notes"] == "Final notes"
        assert saved["pack_type"] == "sachet_rolls"
        assert saved["status"] == "checked"
        assert [item["correct"] for item in saved["checked_medications"]] == [False, True]
        assert saved["checked_medications"][0]["comment"] == "Loose tablet"

        assert wizard.step == WizardStep.SELECTION
        assert wizard.customer_id is None
        assert wizard.entries == []

    def test_step_one_notes_win(self, db_session, owner_a, setup):
        wizard = _selected_wizard(owner_a, setup, notes="From step one")
        wizard.next()
        wizard.next()
        wizard.confirm(final_initials="JD", final_notes="From step three")
        pack_check = wizard.commit()
        assert pack_check.notes == "From step one"

    def test_failed_insert_keeps_state(self, owner_a, setup, monkeypatch):
        wizard = _selected_wizard(owner_a, setup)
        wizard.next()
        wizard.next()
        wizard.confirm(final_initials="JD")

        def _fail(**kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(pack_check_service, "create_pack_check", _fail)

        with pytest.raises(RuntimeError):
            wizard.commit()

        assert wizard.step == WizardStep.CONFIRMATION
        assert wizard.webster_pack_id == "WP-1"
        assert len(wizard.entries) == 2
        assert wizard.final_initials == "JD"

    def test_resubmit_after_database_failure(self, db_session, owner_a, setup, failing_inserts):
        wizard = _selected_wizard(owner_a, setup)
        wizard.next()
        wizard.mark(1, correct=False, comment="Wrong strength")
        wizard.next()
        wizard.confirm(final_initials="JD")

        failing_inserts("pack_checks")
        with pytest.raises(SQLAlchemyError):
            wizard.commit()
        assert wizard.step == WizardStep.CONFIRMATION
        assert db_session.query(PackCheck).count() == 0

        failing_inserts("pack_checks", restore=True)
        pack_check = wizard.commit()

        saved = db_session.get(PackCheck, pack_check.id).to_dict()
        assert saved["webster_pack_id"] == "WP-1"
        assert [item["correct"] for item in saved["checked_medications"]] == [True, False]
        assert wizard.step == WizardStep.SELECTION

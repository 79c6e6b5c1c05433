# Overview: In-memory state machine for the three-step pack check.

"""
Pack Check Wizard

Holds the transient state of one pack check while the operator works
through it. Nothing is written to the database until commit().

    SELECTION --next()--> VERIFICATION --next()--> CONFIRMATION --commit()--> SELECTION
        ^                      |  ^                      |
        +-------back()---------+  +--------back()--------+

SELECTION: customer, pharmacist (an active team member), pack id and pack
type. next() requires all three identifiers and at least one medication,
then fans the medications out into check entries.

VERIFICATION: entries are reviewed per time slot; mark() sets the correct
flag and comment. next() always succeeds, however many entries are
marked incorrect.

CONFIRMATION: confirm() records the confirming pharmacist (may differ from
the step-1 pharmacist) and final notes. commit() inserts one PackCheck and
resets the wizard. If the insert fails the wizard stays in CONFIRMATION
with everything intact.

Going back never discards data. Re-entering VERIFICATION from SELECTION
rebuilds the entries from the current medications but keeps the
correct/comment values of entries that still exist.
"""

from enum import Enum

from ..models import PackCheck
from ..validation import ValidationError
from . import medication_service, pack_check_service, team_service
from .customer_service import get_customer
from .pack_check_service import CheckEntry


class WizardStep(str, Enum):
    SELECTION = "selection"
    VERIFICATION = "verification"
    CONFIRMATION = "confirmation"


class WizardError(ValidationError):
    """Raised when a transition's preconditions are not met."""
    pass


class PackCheckWizard:
    def __init__(self, owner_user_id: int):
        self.owner_user_id = owner_user_id
        self.reset()

    def reset(self) -> None:
        self.step = WizardStep.SELECTION

        self.customer_id: int | None = None
        self.pharmacist_initials = ""
        self.webster_pack_id = ""
        self.pack_type = "blister_packs"
        self.notes = ""

        self.entries: list[CheckEntry] = []

        self.final_initials = ""
        self.final_notes = ""

    # -- step 1 ---------------------------------------------------------

    def select(
        self,
        *,
        customer_id: int | None = None,
        pharmacist_initials: str | None = None,
        webster_pack_id: str | None = None,
        pack_type: str | None = None,
        notes: str | None = None,
    ) -> None:
        """Update any of the step-1 fields."""
        self._require_step(WizardStep.SELECTION)
        if customer_id is not None:
            self.customer_id = customer_id
        if pharmacist_initials is not None:
            self.pharmacist_initials = pharmacist_initials.strip().upper()
        if webster_pack_id is not None:
            self.webster_pack_id = webster_pack_id.strip()
        if pack_type is not None:
            self.pack_type = pack_type
        if notes is not None:
            self.notes = notes

    # -- step 2 ---------------------------------------------------------

    def mark(self, index: int, *, correct: bool | None = None, comment: str | None = None) -> CheckEntry:
        """Set the correct flag and/or comment of one entry."""
        self._require_step(WizardStep.VERIFICATION)
        if index < 0 or index >= len(self.entries):
            raise WizardError(f"No check entry at position {index}")
        entry = self.entries[index]
        if correct is not None:
            entry.correct = bool(correct)
        if comment is not None:
            entry.comment = comment
        return entry

    def entries_by_slot(self) -> dict[str, list[CheckEntry]]:
        return pack_check_service.group_by_time_slot(self.entries)

    # -- step 3 ---------------------------------------------------------

    def confirm(self, *, final_initials: str, final_notes: str = "") -> None:
        self._require_step(WizardStep.CONFIRMATION)
        self.final_initials = (final_initials or "").strip().upper()
        self.final_notes = final_notes or ""

    def commit(self) -> PackCheck:
        """
        Insert the pack check and reset the wizard.

        Raises WizardError if no confirming initials were chosen. Any error
        from the insert propagates and leaves the wizard in CONFIRMATION.
        """
        self._require_step(WizardStep.CONFIRMATION)
        if not self.final_initials:
            raise WizardError("Please select your initials to confirm.")
        self._require_active_member(self.final_initials)

        pack_check = pack_check_service.create_pack_check(
            owner_user_id=self.owner_user_id,
            customer_id=self.customer_id,
            pharmacist_initials=self.pharmacist_initials,
            webster_pack_id=self.webster_pack_id,
            pack_type=self.pack_type,
            notes=self.notes or self.final_notes,
            checked_medications=pack_check_service.project_check_entries(self.entries),
            status="checked",
        )
        self.reset()
        return pack_check

    # -- transitions ----------------------------------------------------

    def next(self) -> WizardStep:
        if self.step == WizardStep.SELECTION:
            self._enter_verification()
        elif self.step == WizardStep.VERIFICATION:
            self.step = WizardStep.CONFIRMATION
        else:
            raise WizardError("Use commit() to finish the pack check")
        return self.step

    def back(self) -> WizardStep:
        if self.step == WizardStep.CONFIRMATION:
            self.step = WizardStep.VERIFICATION
        elif self.step == WizardStep.VERIFICATION:
            self.step = WizardStep.SELECTION
        return self.step

    def _enter_verification(self) -> None:
        if not self.customer_id or not self.webster_pack_id or not self.pharmacist_initials:
            raise WizardError("Please fill all required fields.")

        get_customer(self.customer_id, self.owner_user_id)
        self._require_active_member(self.pharmacist_initials)

        medications = medication_service.list_for_customer(self.customer_id, self.owner_user_id)
        if not medications:
            raise WizardError("No medications found for this customer.")

        previous = {(e.medication_id, e.time_slot): e for e in self.entries}
        entries = pack_check_service.expand_check_entries(medications)
        for entry in entries:
            earlier = previous.get((entry.medication_id, entry.time_slot))
            if earlier is not None:
                entry.correct = earlier.correct
                entry.comment = earlier.comment

        self.entries = entries
        self.step = WizardStep.VERIFICATION

    def _require_active_member(self, initials: str) -> None:
        members = team_service.list_team_members(self.owner_user_id, active_only=True)
        if initials not in {m.initials for m in members}:
            raise WizardError(f"{initials} is not an active team member")

    def _require_step(self, step: WizardStep) -> None:
        if self.step != step:
            raise WizardError(f"Not allowed during the {self.step.value} step")

    def to_dict(self) -> dict:
        return {
            "step": self.step.value,
            "customer_id": self.customer_id,
            "pharmacist_initials": self.pharmacist_initials,
            "webster_pack_id": self.webster_pack_id,
            "pack_type": self.pack_type,
            "notes": self.notes,
            "entries": [entry.to_dict() for entry in self.entries],
            "final_initials": self.final_initials,
            "final_notes": self.final_notes,
        }

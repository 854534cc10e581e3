"""
Case State Machine Tests

Tests verify:
1. Stage statuses follow before=complete, target=active, after=pending
2. Reapplying the current stage only refreshes last activity
3. Invalid stages and unknown cases are rejected
4. Completion and cancellation on a declined offer
"""

import pytest
from datetime import datetime, timedelta

from app.errors import NotFoundError, ValidationError
from app.models.db_models import CaseStatus, StageStatus
from app.services.workflow.state_machine import (
    CaseStateMachine,
    initial_stage_statuses,
    stage_statuses_for,
    validate_stage,
)
from app.models.case_models import CaseStage


T0 = datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def machine(db):
    return CaseStateMachine(db)


@pytest.fixture
def case_id(machine, db):
    case = machine.open_case(case_id="case-1", now=T0)
    db.commit()
    return case.id


# =============================================================================
# STATUS POLICY
# =============================================================================

class TestStageStatusPolicy:
    """Pure status computation."""

    def test_initial_statuses(self):
        statuses = initial_stage_statuses()
        assert statuses["1"] == "active"
        assert all(statuses[str(n)] == "pending" for n in range(2, 8))

    @pytest.mark.parametrize("target", range(1, 8))
    def test_exactly_one_active_stage(self, target):
        statuses = stage_statuses_for(CaseStage(target))
        assert [n for n, s in statuses.items() if s == "active"] == [str(target)]
        for n in range(1, 8):
            expected = "complete" if n < target else "active" if n == target else "pending"
            assert statuses[str(n)] == expected

    @pytest.mark.parametrize("bad", [0, 8, -1, True, "3", 2.5, None])
    def test_validate_stage_rejects(self, bad):
        with pytest.raises(ValidationError):
            validate_stage(bad)


# =============================================================================
# ADVANCE
# =============================================================================

class TestAdvanceTo:
    """Stage transitions on persisted cases."""

    def test_open_case_initial_state(self, machine, case_id):
        case = machine.get_case(case_id)
        assert case.current_stage == 1
        assert case.status == CaseStatus.NEW
        assert case.stage_statuses == initial_stage_statuses()

    def test_advance_forward(self, machine, case_id, db):
        now = T0 + timedelta(hours=1)
        case = machine.advance_to(case_id, 4, now=now)
        db.commit()

        assert case.current_stage == 4
        assert case.stage_started_at == now
        assert case.status == CaseStatus.ACTIVE
        assert case.stage_statuses == {
            "1": "complete", "2": "complete", "3": "complete",
            "4": "active", "5": "pending", "6": "pending", "7": "pending",
        }
        assert case.last_activity["description"] == "Case moved to Quote Preparation"

    def test_jump_backwards_uses_same_policy(self, machine, case_id, db):
        machine.advance_to(case_id, 5, now=T0 + timedelta(hours=1))
        case = machine.advance_to(case_id, 2, now=T0 + timedelta(hours=2))
        db.commit()

        assert case.current_stage == 2
        assert case.stage_statuses["1"] == StageStatus.COMPLETE.value
        assert case.stage_statuses["2"] == StageStatus.ACTIVE.value
        assert all(case.stage_statuses[str(n)] == "pending" for n in range(3, 8))

    def test_reapply_current_stage_is_idempotent(self, machine, case_id, db):
        first = T0 + timedelta(hours=1)
        second = T0 + timedelta(hours=2)
        machine.advance_to(case_id, 3, now=first)
        db.commit()
        statuses_before = dict(machine.get_case(case_id).stage_statuses)

        case = machine.advance_to(case_id, 3, activity="Inspector arrived", now=second)
        db.commit()

        assert case.stage_statuses == statuses_before
        assert case.stage_started_at == first
        assert case.last_activity == {"description": "Inspector arrived", "timestamp": second.isoformat()}

    def test_invalid_stage_checked_before_lookup(self, machine):
        """A bad stage on a missing case is a validation error, not not-found."""
        with pytest.raises(ValidationError):
            machine.advance_to("missing", 9)

    def test_unknown_case(self, machine):
        with pytest.raises(NotFoundError):
            machine.advance_to("missing", 2)

    def test_empty_case_id(self, machine):
        with pytest.raises(ValidationError):
            machine.get_case("")


# =============================================================================
# COMPLETION
# =============================================================================

class TestCompleteCase:
    """Closing a case."""

    def test_complete_marks_every_stage(self, machine, case_id, db):
        machine.advance_to(case_id, 6, now=T0 + timedelta(hours=1))
        case = machine.complete_case(
            case_id,
            completion={"thankYouSent": True, "leaveBehinds": {"keysHandedOver": True}},
            now=T0 + timedelta(hours=2),
        )
        db.commit()

        assert case.status == CaseStatus.COMPLETED
        assert case.current_stage == 7
        assert machine.is_terminal(case)
        assert machine.active_stage(case) is None
        assert case.completion["thankYouSent"] is True
        assert case.completion["leaveBehinds"]["keysHandedOver"] is True
        assert case.completion["completedAt"] == (T0 + timedelta(hours=2)).isoformat()

    def test_declined_offer_cancels(self, machine, db):
        case = machine.open_case(
            records={"quote": {"offerAmount": 9000, "offerDecision": {"decision": "declined"}}},
            case_id="case-2",
            now=T0,
        )
        db.commit()
        machine.advance_to(case.id, 5, now=T0 + timedelta(hours=1))
        statuses_before = dict(case.stage_statuses)

        case = machine.complete_case(case.id, now=T0 + timedelta(hours=2))
        db.commit()

        assert case.status == CaseStatus.CANCELLED
        assert case.stage_statuses == statuses_before
        assert case.current_stage == 5
        assert machine.active_stage(case) == CaseStage.OFFER_DECISION

    def test_unknown_priority_rejected(self, machine):
        with pytest.raises(ValidationError):
            machine.open_case(priority="urgent")

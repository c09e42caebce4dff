"""
Round ledger helpers
"""
import pytest

from internbooth.core.exceptions import ValidationError
from internbooth.models import RoundStatus
from internbooth.services.round_ledger import (
    append_pending_round,
    check_ledger,
    find_round,
    mark_round_completed,
    upsert_round,
)


def test_upsert_patches_existing_entry():
    rounds = append_pending_round([], 1)
    updated = upsert_round(rounds, 1, RoundStatus.PASSED, feedback="Good form", evaluated_by="admin")

    assert len(updated) == 1
    assert updated[0]["status"] == "passed"
    assert updated[0]["feedback"] == "Good form"
    assert updated[0]["evaluated_by"] == "admin"
    assert updated[0]["evaluated_at"]
    # input untouched
    assert rounds[0]["status"] == "pending"


def test_upsert_keeps_feedback_when_new_one_is_empty():
    rounds = upsert_round([], 2, RoundStatus.PASSED, feedback="First pass")
    updated = upsert_round(rounds, 2, RoundStatus.FAILED, feedback="")
    assert updated[0]["feedback"] == "First pass"
    assert updated[0]["status"] == "failed"


def test_upsert_appends_missing_round():
    rounds = upsert_round(append_pending_round([], 1), 2, RoundStatus.PASSED, test_assignment_id="ta-1")
    assert [r["round_number"] for r in rounds] == [1, 2]
    assert find_round(rounds, 2)["test_assignment_id"] == "ta-1"


def test_append_pending_round_is_idempotent():
    rounds = append_pending_round(append_pending_round([], 3), 3)
    assert len(rounds) == 1
    check_ledger(rounds)


def test_mark_round_completed_opens_round():
    rounds = mark_round_completed([], 2)
    entry = find_round(rounds, 2)
    assert entry["status"] == "pending"
    assert entry["completed_at"]


def test_duplicate_round_numbers_are_detected():
    with pytest.raises(ValidationError):
        check_ledger([{"round_number": 1}, {"round_number": 1}])

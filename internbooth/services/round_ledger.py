"""
Round ledger helpers

The ledger is the rounds array embedded in an application. It holds at most
one entry per round number; entries are patched in place and never removed.
All helpers are pure and return a new list, so the JSON column sees a new
value on assignment.
"""
from datetime import datetime
from typing import List, Optional

from internbooth.core.exceptions import ValidationError
from internbooth.models.application import ApplicationRound, RoundStatus
from internbooth.models.base import utcnow


def _stamp(value: datetime) -> str:
    return value.isoformat()


def find_round(rounds: List[dict], round_number: int) -> Optional[dict]:
    for entry in rounds or []:
        if entry.get("round_number") == round_number:
            return entry
    return None


def upsert_round(
    rounds: List[dict],
    round_number: int,
    status: RoundStatus,
    *,
    feedback: Optional[str] = None,
    evaluated_by: Optional[str] = None,
    test_assignment_id: Optional[str] = None,
    evaluated_at: Optional[datetime] = None
) -> List[dict]:
    """
    Record the outcome of a round

    An existing entry keeps its other fields; its feedback is only replaced
    by a non-empty one. A missing entry is appended.
    """
    stamp = _stamp(evaluated_at or utcnow())
    updated = [dict(entry) for entry in rounds or []]

    for entry in updated:
        if entry.get("round_number") == round_number:
            entry["status"] = RoundStatus(status).value
            if feedback:
                entry["feedback"] = feedback
            entry["evaluated_at"] = stamp
            entry["evaluated_by"] = evaluated_by
            if test_assignment_id and not entry.get("test_assignment_id"):
                entry["test_assignment_id"] = test_assignment_id
            return updated

    updated.append(
        ApplicationRound(
            round_number=round_number,
            status=RoundStatus(status),
            test_assignment_id=test_assignment_id,
            feedback=feedback,
            evaluated_by=evaluated_by,
        ).model_dump(mode="json", exclude={"evaluated_at"}) | {"evaluated_at": stamp}
    )
    return updated


def append_pending_round(rounds: List[dict], round_number: int) -> List[dict]:
    """Open a round; no-op when the round already has an entry"""
    updated = [dict(entry) for entry in rounds or []]
    if find_round(updated, round_number) is None:
        updated.append(
            ApplicationRound(round_number=round_number, status=RoundStatus.PENDING).model_dump(mode="json")
        )
    return updated


def mark_round_completed(
    rounds: List[dict],
    round_number: int,
    completed_at: Optional[datetime] = None
) -> List[dict]:
    """Stamp the student's completion time on a round, opening it if needed"""
    updated = append_pending_round(rounds, round_number)
    for entry in updated:
        if entry.get("round_number") == round_number:
            entry["completed_at"] = _stamp(completed_at or utcnow())
    return updated


def check_ledger(rounds: List[dict]) -> None:
    """Raise when two entries share a round number"""
    seen = set()
    for entry in rounds or []:
        number = entry.get("round_number")
        if number in seen:
            raise ValidationError(f"Round ledger holds duplicate entries for round {number}")
        seen.add(number)

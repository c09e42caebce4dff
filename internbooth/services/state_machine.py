"""
Application state machine

The transition table is the single authority on which admin or student
event may move an application from one status to another. Legacy statuses
are folded onto their current equivalents before any guard is evaluated.
"""
from enum import Enum
from typing import Dict, FrozenSet, Union

from internbooth.core.exceptions import InvalidStateError
from internbooth.models.application import ApplicationStatus


S = ApplicationStatus


class Event(str, Enum):
    """Events that move an application"""
    SUBMIT_FORM = "submit_form"
    APPROVE_FORM = "approve_form"
    REJECT_FORM = "reject_form"
    ASSIGN_TEST = "assign_test"
    UNASSIGN_TEST = "unassign_test"
    COMPLETE_QUIZ = "complete_quiz"
    APPROVE_QUIZ = "approve_quiz"
    SELECT = "select"
    REJECT_QUIZ = "reject_quiz"
    FINAL_REJECT = "final_reject"


LEGACY_ALIASES: Dict[S, S] = {
    S.PENDING: S.FORM_PENDING,
    S.UNDER_REVIEW: S.FORM_SUBMITTED,
    S.SHORTLISTED: S.FORM_APPROVED,
    S.TEST_COMPLETED: S.QUIZ_COMPLETED,
    S.TEST_APPROVED: S.QUIZ_APPROVED,
    S.TEST_REJECTED: S.QUIZ_REJECTED,
}

TERMINAL_STATES: FrozenSet[S] = frozenset({S.SELECTED, S.REJECTED, S.REJECTED_ROUND1})

_QUIZ_UNDER_REVIEW = frozenset({S.TEST_ASSIGNED, S.QUIZ_COMPLETED})

_NON_TERMINAL = frozenset(
    status for status in S
    if status not in TERMINAL_STATES and status not in LEGACY_ALIASES
)

# event -> (legal sources, target)
TRANSITIONS: Dict[Event, tuple] = {
    Event.SUBMIT_FORM: (frozenset({S.FORM_PENDING}), S.FORM_SUBMITTED),
    Event.APPROVE_FORM: (frozenset({S.FORM_SUBMITTED}), S.FORM_APPROVED),
    Event.REJECT_FORM: (frozenset({S.FORM_SUBMITTED}), S.REJECTED_ROUND1),
    Event.ASSIGN_TEST: (frozenset({S.FORM_APPROVED}), S.TEST_ASSIGNED),
    Event.UNASSIGN_TEST: (frozenset({S.TEST_ASSIGNED}), S.FORM_APPROVED),
    Event.COMPLETE_QUIZ: (frozenset({S.TEST_ASSIGNED}), S.QUIZ_COMPLETED),
    Event.APPROVE_QUIZ: (_QUIZ_UNDER_REVIEW, S.QUIZ_APPROVED),
    Event.SELECT: (_QUIZ_UNDER_REVIEW | {S.QUIZ_APPROVED}, S.SELECTED),
    Event.REJECT_QUIZ: (_QUIZ_UNDER_REVIEW, S.QUIZ_REJECTED),
    Event.FINAL_REJECT: (_NON_TERMINAL, S.REJECTED),
}


def normalize_status(status: Union[str, S]) -> S:
    """Parse a stored status and fold legacy aliases"""
    try:
        parsed = S(status)
    except ValueError:
        raise InvalidStateError(f"Unknown application status: {status}")
    return LEGACY_ALIASES.get(parsed, parsed)


def is_terminal(status: Union[str, S]) -> bool:
    return normalize_status(status) in TERMINAL_STATES


def can_transition(status: Union[str, S], event: Event) -> bool:
    sources, _ = TRANSITIONS[event]
    return normalize_status(status) in sources


def transition(status: Union[str, S], event: Event) -> S:
    """
    Target status of applying event to status

    Raises InvalidStateError when the move is not in the table.
    """
    current = normalize_status(status)
    sources, target = TRANSITIONS[event]

    if current in TERMINAL_STATES:
        raise InvalidStateError(
            f"Application is already in terminal status '{current.value}' and cannot {event.value.replace('_', ' ')}"
        )
    if current not in sources:
        expected = ", ".join(sorted(s.value for s in sources))
        raise InvalidStateError(
            f"Cannot {event.value.replace('_', ' ')} for application with status: {current.value}. "
            f"Expected one of: {expected}"
        )
    return target


def advance_round(current_round: int, target_round: int) -> int:
    """current_round never decreases"""
    return max(current_round or 1, target_round)

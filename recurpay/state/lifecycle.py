"""
Lifecycle transitions for recurring payment records.

Records move ``active <-> paused`` on user action and end in ``cancelled``
when deleted. Only active records are picked up by the execution engine.
Rule edits keep the status and recompute the cursor instead.
"""

from datetime import date
from typing import Optional

import structlog

from ..errors import StateTransitionError
from ..logging.config import get_state_logger, log_state_transition
from ..models.record import RecordStatus, RecurringPaymentRecord
from ..models.rule import RecurrenceRule
from ..recurrence.calculator import first_occurrence, occurrence_on_or_after

logger = structlog.get_logger(__name__)

ALLOWED_TRANSITIONS: dict[RecordStatus, frozenset] = {
    RecordStatus.ACTIVE: frozenset({RecordStatus.PAUSED, RecordStatus.CANCELLED}),
    RecordStatus.PAUSED: frozenset({RecordStatus.ACTIVE, RecordStatus.CANCELLED}),
    RecordStatus.CANCELLED: frozenset(),
}


def can_transition(current: RecordStatus, target: RecordStatus) -> bool:
    """Whether ``current -> target`` is in the transition table."""
    return target in ALLOWED_TRANSITIONS[current]


def transition(
    record: RecurringPaymentRecord,
    target: RecordStatus,
    trigger: str
) -> RecurringPaymentRecord:
    """
    Move a record to a new status.

    Args:
        record: Record in its current status
        target: Requested status
        trigger: What requested the change (for the audit log)

    Returns:
        Copy of the record with the new status

    Raises:
        StateTransitionError: If the transition is not allowed
    """
    if not can_transition(record.status, target):
        raise StateTransitionError(
            f"Cannot move record from {record.status.value} to {target.value}",
            current_state=record.status.value,
            attempted_transition=target.value,
            context={"record_id": record.id, "trigger": trigger}
        )

    log_state_transition(
        get_state_logger(__name__),
        record_id=record.id,
        from_state=record.status.value,
        to_state=target.value,
        trigger=trigger,
    )
    return record.with_status(target)


def toggled_status(status: RecordStatus) -> RecordStatus:
    """Target of the user's pause/resume toggle."""
    if status is RecordStatus.ACTIVE:
        return RecordStatus.PAUSED
    if status is RecordStatus.PAUSED:
        return RecordStatus.ACTIVE
    raise StateTransitionError(
        "Cancelled records cannot be toggled",
        current_state=status.value,
        attempted_transition="toggle"
    )


def reschedule(
    record: RecurringPaymentRecord,
    rule: RecurrenceRule,
    from_date: Optional[date] = None
) -> RecurringPaymentRecord:
    """
    Replace a record's rule and recompute its cursor from the new rule.

    Args:
        record: Record being edited (active or paused)
        rule: New recurrence rule
        from_date: Earliest date the new cursor may take; defaults to the anchor

    Returns:
        Record with the new rule and a cursor consistent with it

    Raises:
        StateTransitionError: If the record is cancelled
    """
    if record.status.is_terminal:
        raise StateTransitionError(
            "Cancelled records cannot be edited",
            current_state=record.status.value,
            attempted_transition="edit_rule",
            context={"record_id": record.id}
        )

    if from_date is None:
        cursor = first_occurrence(rule)
    else:
        cursor = occurrence_on_or_after(rule, from_date)

    logger.info(
        "Rescheduled recurring payment",
        record_id=record.id,
        frequency=rule.frequency.value,
        anchor_date=rule.anchor_date.isoformat(),
        old_next_run_date=record.next_run_date.isoformat() if record.next_run_date else None,
        new_next_run_date=cursor.isoformat(),
    )
    return record.with_rule(rule, cursor)

"""
Direct Tip Split Engine (``tippool_engines.tip_split``).

Responsibility
--------------
Pure functions for restaurants that pool all tips directly instead of by
percentage contribution:

* split by hours, by explicit role weight, or evenly
* manual override of one employee's amount with automatic rebalancing
* approval checks for a finished split
* tip-eligibility filtering of the roster

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Shares the rounding rule of the percentage-pool engine: round every share,
the last positive-weight recipient absorbs the residual.

Failure modes
-------------
* ``InvalidAmountError`` for negative totals, hours or weights.
* ``EmployeeNotAllocatedError`` / ``OverrideOutOfRangeError`` for bad
  manual overrides.
* Business-rule failures of an approval are returned, not raised.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from tippool_engines.rounding import allocate_by_weight
from tippool_engines.tracer import traced_engine
from tippool_kernel.domain.values import (
    EmployeeRecord,
    HoursParticipant,
    Number,
    Participant,
    RoleParticipant,
    TipShare,
    as_decimal,
)
from tippool_kernel.exceptions import (
    EmployeeNotAllocatedError,
    InvalidAmountError,
    OverrideOutOfRangeError,
)
from tippool_kernel.logging_config import get_logger

logger = get_logger("engines.tip_split")

_ZERO = Decimal("0")

APPROVAL_NO_SHARES = "Cannot approve tips without employee allocations"
APPROVAL_ZERO_TOTAL = "Cannot approve tips with $0 total allocation"


def _check_total(total_cents: int) -> None:
    if isinstance(total_cents, bool) or not isinstance(total_cents, int) or total_cents < 0:
        raise InvalidAmountError("tip split", "total", "total_cents", total_cents)


def _weight(value: Number, employee_id: str, field: str) -> Decimal:
    try:
        weight = as_decimal(value)
    except (InvalidOperation, ValueError):
        raise InvalidAmountError("participant", employee_id, field, value) from None
    if not weight.is_finite() or weight < _ZERO:
        raise InvalidAmountError("participant", employee_id, field, value)
    return weight


@traced_engine("tip_split_hours", "1.0", fingerprint_fields=("total_cents", "participants"))
def split_tips_by_hours(
    total_cents: int,
    participants: Sequence[HoursParticipant],
) -> tuple[TipShare, ...]:
    """Split ``total_cents`` in proportion to hours worked."""
    _check_total(total_cents)
    hours = [_weight(p.hours, p.employee_id, "hours") for p in participants]
    amounts = allocate_by_weight(total_cents, hours)
    return tuple(
        TipShare(employee_id=p.employee_id, name=p.name, amount_cents=amount, hours=h)
        for p, h, amount in zip(participants, hours, amounts)
    )


@traced_engine("tip_split_role", "1.0", fingerprint_fields=("total_cents", "participants"))
def split_tips_by_role(
    total_cents: int,
    participants: Sequence[RoleParticipant],
) -> tuple[TipShare, ...]:
    """Split ``total_cents`` in proportion to each participant's role weight."""
    _check_total(total_cents)
    weights = [_weight(p.weight, p.employee_id, "weight") for p in participants]
    amounts = allocate_by_weight(total_cents, weights)
    return tuple(
        TipShare(employee_id=p.employee_id, name=p.name, amount_cents=amount, role=p.role)
        for p, amount in zip(participants, amounts)
    )


@traced_engine("tip_split_even", "1.0", fingerprint_fields=("total_cents", "participants"))
def split_tips_evenly(
    total_cents: int,
    participants: Sequence[Participant],
) -> tuple[TipShare, ...]:
    """Split ``total_cents`` equally; the last participant takes the odd cents."""
    _check_total(total_cents)
    amounts = allocate_by_weight(total_cents, [Decimal("1")] * len(participants))
    return tuple(
        TipShare(employee_id=p.employee_id, name=p.name, amount_cents=amount)
        for p, amount in zip(participants, amounts)
    )


def rebalance_allocations(
    total_cents: int,
    shares: Sequence[TipShare],
    employee_id: str,
    new_amount_cents: int,
) -> tuple[TipShare, ...]:
    """
    Pin one employee's amount and rebalance everyone else.

    The cents left after the override are spread over the other shares in
    proportion to their previous amounts, or evenly if those were all zero.

    Preconditions:
        - ``employee_id`` appears in ``shares``.
        - ``0 <= new_amount_cents <= total_cents``.
    Postconditions:
        - Sum of the returned amounts == ``total_cents``.
        - Order of ``shares`` is preserved.
    Raises:
        EmployeeNotAllocatedError: unknown ``employee_id``.
        OverrideOutOfRangeError: override outside [0, total_cents], or a
            sole share pinned below the total (nobody could take the rest).
    """
    _check_total(total_cents)
    if not any(s.employee_id == employee_id for s in shares):
        raise EmployeeNotAllocatedError(employee_id)
    if new_amount_cents < 0 or new_amount_cents > total_cents:
        raise OverrideOutOfRangeError(employee_id, new_amount_cents, total_cents)

    others = [s for s in shares if s.employee_id != employee_id]
    if not others and new_amount_cents != total_cents:
        raise OverrideOutOfRangeError(employee_id, new_amount_cents, total_cents)
    remaining = total_cents - new_amount_cents

    weights = [Decimal(s.amount_cents) for s in others]
    if sum(weights, _ZERO) == _ZERO:
        weights = [Decimal("1")] * len(others)
    rebalanced = dict(
        zip((s.employee_id for s in others), allocate_by_weight(remaining, weights))
    )

    logger.info("tip_split_rebalanced", extra={
        "employee_id": employee_id,
        "new_amount_cents": new_amount_cents,
        "total_cents": total_cents,
        "other_count": len(others),
    })

    return tuple(
        TipShare(
            employee_id=s.employee_id,
            name=s.name,
            amount_cents=(
                new_amount_cents if s.employee_id == employee_id
                else rebalanced[s.employee_id]
            ),
            hours=s.hours,
            role=s.role,
        )
        for s in shares
    )


def validate_tip_split_for_approval(
    status: str,
    shares: Sequence[TipShare] | None,
) -> tuple[bool, str | None]:
    """Check whether a split may be approved.

    Drafts are always valid.  An approval needs at least one share and a
    non-zero total.

    Returns:
        Tuple of (is_valid, error_message).
        error_message is None when is_valid is True.
    """
    if status != "approved":
        return True, None
    if not shares:
        return False, APPROVAL_NO_SHARES
    if sum(s.amount_cents for s in shares) == 0:
        return False, APPROVAL_ZERO_TOTAL
    return True, None


def is_tip_eligible(employee: EmployeeRecord) -> bool:
    """Active employees share tips unless flagged out; an unset flag means eligible."""
    if employee.status != "active":
        return False
    return employee.tip_eligible is not False


def filter_tip_eligible(employees: Sequence[EmployeeRecord]) -> tuple[EmployeeRecord, ...]:
    """Employees who may take part in a tip split, in roster order."""
    return tuple(e for e in employees if is_tip_eligible(e))

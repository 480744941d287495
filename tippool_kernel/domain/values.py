"""
Values -- Immutable domain value objects for tip-pool allocation.

Responsibility:
    Provides the input records (ServerEarning, ContributionPool, PoolWorker),
    the derived records (Contribution, PoolRefund, WorkerShare, PoolResult,
    ServerResult, SplitItem) and the direct-split records (TipShare and its
    participants) shared by every engine.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine module. No outward dependencies except
    tippool_kernel.exceptions.

Invariants enforced:
    - Every money amount is an integer number of cents.
    - Percentages, hours and weights are held as given and converted with
      ``as_decimal`` (through ``str``) before arithmetic, never as floats.
    - ContributionPool.share_method is always a ShareMethod.
    - ContributionPool.eligible_employee_ids is always a frozenset and
      role_weights is always a read-only mapping.

Failure modes:
    - UnknownShareMethodError when a pool is built with an unrecognised
      share method string.
    - Range checks (negative cents, percentages over 100) are NOT done here;
      see tippool_engines.validation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from types import MappingProxyType

from tippool_kernel.exceptions import UnknownShareMethodError

Number = Decimal | int | float | str


def as_decimal(value: Number) -> Decimal:
    """
    Convert a numeric input to Decimal without binary-float artefacts.

    Floats go through ``str`` so that ``7.2`` becomes ``Decimal("7.2")``.

    Raises:
        InvalidOperation: if ``value`` is not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidOperation(f"Boolean is not a number: {value!r}")
    return Decimal(str(value))


class ShareMethod(str, Enum):
    """How a pool's cents are split among its present eligible workers."""

    HOURS = "hours"  # By hours worked
    ROLE = "role"  # By configured role weight
    EVEN = "even"  # Equal split


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ServerEarning:
    """One server's directly-earned tips for the period."""

    employee_id: str
    name: str
    earned_amount_cents: int


@dataclass(frozen=True, slots=True)
class ContributionPool:
    """
    A configured bucket that takes a percentage of every server's tips.

    Contract:
        Frozen dataclass; configuration input for one run.
    Guarantees:
        - ``share_method`` is a ShareMethod.
        - ``eligible_employee_ids`` is a frozenset.
        - ``role_weights`` is read-only; only consulted for ShareMethod.ROLE.
        - Hashable: equal pools hash equal, with ``role_weights`` hashed as
          sorted (role, weight) pairs.
    Non-goals:
        - Does not range-check the percentage or weights; the validation
          step does that before any computation.
    """

    pool_id: str
    name: str
    contribution_percentage: Number
    share_method: ShareMethod | str
    eligible_employee_ids: frozenset[str] = frozenset()
    role_weights: Mapping[str, Number] = field(default_factory=dict)

    def __post_init__(self) -> None:
        try:
            method = ShareMethod(self.share_method)
        except ValueError:
            raise UnknownShareMethodError(self.pool_id, self.share_method) from None
        object.__setattr__(self, "share_method", method)
        object.__setattr__(
            self, "eligible_employee_ids", frozenset(self.eligible_employee_ids)
        )
        object.__setattr__(
            self, "role_weights", MappingProxyType(dict(self.role_weights))
        )

    def __hash__(self) -> int:
        return hash((
            self.pool_id,
            self.name,
            self.contribution_percentage,
            self.share_method,
            self.eligible_employee_ids,
            tuple(sorted(self.role_weights.items())),
        ))

    def is_eligible(self, employee_id: str) -> bool:
        return employee_id in self.eligible_employee_ids


@dataclass(frozen=True, slots=True)
class PoolWorker:
    """A pool-eligible worker's presence and activity for the period."""

    employee_id: str
    name: str
    hours_worked: Number = Decimal("0")
    role: str = ""


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Contribution:
    """Cents one server owes one pool."""

    server_id: str
    pool_id: str
    amount_cents: int


@dataclass(frozen=True, slots=True)
class PoolRefund:
    """Cents returned to a server because a pool had nobody to pay."""

    server_id: str
    pool_id: str
    refund_cents: int


@dataclass(frozen=True, slots=True)
class WorkerShare:
    """Cents a pool worker receives from one pool."""

    employee_id: str
    pool_id: str
    amount_cents: int
    name: str = ""


@dataclass(frozen=True, slots=True)
class PoolResult:
    """
    Per-pool totals.

    Guarantees:
        - ``total_contributed == total_distributed + total_refunded``.
    """

    pool_id: str
    total_contributed: int
    total_distributed: int
    total_refunded: int

    @property
    def is_balanced(self) -> bool:
        return self.total_contributed == self.total_distributed + self.total_refunded


@dataclass(frozen=True, slots=True)
class PoolOutcome:
    """Everything one pool produced: shares or refunds, plus its totals."""

    pool_id: str
    shares: tuple[WorkerShare, ...]
    refunds: tuple[PoolRefund, ...]
    result: PoolResult

    @property
    def was_refunded(self) -> bool:
        return not self.shares and bool(self.refunds)


@dataclass(frozen=True, slots=True)
class ServerResult:
    """
    Per-server totals.

    Guarantees:
        - ``retained == earned - contributed + refunded``.
        - ``0 <= retained <= earned``.
    """

    employee_id: str
    earned_amount_cents: int
    retained_amount_cents: int
    refunded_amount_cents: int
    contributed_amount_cents: int = 0


@dataclass(frozen=True, slots=True)
class SplitItem:
    """Final per-employee payout line after merging all roles."""

    employee_id: str
    amount_cents: int
    name: str = ""


@dataclass(frozen=True, slots=True)
class PercentageAllocationResult:
    """
    Complete result of one percentage-pool allocation run.

    Contract:
        Frozen dataclass summarising a run; the caller formats and persists.
    Guarantees:
        - ``total_paid_out == total_earned`` (no cent created or destroyed).
        - Every PoolResult is balanced.
    """

    server_results: tuple[ServerResult, ...]
    pool_results: tuple[PoolResult, ...]
    split_items: tuple[SplitItem, ...]
    contributions: tuple[Contribution, ...] = ()
    refunds: tuple[PoolRefund, ...] = ()
    shares: tuple[WorkerShare, ...] = ()

    @property
    def total_earned(self) -> int:
        return sum(s.earned_amount_cents for s in self.server_results)

    @property
    def total_paid_out(self) -> int:
        return sum(item.amount_cents for item in self.split_items)

    @property
    def is_balanced(self) -> bool:
        return self.total_paid_out == self.total_earned and all(
            p.is_balanced for p in self.pool_results
        )

    def split_item_for(self, employee_id: str) -> SplitItem | None:
        for item in self.split_items:
            if item.employee_id == employee_id:
                return item
        return None


# ---------------------------------------------------------------------------
# Direct tip splits
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Participant:
    """An employee taking part in an even split."""

    employee_id: str
    name: str


@dataclass(frozen=True, slots=True)
class HoursParticipant:
    """An employee taking part in an hours-weighted split."""

    employee_id: str
    name: str
    hours: Number


@dataclass(frozen=True, slots=True)
class RoleParticipant:
    """An employee taking part in a role-weighted split."""

    employee_id: str
    name: str
    role: str
    weight: Number


@dataclass(frozen=True, slots=True)
class TipShare:
    """One employee's share of a directly pooled tip total."""

    employee_id: str
    name: str
    amount_cents: int
    hours: Decimal | None = None
    role: str | None = None


@dataclass(frozen=True, slots=True)
class EmployeeRecord:
    """Roster entry used to decide who may share tips."""

    employee_id: str
    name: str
    status: str = "active"
    compensation_type: str = "hourly"
    tip_eligible: bool | None = None


def employee_ids(records: Iterable[ServerEarning | PoolWorker]) -> tuple[str, ...]:
    """Employee ids in input order."""
    return tuple(r.employee_id for r in records)

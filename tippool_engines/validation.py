"""
Input validation for percentage-pool allocation (``tippool_engines.validation``).

Responsibility
--------------
Reject malformed period input before any cent is computed, with a typed
error naming the entity and the field at fault.  A run is all-or-nothing:
either every input passes or nothing is computed.

Architecture position
---------------------
**Engines layer** -- pure functional core.  Called by the aggregator as its
first step; may also be called directly by services that want to fail fast
at the data-entry boundary.

Checks
------
* Servers: ``earned_amount_cents`` is a non-negative int; ids unique.
* Pools: percentage finite and within [0, 100]; role weights finite and
  non-negative; ids unique.  Pools may together take more than 100%;
  ``compute_contributions`` caps each contribution at what the server has left.
* Workers: ``hours_worked`` finite and non-negative; ids unique.

A worker whose role has no weight under ShareMethod.ROLE is NOT an error;
the distributor gives that worker weight 0.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal, InvalidOperation

from tippool_kernel.domain.values import (
    ContributionPool,
    Number,
    PoolWorker,
    ServerEarning,
    as_decimal,
    employee_ids,
)
from tippool_kernel.exceptions import (
    DuplicateEntityError,
    InvalidAmountError,
    InvalidPercentageError,
    ValidationError,
)
from tippool_kernel.logging_config import get_logger

logger = get_logger("engines.validation")

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")


def _non_negative_decimal(
    value: Number, entity_type: str, entity_id: str, field: str,
) -> Decimal:
    try:
        number = as_decimal(value)
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(entity_type, entity_id, field, value) from None
    if not number.is_finite() or number < _ZERO:
        raise InvalidAmountError(entity_type, entity_id, field, value)
    return number


def _reject_duplicates(ids: Iterable[str], entity_type: str, field: str) -> None:
    seen: set[str] = set()
    for entity_id in ids:
        if entity_id in seen:
            raise DuplicateEntityError(entity_type, entity_id, field)
        seen.add(entity_id)


def validate_server(server: ServerEarning) -> None:
    amount = server.earned_amount_cents
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidAmountError(
            "server", server.employee_id, "earned_amount_cents", amount,
        )


def validate_pool(pool: ContributionPool) -> Decimal:
    """Validate one pool and return its percentage as a Decimal."""
    try:
        percentage = as_decimal(pool.contribution_percentage)
    except (InvalidOperation, ValueError):
        raise InvalidPercentageError(
            pool.pool_id, pool.contribution_percentage, "is not a number",
        ) from None
    if not percentage.is_finite() or not (_ZERO <= percentage <= _HUNDRED):
        raise InvalidPercentageError(pool.pool_id, pool.contribution_percentage)

    for role, weight in pool.role_weights.items():
        _non_negative_decimal(weight, "pool", pool.pool_id, f"role_weights[{role}]")
    return percentage


def validate_worker(worker: PoolWorker) -> None:
    _non_negative_decimal(
        worker.hours_worked, "worker", worker.employee_id, "hours_worked",
    )


def validate_allocation_inputs(
    servers: Sequence[ServerEarning],
    pools: Sequence[ContributionPool],
    workers: Sequence[PoolWorker],
) -> None:
    """
    Validate a full period's input.

    Preconditions:
        None -- this is the guard.
    Postconditions:
        Returns None when every check passes.
    Raises:
        InvalidAmountError: negative or non-integer cents, negative hours or
            role weights.
        InvalidPercentageError: a percentage outside [0, 100].
        DuplicateEntityError: repeated server, pool or worker id.
    """
    try:
        for server in servers:
            validate_server(server)
        _reject_duplicates(employee_ids(servers), "server", "employee_id")

        for pool in pools:
            validate_pool(pool)
        _reject_duplicates((p.pool_id for p in pools), "pool", "pool_id")

        for worker in workers:
            validate_worker(worker)
        _reject_duplicates(employee_ids(workers), "worker", "employee_id")
    except ValidationError as exc:
        logger.warning("allocation_input_rejected", extra={
            "error_code": exc.code,
            "entity_type": exc.entity_type,
            "entity_id": exc.entity_id,
            "field": exc.field,
        })
        raise

    logger.debug("allocation_input_validated", extra={
        "server_count": len(servers),
        "pool_count": len(pools),
        "worker_count": len(workers),
    })

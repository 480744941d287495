"""
Module: tippool_engines.pool_distribution
Responsibility:
    For one contribution pool, either distribute its contributed cents among
    the eligible workers present this period, or -- when nobody with a
    positive weight is present -- refund every cent to the contributing
    servers in proportion to what each gave.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Pool balance: total_contributed == total_distributed + total_refunded,
      and exactly one of the two is non-zero (or both are zero).
    - Candidates are the intersection of "eligible" and "present": a worker
      listed as eligible but absent from the period's workers is treated the
      same as one who was never eligible.
    - Worker order is the order of the period's worker list; refund order is
      contribution order.  The last positive-weight recipient absorbs the
      rounding residual (see tippool_engines.rounding).
    - Weights: hours -> hours_worked, role -> role_weights[role] (0 when the
      role has no entry), even -> 1.

Failure modes:
    - ConservationViolationError if a refund is requested for a positive
      total whose contributions sum to zero (inconsistent caller input).
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from tippool_engines.rounding import allocate_by_weight
from tippool_engines.tracer import traced_engine
from tippool_kernel.domain.values import (
    Contribution,
    ContributionPool,
    PoolOutcome,
    PoolRefund,
    PoolResult,
    PoolWorker,
    ShareMethod,
    WorkerShare,
    as_decimal,
)
from tippool_kernel.exceptions import ConservationViolationError
from tippool_kernel.logging_config import get_logger

logger = get_logger("engines.pool_distribution")

_ZERO = Decimal("0")
_ONE = Decimal("1")


def worker_weight(pool: ContributionPool, worker: PoolWorker) -> Decimal:
    """Weight of ``worker`` in ``pool`` under the pool's share method."""
    match pool.share_method:
        case ShareMethod.HOURS:
            return as_decimal(worker.hours_worked)
        case ShareMethod.ROLE:
            weight = pool.role_weights.get(worker.role)
            return _ZERO if weight is None else as_decimal(weight)
        case ShareMethod.EVEN:
            return _ONE
        case _:
            raise ValueError(f"Unknown share method: {pool.share_method}")


def present_eligible_workers(
    pool: ContributionPool,
    workers: Sequence[PoolWorker],
) -> tuple[PoolWorker, ...]:
    """Workers who are both eligible for ``pool`` and present, in worker order."""
    return tuple(w for w in workers if pool.is_eligible(w.employee_id))


@traced_engine("pool_refunds", "1.0", fingerprint_fields=("pool_id", "contributions", "pool_total_cents"))
def calculate_pool_refunds(
    pool_id: str,
    contributions: Sequence[Contribution],
    pool_total_cents: int,
) -> tuple[PoolRefund, ...]:
    """
    Refund a pool's total to its contributors, pro rata to their contributions.

    Args:
        pool_id: The pool being refunded.
        contributions: This pool's contributions, in contribution order.
        pool_total_cents: Cents to refund (normally the sum of contributions).

    Returns:
        One PoolRefund per contribution.  When the total is 0 every refund
        is 0 and no ratio is computed.
    """
    if pool_total_cents == 0:
        return tuple(
            PoolRefund(server_id=c.server_id, pool_id=pool_id, refund_cents=0)
            for c in contributions
        )

    weights = [Decimal(c.amount_cents) for c in contributions]
    if sum(weights, _ZERO) == _ZERO:
        raise ConservationViolationError(f"pool {pool_id} refund", pool_total_cents, 0)

    amounts = allocate_by_weight(pool_total_cents, weights)
    return tuple(
        PoolRefund(server_id=c.server_id, pool_id=pool_id, refund_cents=amount)
        for c, amount in zip(contributions, amounts)
    )


@traced_engine("pool_distribution", "1.0", fingerprint_fields=("pool", "contributions", "workers"))
def distribute_pool(
    pool: ContributionPool,
    contributions: Sequence[Contribution],
    workers: Sequence[PoolWorker],
) -> PoolOutcome:
    """
    Distribute or refund one pool.

    Args:
        pool: The pool configuration.
        contributions: Contributions targeting this pool.
        workers: Everyone who worked the period (any pool).

    Returns:
        PoolOutcome holding either worker shares or server refunds, and the
        balanced PoolResult.
    """
    total_contributed = sum(c.amount_cents for c in contributions)

    weighted = [
        (worker, weight)
        for worker in present_eligible_workers(pool, workers)
        if (weight := worker_weight(pool, worker)) > _ZERO
    ]

    if weighted:
        amounts = allocate_by_weight(total_contributed, [w for _, w in weighted])
        shares = tuple(
            WorkerShare(
                employee_id=worker.employee_id,
                pool_id=pool.pool_id,
                amount_cents=amount,
                name=worker.name,
            )
            for (worker, _), amount in zip(weighted, amounts)
        )
        result = PoolResult(
            pool_id=pool.pool_id,
            total_contributed=total_contributed,
            total_distributed=total_contributed,
            total_refunded=0,
        )
        logger.info("pool_distributed", extra={
            "pool_id": pool.pool_id,
            "share_method": pool.share_method.value,
            "total_contributed": total_contributed,
            "recipient_count": len(shares),
        })
        return PoolOutcome(pool_id=pool.pool_id, shares=shares, refunds=(), result=result)

    refunds = calculate_pool_refunds(pool.pool_id, contributions, total_contributed)
    result = PoolResult(
        pool_id=pool.pool_id,
        total_contributed=total_contributed,
        total_distributed=0,
        total_refunded=total_contributed,
    )
    logger.info("pool_refunded", extra={
        "pool_id": pool.pool_id,
        "share_method": pool.share_method.value,
        "total_refunded": total_contributed,
        "contributor_count": len(refunds),
    })
    return PoolOutcome(pool_id=pool.pool_id, shares=(), refunds=refunds, result=result)

"""
Module: tippool_engines.aggregation
Responsibility:
    Run the full percentage-pool pipeline for one tip period:
    validate -> contributions -> per-pool distribution or refund ->
    per-server totals -> merged per-employee split items.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The single entry point consumed by payroll and reporting services.

Invariants enforced:
    - Conservation: sum(split_items.amount_cents) == sum(earned cents).
    - Pool balance: every PoolResult is balanced.
    - Server totals: retained == earned - contributed + refunded and
      0 <= retained <= earned.
    - Merge on identity: an employee who is both a server and a pool
      recipient gets exactly one split item, accumulated in a map keyed by
      employee id across both passes.
    - Determinism: identical input yields identical output (insertion-ordered
      maps, stable worker and contribution order).

Failure modes:
    - ValidationError subclasses from tippool_engines.validation, before any
      computation.
    - ConservationViolationError if a balance check fails after computing.

Usage:
    from tippool_engines.aggregation import compute_percentage_pool_allocations

    result = compute_percentage_pool_allocations(servers, pools, workers)
    assert result.total_paid_out == result.total_earned
"""

from __future__ import annotations

import time
from collections import defaultdict
from collections.abc import Sequence

from tippool_engines.contributions import compute_contributions
from tippool_engines.pool_distribution import distribute_pool
from tippool_engines.tracer import traced_engine
from tippool_engines.validation import validate_allocation_inputs
from tippool_kernel.domain.values import (
    Contribution,
    ContributionPool,
    PercentageAllocationResult,
    PoolOutcome,
    PoolWorker,
    ServerEarning,
    ServerResult,
    SplitItem,
)
from tippool_kernel.exceptions import ConservationViolationError
from tippool_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")


def build_server_results(
    servers: Sequence[ServerEarning],
    contributions: Sequence[Contribution],
    outcomes: Sequence[PoolOutcome],
) -> tuple[ServerResult, ...]:
    """Per-server earned, contributed, refunded and retained cents."""
    contributed: dict[str, int] = defaultdict(int)
    for c in contributions:
        contributed[c.server_id] += c.amount_cents

    refunded: dict[str, int] = defaultdict(int)
    for outcome in outcomes:
        for refund in outcome.refunds:
            refunded[refund.server_id] += refund.refund_cents

    return tuple(
        ServerResult(
            employee_id=s.employee_id,
            earned_amount_cents=s.earned_amount_cents,
            retained_amount_cents=(
                s.earned_amount_cents
                - contributed[s.employee_id]
                + refunded[s.employee_id]
            ),
            refunded_amount_cents=refunded[s.employee_id],
            contributed_amount_cents=contributed[s.employee_id],
        )
        for s in servers
    )


def build_split_items(
    servers: Sequence[ServerEarning],
    server_results: Sequence[ServerResult],
    outcomes: Sequence[PoolOutcome],
) -> tuple[SplitItem, ...]:
    """
    Merge server retained cents and pool shares into one line per employee.

    A server who earned nothing gets no line of their own; a pool share of
    zero never opens a new line.  Neither affects the totals.
    """
    amounts: dict[str, int] = {}
    names: dict[str, str] = {}

    for server, result in zip(servers, server_results):
        if server.earned_amount_cents == 0:
            continue
        amounts[server.employee_id] = result.retained_amount_cents
        names[server.employee_id] = server.name

    for outcome in outcomes:
        for share in outcome.shares:
            if share.employee_id in amounts:
                amounts[share.employee_id] += share.amount_cents
            elif share.amount_cents:
                amounts[share.employee_id] = share.amount_cents
                names[share.employee_id] = share.name

    return tuple(
        SplitItem(employee_id=employee_id, amount_cents=amount, name=names[employee_id])
        for employee_id, amount in amounts.items()
    )


def _verify_balance(result: PercentageAllocationResult) -> None:
    for pool_result in result.pool_results:
        if not pool_result.is_balanced:
            raise ConservationViolationError(
                f"pool {pool_result.pool_id}",
                pool_result.total_contributed,
                pool_result.total_distributed + pool_result.total_refunded,
            )
    for server_result in result.server_results:
        if not 0 <= server_result.retained_amount_cents <= server_result.earned_amount_cents:
            raise ConservationViolationError(
                f"server {server_result.employee_id} retained",
                server_result.earned_amount_cents,
                server_result.retained_amount_cents,
            )
    if result.total_paid_out != result.total_earned:
        raise ConservationViolationError(
            "split items", result.total_earned, result.total_paid_out,
        )


@traced_engine(
    "percentage_pool_allocation", "1.0",
    fingerprint_fields=("servers", "pools", "workers"),
)
def compute_percentage_pool_allocations(
    servers: Sequence[ServerEarning],
    pools: Sequence[ContributionPool],
    workers: Sequence[PoolWorker],
) -> PercentageAllocationResult:
    """
    Compute a full percentage-pool allocation for one tip period.

    Args:
        servers: Servers and their directly earned cents.
        pools: Contribution pools configured for the restaurant.
        workers: Everyone who worked the period, with hours and role.

    Returns:
        PercentageAllocationResult with server results, pool results and
        the merged split items, plus the intermediate contributions,
        refunds and shares for audit display.

    Raises:
        ValidationError: on malformed input (nothing is computed).
        ConservationViolationError: if a balance check fails.
    """
    t0 = time.monotonic()
    validate_allocation_inputs(servers, pools, workers)

    contributions = compute_contributions(servers, pools)

    by_pool: dict[str, list[Contribution]] = defaultdict(list)
    for c in contributions:
        by_pool[c.pool_id].append(c)

    outcomes = tuple(
        distribute_pool(pool, by_pool[pool.pool_id], workers)
        for pool in pools
    )

    server_results = build_server_results(servers, contributions, outcomes)
    split_items = build_split_items(servers, server_results, outcomes)

    result = PercentageAllocationResult(
        server_results=server_results,
        pool_results=tuple(o.result for o in outcomes),
        split_items=split_items,
        contributions=contributions,
        refunds=tuple(r for o in outcomes for r in o.refunds),
        shares=tuple(s for o in outcomes for s in o.shares),
    )
    _verify_balance(result)

    logger.info("allocation_completed", extra={
        "server_count": len(servers),
        "pool_count": len(pools),
        "worker_count": len(workers),
        "total_earned_cents": result.total_earned,
        "pools_refunded": sum(1 for o in outcomes if o.was_refunded),
        "split_item_count": len(split_items),
        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
    })
    return result


aggregate = compute_percentage_pool_allocations

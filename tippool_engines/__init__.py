"""
Module: tippool_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    tip-pool calculation engines.  This is the canonical import surface for
    payroll and reporting services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import tippool_kernel (and sibling engine modules).
    MUST NOT import tippool_config.

Invariants enforced:
    - Purity: no clock reads that affect results, no I/O, no shared state.
      Every call builds fresh output from its own input.
    - Integer cents for money; Decimal for percentages, hours and weights.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from tippool_engines import compute_percentage_pool_allocations
    from tippool_engines import split_tips_by_hours, rebalance_allocations
"""

from tippool_engines.aggregation import (
    aggregate,
    build_server_results,
    build_split_items,
    compute_percentage_pool_allocations,
)
from tippool_engines.contributions import compute_contributions, contribution_cents
from tippool_engines.pool_distribution import (
    calculate_pool_refunds,
    distribute_pool,
    present_eligible_workers,
    worker_weight,
)
from tippool_engines.rounding import allocate_by_weight, round_cents
from tippool_engines.tip_split import (
    filter_tip_eligible,
    is_tip_eligible,
    rebalance_allocations,
    split_tips_by_hours,
    split_tips_by_role,
    split_tips_evenly,
    validate_tip_split_for_approval,
)
from tippool_engines.tracer import traced_engine
from tippool_engines.validation import validate_allocation_inputs

__all__ = [
    # Aggregation
    "aggregate",
    "build_server_results",
    "build_split_items",
    "compute_percentage_pool_allocations",
    # Contributions
    "compute_contributions",
    "contribution_cents",
    # Pool distribution
    "calculate_pool_refunds",
    "distribute_pool",
    "present_eligible_workers",
    "worker_weight",
    # Rounding
    "allocate_by_weight",
    "round_cents",
    # Direct splits
    "filter_tip_eligible",
    "is_tip_eligible",
    "rebalance_allocations",
    "split_tips_by_hours",
    "split_tips_by_role",
    "split_tips_evenly",
    "validate_tip_split_for_approval",
    # Infrastructure
    "traced_engine",
    "validate_allocation_inputs",
]

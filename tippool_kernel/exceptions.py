"""
Typed Exception Hierarchy for the Tip Pool Kernel.

Every error has a typed class, a ``code`` class attribute (machine-readable,
API-safe) and structured attributes, so callers catch by type and report by
code instead of parsing messages:

    try:
        result = compute_percentage_pool_allocations(servers, pools, workers)
    except InvalidPercentageError as e:
        api_response(code=e.code, pool=e.entity_id, field=e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TipPoolError (base)
    |
    +-- ValidationError
    |   +-- InvalidPercentageError
    |   +-- InvalidAmountError
    |   +-- UnknownShareMethodError
    |   +-- DuplicateEntityError
    |
    +-- AllocationError
    |   +-- ConservationViolationError
    |   +-- EmployeeNotAllocatedError
    |   +-- OverrideOutOfRangeError
    |
    +-- ConfigurationError
        +-- InvalidPoolConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                    | When Raised
--------------|-------------------------|------------------------------------------
Validation    | INVALID_PERCENTAGE      | Pool percentage outside [0, 100], or the
              |                         | pools together take more than 100%
              | INVALID_AMOUNT          | Negative / non-integer cents, negative
              |                         | hours or role weight
              | UNKNOWN_SHARE_METHOD    | share_method not hours / role / even
              | DUPLICATE_ENTITY        | Same server, pool or worker id twice
--------------|-------------------------|------------------------------------------
Allocation    | CONSERVATION_VIOLATION  | Cents created or destroyed by a run
              | EMPLOYEE_NOT_ALLOCATED  | Override targets an employee not in
              |                         | the split
              | OVERRIDE_OUT_OF_RANGE   | Override outside [0, total]
--------------|-------------------------|------------------------------------------
Configuration | INVALID_POOL_CONFIG     | Missing key / malformed pool settings

Validation errors are raised before any computation; a run is all-or-nothing.
"""

from __future__ import annotations

from typing import Any


class TipPoolError(Exception):
    """
    Base exception for all tip pool errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TIP_POOL_ERROR"


# Validation exceptions


class ValidationError(TipPoolError):
    """
    Input rejected before allocation.

    Carries which entity and which field were at fault.
    """

    code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        entity_type: str,
        entity_id: str,
        field: str,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.field = field
        super().__init__(message)


class InvalidPercentageError(ValidationError):
    """Contribution percentage is outside [0, 100]."""

    code: str = "INVALID_PERCENTAGE"

    def __init__(self, pool_id: str, percentage: Any, reason: str = "must be between 0 and 100"):
        self.percentage = str(percentage)
        super().__init__(
            f"Pool {pool_id}: contribution_percentage {percentage} {reason}",
            entity_type="pool",
            entity_id=pool_id,
            field="contribution_percentage",
        )


class InvalidAmountError(ValidationError):
    """A money amount, hours figure or weight is negative or malformed."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, entity_type: str, entity_id: str, field: str, value: Any):
        self.value = str(value)
        super().__init__(
            f"{entity_type.capitalize()} {entity_id}: invalid {field} {value!r}",
            entity_type=entity_type,
            entity_id=entity_id,
            field=field,
        )


class UnknownShareMethodError(ValidationError):
    """Pool share method is not one of hours, role, even."""

    code: str = "UNKNOWN_SHARE_METHOD"

    def __init__(self, pool_id: str, share_method: Any):
        self.share_method = str(share_method)
        super().__init__(
            f"Pool {pool_id}: unknown share_method {share_method!r}",
            entity_type="pool",
            entity_id=pool_id,
            field="share_method",
        )


class DuplicateEntityError(ValidationError):
    """The same id appears twice in one input collection."""

    code: str = "DUPLICATE_ENTITY"

    def __init__(self, entity_type: str, entity_id: str, field: str):
        super().__init__(
            f"Duplicate {entity_type} {field}: {entity_id}",
            entity_type=entity_type,
            entity_id=entity_id,
            field=field,
        )


# Allocation exceptions


class AllocationError(TipPoolError):
    """Base exception for allocation-time errors."""

    code: str = "ALLOCATION_ERROR"


class ConservationViolationError(AllocationError):
    """
    Cents were created or destroyed.

    Raised when a computed result fails its balance check. Never expected on
    validated input; indicates a defect, not a user error.
    """

    code: str = "CONSERVATION_VIOLATION"

    def __init__(self, scope: str, expected_cents: int, actual_cents: int):
        self.scope = scope
        self.expected_cents = expected_cents
        self.actual_cents = actual_cents
        super().__init__(
            f"Conservation violated for {scope}: "
            f"expected {expected_cents} cents, got {actual_cents}"
        )


class EmployeeNotAllocatedError(AllocationError):
    """Manual override names an employee who has no share."""

    code: str = "EMPLOYEE_NOT_ALLOCATED"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} has no share to override")


class OverrideOutOfRangeError(AllocationError):
    """Manual override amount is negative or exceeds the tip total."""

    code: str = "OVERRIDE_OUT_OF_RANGE"

    def __init__(self, employee_id: str, amount_cents: int, total_cents: int):
        self.employee_id = employee_id
        self.amount_cents = amount_cents
        self.total_cents = total_cents
        super().__init__(
            f"Override of {amount_cents} cents for {employee_id} "
            f"is outside 0..{total_cents}"
        )


# Configuration exceptions


class ConfigurationError(TipPoolError):
    """Base exception for pool settings errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidPoolConfigError(ConfigurationError):
    """Pool settings document is missing a key or holds a malformed value."""

    code: str = "INVALID_POOL_CONFIG"

    def __init__(self, source: str, key: str, reason: str):
        self.source = source
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid pool settings in {source}: {key}: {reason}")

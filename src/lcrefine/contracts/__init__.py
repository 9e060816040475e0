"""Pipeline contracts - fail-fast enforcement of stage invariants.

This package enforces semantic guarantees between pipeline stages and
defines the error types every stage raises.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- Algorithms handle science edge cases
"""

from lcrefine.contracts.failure import (
    ContractViolation,
    CoverageGapWarning,
    ExtentMismatch,
    InvalidConfiguration,
    MissingAuxiliaryGrid,
)
from lcrefine.contracts.base import require
from lcrefine.contracts.grid import assert_categorical, assert_same_grid, assert_gap_free
from lcrefine.contracts.series import assert_epoch_series

__all__ = [
    "ContractViolation",
    "CoverageGapWarning",
    "ExtentMismatch",
    "InvalidConfiguration",
    "MissingAuxiliaryGrid",
    "require",
    "assert_categorical",
    "assert_same_grid",
    "assert_gap_free",
    "assert_epoch_series",
]

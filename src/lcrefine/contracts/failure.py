"""Centralized failure types for the refinement pipeline.

Every failure carries the stage (and, where relevant, the rule) that raised
it so that a log line is enough to locate the problem. Nothing here is
retried: all failures are deterministic functions of input and config.
"""

from typing import Optional


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    Key distinction:
    - InvalidConfiguration: User/config error (raised before any stage runs)
    - ContractViolation: inputs or a stage broke a pipeline invariant
    """

    def __init__(self, message: str, stage: Optional[str] = None,
                 rule: Optional[str] = None):
        super().__init__(message)
        self.stage = stage
        self.rule = rule


class ExtentMismatch(ContractViolation):
    """Input grids differ in shape, transform or CRS. No auto-reprojection."""


class MissingAuxiliaryGrid(ContractViolation):
    """A continuous grid (slope, TWI) required by a stage is absent."""


class InvalidConfiguration(ValueError):
    """A parameter is outside its documented range.

    Raised while resolving configuration or constructing a stage, never
    mid-run.
    """

    def __init__(self, message: str, stage: Optional[str] = None,
                 rule: Optional[str] = None):
        super().__init__(message)
        self.stage = stage
        self.rule = rule


class CoverageGapWarning(UserWarning):
    """The gap-filling grid left nodata cells behind after a merge."""

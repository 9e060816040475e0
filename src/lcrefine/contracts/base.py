"""Base contract enforcement utilities.

The require() function is the single enforcement mechanism for all contracts.
"""

from typing import Optional, Type

from lcrefine.contracts.failure import ContractViolation


def require(condition: bool, message: str, stage: Optional[str] = None,
            rule: Optional[str] = None,
            error: Type[ContractViolation] = ContractViolation) -> None:
    """Enforce a pipeline contract.

    Called at stage boundaries to verify that inputs, or the preceding
    stage, satisfy the guaranteed invariants. Fail-fast: no recovery,
    no fallback, no silence.

    Parameters
    ----------
    condition : bool
        The invariant that must be true.

    message : str
        Error message explaining the violation.

    stage, rule : str, optional
        Where the violation was detected, attached to the exception.

    error : type, optional
        ContractViolation subclass to raise (default ContractViolation).

    Raises
    ------
    ContractViolation
        If condition is False.

    Examples
    --------
    >>> require(grid.ndim == 2, "Grid contract: expected 2 dims", stage="merge")
    """
    if not condition:
        raise error(message, stage=stage, rule=rule)

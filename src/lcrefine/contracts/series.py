"""Epoch series contract.

Enforces the guarantee that a time-stacked series is ordered by time and
names exactly one protected reference epoch that it actually contains.
"""

import numpy as np
import xarray as xr

from lcrefine.contracts.base import require


def assert_epoch_series(stack: xr.DataArray, reference_time, stage: str) -> None:
    """Enforce epoch series contract.

    Parameters
    ----------
    stack : xr.DataArray
        Categorical grids stacked along a ``time`` dimension.

    reference_time : scalar
        Time coordinate of the protected reference epoch.

    stage : str
        Stage name, attached to the exception.

    Raises
    ------
    ContractViolation
        If the stack is not (time, y, x), is unsorted, or lacks the reference.
    """
    require(
        stack.dims == ("time", "y", "x"),
        f"Series contract violated: dims are {stack.dims}, expected ('time', 'y', 'x')",
        stage=stage,
    )
    times = stack["time"].values
    require(
        len(times) == len(np.unique(times)),
        "Series contract violated: duplicate epoch times",
        stage=stage,
    )
    require(
        bool(np.all(times[:-1] < times[1:])) if len(times) > 1 else True,
        "Series contract violated: epochs are not sorted by time",
        stage=stage,
    )
    require(
        bool(np.any(times == np.asarray(reference_time, dtype=times.dtype))),
        f"Series contract violated: reference epoch {reference_time} not in series",
        stage=stage,
    )

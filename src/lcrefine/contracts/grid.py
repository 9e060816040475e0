"""Grid stage contracts.

Enforce that grids entering and leaving a stage are 2D, share the run's
extent, and (for categorical grids) hold integer codes.
"""

import numpy as np
import xarray as xr

from lcrefine.contracts.base import require
from lcrefine.contracts.failure import ExtentMismatch
from lcrefine.grid.raster import grid_signature, same_grid


def assert_categorical(grid: xr.DataArray, stage: str) -> None:
    """Enforce categorical grid contract.

    Parameters
    ----------
    grid : xr.DataArray
        Grid handed to or produced by ``stage``.

    stage : str
        Stage name, attached to the exception.

    Raises
    ------
    ContractViolation
        If the grid is not a 2D integer grid with a georeference.
    """
    require(
        isinstance(grid, xr.DataArray),
        f"Grid contract violated: got {type(grid)}, expected DataArray",
        stage=stage,
    )
    require(
        grid.ndim == 2,
        f"Grid contract violated: grid has {grid.ndim} dims, expected 2",
        stage=stage,
    )
    require(
        grid.dtype.kind in {"i", "u"},
        f"Grid contract violated: dtype is {grid.dtype}, expected integer",
        stage=stage,
    )
    require(
        "transform" in grid.attrs and "crs" in grid.attrs,
        "Grid contract violated: missing 'transform' or 'crs' attribute",
        stage=stage,
    )


def assert_same_grid(reference: xr.DataArray, *others: xr.DataArray,
                     stage: str) -> None:
    """Enforce that every grid shares the reference extent.

    Raises
    ------
    ExtentMismatch
        If shape, transform or CRS differ.
    """
    for other in others:
        require(
            same_grid(reference, other),
            f"Extent mismatch: {grid_signature(reference)} vs {grid_signature(other)}",
            stage=stage,
            error=ExtentMismatch,
        )


def assert_gap_free(grid: xr.DataArray, nodata: int, stage: str) -> None:
    """Enforce that no cell holds the nodata sentinel."""
    n_gaps = int(np.count_nonzero(grid.values == nodata))
    require(
        n_gaps == 0,
        f"Gap-free contract violated: {n_gaps} nodata cells remain",
        stage=stage,
    )

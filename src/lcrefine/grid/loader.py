"""Read and write georeferenced grids as NetCDF.

Loading never raises for a missing or unreadable file. It returns one of
three explicit results so that callers decide what absence means:

- ``Found(grid)``: the grid loaded and carries a georeference
- ``NotFound(path)``: nothing at that path
- ``Malformed(path, reason)``: something is there but is not a usable grid
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
import logging

import numpy as np
import xarray as xr

__all__ = ['Found', 'NotFound', 'Malformed', 'LoadResult', 'GridLoader', 'save_grid']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    grid: xr.DataArray


@dataclass(frozen=True)
class NotFound:
    path: Path


@dataclass(frozen=True)
class Malformed:
    path: Path
    reason: str


LoadResult = Union[Found, NotFound, Malformed]


class GridLoader:
    """Load single-band grids from NetCDF files.

    Parameters
    ----------
    default_crs : str, optional
        CRS assumed when a file carries a transform but no ``crs`` attribute.
        If None, such files are Malformed.

    Examples
    --------
    >>> loader = GridLoader()
    >>> result = loader.load("raw_2024_primary.nc", variable="classification")
    >>> if isinstance(result, Found):
    ...     grid = result.grid
    """

    def __init__(self, default_crs: Optional[str] = None):
        self.default_crs = default_crs

    def load(self, path: Union[str, Path], variable: Optional[str] = None) -> LoadResult:
        """Load one 2D grid.

        Parameters
        ----------
        path : str or Path
            NetCDF file.
        variable : str, optional
            Data variable to read. If None, the file must hold exactly one.
        """
        path = Path(path)
        if not path.exists():
            logger.debug("Grid not found: %s", path)
            return NotFound(path)

        try:
            with xr.open_dataset(path, mask_and_scale=False) as ds:
                ds = ds.load()
        except (OSError, ValueError) as e:
            logger.warning("Unreadable grid file %s: %s", path, e)
            return Malformed(path, f"unreadable: {e}")

        if variable is None:
            names = list(ds.data_vars)
            if len(names) != 1:
                return Malformed(path, f"expected one data variable, found {names}")
            variable = names[0]
        elif variable not in ds.data_vars:
            return Malformed(path, f"missing variable '{variable}'")

        grid = ds[variable]
        if grid.ndim != 2:
            return Malformed(path, f"'{variable}' has {grid.ndim} dims, expected 2")
        if grid.dims != ("y", "x"):
            grid = grid.rename(dict(zip(grid.dims, ("y", "x"))))

        attrs = dict(ds.attrs)
        attrs.update(grid.attrs)
        if "transform" not in attrs:
            return Malformed(path, "missing 'transform' attribute")
        transform = tuple(float(v) for v in np.ravel(attrs["transform"]))
        if len(transform) != 6:
            return Malformed(path, f"transform has {len(transform)} terms, expected 6")

        crs = attrs.get("crs", self.default_crs)
        if crs is None:
            return Malformed(path, "missing 'crs' attribute")

        grid.attrs = {k: v for k, v in attrs.items()
                      if k in {"crs", "transform", "nodata", "long_name", "units"}}
        grid.attrs["transform"] = transform
        grid.attrs["crs"] = str(crs)
        if "nodata" in grid.attrs:
            grid.attrs["nodata"] = int(grid.attrs["nodata"])

        logger.debug("Loaded grid %s[%s], shape=%s", path.name, variable, grid.shape)
        return Found(grid)


def save_grid(grid: xr.DataArray, path: Union[str, Path],
              name: Optional[str] = None) -> Path:
    """Write a grid to NetCDF, keeping its georeference attributes."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    da = grid.copy()
    da.attrs["transform"] = np.asarray(grid.attrs["transform"], dtype=np.float64)
    ds = da.to_dataset(name=name or grid.name or "classification")
    ds.to_netcdf(path, mode='w', engine='netcdf4', format='NETCDF4')
    logger.info("Saved grid: %s", path)
    return path

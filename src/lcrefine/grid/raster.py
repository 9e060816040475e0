"""Raster grid helpers.

A grid is an ``xarray.DataArray`` with dims ``("y", "x")``, pixel-centre
coordinates and three attributes that pin it to the ground:

- ``crs``: coordinate reference system string (e.g. ``"EPSG:4326"``)
- ``transform``: affine transform ``(a, b, c, d, e, f)`` in GDAL/affine order
- ``nodata``: sentinel for unclassified cells (categorical grids only)

All grids in one pipeline run share shape, transform and CRS.
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import xarray as xr

__all__ = [
    'DEFAULT_TRANSFORM',
    'make_grid',
    'like',
    'grid_signature',
    'same_grid',
]

logger = logging.getLogger(__name__)

# 30 m pixels anchored at the origin, north-up
DEFAULT_TRANSFORM: Tuple[float, ...] = (30.0, 0.0, 0.0, 0.0, -30.0, 0.0)


def _pixel_centres(transform: Sequence[float], shape: Tuple[int, int]):
    a, _, c, _, e, f = transform
    ny, nx = shape
    x = c + a * (np.arange(nx) + 0.5)
    y = f + e * (np.arange(ny) + 0.5)
    return y, x


def make_grid(values: np.ndarray,
              transform: Sequence[float] = DEFAULT_TRANSFORM,
              crs: str = "EPSG:4326",
              nodata: Optional[int] = None,
              name: Optional[str] = None) -> xr.DataArray:
    """Wrap a 2D array as a georeferenced grid.

    Parameters
    ----------
    values : np.ndarray
        2D cell values. Integer for categorical grids, float for continuous.
    transform : sequence of 6 floats
        Affine transform (a, b, c, d, e, f).
    crs : str
        Coordinate reference system identifier.
    nodata : int, optional
        Nodata sentinel. Only meaningful for categorical grids.
    name : str, optional
        Variable name.

    Returns
    -------
    xr.DataArray
        Grid with dims ("y", "x") and crs/transform/nodata attrs.
    """
    values = np.asarray(values)
    if values.ndim != 2:
        raise ValueError(f"Grid values must be 2D, got {values.ndim} dims")

    y, x = _pixel_centres(transform, values.shape)
    attrs = {"crs": crs, "transform": tuple(float(v) for v in transform)}
    if nodata is not None:
        attrs["nodata"] = int(nodata)

    return xr.DataArray(values, dims=("y", "x"), coords={"y": y, "x": x},
                        attrs=attrs, name=name)


def like(template: xr.DataArray, values: np.ndarray,
         name: Optional[str] = None) -> xr.DataArray:
    """New grid with the same georeferencing as ``template``."""
    out = xr.DataArray(values, dims=template.dims, coords=template.coords,
                       attrs=dict(template.attrs),
                       name=name if name is not None else template.name)
    return out


def grid_signature(grid: xr.DataArray) -> tuple:
    """(shape, transform, crs) triple used to compare grids."""
    return (tuple(grid.shape), tuple(grid.attrs.get("transform", ())),
            grid.attrs.get("crs"))


def same_grid(a: xr.DataArray, b: xr.DataArray) -> bool:
    """True if both grids share shape, transform and CRS."""
    shape_a, transform_a, crs_a = grid_signature(a)
    shape_b, transform_b, crs_b = grid_signature(b)
    if shape_a != shape_b or crs_a != crs_b:
        return False
    if len(transform_a) != len(transform_b):
        return False
    return bool(np.allclose(transform_a, transform_b))

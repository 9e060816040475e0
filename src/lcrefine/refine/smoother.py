"""Conditional majority smoothing."""

from typing import NamedTuple, TYPE_CHECKING
import logging

import numpy as np
import xarray as xr

from lcrefine.contracts import assert_categorical
from lcrefine.grid.algebra import focal_mode
from lcrefine.grid.raster import like
from lcrefine.grid.tiling import apply_tiled

if TYPE_CHECKING:
    from lcrefine.schemas import InternalConfig

__all__ = ['SmoothResult', 'ConditionalSmoother']

logger = logging.getLogger(__name__)

STAGE = "smoother"


class SmoothResult(NamedTuple):
    grid: xr.DataArray
    changed: np.ndarray

    @property
    def n_changed(self) -> int:
        return int(np.count_nonzero(self.changed))


class ConditionalSmoother:
    """Replace a cell with its neighbourhood majority only where they differ.

    Cells that already agree with their neighbourhood are left alone, so
    fine boundaries that are locally consistent survive. Every output value
    is present somewhere in the cell's window.
    """

    def __init__(self, config: "InternalConfig"):
        self.radius = config.smoother.radius
        self.shape = config.smoother.shape
        self.nodata = config.grid.nodata
        logger.info("ConditionalSmoother initialized: radius=%d, shape=%s",
                    self.radius, self.shape)

    def apply_array(self, values: np.ndarray) -> np.ndarray:
        """Smooth a bare array. Safe to run per tile with halo >= radius."""
        filtered = focal_mode(values, self.radius, self.shape, nodata=self.nodata)
        return np.where(values != filtered, filtered, values).astype(values.dtype)

    def smooth(self, grid: xr.DataArray, tile_size=None, max_workers=None) -> SmoothResult:
        """Smooth ``grid``, optionally tile by tile.

        Parameters
        ----------
        grid : xr.DataArray
            Categorical grid.
        tile_size : int, optional
            Tile edge in pixels. Tiles carry a halo of ``radius`` cells, so
            the result equals the whole-grid run.
        max_workers : int, optional
            Threads used for tiles.
        """
        assert_categorical(grid, STAGE)
        if tile_size:
            out = apply_tiled(self.apply_array, grid, tile_size, self.radius,
                              max_workers=max_workers)
        else:
            out = like(grid, self.apply_array(grid.values))

        changed = out.values != grid.values
        logger.info("Smoothing: %d cells changed", int(np.count_nonzero(changed)))
        return SmoothResult(out, changed)

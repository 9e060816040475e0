"""Minimum mapping unit enforcement."""

from typing import NamedTuple, TYPE_CHECKING
import logging

import numpy as np
import xarray as xr
from skimage.measure import label

from lcrefine.contracts import assert_categorical
from lcrefine.grid.algebra import connected_component_size, focal_mode
from lcrefine.grid.raster import like

if TYPE_CHECKING:
    from lcrefine.schemas import InternalConfig

__all__ = ['SieveResult', 'PatchSieve', 'count_undersized']

logger = logging.getLogger(__name__)

STAGE = "sieve"


class SieveResult(NamedTuple):
    grid: xr.DataArray
    replaced: np.ndarray  # True where the cell took the focal mode
    n_undersized_before: int
    n_undersized_after: int

    @property
    def n_changed(self) -> int:
        return int(np.count_nonzero(self.replaced))


def count_undersized(values: np.ndarray, min_size: int, connectivity: int,
                     nodata: int) -> int:
    """Number of same-class components with fewer than ``min_size`` cells."""
    shifted = values.astype(np.int64) + 1
    shifted[values == nodata] = 0
    labels = label(shifted, background=0, connectivity=1 if connectivity == 4 else 2)
    sizes = np.bincount(labels.ravel())[1:]
    return int(np.count_nonzero(sizes < min_size))


class PatchSieve:
    """Replace patches smaller than the minimum mapping unit.

    Cells whose same-class component has fewer than ``min_patch_size``
    cells take the focal mode of the input grid. Nodata cells count as
    undersized, so the sieve also fills residual gaps wherever a valid
    class is in reach.

    A single pass does not guarantee every output component reaches the
    minimum: the majority class of a small patch can itself be a small
    patch. It does guarantee the count of undersized components drops
    whenever there are any.
    """

    def __init__(self, config: "InternalConfig"):
        self.cfg = config.sieve
        self.nodata = config.grid.nodata
        logger.info("PatchSieve initialized: min_patch_size=%d, connectivity=%d",
                    self.cfg.min_patch_size, self.cfg.connectivity)

    def apply_array(self, values: np.ndarray) -> np.ndarray:
        return self._sieve(values)[0]

    def _sieve(self, values: np.ndarray):
        size = connected_component_size(values, self.cfg.max_size,
                                        self.cfg.connectivity, nodata=self.nodata)
        undersized = size < self.cfg.min_patch_size
        if not undersized.any():
            return values.copy(), undersized

        mode = focal_mode(values, self.cfg.mode_radius, "square", nodata=self.nodata)
        out = np.where(undersized, mode, values).astype(values.dtype)
        return out, undersized & (out != values)

    def sieve(self, grid: xr.DataArray) -> SieveResult:
        assert_categorical(grid, STAGE)
        values = grid.values
        out, replaced = self._sieve(values)

        before = count_undersized(values, self.cfg.min_patch_size,
                                  self.cfg.connectivity, self.nodata)
        after = count_undersized(out, self.cfg.min_patch_size,
                                 self.cfg.connectivity, self.nodata)
        logger.info("Sieve: %d cells replaced, undersized patches %d -> %d",
                    int(np.count_nonzero(replaced)), before, after)
        return SieveResult(like(grid, out), replaced, before, after)

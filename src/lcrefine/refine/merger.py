"""Hybrid map merge.

Combines a high-fidelity but gappy classification (e.g. a phenology-stage
classifier masked by cloud) with a gap-free, lower-fidelity classification
(e.g. an annual-statistics classifier) over the same extent.
"""

from typing import NamedTuple, TYPE_CHECKING
import logging
import warnings

import numpy as np
import xarray as xr

from lcrefine.contracts import (
    CoverageGapWarning,
    assert_categorical,
    assert_same_grid,
)
from lcrefine.grid.algebra import overlay
from lcrefine.grid.raster import like

if TYPE_CHECKING:
    from lcrefine.schemas import InternalConfig

__all__ = ['MergeResult', 'HybridMapMerger']

logger = logging.getLogger(__name__)

STAGE = "merge"


class MergeResult(NamedTuple):
    grid: xr.DataArray
    gap_mask: np.ndarray  # True where both inputs are nodata

    @property
    def n_gaps(self) -> int:
        return int(np.count_nonzero(self.gap_mask))


class HybridMapMerger:
    """Fill the primary map's nodata cells from the secondary map."""

    def __init__(self, config: "InternalConfig"):
        self.nodata = config.grid.nodata
        logger.info("HybridMapMerger initialized: nodata=%d", self.nodata)

    def merge(self, primary: xr.DataArray, secondary: xr.DataArray) -> MergeResult:
        """Return ``overlay(primary, secondary)`` and the residual gap mask.

        Residual gaps are reported with a CoverageGapWarning and returned,
        never dropped.
        """
        assert_categorical(primary, STAGE)
        assert_categorical(secondary, STAGE)
        assert_same_grid(primary, secondary, stage=STAGE)

        merged = overlay(primary.values, secondary.values, self.nodata)
        gap_mask = merged == self.nodata

        n_filled = int(np.count_nonzero((primary.values == self.nodata) & ~gap_mask))
        logger.debug("Merged: filled %d primary gaps from secondary", n_filled)

        grid = like(primary, merged, name="classification")
        grid.attrs["nodata"] = self.nodata
        result = MergeResult(grid, gap_mask)
        if result.n_gaps:
            msg = f"Coverage gap: {result.n_gaps} cells are nodata in both inputs"
            logger.warning(msg)
            warnings.warn(msg, CoverageGapWarning, stacklevel=2)
        return result

"""Single-epoch refinement.

Runs one epoch's raw classifications through merge, spatial correction,
patch sieve and conditional smoothing, checking the grid contract between
stages and collecting a per-stage, per-rule change report.
"""

import logging
from typing import List, NamedTuple, Optional, TYPE_CHECKING

import numpy as np
import pandas as pd
import xarray as xr

from lcrefine.contracts import (
    ContractViolation,
    assert_categorical,
    assert_gap_free,
    assert_same_grid,
)
from lcrefine.refine import (
    ConditionalSmoother,
    HybridMapMerger,
    PatchSieve,
    RuleOutcome,
    RuleStatus,
    SpatialCorrector,
)

if TYPE_CHECKING:
    from lcrefine.schemas import InternalConfig

__all__ = ['EpochInputs', 'RefinementResult', 'EpochRefiner']

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["epoch"] + list(RuleOutcome._fields)


class EpochInputs(NamedTuple):
    """Grids for one epoch. ``secondary`` is the gap-filling classification."""
    primary: xr.DataArray
    secondary: Optional[xr.DataArray]
    slope: xr.DataArray
    twi: xr.DataArray


class RefinementResult(NamedTuple):
    grid: xr.DataArray
    gap_mask: np.ndarray
    report: pd.DataFrame


class EpochRefiner:
    """Apply the single-epoch stages in order.

    merge -> spatial correction -> patch sieve -> conditional smoothing

    Parameters
    ----------
    config : InternalConfig
        Fully validated runtime configuration.

    Examples
    --------
    >>> refiner = EpochRefiner(config)
    >>> result = refiner.refine(primary, secondary, slope, twi, epoch="2024")
    >>> result.report.groupby("stage")["n_changed"].sum()
    """

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.nodata = config.grid.nodata
        self.merger = HybridMapMerger(config)
        self.spatial = SpatialCorrector(config)
        self.sieve = PatchSieve(config)
        self.smoother = ConditionalSmoother(config)

    def refine(self, primary: xr.DataArray, secondary: Optional[xr.DataArray],
               slope: xr.DataArray, twi: xr.DataArray,
               epoch: Optional[str] = None) -> RefinementResult:
        """Refine one epoch.

        Parameters
        ----------
        primary : xr.DataArray
            High-fidelity classification, may hold nodata.
        secondary : xr.DataArray, optional
            Gap-filling classification. When None the merge is skipped.
        slope, twi : xr.DataArray
            Terrain grids on the same extent.
        epoch : str, optional
            Label used in logs and the report.

        Raises
        ------
        ExtentMismatch, MissingAuxiliaryGrid, ContractViolation
            Propagated from the stages; nothing is retried.
        """
        label = epoch if epoch is not None else "?"
        logger.info("Refining epoch %s", label)
        rows: List[RuleOutcome] = []

        try:
            if secondary is not None:
                merged = self.merger.merge(primary, secondary)
                grid, gap_mask = merged.grid, merged.gap_mask
                n_filled = int(np.count_nonzero((primary.values == self.nodata) & ~gap_mask))
                rows.append(RuleOutcome("merge", "overlay", -1, _status(n_filled), n_filled))
            else:
                assert_categorical(primary, "merge")
                grid = primary
                gap_mask = primary.values == self.nodata
                logger.info("Epoch %s: no secondary map, merge skipped", label)
                rows.append(RuleOutcome("merge", "overlay", -1, RuleStatus.NO_CHANGE, 0))

            if self.config.merger.require_gap_free:
                assert_gap_free(grid, self.nodata, "merge")

            spatial = self.spatial.correct(grid, slope, twi)
            rows.extend(spatial.outcomes)
            assert_categorical(spatial.grid, "spatial")

            sieved = self.sieve.sieve(spatial.grid)
            rows.append(RuleOutcome("sieve", "min_patch_size", -1,
                                    _status(sieved.n_changed), sieved.n_changed))
            assert_categorical(sieved.grid, "sieve")

            smoothed = self.smoother.smooth(sieved.grid,
                                            tile_size=self.config.execution.tile_size)
            rows.append(RuleOutcome("smoother", "conditional_mode", -1,
                                    _status(smoothed.n_changed), smoothed.n_changed))
            assert_categorical(smoothed.grid, "smoother")
            assert_same_grid(primary, smoothed.grid, stage="smoother")
        except ContractViolation as e:
            logger.critical("Epoch %s: contract violated in stage %s: %s", label, e.stage, e)
            raise

        report = pd.DataFrame(
            [(label,) + tuple(r) for r in rows], columns=REPORT_COLUMNS
        )
        report["status"] = report["status"].map(lambda s: RuleStatus(s).value)
        logger.info("Epoch %s refined: %d cells changed in total", label,
                    int(report["n_changed"].sum()))

        grid = smoothed.grid
        if epoch is not None:
            grid.attrs["epoch"] = str(epoch)
        return RefinementResult(grid, gap_mask, report)


def _status(n_changed: int) -> RuleStatus:
    return RuleStatus.APPLIED if n_changed else RuleStatus.NO_CHANGE

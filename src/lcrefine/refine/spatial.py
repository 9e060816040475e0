"""Ordered spatial correction of water and wetland classes.

Per-pixel classifiers judge a pixel by its spectrum alone, so they confuse
classes that differ mainly in shape or setting: a lake whose outline looks
like a river, a narrow channel classed as a pond, a broken river network,
river slivers along lake shores, or woody wetland on dry hillsides. The
corrector fixes these with six stages whose order is part of the contract:

1. Protection mask: non-water land eroded by one cell. Water growth in
   stage 4 never enters it.
2. Large waterbody: river components of at least the area threshold
   become lake.
3. Linear ponds: pond cells removed by a morphological opening are too
   narrow to be ponds and become river.
4. Network connection: a closing of the river mask whose dilation is
   clipped by the protection mask. Newly covered cells become river.
5. Edge reassignment: river cells within a few pixels of an eroded
   lake/reservoir core become lake.
6. Wetland terrain check: woody wetland on steep or dry terrain far from
   any water becomes upland forest.

Each stage builds its mask from the output of the previous stage.

A second pass changes nothing for stages 2, 3 and 6. Stages 4 and 5 only
reach a fixed point after repeated passes: every edge reassignment grows the
lake, its eroded core moves one cell outward and the next pass takes the
next band of river cells.
"""

from typing import List, NamedTuple, Optional, TYPE_CHECKING
import logging

import numpy as np
import pandas as pd
import xarray as xr

from lcrefine.contracts import (
    MissingAuxiliaryGrid,
    assert_categorical,
    assert_same_grid,
    require,
)
from lcrefine.grid.algebra import (
    class_mask,
    connected_component_size,
    dilate,
    distance_transform,
    erode,
    opening,
)
from lcrefine.grid.raster import like
from lcrefine.refine.rules import Rule, RuleOutcome, apply_rules, outcomes_to_frame

if TYPE_CHECKING:
    from lcrefine.schemas import InternalConfig

__all__ = ['TerrainContext', 'SpatialResult', 'SpatialCorrector']

logger = logging.getLogger(__name__)

STAGE = "spatial"


class TerrainContext(NamedTuple):
    protection: np.ndarray  # True where water must not grow
    slope: np.ndarray       # Degrees
    twi: np.ndarray         # Topographic wetness index


class SpatialResult(NamedTuple):
    grid: xr.DataArray
    outcomes: List[RuleOutcome]

    @property
    def report(self) -> pd.DataFrame:
        return outcomes_to_frame(self.outcomes)


class SpatialCorrector:
    """Apply the ordered water/wetland correction rules to one grid.

    Parameters
    ----------
    config : InternalConfig
        Uses ``config.spatial`` and ``config.grid``.

    Notes
    -----
    ``correct`` is a single pass. Running it again on its own output is a
    no-op for the large-waterbody, linear-pond and wetland rules, but network
    connection and edge reassignment can keep firing until the river is
    exhausted.

    Examples
    --------
    >>> corrector = SpatialCorrector(config)
    >>> result = corrector.correct(merged, slope, twi)
    >>> result.report[["rule", "status", "n_changed"]]
    """

    def __init__(self, config: "InternalConfig"):
        self.cfg = config.spatial
        self.connectivity = config.grid.connectivity
        self.nodata = config.grid.nodata

        cfg = self.cfg
        self.rules = [
            Rule("large_waterbody", (cfg.river_class,), cfg.lake_class,
                 self._large_waterbody),
            Rule("linear_pond", (cfg.pond_class,), cfg.river_class,
                 self._linear_ponds),
            Rule("network_connection", (cfg.river_class,), cfg.river_class,
                 self._network_connection),
            Rule("edge_reassignment", (cfg.river_class,), cfg.lake_class,
                 self._edge_reassignment),
            Rule("wetland_terrain", (cfg.wetland_class,), cfg.upland_class,
                 self._implausible_wetland),
        ]

        logger.info("SpatialCorrector initialized: %d rules, area_threshold=%d, "
                    "slope>%.1f or twi<%.1f", len(self.rules),
                    cfg.large_water_area_threshold, cfg.slope_threshold, cfg.twi_threshold)

    def protection_mask(self, values: np.ndarray) -> np.ndarray:
        """Non-water cells (nodata included) eroded by the protection radius."""
        non_water = ~class_mask(values, self.cfg.water_classes)
        return erode(non_water, self.cfg.protection_erosion_radius, "diamond")

    def context(self, grid: xr.DataArray, slope: Optional[xr.DataArray],
                twi: Optional[xr.DataArray]) -> TerrainContext:
        """Validate inputs and build the protection mask from ``grid``."""
        for name, aux in (("slope", slope), ("twi", twi)):
            if aux is None:
                raise MissingAuxiliaryGrid(
                    f"Spatial correction needs a {name} grid", stage=STAGE,
                    rule="wetland_terrain",
                )
        assert_categorical(grid, STAGE)
        assert_same_grid(grid, slope, twi, stage=STAGE)
        require(
            slope.dtype.kind == "f" and twi.dtype.kind == "f",
            f"Terrain contract violated: slope/twi dtypes {slope.dtype}/{twi.dtype}, expected float",
            stage=STAGE,
        )
        return TerrainContext(self.protection_mask(grid.values),
                              np.asarray(slope), np.asarray(twi))

    def correct(self, grid: xr.DataArray, slope: Optional[xr.DataArray],
                twi: Optional[xr.DataArray]) -> SpatialResult:
        """Run the protection mask and the five rules in order.

        Raises
        ------
        MissingAuxiliaryGrid
            If slope or TWI is None.
        ExtentMismatch
            If slope or TWI do not share the grid's extent.
        """
        ctx = self.context(grid, slope, twi)
        values, outcomes = apply_rules(grid.values, self.rules, ctx, STAGE)

        total = sum(o.n_changed for o in outcomes)
        logger.info("Spatial correction: %d cells reclassified", total)
        return SpatialResult(like(grid, values), outcomes)

    # ------------------------------------------------------------------
    # Rule predicates. Each sees the working grid left by the rule before.
    # ------------------------------------------------------------------

    def _large_waterbody(self, values: np.ndarray, ctx: TerrainContext) -> np.ndarray:
        river = values == self.cfg.river_class
        size = connected_component_size(river, self.cfg.large_water_max_size,
                                        self.connectivity)
        return size >= self.cfg.large_water_area_threshold

    def _linear_ponds(self, values: np.ndarray, ctx: TerrainContext) -> np.ndarray:
        ponds = values == self.cfg.pond_class
        opened = opening(ponds, self.cfg.pond_opening_radius, self.cfg.pond_opening_shape)
        return ponds & ~opened

    def _network_connection(self, values: np.ndarray, ctx: TerrainContext) -> np.ndarray:
        river = values == self.cfg.river_class
        radius, shape = self.cfg.river_connect_radius, self.cfg.river_connect_shape
        grown = dilate(river, radius, shape) & ~ctx.protection
        return erode(grown, radius, shape)

    def _edge_reassignment(self, values: np.ndarray, ctx: TerrainContext) -> np.ndarray:
        river = values == self.cfg.river_class
        core = erode(class_mask(values, self.cfg.large_water_classes),
                     self.cfg.edge_core_erosion_radius, "diamond")
        dist = distance_transform(core, self.cfg.edge_search_radius)
        return river & (dist <= self.cfg.edge_buffer_distance)

    def _implausible_wetland(self, values: np.ndarray, ctx: TerrainContext) -> np.ndarray:
        wetland = values == self.cfg.wetland_class
        water = class_mask(values, self.cfg.water_classes)
        dist = distance_transform(water, self.cfg.wetland_search_radius)
        unsuitable = (ctx.slope > self.cfg.slope_threshold) | (ctx.twi < self.cfg.twi_threshold)
        return wetland & unsuitable & (dist > self.cfg.wetland_water_distance)

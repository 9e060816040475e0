"""Cross-epoch logical consistency correction.

Two classifications of the same place made years apart disagree in many
cells that did not really change: classifier noise, seasonal differences and
transitions that are ordinary land-use succession. The corrector keeps only
disagreement that is implausible as noise, compact and large enough to be a
real change, and forces every other cell of the earlier map to agree with
the trusted later map.
"""

from typing import Mapping, NamedTuple, Optional, TYPE_CHECKING
import logging

import numpy as np
import pandas as pd
import xarray as xr

from lcrefine.contracts import assert_categorical, assert_same_grid, require
from lcrefine.grid.algebra import class_mask, connected_component_size, erode, opening
from lcrefine.grid.raster import like

if TYPE_CHECKING:
    from lcrefine.schemas import InternalConfig

__all__ = ['ConsistencyResult', 'ConsistencyCorrector', 'transition_table']

logger = logging.getLogger(__name__)

STAGE = "consistency"


class ConsistencyResult(NamedTuple):
    grid: xr.DataArray         # Corrected earlier epoch
    initial: np.ndarray        # later != earlier
    plausible: np.ndarray      # Disagreement not credible as change
    refined: np.ndarray        # initial & ~plausible
    true_change: np.ndarray    # refined after opening and size filter

    @property
    def n_true_change(self) -> int:
        return int(np.count_nonzero(self.true_change))


class ConsistencyCorrector:
    """Correct an earlier epoch against a trusted later epoch.

    Parameters
    ----------
    config : InternalConfig
        Uses ``config.consistency``. The plausible-transition whitelist is
        ``config.consistency.plausible_transitions``, a list of
        (name, earlier classes, later classes) entries.

    Notes
    -----
    Cells outside the true-change mask take the later map's value; cells
    inside keep the earlier value. The true-change mask is always a subset
    of the initial disagreement.
    """

    def __init__(self, config: "InternalConfig"):
        self.cfg = config.consistency
        self.nodata = config.grid.nodata
        logger.info("ConsistencyCorrector initialized: %d plausible transitions, "
                    "change_patch_min_size=%d", len(self.cfg.plausible_transitions),
                    self.cfg.change_patch_min_size)

    def plausibility_mask(self, later: np.ndarray, earlier: np.ndarray) -> np.ndarray:
        """Cells whose disagreement, if any, is not credible as change."""
        built = self.cfg.built_up_class
        stable_built = erode((later == built) & (earlier == built),
                             self.cfg.stable_core_erosion_radius, "diamond")

        mask = stable_built
        for transition in self.cfg.plausible_transitions:
            hit = class_mask(earlier, transition.earlier) & class_mask(later, transition.later)
            logger.debug("Transition %s: %d cells", transition.name, int(np.count_nonzero(hit)))
            mask = mask | hit
        return mask

    def correct(self, later: xr.DataArray, earlier: xr.DataArray) -> ConsistencyResult:
        """Return the corrected earlier grid and every intermediate mask."""
        assert_categorical(later, STAGE)
        assert_categorical(earlier, STAGE)
        assert_same_grid(later, earlier, stage=STAGE)

        later_v, earlier_v = later.values, earlier.values
        initial = later_v != earlier_v
        plausible = self.plausibility_mask(later_v, earlier_v)
        refined = initial & ~plausible

        opened = opening(refined, self.cfg.opening_radius, "diamond")
        size = connected_component_size(opened, self.cfg.change_patch_max_size,
                                        self.cfg.connectivity)
        true_change = opened & (size >= self.cfg.change_patch_min_size)

        require(
            not bool(np.any(true_change & ~initial)),
            "Consistency contract violated: true change outside disagreement",
            stage=STAGE,
        )

        corrected = np.where(true_change, earlier_v, later_v).astype(earlier_v.dtype)
        logger.info("Consistency: %d disagreeing, %d implausible, %d true change",
                    int(np.count_nonzero(initial)), int(np.count_nonzero(refined)),
                    int(np.count_nonzero(true_change)))
        return ConsistencyResult(like(earlier, corrected), initial, plausible,
                                 refined, true_change)


def transition_table(earlier: xr.DataArray, later: xr.DataArray,
                     nodata: Optional[int] = None,
                     labels: Optional[Mapping[int, str]] = None) -> pd.DataFrame:
    """Pixel counts of every (earlier class, later class) pair.

    Parameters
    ----------
    earlier, later : xr.DataArray
        Categorical grids on the same extent.
    nodata : int, optional
        Cells that are nodata in either grid are left out.
    labels : mapping, optional
        Class code -> display name used for the index and columns.

    Returns
    -------
    pd.DataFrame
        Rows are earlier classes, columns later classes.

    Examples
    --------
    >>> table = transition_table(map_2000, map_2024, nodata=255)
    >>> table.loc[6, 8]  # built-up cells that became forest
    """
    assert_same_grid(earlier, later, stage=STAGE)
    e = np.asarray(earlier).ravel()
    l = np.asarray(later).ravel()
    if nodata is not None:
        keep = (e != nodata) & (l != nodata)
        e, l = e[keep], l[keep]

    table = pd.crosstab(pd.Series(e, name="earlier"), pd.Series(l, name="later"))
    if labels:
        table = table.rename(index=dict(labels), columns=dict(labels))
    return table

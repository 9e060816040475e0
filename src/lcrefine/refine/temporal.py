"""Temporal smoothing of a classified epoch series.

A 3-point median over time removes single-epoch flicker (a cell that is
forest, cropland, forest across three epochs) while the protected reference
epoch, the best-supervised map of the series, is never touched.

For class codes the median is categorical: when the two temporal neighbours
agree they win, otherwise the centre epoch keeps its value. With three
values this is the majority when two of three agree and the temporally
central value when all three differ.
"""

from typing import Dict, List, Mapping, Optional, TYPE_CHECKING
import logging

import numpy as np
import pandas as pd
import xarray as xr

from lcrefine.contracts import (
    InvalidConfiguration,
    assert_categorical,
    assert_epoch_series,
    assert_same_grid,
    require,
)

if TYPE_CHECKING:
    from lcrefine.schemas import InternalConfig

__all__ = ['EpochSeries', 'TemporalSmoother', 'categorical_median', 'epoch_time']

logger = logging.getLogger(__name__)

STAGE = "temporal"

BOUNDARY_POLICIES = ("passthrough", "forward_pair")


def epoch_time(label) -> pd.Timestamp:
    """Parse an epoch label ("2024", 2024, "2024-06-30") into a timestamp."""
    return pd.Timestamp(str(label))


def categorical_median(prev: np.ndarray, cur: np.ndarray, nxt: np.ndarray,
                       nodata: Optional[int] = None) -> np.ndarray:
    """Median of three class codes: neighbours when they agree, else centre.

    Agreement on nodata never overwrites the centre value.
    """
    agree = prev == nxt
    if nodata is not None:
        agree &= prev != nodata
    return np.where(agree, prev, cur).astype(cur.dtype)


class EpochSeries:
    """Categorical grids for a run's epochs, ordered by time.

    Parameters
    ----------
    stack : xr.DataArray
        Grids stacked along ``time`` with an ``epoch`` label coordinate.
    reference_epoch : str
        Label of the protected epoch.

    Examples
    --------
    >>> series = EpochSeries.from_grids({"2000": g00, "2024": g24})
    >>> series.reference_epoch
    '2024'
    """

    def __init__(self, stack: xr.DataArray, reference_epoch: str):
        self.stack = stack
        self.reference_epoch = str(reference_epoch)
        assert_epoch_series(stack, epoch_time(self.reference_epoch).to_datetime64(), STAGE)

    @classmethod
    def from_grids(cls, grids: Mapping[str, xr.DataArray],
                   reference_epoch: Optional[str] = None) -> "EpochSeries":
        """Stack ``{label: grid}`` in time order.

        ``reference_epoch`` defaults to the latest epoch.
        """
        require(len(grids) > 0, "Epoch series is empty", stage=STAGE)
        grids = {str(k): v for k, v in grids.items()}
        labels = sorted(grids, key=epoch_time)
        first = grids[labels[0]]

        ordered = []
        for lab in labels:
            grid = grids[lab]
            assert_categorical(grid, STAGE)
            assert_same_grid(first, grid, stage=STAGE)
            ordered.append(grid)

        stack = xr.concat(ordered, dim="time", combine_attrs="override")
        stack = stack.assign_coords(
            time=[epoch_time(lab) for lab in labels],
            epoch=("time", labels),
        )
        if reference_epoch is None:
            reference_epoch = labels[-1]
        require(
            str(reference_epoch) in labels,
            f"Reference epoch {reference_epoch} not in series {labels}",
            stage=STAGE,
        )
        return cls(stack, str(reference_epoch))

    @property
    def labels(self) -> List[str]:
        return [str(v) for v in self.stack["epoch"].values]

    @property
    def reference_index(self) -> int:
        return self.labels.index(self.reference_epoch)

    def __len__(self) -> int:
        return self.stack.sizes["time"]

    def __getitem__(self, label) -> xr.DataArray:
        idx = self.labels.index(str(label))
        grid = self.stack.isel(time=idx, drop=True)
        return grid.drop_vars("epoch", errors="ignore")

    def to_dict(self) -> Dict[str, xr.DataArray]:
        return {lab: self[lab] for lab in self.labels}


class TemporalSmoother:
    """Asymmetric 3-point temporal median.

    - The reference epoch passes through bit-identically.
    - Interior epochs take the categorical median of themselves and their
      two neighbours, read from the unsmoothed series.
    - A series end that is not the reference follows ``boundary_policy``:
      ``passthrough`` keeps it, ``forward_pair`` mirrors the window to
      ``[neighbour, self, neighbour]``. The end then becomes a copy of its
      only neighbour wherever the neighbour holds a valid class: the end
      epoch keeps its own classification only where the neighbour is
      nodata. Choose it when the end epoch is less trusted than its
      neighbour.

    Raises
    ------
    InvalidConfiguration
        If ``temporal.boundary_policy`` is not set.
    """

    def __init__(self, config: "InternalConfig"):
        policy = config.temporal.boundary_policy
        if policy not in BOUNDARY_POLICIES:
            raise InvalidConfiguration(
                f"temporal.boundary_policy must be one of {BOUNDARY_POLICIES}, got {policy!r}",
                stage=STAGE,
                rule="boundary_policy",
            )
        self.boundary_policy = policy
        self.nodata = config.grid.nodata
        logger.info("TemporalSmoother initialized: boundary_policy=%s", policy)

    def smooth(self, series: EpochSeries) -> EpochSeries:
        values = series.stack.values
        n = len(series)
        ref = series.reference_index
        out = np.empty_like(values)

        for i in range(n):
            label = series.labels[i]
            if i == ref:
                out[i] = values[i]
                logger.info("Epoch %s: reference, kept unchanged", label)
            elif 0 < i < n - 1:
                out[i] = categorical_median(values[i - 1], values[i], values[i + 1],
                                            self.nodata)
                logger.info("Epoch %s: 3-point median, %d cells changed", label,
                            int(np.count_nonzero(out[i] != values[i])))
            elif self.boundary_policy == "forward_pair" and n > 1:
                neighbour = values[1] if i == 0 else values[n - 2]
                out[i] = categorical_median(neighbour, values[i], neighbour, self.nodata)
                logger.info("Epoch %s: boundary pair filter, %d cells changed", label,
                            int(np.count_nonzero(out[i] != values[i])))
            else:
                out[i] = values[i]
                logger.info("Epoch %s: boundary, passed through", label)

        stack = series.stack.copy(data=out)
        return EpochSeries(stack, series.reference_epoch)

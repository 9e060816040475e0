"""Tests for HybridMapMerger."""

import warnings

import numpy as np
import pytest

from lcrefine.contracts import CoverageGapWarning, ExtentMismatch
from lcrefine.grid.raster import make_grid
from lcrefine.refine import HybridMapMerger

pytestmark = pytest.mark.unit

ND = 255


class TestMerge:

    def test_primary_wins_where_valid(self, internal_config, lc_grid):
        primary = lc_grid([[3, ND], [ND, 8]])
        secondary = lc_grid([[7, 7], [9, 9]])

        result = HybridMapMerger(internal_config).merge(primary, secondary)

        assert result.grid.values.tolist() == [[3, 7], [9, 8]]
        assert result.n_gaps == 0

    def test_merge_correctness_cellwise(self, internal_config, lc_grid):
        rng = np.random.default_rng(0)
        p = rng.integers(0, 13, size=(20, 20)).astype(np.uint8)
        p[rng.random((20, 20)) < 0.3] = ND
        s = rng.integers(0, 13, size=(20, 20)).astype(np.uint8)

        result = HybridMapMerger(internal_config).merge(lc_grid(p), lc_grid(s))

        expected = np.where(p != ND, p, s)
        assert np.array_equal(result.grid.values, expected)
        # Gap-free secondary leaves no nodata
        assert not np.any(result.grid.values == ND)

    def test_residual_gaps_warn_and_are_returned(self, internal_config, lc_grid):
        primary = lc_grid([[ND, 1], [ND, 2]])
        secondary = lc_grid([[ND, 5], [6, 5]])

        with pytest.warns(CoverageGapWarning, match="1 cells"):
            result = HybridMapMerger(internal_config).merge(primary, secondary)

        assert result.gap_mask.tolist() == [[True, False], [False, False]]
        assert result.grid.values[0, 0] == ND

    def test_no_warning_when_gap_free(self, internal_config, lc_grid):
        with warnings.catch_warnings():
            warnings.simplefilter("error", CoverageGapWarning)
            HybridMapMerger(internal_config).merge(lc_grid([[1]]), lc_grid([[2]]))

    def test_output_keeps_georeference(self, internal_config, lc_grid):
        primary = lc_grid([[1, 2]])
        result = HybridMapMerger(internal_config).merge(primary, lc_grid([[3, 4]]))
        assert result.grid.attrs["transform"] == primary.attrs["transform"]
        assert result.grid.attrs["nodata"] == ND

    def test_extent_mismatch_is_fatal(self, internal_config, lc_grid):
        primary = lc_grid([[1, 2]])
        shifted = make_grid(np.array([[1, 2]], dtype=np.uint8),
                            transform=(30, 0, 600, 0, -30, 0))
        with pytest.raises(ExtentMismatch) as exc:
            HybridMapMerger(internal_config).merge(primary, shifted)
        assert exc.value.stage == "merge"

"""Tests for ConsistencyCorrector and transition tables."""

import numpy as np
import pytest

from lcrefine.contracts import ExtentMismatch
from lcrefine.grid.raster import make_grid
from lcrefine.refine import ConsistencyCorrector, transition_table

pytestmark = pytest.mark.unit

RIVER, BUILT, FOREST, BARE = 0, 6, 8, 10


class TestConsistencyCorrector:

    def test_small_block_change_reverts_to_later(self, internal_config, lc_grid):
        """A 3x3 built-up -> water change is below the 30-pixel change patch."""
        earlier = np.full((10, 10), FOREST, dtype=np.uint8)
        later = earlier.copy()
        earlier[3:6, 3:6] = BUILT
        later[3:6, 3:6] = RIVER

        result = ConsistencyCorrector(internal_config).correct(lc_grid(later), lc_grid(earlier))

        assert result.n_true_change == 0
        assert np.array_equal(result.grid.values, later)
        assert result.initial.sum() == 9

    def test_large_implausible_change_is_kept(self, internal_config, lc_grid):
        earlier = np.full((12, 12), FOREST, dtype=np.uint8)
        later = earlier.copy()
        later[2:9, 2:9] = BARE           # 49-cell forest -> bare land

        result = ConsistencyCorrector(internal_config).correct(lc_grid(later), lc_grid(earlier))

        # Diamond opening trims the four block corners: 49 - 4 = 45
        assert result.n_true_change == 45
        out = result.grid.values
        assert out[5, 5] == FOREST       # Confirmed change keeps the earlier class
        assert out[2, 2] == BARE         # Trimmed corner follows the later map

    def test_plausible_transition_is_not_change(self, internal_config, lc_grid):
        earlier = np.full((12, 12), FOREST, dtype=np.uint8)
        earlier[2:9, 2:9] = BUILT
        later = np.full((12, 12), FOREST, dtype=np.uint8)

        result = ConsistencyCorrector(internal_config).correct(lc_grid(later), lc_grid(earlier))

        assert result.plausible[2:9, 2:9].all()
        assert result.n_true_change == 0
        assert np.array_equal(result.grid.values, later)

    def test_custom_whitelist(self, make_config, lc_grid):
        """Transitions are configuration data; an empty whitelist keeps urban->forest."""
        config = make_config(consistency={"plausible_transitions": []})
        earlier = np.full((12, 12), FOREST, dtype=np.uint8)
        earlier[2:9, 2:9] = BUILT
        later = np.full((12, 12), FOREST, dtype=np.uint8)

        result = ConsistencyCorrector(config).correct(lc_grid(later), lc_grid(earlier))

        assert result.n_true_change == 45

    def test_stable_built_core_is_plausible(self, internal_config):
        values = np.full((9, 9), FOREST, dtype=np.uint8)
        values[1:8, 1:8] = BUILT
        mask = ConsistencyCorrector(internal_config).plausibility_mask(values, values)
        assert mask[4, 4]

    def test_containment_and_direction(self, make_config, lc_grid):
        rng = np.random.default_rng(1)
        earlier = rng.integers(0, 13, size=(40, 40)).astype(np.uint8)
        later = earlier.copy()
        later[5:25, 5:25] = BARE
        later[rng.random((40, 40)) < 0.05] = 9

        config = make_config(CHANGE_PATCH_MIN_SIZE=10)
        result = ConsistencyCorrector(config).correct(lc_grid(later), lc_grid(earlier))

        assert not np.any(result.true_change & ~result.initial)
        assert not np.any(result.refined & ~result.initial)
        out = result.grid.values
        assert np.array_equal(out[~result.true_change], later[~result.true_change])
        assert np.array_equal(out[result.true_change], earlier[result.true_change])

    def test_identical_epochs_are_untouched(self, internal_config, lc_grid):
        values = np.random.default_rng(2).integers(0, 13, size=(8, 8)).astype(np.uint8)
        result = ConsistencyCorrector(internal_config).correct(lc_grid(values), lc_grid(values))
        assert np.array_equal(result.grid.values, values)
        assert not result.initial.any()

    def test_extent_mismatch(self, internal_config, lc_grid):
        shifted = make_grid(np.zeros((3, 3), dtype=np.uint8), transform=(30, 0, 30, 0, -30, 0))
        with pytest.raises(ExtentMismatch):
            ConsistencyCorrector(internal_config).correct(lc_grid(np.zeros((3, 3))), shifted)


class TestTransitionTable:

    def test_counts_pairs(self, lc_grid):
        earlier = lc_grid([[BUILT, BUILT], [FOREST, 255]])
        later = lc_grid([[FOREST, BUILT], [FOREST, FOREST]])

        table = transition_table(earlier, later, nodata=255)

        assert table.loc[BUILT, FOREST] == 1
        assert table.loc[BUILT, BUILT] == 1
        assert table.loc[FOREST, FOREST] == 1
        assert int(table.values.sum()) == 3

    def test_labels(self, lc_grid):
        earlier = lc_grid([[BUILT]])
        later = lc_grid([[FOREST]])
        table = transition_table(earlier, later, labels={BUILT: "Built-up", FOREST: "Forest"})
        assert table.loc["Built-up", "Forest"] == 1

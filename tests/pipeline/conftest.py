import pytest
import numpy as np

from lcrefine.grid.raster import make_grid
from lcrefine.pipeline import EpochInputs
from lcrefine.schemas import ParamConfig, UserConfig
from lcrefine.schemas.resolve import resolve_config

FOREST, PADDY, BUILT, RIVER, GRASS = 8, 3, 6, 0, 9
SHAPE = (24, 24)


@pytest.fixture
def pipeline_config():
    """InternalConfig for pipeline tests (boundary policy set, serial run)."""
    return resolve_config(ParamConfig(), UserConfig(BOUNDARY_POLICY="passthrough"), None)


@pytest.fixture
def terrain():
    return (make_grid(np.zeros(SHAPE, dtype=np.float32), name="slope"),
            make_grid(np.full(SHAPE, 12.0, dtype=np.float32), name="twi"))


@pytest.fixture
def epoch_inputs(terrain):
    """Three epochs of a forest scene with a river and a paddy field.

    - every primary map has a 2x2 cloud gap that its secondary map fills
    - 2000 carries a one-pixel built-up speck that the sieve removes
    - 2010 flickers a block of forest to grassland, which no plausible
      transition covers
    """
    slope, twi = terrain

    def scene():
        values = np.full(SHAPE, FOREST, dtype=np.uint8)
        values[:, 5:8] = RIVER
        values[8:14, 14:20] = PADDY
        return values

    epochs = {}
    for year in ("2000", "2010", "2024"):
        primary = scene()
        primary[0:2, 10:12] = 255
        epochs[year] = (primary, scene())

    epochs["2000"][0][4, 12] = BUILT
    for values in epochs["2010"]:
        values[15:23, 10:18] = GRASS

    return {
        year: EpochInputs(make_grid(p, nodata=255, name="classification"),
                          make_grid(s, nodata=255, name="classification"),
                          slope, twi)
        for year, (p, s) in epochs.items()
    }

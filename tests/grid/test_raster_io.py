"""Tests for grid construction, comparison and NetCDF round trips."""

import numpy as np
import pytest

from lcrefine.grid.loader import Found, GridLoader, Malformed, NotFound, save_grid
from lcrefine.grid.raster import DEFAULT_TRANSFORM, like, make_grid, same_grid


class TestRaster:
    pytestmark = pytest.mark.unit

    def test_make_grid_attrs_and_coords(self):
        grid = make_grid(np.zeros((2, 3), dtype=np.uint8), nodata=255)
        assert grid.dims == ("y", "x")
        assert grid.attrs["nodata"] == 255
        assert grid.attrs["transform"] == DEFAULT_TRANSFORM
        # Pixel centres of a 30 m north-up grid
        assert grid["x"].values.tolist() == [15.0, 45.0, 75.0]
        assert grid["y"].values.tolist() == [-15.0, -45.0]

    def test_make_grid_rejects_3d(self):
        with pytest.raises(ValueError, match="2D"):
            make_grid(np.zeros((2, 2, 2)))

    def test_like_copies_georeference(self):
        grid = make_grid(np.zeros((2, 2), dtype=np.uint8), crs="EPSG:32651", nodata=255)
        out = like(grid, np.ones((2, 2), dtype=np.uint8))
        assert out.attrs == grid.attrs
        assert out.values.sum() == 4

    def test_same_grid_detects_shift(self):
        a = make_grid(np.zeros((2, 2)))
        b = make_grid(np.zeros((2, 2)), transform=(30, 0, 30, 0, -30, 0))
        assert same_grid(a, a.copy())
        assert not same_grid(a, b)

    def test_same_grid_detects_crs(self):
        a = make_grid(np.zeros((2, 2)), crs="EPSG:4326")
        b = make_grid(np.zeros((2, 2)), crs="EPSG:32651")
        assert not same_grid(a, b)


@pytest.mark.integration
class TestLoader:

    def test_missing_file_is_not_found(self, temp_dir):
        result = GridLoader().load(temp_dir / "absent.nc")
        assert isinstance(result, NotFound)

    def test_round_trip(self, temp_dir):
        grid = make_grid(np.array([[0, 3], [8, 255]], dtype=np.uint8),
                         crs="EPSG:32651", nodata=255, name="classification")
        path = save_grid(grid, temp_dir / "lulc.nc")

        result = GridLoader().load(path, variable="classification")

        assert isinstance(result, Found)
        loaded = result.grid
        assert np.array_equal(loaded.values, grid.values)
        assert loaded.attrs["crs"] == "EPSG:32651"
        assert loaded.attrs["transform"] == DEFAULT_TRANSFORM
        assert loaded.attrs["nodata"] == 255

    def test_missing_variable_is_malformed(self, temp_dir):
        grid = make_grid(np.zeros((2, 2), dtype=np.uint8), name="classification")
        path = save_grid(grid, temp_dir / "lulc.nc")

        result = GridLoader().load(path, variable="slope")

        assert isinstance(result, Malformed)
        assert "slope" in result.reason

    def test_missing_transform_is_malformed(self, temp_dir):
        import xarray as xr

        path = temp_dir / "bare.nc"
        xr.DataArray(np.zeros((2, 2)), dims=("y", "x"), name="v").to_dataset().to_netcdf(
            path, engine="netcdf4")

        result = GridLoader().load(path)

        assert isinstance(result, Malformed)
        assert "transform" in result.reason

    def test_default_crs_fills_missing_crs(self, temp_dir):
        import xarray as xr

        path = temp_dir / "nocrs.nc"
        da = xr.DataArray(np.zeros((2, 2), dtype=np.float32), dims=("y", "x"), name="slope",
                          attrs={"transform": np.asarray(DEFAULT_TRANSFORM)})
        da.to_dataset().to_netcdf(path, engine="netcdf4")

        assert isinstance(GridLoader().load(path), Malformed)
        result = GridLoader(default_crs="EPSG:32651").load(path)
        assert isinstance(result, Found)
        assert result.grid.attrs["crs"] == "EPSG:32651"

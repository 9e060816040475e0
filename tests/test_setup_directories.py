"""Tests for output directory layout."""

import pytest

from lcrefine.setup_directories import get_output_path, setup_output_directories

pytestmark = pytest.mark.unit


def test_setup_creates_every_subdirectory(temp_dir):
    dirs = setup_output_directories(temp_dir / "run")

    assert set(dirs) == {"base", "refined", "corrected", "smoothed", "reports", "logs"}
    assert all(path.is_dir() for path in dirs.values())


def test_output_path_naming(temp_dir):
    dirs = setup_output_directories(temp_dir)

    path = get_output_path(dirs, "smoothed", "2000")
    assert path == dirs["smoothed"] / "lulc_2000_smoothed.nc"
    assert get_output_path(dirs, "reports", "x", suffix="csv").suffix == ".csv"

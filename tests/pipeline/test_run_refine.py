"""End-to-end test of the file-based pipeline runner."""

import pytest

from lcrefine.cli import run_refine_pipeline
from lcrefine.cli.run_refine import load_user_config_dict
from lcrefine.contracts import InvalidConfiguration
from lcrefine.grid.loader import save_grid

pytestmark = pytest.mark.integration


def _write_inputs(epoch_inputs, root):
    epochs = {}
    for label, inputs in epoch_inputs.items():
        files = {
            "primary": save_grid(inputs.primary, root / f"raw_{label}_primary.nc"),
            "secondary": save_grid(inputs.secondary, root / f"raw_{label}_secondary.nc"),
            "slope": save_grid(inputs.slope, root / "slope.nc"),
            "twi": save_grid(inputs.twi, root / "twi.nc"),
        }
        epochs[label] = {k: str(v) for k, v in files.items()}
    return epochs


def _write_config(path, config):
    path.write_text(f"CONFIG = {config!r}\n")
    return path


def test_load_user_config_dict(temp_dir):
    path = _write_config(temp_dir / "cfg.py", {"MIN_PATCH_SIZE": 4})
    assert load_user_config_dict(str(path)) == {"MIN_PATCH_SIZE": 4}


def test_load_user_config_dict_missing(temp_dir):
    with pytest.raises(FileNotFoundError):
        load_user_config_dict(str(temp_dir / "nope.py"))


def test_run_writes_grids_and_reports(epoch_inputs, temp_dir):
    epochs = _write_inputs(epoch_inputs, temp_dir / "inputs")
    # A missing secondary map only skips that epoch's merge
    epochs["2024"]["secondary"] = str(temp_dir / "inputs" / "absent.nc")
    out = temp_dir / "out"
    path = _write_config(temp_dir / "cfg.py", {
        "EPOCHS": epochs,
        "OUTPUT_DIR": str(out),
        "BOUNDARY_POLICY": "passthrough",
    })

    result = run_refine_pipeline(str(path))

    assert result.smoothed.labels == ["2000", "2010", "2024"]
    for label in ("2000", "2010", "2024"):
        assert (out / "smoothed" / f"lulc_{label}_smoothed.nc").exists()
        assert (out / "refined" / f"lulc_{label}_refined.nc").exists()
    assert (out / "reports" / "refinement_report.csv").exists()
    assert (out / "reports" / "transitions_2000.csv").exists()
    assert (out / "logs" / "refine_pipeline.log").exists()


def test_run_requires_output_dir(epoch_inputs, temp_dir):
    epochs = _write_inputs(epoch_inputs, temp_dir / "inputs")
    path = _write_config(temp_dir / "cfg.py", {
        "EPOCHS": epochs,
        "BOUNDARY_POLICY": "passthrough",
    })
    with pytest.raises(InvalidConfiguration):
        run_refine_pipeline(str(path))

"""Core refinement pipeline execution logic.

This module contains the actual pipeline runner, separated from argument parsing.
Scripts are thin wrappers; this is the real implementation.
"""

import json
import logging
import importlib.util
from pathlib import Path
from typing import Optional, Dict, Any

from lcrefine.contracts import InvalidConfiguration
from lcrefine.grid.loader import Found, GridLoader, Malformed, NotFound, save_grid
from lcrefine.pipeline import EpochInputs, PipelineOrchestrator, PipelineResult
from lcrefine.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig
from lcrefine.setup_directories import get_output_path, setup_output_directories

__all__ = ['load_user_config_dict', 'load_epoch_inputs', 'run_refine_pipeline']

logger = logging.getLogger(__name__)


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file.

    Returns the raw dict before Pydantic validation.

    Parameters
    ----------
    config_path : str
        Path to user config Python file containing CONFIG dict.

    Returns
    -------
    dict
        Raw user configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    # Find CONFIG dict
    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def _require_grid(result, what: str):
    if isinstance(result, Found):
        return result.grid
    if isinstance(result, NotFound):
        raise FileNotFoundError(f"{what} not found: {result.path}")
    if isinstance(result, Malformed):
        raise ValueError(f"{what} is malformed ({result.path}): {result.reason}")
    raise TypeError(f"Unexpected load result: {result!r}")


def load_epoch_inputs(config, loader: Optional[GridLoader] = None) -> Dict[str, EpochInputs]:
    """Read every epoch's grids listed in ``config.epochs``.

    A missing secondary file is allowed (the merge is skipped for that
    epoch); any other missing or malformed file is fatal.
    """
    loader = loader or GridLoader(default_crs=config.grid.crs)
    epochs = {}
    for label, files in config.epochs.items():
        primary = _require_grid(loader.load(files.primary, files.variable),
                                f"Epoch {label} primary map")

        secondary = None
        if files.secondary is not None:
            result = loader.load(files.secondary, files.variable)
            if isinstance(result, NotFound):
                logger.warning("Epoch %s: secondary map %s not found, merge skipped",
                               label, result.path)
            else:
                secondary = _require_grid(result, f"Epoch {label} secondary map")

        slope = _require_grid(loader.load(files.slope), f"Epoch {label} slope")
        twi = _require_grid(loader.load(files.twi), f"Epoch {label} TWI")
        epochs[label] = EpochInputs(primary, secondary, slope, twi)
    return epochs


def save_outputs(result: PipelineResult, output_dirs: Dict[str, Path]) -> None:
    """Write refined, corrected and smoothed grids plus CSV reports."""
    for kind, grids in (("refined", result.refined), ("corrected", result.corrected),
                        ("smoothed", result.smoothed.to_dict())):
        for label, grid in grids.items():
            save_grid(grid, get_output_path(output_dirs, kind, label))

    report_path = Path(output_dirs["reports"]) / "refinement_report.csv"
    result.report.to_csv(report_path, index=False)
    logger.info("Report saved: %s", report_path)

    for label, table in result.transitions.items():
        path = Path(output_dirs["reports"]) / f"transitions_{label}.csv"
        table.to_csv(path)


def run_refine_pipeline(
    user_config_path: str,
    cli_args: Optional[Dict[str, Any]] = None,
    verbose: bool = False
) -> PipelineResult:
    """Execute the land-cover refinement pipeline.

    This is the core pipeline execution function. It:
    1. Loads and resolves configuration (Param < User < CLI)
    2. Sets up output directories
    3. Loads every epoch's input grids
    4. Runs the orchestrator
    5. Writes grids and reports

    Parameters
    ----------
    user_config_path : str
        Path to user config file (Python file with CONFIG dict).

    cli_args : dict, optional
        CLI argument overrides. Keys: output_dir, reference_epoch,
        boundary_policy, max_workers, log_level. All optional.

    verbose : bool, optional
        If True, enable DEBUG logging and print full resolved config.

    Returns
    -------
    PipelineResult

    Raises
    ------
    FileNotFoundError
        If the config file or a required input grid does not exist.
    InvalidConfiguration
        If configuration validation fails.

    Examples
    --------
    Run with CLI overrides::

        run_refine_pipeline(
            "config/yrd.py",
            cli_args={"reference_epoch": "2024", "boundary_policy": "passthrough"},
        )
    """
    param_cfg = ParamConfig()  # Expert defaults

    user_cfg_dict = load_user_config_dict(user_config_path)
    user_cfg = UserConfig.model_validate(user_cfg_dict)

    cli_args = dict(cli_args or {})
    if verbose and "log_level" not in cli_args:
        cli_args["log_level"] = "DEBUG"

    # Filter None values
    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    # Resolve to internal config (Param < User < CLI)
    config = resolve_config(param_cfg, user_cfg, cli_cfg)

    if config.output_dir is None:
        raise InvalidConfiguration("OUTPUT_DIR is required", stage="config")
    if not config.epochs:
        raise InvalidConfiguration("EPOCHS is empty", stage="config")

    output_dirs = setup_output_directories(config.output_dir)

    print(f"\n{'='*60}")
    print("lcrefine Land-Cover Refinement Pipeline")
    print('='*60)
    print(f"Config:    {user_config_path}")
    print(f"Epochs:    {', '.join(config.epochs)}")
    print(f"Reference: {config.temporal.reference_epoch or 'latest'}")
    print(f"Output:    {output_dirs['base']}")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(), indent=2, default=str))
        print('='*60)

    orchestrator = PipelineOrchestrator(config, log_dir=output_dirs["logs"])
    epochs = load_epoch_inputs(config)
    result = orchestrator.run(epochs)
    save_outputs(result, output_dirs)
    return result

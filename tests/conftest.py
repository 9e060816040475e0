"""Root-level pytest fixtures for the lcrefine test suite.

Provides shared configuration fixtures following the Pydantic-based
architecture, plus small builders for georeferenced test grids.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

import numpy as np

from lcrefine.grid.raster import make_grid
from lcrefine.schemas import ParamConfig, UserConfig, resolve_config


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides).

    Note: ``temporal.boundary_policy`` is unset here, so this config cannot
    build a TemporalSmoother or a PipelineOrchestrator.
    """
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs.

    Examples
    --------
    >>> def test_custom_mmu(make_config):
    ...     config = make_config(MIN_PATCH_SIZE=4)
    ...     assert PatchSieve(config).cfg.min_patch_size == 4
    """
    def _make(**user_overrides):
        """Create InternalConfig with user overrides."""
        if user_overrides:
            user = UserConfig(**user_overrides)
            return resolve_config(param_config, user, None)
        else:
            return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Grid Fixtures
# =============================================================================

@pytest.fixture
def lc_grid():
    """Factory for categorical grids (uint8, nodata 255)."""
    def _make(values, nodata=255):
        return make_grid(np.asarray(values, dtype=np.uint8), nodata=nodata,
                         name="classification")
    return _make


@pytest.fixture
def flat_terrain():
    """Factory for (slope, twi) grids describing flat, wet terrain."""
    def _make(shape, slope=0.0, twi=12.0):
        return (make_grid(np.full(shape, slope, dtype=np.float32), name="slope"),
                make_grid(np.full(shape, twi, dtype=np.float32), name="twi"))
    return _make


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)

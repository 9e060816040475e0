"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and frozen. Ranges and cross-field rules are enforced by
ParamConfig during resolution; this schema only fixes the shape.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from typing import Literal, Optional
from pydantic import ConfigDict
from lcrefine.schemas.base import LcrefineBaseModel


KernelShape = Literal["square", "diamond"]


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalTaxonomyConfig(LcrefineBaseModel):
    """Runtime class taxonomy."""
    n_classes: int
    labels: dict[int, str]
    palette: list[str]
    sample_sources: dict[int, Optional[str]]


class InternalGridConfig(LcrefineBaseModel):
    """Runtime grid settings."""
    nodata: int
    crs: str
    connectivity: Literal[4, 8]


class InternalMergerConfig(LcrefineBaseModel):
    """Runtime merge configuration."""
    require_gap_free: bool


class InternalSpatialConfig(LcrefineBaseModel):
    """Runtime spatial correction configuration."""
    water_classes: list[int]
    river_class: int
    lake_class: int
    large_water_classes: list[int]
    pond_class: int
    wetland_class: int
    upland_class: int
    protection_erosion_radius: int
    large_water_area_threshold: int
    large_water_max_size: int
    pond_opening_radius: int
    pond_opening_shape: KernelShape
    river_connect_radius: int
    river_connect_shape: KernelShape
    edge_core_erosion_radius: int
    edge_buffer_distance: float
    edge_search_radius: float
    slope_threshold: float
    twi_threshold: float
    wetland_water_distance: float
    wetland_search_radius: float


class InternalSieveConfig(LcrefineBaseModel):
    """Runtime sieve configuration."""
    min_patch_size: int
    max_size: int
    connectivity: Literal[4, 8]
    mode_radius: int


class InternalSmootherConfig(LcrefineBaseModel):
    """Runtime smoothing configuration."""
    radius: int
    shape: KernelShape


class InternalTransitionConfig(LcrefineBaseModel):
    """Runtime plausible transition."""
    name: str
    earlier: list[int]
    later: list[int]


class InternalConsistencyConfig(LcrefineBaseModel):
    """Runtime consistency configuration."""
    built_up_class: int
    stable_core_erosion_radius: int
    plausible_transitions: list[InternalTransitionConfig]
    opening_radius: int
    change_patch_min_size: int
    change_patch_max_size: int
    connectivity: Literal[4, 8]


class InternalTemporalConfig(LcrefineBaseModel):
    """Runtime temporal smoothing configuration."""
    reference_epoch: Optional[str]
    boundary_policy: Optional[Literal["passthrough", "forward_pair"]]


class InternalExecutionConfig(LcrefineBaseModel):
    """Runtime execution settings."""
    max_workers: int
    tile_size: Optional[int]


class InternalLoggingConfig(LcrefineBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class InternalEpochInputConfig(LcrefineBaseModel):
    """Runtime input files for one epoch."""
    primary: str
    secondary: Optional[str]
    slope: str
    twi: str
    variable: str


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(LcrefineBaseModel):
    """Authoritative runtime configuration.

    This is the ONLY configuration schema that processing code sees.
    It is fully validated, immutable, and contains explicit values for
    all parameters.

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.min_patch_size = config.sieve.min_patch_size  # NOT .get()
            self.nodata = config.grid.nodata

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO type checking
    - NO validation
    """

    taxonomy: InternalTaxonomyConfig
    grid: InternalGridConfig
    merger: InternalMergerConfig
    spatial: InternalSpatialConfig
    sieve: InternalSieveConfig
    smoother: InternalSmootherConfig
    consistency: InternalConsistencyConfig
    temporal: InternalTemporalConfig
    execution: InternalExecutionConfig
    logging: InternalLoggingConfig
    epochs: dict[str, InternalEpochInputConfig]
    output_dir: Optional[str]

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )

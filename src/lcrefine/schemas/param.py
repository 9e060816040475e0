"""ParamConfig: Expert defaults for the refinement pipeline.

This module defines the complete default configuration. ALL pipeline
parameters have a default and a valid range here. No runtime code defines
fallback values - this is the single source of truth for defaults.

Default values follow the Yangtze River Delta study setup (30 m Landsat
grids). They must be recalibrated for other areas and class schemes.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator, model_validator
from lcrefine.schemas.base import LcrefineBaseModel


# =============================================================================
# Class taxonomy
# =============================================================================

RIVER = 0
LAKE = 1
MUDFLAT = 2
PADDY = 3
AQUACULTURE_POND = 4
RESERVOIR = 5
BUILT_UP = 6
DRY_CROPLAND = 7
FOREST = 8
GRASSLAND = 9
BARE_LAND = 10
HERBACEOUS_WETLAND = 11
WOODY_WETLAND = 12

DEFAULT_LABELS = {
    RIVER: "River",
    LAKE: "Lake",
    MUDFLAT: "Mudflat",
    PADDY: "Paddy Field",
    AQUACULTURE_POND: "Aquaculture Pond",
    RESERVOIR: "Reservoir",
    BUILT_UP: "Built-up Land",
    DRY_CROPLAND: "Dry Cropland",
    FOREST: "Forest",
    GRASSLAND: "Grassland",
    BARE_LAND: "Bare Land",
    HERBACEOUS_WETLAND: "Herbaceous Wetland",
    WOODY_WETLAND: "Woody Wetland",
}

DEFAULT_PALETTE = [
    "0000FF", "00FFFF", "663300", "FFFF00", "FFC0CB", "800080",
    "FF0000", "FFA500", "006400", "9ACD32", "D2B48C", "90EE90", "556B2F",
]

KernelShape = Literal["square", "diamond"]


# =============================================================================
# Nested Configuration Models
# =============================================================================

class TaxonomyConfig(LcrefineBaseModel):
    """Closed class taxonomy. Labels and palette are display metadata."""
    n_classes: int = Field(13, ge=1, le=254)
    labels: dict[int, str] = Field(default_factory=lambda: dict(DEFAULT_LABELS))
    palette: list[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE))
    # Class code -> optional training-sample source identifier
    sample_sources: dict[int, Optional[str]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_codes_in_range(self):
        """Labels and sample sources must name classes inside the taxonomy."""
        for field_name in ("labels", "sample_sources"):
            bad = [c for c in getattr(self, field_name) if not 0 <= c < self.n_classes]
            if bad:
                raise ValueError(
                    f"taxonomy.{field_name} has codes outside 0..{self.n_classes - 1}: {bad}"
                )
        return self


class GridConfig(LcrefineBaseModel):
    """Run-wide grid settings."""
    nodata: int = Field(255, ge=0, description="Unclassified cell sentinel")
    crs: str = "EPSG:4326"
    connectivity: Literal[4, 8] = 8


class MergerConfig(LcrefineBaseModel):
    """Hybrid map merge configuration."""
    require_gap_free: bool = Field(
        False, description="Fail instead of warn when the gap-filling map leaves holes"
    )


class SpatialConfig(LcrefineBaseModel):
    """Ordered spatial correction rules."""
    water_classes: list[int] = Field(
        default_factory=lambda: [RIVER, LAKE, RESERVOIR, AQUACULTURE_POND]
    )
    river_class: int = RIVER
    lake_class: int = LAKE
    large_water_classes: list[int] = Field(default_factory=lambda: [LAKE, RESERVOIR])
    pond_class: int = AQUACULTURE_POND
    wetland_class: int = WOODY_WETLAND
    upland_class: int = FOREST

    protection_erosion_radius: int = Field(1, ge=0, le=10)

    large_water_area_threshold: int = Field(2000, ge=1, description="Pixels")
    large_water_max_size: int = Field(4096, ge=1, description="Component size cap")

    pond_opening_radius: int = Field(1, ge=1, le=10)
    pond_opening_shape: KernelShape = "square"

    river_connect_radius: int = Field(2, ge=1, le=10)
    river_connect_shape: KernelShape = "square"

    edge_core_erosion_radius: int = Field(1, ge=0, le=10)
    edge_buffer_distance: float = Field(2.0, ge=0, description="Pixels")
    edge_search_radius: float = Field(256.0, gt=0)

    slope_threshold: float = Field(10.0, ge=0, le=90, description="Degrees")
    twi_threshold: float = 8.0
    wetland_water_distance: float = Field(300.0, ge=0, description="Pixels")
    wetland_search_radius: float = Field(1024.0, gt=0)

    @model_validator(mode="after")
    def check_thresholds_within_caps(self):
        """Capped sizes and bounded distances are only valid below their caps."""
        if self.large_water_area_threshold > self.large_water_max_size:
            raise ValueError(
                f"large_water_area_threshold ({self.large_water_area_threshold}) "
                f"exceeds large_water_max_size ({self.large_water_max_size})"
            )
        if self.edge_buffer_distance >= self.edge_search_radius:
            raise ValueError("edge_buffer_distance must be below edge_search_radius")
        if self.wetland_water_distance >= self.wetland_search_radius:
            raise ValueError("wetland_water_distance must be below wetland_search_radius")
        return self


class SieveConfig(LcrefineBaseModel):
    """Minimum mapping unit configuration."""
    min_patch_size: int = Field(8, ge=1, description="Minimum mapping unit in pixels")
    max_size: int = Field(256, ge=1, description="Component size cap")
    connectivity: Literal[4, 8] = 4
    mode_radius: int = Field(1, ge=1, le=10)

    @model_validator(mode="after")
    def check_mmu_within_cap(self):
        if self.min_patch_size > self.max_size:
            raise ValueError(
                f"min_patch_size ({self.min_patch_size}) exceeds max_size ({self.max_size})"
            )
        return self


class SmootherConfig(LcrefineBaseModel):
    """Conditional majority smoothing configuration."""
    radius: int = Field(1, ge=1, le=10)
    shape: KernelShape = "square"


class TransitionConfig(LcrefineBaseModel):
    """A class transition considered plausible between two epochs."""
    name: str
    earlier: list[int] = Field(min_length=1)
    later: list[int] = Field(min_length=1)


def _default_transitions() -> list[TransitionConfig]:
    water = [RIVER, LAKE, MUDFLAT, AQUACULTURE_POND, RESERVOIR]
    cropland = [PADDY, DRY_CROPLAND]
    non_reversible = [
        PADDY, DRY_CROPLAND, FOREST, WOODY_WETLAND, HERBACEOUS_WETLAND,
        GRASSLAND, MUDFLAT, RIVER, LAKE, RESERVOIR, AQUACULTURE_POND,
    ]
    return [
        TransitionConfig(name="stable_cropland", earlier=cropland, later=cropland),
        TransitionConfig(name="stable_water", earlier=water, later=water),
        TransitionConfig(name="urban_to_forest", earlier=[BUILT_UP], later=[FOREST]),
        TransitionConfig(name="forest_to_woody_wetland", earlier=[FOREST], later=[WOODY_WETLAND]),
        TransitionConfig(name="paddy_to_forest", earlier=[PADDY], later=[FOREST]),
        TransitionConfig(name="cropland_to_forest", earlier=cropland,
                         later=[FOREST, WOODY_WETLAND]),
        TransitionConfig(name="urban_reversion", earlier=[BUILT_UP], later=non_reversible),
    ]


class ConsistencyConfig(LcrefineBaseModel):
    """Cross-epoch logical consistency configuration."""
    built_up_class: int = BUILT_UP
    stable_core_erosion_radius: int = Field(2, ge=0, le=10)
    plausible_transitions: list[TransitionConfig] = Field(default_factory=_default_transitions)
    opening_radius: int = Field(1, ge=0, le=10)
    change_patch_min_size: int = Field(30, ge=1, description="Pixels")
    change_patch_max_size: int = Field(1024, ge=1, description="Component size cap")
    connectivity: Literal[4, 8] = 8

    @model_validator(mode="after")
    def check_min_within_cap(self):
        if self.change_patch_min_size > self.change_patch_max_size:
            raise ValueError(
                f"change_patch_min_size ({self.change_patch_min_size}) exceeds "
                f"change_patch_max_size ({self.change_patch_max_size})"
            )
        return self


class TemporalConfig(LcrefineBaseModel):
    """Multi-epoch temporal smoothing configuration.

    ``boundary_policy`` has no default on purpose: the series ends have no
    symmetric neighbour and the integrator must choose.
    """
    reference_epoch: Optional[str] = Field(
        None, description="Protected epoch label; None selects the latest epoch"
    )
    boundary_policy: Optional[Literal["passthrough", "forward_pair"]] = None

    @field_validator("reference_epoch", mode="before")
    @classmethod
    def coerce_epoch_label(cls, v):
        """Allow int years as epoch labels."""
        if v is not None:
            return str(v)
        return v


class ExecutionConfig(LcrefineBaseModel):
    """Parallel execution settings."""
    max_workers: int = Field(1, ge=1, le=64, description="Epochs refined in parallel")
    tile_size: Optional[int] = Field(None, ge=16, description="Tile edge for smoothing; None = whole grid")


class LoggingConfig(LcrefineBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


class EpochInputConfig(LcrefineBaseModel):
    """Input files for one epoch."""
    primary: str
    secondary: Optional[str] = None
    slope: str
    twi: str
    variable: str = "classification"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(LcrefineBaseModel):
    """Complete expert configuration with all defaults.

    This is the single source of truth for all pipeline parameters.
    Every tunable parameter MUST have a default here.

    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)

    Runtime code only sees InternalConfig.
    """

    taxonomy: TaxonomyConfig = Field(default_factory=TaxonomyConfig)
    grid: GridConfig = Field(default_factory=GridConfig)
    merger: MergerConfig = Field(default_factory=MergerConfig)
    spatial: SpatialConfig = Field(default_factory=SpatialConfig)
    sieve: SieveConfig = Field(default_factory=SieveConfig)
    smoother: SmootherConfig = Field(default_factory=SmootherConfig)
    consistency: ConsistencyConfig = Field(default_factory=ConsistencyConfig)
    temporal: TemporalConfig = Field(default_factory=TemporalConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    epochs: dict[str, EpochInputConfig] = Field(default_factory=dict)
    output_dir: Optional[str] = None

    @field_validator("epochs", mode="before")
    @classmethod
    def coerce_epoch_keys(cls, v):
        """Allow int years as epoch keys."""
        if isinstance(v, dict):
            return {str(k): val for k, val in v.items()}
        return v

    @model_validator(mode="after")
    def check_class_codes(self):
        """Every configured class code must belong to the taxonomy."""
        n = self.taxonomy.n_classes
        s, c = self.spatial, self.consistency
        codes = {
            "spatial.water_classes": s.water_classes,
            "spatial.large_water_classes": s.large_water_classes,
            "spatial.river_class": [s.river_class],
            "spatial.lake_class": [s.lake_class],
            "spatial.pond_class": [s.pond_class],
            "spatial.wetland_class": [s.wetland_class],
            "spatial.upland_class": [s.upland_class],
            "consistency.built_up_class": [c.built_up_class],
        }
        for t in c.plausible_transitions:
            codes[f"consistency.plausible_transitions[{t.name}]"] = t.earlier + t.later

        for where, values in codes.items():
            bad = [v for v in values if not 0 <= v < n]
            if bad:
                raise ValueError(f"{where} has codes outside 0..{n - 1}: {bad}")

        if self.grid.nodata < n:
            raise ValueError(
                f"grid.nodata ({self.grid.nodata}) collides with class codes 0..{n - 1}"
            )
        if self.temporal.reference_epoch is not None and self.epochs \
                and self.temporal.reference_epoch not in self.epochs:
            raise ValueError(
                f"temporal.reference_epoch '{self.temporal.reference_epoch}' is not an epoch"
            )
        return self

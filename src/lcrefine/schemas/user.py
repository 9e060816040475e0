"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs in a variety of formats, with aliases
for common naming patterns (e.g., MIN_PATCH_SIZE → min_patch_size).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults.
"""

from typing import Literal, Optional, Any
from pydantic import Field, field_validator
from lcrefine.schemas.base import LcrefineBaseModel


class UserSieveConfig(LcrefineBaseModel):
    """User-facing sieve config."""
    min_patch_size: Optional[int] = None
    max_size: Optional[int] = None
    connectivity: Optional[int] = None
    mode_radius: Optional[int] = None


class UserSmootherConfig(LcrefineBaseModel):
    """User-facing smoother config."""
    radius: Optional[int] = None
    shape: Optional[str] = None

    @field_validator("shape", mode="before")
    @classmethod
    def normalize_shape(cls, v):
        """Normalize kernel shape names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class UserTemporalConfig(LcrefineBaseModel):
    """User-facing temporal config."""
    reference_epoch: Optional[str] = None
    boundary_policy: Optional[str] = None

    @field_validator("reference_epoch", mode="before")
    @classmethod
    def coerce_epoch_label(cls, v):
        if v is not None:
            return str(v)
        return v

    @field_validator("boundary_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v


class UserConfig(LcrefineBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.

    Usage
    -----
        user_cfg = UserConfig(
            OUTPUT_DIR="/data/lulc/refined",
            MIN_PATCH_SIZE=8,
            REFERENCE_EPOCH=2024,
            BOUNDARY_POLICY="passthrough",
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Inputs and outputs
    epochs: Optional[dict[str, dict[str, Any]]] = Field(None, alias="EPOCHS")
    output_dir: Optional[str] = Field(None, alias="OUTPUT_DIR")

    # Grid settings (flat aliases)
    nodata: Optional[int] = Field(None, alias="NODATA")
    crs: Optional[str] = Field(None, alias="CRS")
    connectivity: Optional[int] = Field(None, alias="CONNECTIVITY")

    # Spatial correction (flat aliases)
    large_water_area_threshold: Optional[int] = Field(None, alias="LARGE_WATER_AREA_THRESHOLD")
    slope_threshold: Optional[float] = Field(None, alias="SLOPE_THRESHOLD")
    twi_threshold: Optional[float] = Field(None, alias="TWI_THRESHOLD")
    wetland_water_distance: Optional[float] = Field(None, alias="WETLAND_WATER_DISTANCE")

    # Sieve and smoothing (flat aliases)
    min_patch_size: Optional[int] = Field(None, alias="MIN_PATCH_SIZE")
    smoothing_radius: Optional[int] = Field(None, alias="SMOOTHING_RADIUS")

    # Consistency (flat aliases)
    change_patch_min_size: Optional[int] = Field(None, alias="CHANGE_PATCH_MIN_SIZE")

    # Temporal (flat aliases)
    reference_epoch: Optional[str] = Field(None, alias="REFERENCE_EPOCH")
    boundary_policy: Optional[Literal["passthrough", "forward_pair"]] = Field(None, alias="BOUNDARY_POLICY")

    # Execution (flat aliases)
    max_workers: Optional[int] = Field(None, alias="MAX_WORKERS")
    tile_size: Optional[int] = Field(None, alias="TILE_SIZE")

    # Nested overrides (advanced users)
    taxonomy: Optional[dict[str, Any]] = None
    spatial: Optional[dict[str, Any]] = None
    sieve: Optional[UserSieveConfig] = None
    smoother: Optional[UserSmootherConfig] = None
    consistency: Optional[dict[str, Any]] = None
    temporal: Optional[UserTemporalConfig] = None

    model_config = LcrefineBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("slope_threshold", "twi_threshold", "wetland_water_distance", mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v):
        """Accept int or float for numeric fields."""
        if v is not None:
            return float(v)
        return v

    @field_validator("reference_epoch", mode="before")
    @classmethod
    def coerce_epoch_label(cls, v):
        """Accept int years as epoch labels."""
        if v is not None:
            return str(v)
        return v

    @field_validator("epochs", mode="before")
    @classmethod
    def coerce_epoch_keys(cls, v):
        if isinstance(v, dict):
            return {str(k): val for k, val in v.items()}
        return v

    @field_validator("boundary_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.epochs is not None:
            overrides["epochs"] = self.epochs
        if self.output_dir is not None:
            overrides["output_dir"] = str(self.output_dir)

        # Grid section
        grid = {}
        if self.nodata is not None:
            grid["nodata"] = self.nodata
        if self.crs is not None:
            grid["crs"] = self.crs
        if self.connectivity is not None:
            grid["connectivity"] = self.connectivity
        if grid:
            overrides["grid"] = grid

        if self.taxonomy is not None:
            overrides["taxonomy"] = dict(self.taxonomy)

        # Spatial section
        spatial = {}
        if self.large_water_area_threshold is not None:
            spatial["large_water_area_threshold"] = self.large_water_area_threshold
        if self.slope_threshold is not None:
            spatial["slope_threshold"] = self.slope_threshold
        if self.twi_threshold is not None:
            spatial["twi_threshold"] = self.twi_threshold
        if self.wetland_water_distance is not None:
            spatial["wetland_water_distance"] = self.wetland_water_distance

        # Merge with explicit spatial config
        if self.spatial is not None:
            spatial.update(self.spatial)
        if spatial:
            overrides["spatial"] = spatial

        # Sieve section
        sieve = {}
        if self.min_patch_size is not None:
            sieve["min_patch_size"] = self.min_patch_size
        if self.sieve is not None:
            sieve.update(self.sieve.model_dump(exclude_none=True))
        if sieve:
            overrides["sieve"] = sieve

        # Smoother section
        smoother = {}
        if self.smoothing_radius is not None:
            smoother["radius"] = self.smoothing_radius
        if self.smoother is not None:
            smoother.update(self.smoother.model_dump(exclude_none=True))
        if smoother:
            overrides["smoother"] = smoother

        # Consistency section
        consistency = {}
        if self.change_patch_min_size is not None:
            consistency["change_patch_min_size"] = self.change_patch_min_size
        if self.consistency is not None:
            consistency.update(self.consistency)
        if consistency:
            overrides["consistency"] = consistency

        # Temporal section
        temporal = {}
        if self.reference_epoch is not None:
            temporal["reference_epoch"] = self.reference_epoch
        if self.boundary_policy is not None:
            temporal["boundary_policy"] = self.boundary_policy
        if self.temporal is not None:
            temporal.update(self.temporal.model_dump(exclude_none=True))
        if temporal:
            overrides["temporal"] = temporal

        # Execution section
        execution = {}
        if self.max_workers is not None:
            execution["max_workers"] = self.max_workers
        if self.tile_size is not None:
            execution["tile_size"] = self.tile_size
        if execution:
            overrides["execution"] = execution

        return overrides

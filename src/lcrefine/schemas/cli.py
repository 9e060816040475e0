"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: output path, reference epoch, parallelism, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from lcrefine.schemas.base import LcrefineBaseModel


class CLIConfig(LcrefineBaseModel):
    """Command-line configuration overrides.

    Operational-only settings that override user and param configs.
    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(output_dir="/scratch/lulc", log_level="DEBUG")
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    output_dir: Optional[str] = None
    reference_epoch: Optional[str] = None
    boundary_policy: Optional[Literal["passthrough", "forward_pair"]] = None
    max_workers: Optional[int] = Field(None, ge=1)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    @field_validator("reference_epoch", mode="before")
    @classmethod
    def coerce_epoch_label(cls, v):
        if v is not None:
            return str(v)
        return v

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.output_dir is not None:
            overrides["output_dir"] = str(self.output_dir)

        temporal = {}
        if self.reference_epoch is not None:
            temporal["reference_epoch"] = self.reference_epoch
        if self.boundary_policy is not None:
            temporal["boundary_policy"] = self.boundary_policy
        if temporal:
            overrides["temporal"] = temporal

        if self.max_workers is not None:
            overrides["execution"] = {"max_workers": self.max_workers}

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides

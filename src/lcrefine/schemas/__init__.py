"""Pydantic configuration schemas for the lcrefine pipeline.

All configuration validation, coercion, and normalization happens at
schema validation time via Pydantic.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
"""

from lcrefine.schemas.resolve import resolve_config
from lcrefine.schemas.internal import InternalConfig
from lcrefine.schemas.param import ParamConfig
from lcrefine.schemas.user import UserConfig
from lcrefine.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]

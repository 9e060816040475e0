"""`lcrefine` - Land-Cover map REFINEment.

Turns raw per-pixel land-cover classification grids into spatially coherent,
logically consistent and temporally stable maps.

Subpackages:
- grid: Raster helpers, grid algebra primitives, loading, tiling
- refine: Merge, spatial correction, sieve, smoothing, consistency, temporal
- pipeline: Per-epoch refiner and multi-epoch orchestrator
- schemas: Pydantic configuration
- contracts: Stage-boundary invariants and error types
"""

__version__ = "0.1.0"

"""lcrefine User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Expert defaults live in lcrefine.schemas.param.

Usage:
    python scripts/run_refine_pipeline.py scripts/user_config.py
    python scripts/run_refine_pipeline.py scripts/user_config.py --reference-epoch 2024
    python scripts/run_refine_pipeline.py scripts/user_config.py --max-workers 4
"""

DATA_DIR = "/data/yrd"

CONFIG = {
    # ========================================================================
    # INPUTS & OUTPUTS
    # ========================================================================
    # One entry per epoch. "secondary" is the gap-free annual-statistics map
    # used to fill the phenology map's cloud gaps (None = no merge).
    "EPOCHS": {
        year: {
            "primary": f"{DATA_DIR}/raw/lulc_{year}_phenology.nc",
            "secondary": f"{DATA_DIR}/raw/lulc_{year}_annual.nc",
            "slope": f"{DATA_DIR}/terrain/slope.nc",
            "twi": f"{DATA_DIR}/terrain/twi.nc",
        }
        for year in (1990, 2000, 2010, 2020, 2024)
    },
    "OUTPUT_DIR": f"{DATA_DIR}/refined",

    # ========================================================================
    # GRID SETTINGS
    # ========================================================================
    "NODATA": 255,
    "CRS": "EPSG:32651",      # UTM 51N, 30 m Landsat grid
    "CONNECTIVITY": 8,

    # ========================================================================
    # SPATIAL CORRECTION
    # ========================================================================
    "LARGE_WATER_AREA_THRESHOLD": 2000,  # Pixels; river components this big become lake
    "SLOPE_THRESHOLD": 10,               # Degrees
    "TWI_THRESHOLD": 8,
    "WETLAND_WATER_DISTANCE": 300,       # Pixels

    # ========================================================================
    # CLEANUP
    # ========================================================================
    "MIN_PATCH_SIZE": 8,                 # Minimum mapping unit (pixels)
    "SMOOTHING_RADIUS": 1,

    # ========================================================================
    # MULTI-EPOCH
    # ========================================================================
    "CHANGE_PATCH_MIN_SIZE": 30,         # Pixels
    "REFERENCE_EPOCH": 2024,             # Protected, best-supervised epoch
    # Series ends that are not the reference epoch. No default.
    #   "passthrough":  ends are kept as classified
    #   "forward_pair": each end is overwritten by its neighbouring epoch
    #                   wherever that epoch has a valid class
    "BOUNDARY_POLICY": "passthrough",

    # ========================================================================
    # EXECUTION
    # ========================================================================
    "MAX_WORKERS": 2,                    # Epochs refined in parallel
    "TILE_SIZE": None,                   # e.g. 1024 to smooth tile by tile
}

"""
Directory setup for the refinement pipeline.

One flat tree per run:
- refined/   per-epoch merged + spatially corrected + sieved + smoothed maps
- corrected/ historical epochs after consistency correction
- smoothed/  final temporally smoothed series
- reports/   per-rule change counts and transition tables (CSV)
- logs/
"""

from pathlib import Path

__all__ = ['setup_output_directories', 'get_output_path']

SUBDIRS = ("refined", "corrected", "smoothed", "reports", "logs")


def setup_output_directories(base_output_dir):
    """
    Set up organized output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path
        Base output directory.

    Returns
    -------
    dict
        Paths keyed by 'base' and each subdirectory name
    """
    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {"base": base_output_dir}
    directories.update({name: base_output_dir / name for name in SUBDIRS})

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    return directories


def get_output_path(output_dirs, kind, epoch, suffix="nc"):
    """
    Path for one epoch's output file, e.g. ``smoothed/lulc_2000_smoothed.nc``.
    """
    return Path(output_dirs[kind]) / f"lulc_{epoch}_{kind}.{suffix}"

"""Tiled execution of bounded-radius stages.

Every neighbourhood primitive looks at most ``radius`` cells away, so a grid
can be cut into tiles padded with a halo at least that wide, processed
independently, and stitched back without changing the result.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, Optional, Tuple

import numpy as np
import xarray as xr

from lcrefine.grid.raster import like

__all__ = ['iter_tiles', 'apply_tiled']

logger = logging.getLogger(__name__)

Window = Tuple[slice, slice]


def iter_tiles(shape: Tuple[int, int], tile_size: int,
               halo: int) -> Iterator[Tuple[Window, Window, Window]]:
    """Yield (core, padded, core-within-padded) windows covering ``shape``."""
    ny, nx = shape
    for y0 in range(0, ny, tile_size):
        for x0 in range(0, nx, tile_size):
            y1, x1 = min(y0 + tile_size, ny), min(x0 + tile_size, nx)
            py0, px0 = max(y0 - halo, 0), max(x0 - halo, 0)
            py1, px1 = min(y1 + halo, ny), min(x1 + halo, nx)
            core = (slice(y0, y1), slice(x0, x1))
            padded = (slice(py0, py1), slice(px0, px1))
            inner = (slice(y0 - py0, y1 - py0), slice(x0 - px0, x1 - px0))
            yield core, padded, inner


def apply_tiled(func: Callable[[np.ndarray], np.ndarray], grid: xr.DataArray,
                tile_size: int, halo: int,
                max_workers: Optional[int] = None) -> xr.DataArray:
    """Run ``func`` tile by tile and stitch the results.

    Parameters
    ----------
    func : callable
        Array -> array function of the same shape (e.g. a stage's
        ``apply_array``). Must only use neighbourhoods of radius <= ``halo``.
    grid : xr.DataArray
        Input grid.
    tile_size : int
        Core tile edge length in pixels.
    halo : int
        Padding width, >= the largest radius ``func`` uses.
    max_workers : int, optional
        Thread pool size. None lets the executor choose.
    """
    values = np.asarray(grid)
    tiles = list(iter_tiles(values.shape, tile_size, halo))

    def run(tile):
        core, padded, inner = tile
        return core, func(values[padded])[inner]

    out = np.empty_like(values)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        for core, result in pool.map(run, tiles):
            out[core] = result

    logger.debug("Tiled run: %d tiles of %d px, halo=%d", len(tiles), tile_size, halo)
    return like(grid, out)

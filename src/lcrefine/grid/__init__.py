"""Raster grid helpers and grid algebra primitives.

Loading (``lcrefine.grid.loader``) and tiled execution
(``lcrefine.grid.tiling``) are imported from their modules directly.
"""

from lcrefine.grid.raster import make_grid, like, same_grid
from lcrefine.grid import algebra

__all__ = ['make_grid', 'like', 'same_grid', 'algebra']

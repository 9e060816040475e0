"""Boolean and categorical raster primitives.

Everything the refinement stages do is built from these functions. They take
and return plain ``numpy`` arrays (``xr.DataArray`` inputs are accepted and
read through ``np.asarray``) so that stages stay free to rewrap results with
the run's georeference.

Neighbourhood conventions
-------------------------
- Footprints are ``square`` (Chebyshev ball) or ``diamond`` (4-connected
  "plus" ball) of an integer radius; radius 0 is the identity.
- Cells outside the grid never influence a result: erosion treats the
  outside as True, dilation and focal votes treat it as absent.
- Connectivity is 4 (edges) or 8 (edges and corners).
"""

import logging
from typing import Literal, Optional, Sequence

import numpy as np
from scipy import ndimage as ndi
from skimage.measure import label
from skimage.morphology import diamond, footprint_rectangle

__all__ = [
    'make_footprint',
    'class_mask',
    'remap',
    'connected_component_size',
    'erode',
    'dilate',
    'opening',
    'closing',
    'distance_transform',
    'focal_mode',
    'overlay',
]

logger = logging.getLogger(__name__)

KernelShape = Literal["square", "diamond"]


def make_footprint(radius: int, shape: KernelShape = "square") -> np.ndarray:
    """Structuring element of the given radius and shape.

    Parameters
    ----------
    radius : int
        Half-width in pixels (>= 0).
    shape : {"square", "diamond"}
        Square window or diamond/"plus" window.

    Returns
    -------
    np.ndarray
        Boolean footprint of size (2*radius+1, 2*radius+1).
    """
    if radius < 0:
        raise ValueError(f"Footprint radius must be >= 0, got {radius}")
    if shape == "square":
        fp = footprint_rectangle((2 * radius + 1, 2 * radius + 1))
    elif shape == "diamond":
        fp = diamond(radius)
    else:
        raise ValueError(f"Unknown footprint shape: {shape}")
    return fp.astype(bool)


def class_mask(values, codes: Sequence[int]) -> np.ndarray:
    """True where the cell holds any of ``codes``."""
    return np.isin(np.asarray(values), list(codes))


def remap(values, from_codes: Sequence[int], to_codes: Sequence[int],
          default_value: Optional[int] = None) -> np.ndarray:
    """Per-cell lookup.

    Cells holding ``from_codes[i]`` get ``to_codes[i]``; all other cells get
    ``default_value``, or keep their value when ``default_value`` is None.
    """
    values = np.asarray(values)
    if len(from_codes) != len(to_codes):
        raise ValueError(
            f"remap needs equal-length code lists, got {len(from_codes)} and {len(to_codes)}"
        )

    if default_value is None:
        out = values.copy()
    else:
        dtype = np.result_type(np.asarray(list(to_codes) or [0]), np.asarray(default_value))
        out = np.full(values.shape, default_value, dtype=dtype)

    for src, dst in zip(from_codes, to_codes):
        out[values == src] = dst
    return out


def connected_component_size(values, max_size: int, connectivity: int = 8,
                             nodata: Optional[int] = None) -> np.ndarray:
    """Per-cell size of the cell's connected component, capped at ``max_size``.

    For a boolean mask, components are built from ``True`` cells and
    ``False`` cells report 0. For a categorical grid, components are built
    from equal-valued neighbours and nodata cells report 0.

    The cap is a bounded-cost approximation: a component larger than
    ``max_size`` reports ``max_size``. Only compare the result against
    thresholds ``<= max_size``.
    """
    if connectivity not in (4, 8):
        raise ValueError(f"Connectivity must be 4 or 8, got {connectivity}")
    values = np.asarray(values)
    skimage_connectivity = 1 if connectivity == 4 else 2

    if values.dtype == bool:
        labels = label(values, background=0, connectivity=skimage_connectivity)
    else:
        # Shift codes so 0 is free to mark nodata as background
        shifted = values.astype(np.int64) + 1
        if nodata is not None:
            shifted[values == nodata] = 0
        labels = label(shifted, background=0, connectivity=skimage_connectivity)

    sizes = np.bincount(labels.ravel())
    sizes[0] = 0
    return np.minimum(sizes[labels], max_size)


def erode(mask, radius: int, shape: KernelShape = "square") -> np.ndarray:
    """Morphological erosion (neighbourhood min) of a boolean mask."""
    mask = np.asarray(mask, dtype=bool)
    if radius == 0:
        return mask.copy()
    return ndi.binary_erosion(mask, structure=make_footprint(radius, shape),
                              border_value=1)


def dilate(mask, radius: int, shape: KernelShape = "square") -> np.ndarray:
    """Morphological dilation (neighbourhood max) of a boolean mask."""
    mask = np.asarray(mask, dtype=bool)
    if radius == 0:
        return mask.copy()
    return ndi.binary_dilation(mask, structure=make_footprint(radius, shape),
                               border_value=0)


def opening(mask, radius: int, shape: KernelShape = "square") -> np.ndarray:
    """dilate(erode(mask)): removes features narrower than the footprint."""
    return dilate(erode(mask, radius, shape), radius, shape)


def closing(mask, radius: int, shape: KernelShape = "square") -> np.ndarray:
    """erode(dilate(mask)): fills gaps narrower than the footprint."""
    return erode(dilate(mask, radius, shape), radius, shape)


def distance_transform(mask, max_radius: float,
                       metric: Literal["euclidean", "squared"] = "euclidean",
                       beyond: Literal["clip", "mask"] = "clip") -> np.ndarray:
    """Distance in pixels from every cell to the nearest ``True`` cell.

    Parameters
    ----------
    mask : array-like of bool
        Reference cells (distance 0).
    max_radius : float
        Search bound in pixels.
    metric : {"euclidean", "squared"}
        Return the Euclidean distance or its square (bound squared too).
    beyond : {"clip", "mask"}
        Cells farther than ``max_radius`` (or with no reference cell at all)
        get the bound (``clip``) or NaN (``mask``).
    """
    mask = np.asarray(mask, dtype=bool)
    if mask.any():
        dist = ndi.distance_transform_edt(~mask)
    else:
        dist = np.full(mask.shape, np.inf)

    too_far = dist > max_radius
    bound = float(max_radius)
    if metric == "squared":
        dist = dist ** 2
        bound = bound ** 2
    elif metric != "euclidean":
        raise ValueError(f"Unknown distance metric: {metric}")

    dist = dist.astype(np.float64)
    if beyond == "clip":
        dist[too_far] = bound
    elif beyond == "mask":
        dist[too_far] = np.nan
    else:
        raise ValueError(f"Unknown beyond policy: {beyond}")
    return dist


def focal_mode(values, radius: int = 1, shape: KernelShape = "square",
               nodata: Optional[int] = None) -> np.ndarray:
    """Per-cell majority class over a neighbourhood window.

    Nodata cells do not vote. Ties go to the smallest class code. Cells whose
    whole window is nodata stay nodata.
    """
    values = np.asarray(values)
    valid = np.ones(values.shape, dtype=bool) if nodata is None else values != nodata
    classes = np.unique(values[valid])
    if classes.size == 0:
        return values.copy()

    weights = make_footprint(radius, shape).astype(np.int32)
    counts = np.stack([
        ndi.correlate(((values == c) & valid).astype(np.int32), weights,
                      mode="constant", cval=0)
        for c in classes
    ])

    # argmax returns the first maximum, i.e. the smallest code on ties
    mode = classes[counts.argmax(axis=0)].astype(values.dtype)
    if nodata is not None:
        mode[counts.max(axis=0) == 0] = nodata
    return mode


def overlay(primary, secondary, nodata: int) -> np.ndarray:
    """Primary's value where it is not nodata, else secondary's value."""
    primary = np.asarray(primary)
    secondary = np.asarray(secondary)
    return np.where(primary != nodata, primary, secondary).astype(primary.dtype)

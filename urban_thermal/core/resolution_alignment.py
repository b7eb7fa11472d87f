"""
Multi-resolution alignment of rasters onto a coarser analysis grid.

Fine rasters (e.g. 30 m Landsat NDVI) are brought onto a coarse grid (e.g.
the ~1 km MODIS LST grid) by area-weighted averaging of the valid fine
pixels that fall within each output cell, never by nearest-neighbour
sampling. The average is computed as the ratio of two GDAL ``average``
resamplings, one of ``value * valid`` and one of ``valid``, so invalid
fine pixels carry zero weight and a coarse cell is valid iff at least one
contributing fine pixel was valid.

The number of fine pixels aggregated per output cell is capped
(``max_pixels``, 1024 by default). When the aggregation window would exceed
the cap, every output cell is flagged invalid instead of being approximated.

Analysis scales are nominal pixel sizes in metres. :func:`scale_in_crs_units`
converts them to the units of a raster's CRS (degrees for geographic CRSs)
before any grid is derived from them.

Scenes of one sensor whose footprints differ are brought onto a common grid
with :func:`regrid`, a nearest-neighbour copy that keeps QA bit patterns
intact.

Author: Urban Thermal Analysis Team
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np
from rasterio.crs import CRS
from rasterio.transform import from_origin
from rasterio.warp import Resampling, calculate_default_transform, reproject, transform_bounds

from shared_utils import get_logger

from .raster import CRSLike, GridSpec, Raster

logger = get_logger('resolution_alignment')

DEFAULT_MAX_PIXELS = 1024

# Length of one degree of arc on the WGS84 equator
METRES_PER_DEGREE = 111319.49


def scale_in_crs_units(crs: CRSLike, scale: float, latitude: float = 0.0) -> float:
    """
    Pixel size in ``crs`` units for a nominal ``scale`` in metres.

    For a geographic CRS the result is the square pixel, in degrees, covering
    the same ground area as a ``scale`` x ``scale`` metre pixel at ``latitude``.

    Examples:
        >>> scale_in_crs_units('EPSG:32643', 1000)
        1000.0
        >>> round(scale_in_crs_units('EPSG:4326', 1000), 6)
        0.008983
    """
    crs = CRS.from_user_input(crs)
    if crs.is_geographic:
        cos_lat = max(math.cos(math.radians(latitude)), 1e-6)
        return scale / (METRES_PER_DEGREE * math.sqrt(cos_lat))
    return scale / crs.linear_units_factor[1]


def raster_scale_in_crs_units(raster: Raster, scale: float) -> float:
    """:func:`scale_in_crs_units` evaluated at the centre latitude of ``raster``."""
    _, bottom, _, top = raster.bounds
    return scale_in_crs_units(raster.crs, scale, latitude=(bottom + top) / 2)


def common_grid(grids: Sequence[GridSpec],
                bounds: Optional[Tuple[float, float, float, float]] = None) -> GridSpec:
    """
    Grid on the pixel lattice of ``grids[0]`` covering the union of all grids.

    Args:
        grids: Scene grids; the first one sets CRS, resolution and lattice
        bounds: Optional (left, bottom, right, top) in the first grid's CRS
            restricting the union (e.g. the study region)
    """
    reference = grids[0]
    x_res, y_res = reference.resolution
    origin_x, origin_y = reference.transform.c, reference.transform.f

    extents = [transform_bounds(grid.crs, reference.crs, *grid.bounds) for grid in grids]
    left = min(e[0] for e in extents)
    bottom = min(e[1] for e in extents)
    right = max(e[2] for e in extents)
    top = max(e[3] for e in extents)

    if bounds is not None:
        clipped = (max(left, bounds[0]), max(bottom, bounds[1]),
                   min(right, bounds[2]), min(top, bounds[3]))
        if clipped[0] < clipped[2] and clipped[1] < clipped[3]:
            left, bottom, right, top = clipped

    left = origin_x + math.floor((left - origin_x) / x_res + 1e-9) * x_res
    top = origin_y + math.ceil((top - origin_y) / y_res - 1e-9) * y_res
    width = max(1, math.ceil((right - left) / x_res - 1e-9))
    height = max(1, math.ceil((top - bottom) / y_res - 1e-9))

    return GridSpec(reference.crs, from_origin(left, top, x_res, y_res), width, height)


def regrid(raster: Raster, grid: GridSpec) -> Raster:
    """
    Copy ``raster`` onto ``grid`` by nearest neighbour.

    Pixels of ``grid`` outside the raster footprint are invalid. Intended for
    grids sharing the raster's resolution, where values are copied unchanged.
    """
    if raster.grid.same_grid(grid):
        return raster
    destination = np.full((raster.count, grid.height, grid.width), np.nan)
    reproject(
        source=raster.filled(np.nan),
        destination=destination,
        src_transform=raster.transform,
        src_crs=raster.crs,
        src_nodata=np.nan,
        dst_transform=grid.transform,
        dst_crs=grid.crs,
        dst_nodata=np.nan,
        resampling=Resampling.nearest,
    )
    return Raster(destination, grid.transform, grid.crs, raster.band_names)


def _fine_resolution_in(fine: Raster, crs: CRS) -> Tuple[float, float]:
    """Approximate pixel size of ``fine`` expressed in units of ``crs``."""
    if fine.crs == crs:
        return fine.grid.resolution
    transform, _, _ = calculate_default_transform(
        fine.crs, crs, fine.width, fine.height, *fine.bounds
    )
    return (abs(transform.a), abs(transform.e))


def pixels_per_cell(fine: Raster, grid: GridSpec) -> int:
    """
    Upper bound of fine pixels overlapping one cell of ``grid``.

    Examples:
        >>> pixels_per_cell(ndvi_30m, lst.grid)   # ~31 x 31 for MODIS 926 m
        961
    """
    fine_x, fine_y = _fine_resolution_in(fine, grid.crs)
    coarse_x, coarse_y = grid.resolution
    return math.ceil(coarse_x / fine_x - 1e-9) * math.ceil(coarse_y / fine_y - 1e-9)


def target_grid(fine: Raster, target_crs: CRSLike, target_scale: float) -> GridSpec:
    """Grid covering ``fine`` in ``target_crs``, snapped to multiples of ``target_scale``."""
    target_crs = CRS.from_user_input(target_crs)
    left, bottom, right, top = transform_bounds(fine.crs, target_crs, *fine.bounds)

    left = math.floor(left / target_scale) * target_scale
    top = math.ceil(top / target_scale) * target_scale
    width = max(1, math.ceil((right - left) / target_scale - 1e-9))
    height = max(1, math.ceil((top - bottom) / target_scale - 1e-9))

    return GridSpec(target_crs, from_origin(left, top, target_scale, target_scale), width, height)


def _average_onto(source: np.ndarray, fine: Raster, grid: GridSpec) -> np.ndarray:
    destination = np.full((source.shape[0], grid.height, grid.width), np.nan)
    reproject(
        source=source,
        destination=destination,
        src_transform=fine.transform,
        src_crs=fine.crs,
        src_nodata=np.nan,
        dst_transform=grid.transform,
        dst_crs=grid.crs,
        dst_nodata=np.nan,
        resampling=Resampling.average,
    )
    return destination


def align(fine: Raster, target_crs: CRSLike, target_scale: float,
          like: Optional[Raster] = None,
          max_pixels: int = DEFAULT_MAX_PIXELS) -> Raster:
    """
    Reproject ``fine`` onto a coarse grid by area-weighted averaging.

    Args:
        fine: Source raster, any number of bands
        target_crs: Output CRS
        target_scale: Output pixel size in ``target_crs`` units
        like: Reference raster whose exact grid is used (e.g. the LST grid);
            ``target_crs``/``target_scale`` are then only checked against it
        max_pixels: Cap on fine pixels aggregated per output cell

    Returns:
        Raster: Aligned raster with the band schema of ``fine``

    Examples:
        >>> ndvi_1km = align(ndvi_30m, lst.crs, lst.scale, like=lst)
    """
    if like is not None:
        grid = like.grid
        if CRS.from_user_input(target_crs) != grid.crs or not math.isclose(
                target_scale, like.scale, rel_tol=1e-6):
            logger.warning(
                f"Aligning onto reference grid ({grid.crs}, {like.scale:g}) instead of "
                f"requested ({target_crs}, {target_scale:g})"
            )
    else:
        grid = target_grid(fine, target_crs, target_scale)

    if fine.grid.same_grid(grid):
        return fine

    window = pixels_per_cell(fine, grid)
    if window > max_pixels:
        logger.warning(
            f"Aggregation window of {window} fine pixels per cell exceeds max_pixels={max_pixels}; "
            f"output cells flagged invalid"
        )
        return Raster.fully_masked(grid, fine.band_names)

    valid = fine.valid_mask.astype(np.float64)
    weighted = np.where(fine.valid_mask, fine.array.data, 0.0)

    weighted_mean = _average_onto(weighted, fine, grid)
    valid_fraction = _average_onto(valid, fine, grid)

    has_valid = np.isfinite(valid_fraction) & (valid_fraction > 0)
    with np.errstate(divide='ignore', invalid='ignore'):
        values = np.where(has_valid, weighted_mean / np.where(has_valid, valid_fraction, 1.0), 0.0)

    logger.debug(
        f"Aligned {fine.shape[1:]} @ {fine.scale:g} onto {grid.shape} @ {grid.resolution[0]:g} "
        f"({window} fine pixels per cell)"
    )
    return Raster(np.ma.MaskedArray(values, mask=~has_valid),
                  grid.transform, grid.crs, fine.band_names)


def align_to(fine: Raster, reference: Raster, max_pixels: int = DEFAULT_MAX_PIXELS) -> Raster:
    """Align ``fine`` onto the exact grid of ``reference``."""
    return align(fine, reference.crs, reference.scale, like=reference, max_pixels=max_pixels)

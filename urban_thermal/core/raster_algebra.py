"""
Elementwise raster algebra with mask propagation.

Every operation returns a new :class:`Raster`. A pixel of the result is
valid only where all contributing pixels were valid, and any arithmetic
that produces a non-finite value masks that pixel instead. Division by an
exact zero (per pixel, or by a scalar) yields masked pixels, never a
numeric error. A scalar operand of ``None`` (a NoData reduction result)
masks the whole output.

Binary operations between rasters require an identical pixel grid; a
single-band operand broadcasts over every band of the other.

Author: Urban Thermal Analysis Team
"""

from typing import Optional, Union

import numpy as np
import rasterio.features

from .raster import Raster, Region, check_same_grid

Operand = Union[Raster, float, int, None]


def _operand_array(base: Raster, operand: Operand):
    """Masked array (or scalar) for ``operand`` aligned with ``base``."""
    if isinstance(operand, Raster):
        check_same_grid(base, operand)
        if operand.count not in (1, base.count):
            raise ValueError(
                f"Cannot broadcast {operand.count} bands onto {base.count} bands"
            )
        return operand.array
    return float(operand)


def _fully_masked_like(raster: Raster) -> Raster:
    return raster.with_values(np.ma.masked_all(raster.shape))


def _binary(a: Raster, b: Operand, op) -> Raster:
    if b is None:
        return _fully_masked_like(a)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        result = op(a.array, _operand_array(a, b))
    return a.with_values(result)


def scale_offset(raster: Raster, scale: float, offset: float = 0.0) -> Raster:
    """
    Linear rescale ``raster * scale + offset``.

    Examples:
        >>> lst_celsius = scale_offset(lst_raw, 0.02, -273.15)
    """
    with np.errstate(over='ignore', invalid='ignore'):
        return raster.with_values(raster.array * scale + offset)


def subtract(a: Raster, b: Operand) -> Raster:
    return _binary(a, b, lambda x, y: x - y)


def _safe_divide(numerator, denominator):
    denominator_values = np.ma.getdata(denominator)
    zero = np.asarray(denominator_values == 0)
    quotient = np.ma.MaskedArray(
        np.ma.getdata(numerator) / np.where(zero, 1.0, denominator_values),
        mask=np.ma.getmaskarray(numerator) | np.ma.getmask(denominator) | zero,
    )
    return quotient


def divide(a: Raster, b: Operand) -> Raster:
    """
    Elementwise ``a / b``.

    Pixels whose denominator is exactly zero are masked. A zero or ``None``
    scalar denominator masks every pixel.
    """
    if b is None or (not isinstance(b, Raster) and float(b) == 0.0):
        return _fully_masked_like(a)
    return _binary(a, b, _safe_divide)


def normalized_difference(first: Raster, second: Raster,
                          band_name: str = 'ND') -> Raster:
    """
    ``(first - second) / (first + second)`` for two single-band rasters.

    Called as ``normalized_difference(nir, red)`` this is NDVI. Pixels whose
    sum is exactly zero are masked.

    Examples:
        >>> ndvi = normalized_difference(mosaic.select('NIR'), mosaic.select('Red'), 'NDVI')
    """
    if first.count != 1 or second.count != 1:
        raise ValueError("normalized_difference expects two single-band rasters")
    check_same_grid(first, second)
    with np.errstate(invalid='ignore', over='ignore'):
        result = _safe_divide(first.array - second.array, first.array + second.array)
    return first.with_values(result, band_names=[band_name])


def apply_mask(raster: Raster, validity: Raster) -> Raster:
    """
    Mask ``raster`` wherever ``validity`` is zero or itself invalid.

    ``validity`` is a single-band raster (e.g. from the quality masks) on the
    same grid.
    """
    check_same_grid(raster, validity)
    if validity.count != 1:
        raise ValueError("Validity raster must have exactly one band")
    keep = validity.array.filled(0)[0] != 0
    mask = np.ma.getmaskarray(raster.array) | ~keep[np.newaxis]
    return raster.with_values(np.ma.MaskedArray(raster.array.data, mask=mask))


def combine_masks(*validity: Raster) -> Raster:
    """Logical AND of several validity rasters."""
    check_same_grid(*validity)
    keep = np.logical_and.reduce([v.array.filled(0)[0] != 0 for v in validity])
    return validity[0].with_values(keep.astype(np.float64)[np.newaxis], band_names=['valid'])


def region_mask(raster: Raster, region: Region, all_touched: bool = False) -> np.ndarray:
    """2-D boolean array, True for pixels whose centre lies inside ``region``."""
    geometry = region.geometry_in(raster.crs)
    if geometry.is_empty:
        return np.zeros((raster.height, raster.width), dtype=bool)
    return rasterio.features.geometry_mask(
        [geometry],
        out_shape=(raster.height, raster.width),
        transform=raster.transform,
        all_touched=all_touched,
        invert=True,
    )


def clip(raster: Raster, region: Optional[Region]) -> Raster:
    """
    Restrict the valid-pixel domain of ``raster`` to ``region``.

    Sample values are left untouched; pixels outside the region are masked
    so that every later reduction ignores them.
    """
    if region is None:
        return raster
    inside = region_mask(raster, region)
    mask = np.ma.getmaskarray(raster.array) | ~inside[np.newaxis]
    return raster.with_values(np.ma.MaskedArray(raster.array.data, mask=mask))

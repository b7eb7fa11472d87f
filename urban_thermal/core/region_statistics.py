"""
Region-level reductions over masked rasters.

Every reduction samples its inputs at ``scale`` (rasters on another pixel
size are first aggregated with the area-weighted aligner), restricts them to
the region, and uses only pixels that are valid in every band involved.
When no meaningful result exists the reduction returns ``None`` (NoData):
no valid pixels for the mean, fewer than two jointly valid pixels or a
zero-variance input for correlation and regression.

Comparisons between two rasters require them to share one grid. A mismatch
is a caller error and raises :class:`GridMismatchError`.

Author: Urban Thermal Analysis Team
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from shared_utils import get_logger

from .raster import Raster, Region, check_same_grid
from .raster_algebra import clip
from .resolution_alignment import DEFAULT_MAX_PIXELS, align, raster_scale_in_crs_units

logger = get_logger('region_statistics')


@dataclass(frozen=True)
class LinearFit:
    """Ordinary least squares fit ``y = slope * x + intercept``."""

    slope: float
    intercept: float
    r_value: float
    n_pixels: int

    @property
    def r_squared(self) -> float:
        return self.r_value ** 2


def sample_at_scale(raster: Raster, region: Optional[Region], scale: float,
                    max_pixels: int = DEFAULT_MAX_PIXELS) -> Raster:
    """
    Raster resampled to ``scale`` (if needed) and clipped to ``region``.

    ``scale`` is in metres and is converted to the units of the raster CRS.
    """
    target = raster_scale_in_crs_units(raster, scale)
    if not math.isclose(raster.scale, target, rel_tol=1e-6):
        logger.debug(f"Resampling {raster.band_names} from {raster.scale:g} to {target:g} "
                     f"(scale {scale:g} m)")
        raster = align(raster, raster.crs, target, max_pixels=max_pixels)
    return clip(raster, region)


def _single_band(raster: Raster) -> None:
    if raster.count != 1:
        raise ValueError(f"Expected a single-band raster, got bands {list(raster.band_names)}")


def _joint_values(x: Raster, y: Raster, region: Optional[Region],
                  scale: float) -> Tuple[np.ndarray, np.ndarray]:
    """Paired samples of two single-band rasters over jointly valid pixels."""
    _single_band(x)
    _single_band(y)
    check_same_grid(x, y)

    x = sample_at_scale(x, region, scale)
    y = sample_at_scale(y, region, scale)

    joint = x.valid_mask[0] & y.valid_mask[0]
    return x.array.data[0][joint], y.array.data[0][joint]


def mean(raster: Raster, region: Optional[Region], scale: float) -> Optional[float]:
    """
    Mean of the valid pixels of a single-band raster within ``region``.

    Returns:
        float or None: None when no valid pixel intersects the region

    Examples:
        >>> t_mean = mean(summer_lst, study_area, scale=1000)
    """
    _single_band(raster)
    sampled = sample_at_scale(raster, region, scale)
    values = sampled.array.data[0][sampled.valid_mask[0]]
    if values.size == 0:
        return None
    return float(values.mean())


def pearson_correlation(band_a: Raster, band_b: Raster, region: Optional[Region],
                        scale: float) -> Optional[float]:
    """
    Pearson correlation of two bands over their jointly valid pixels.

    Returns:
        float in [-1, 1] or None with fewer than two pixels or a constant band
    """
    a, b = _joint_values(band_a, band_b, region, scale)
    if a.size < 2 or np.ptp(a) == 0 or np.ptp(b) == 0:
        return None
    r = stats.pearsonr(a, b)[0]
    return float(np.clip(r, -1.0, 1.0))


def linear_fit(x: Raster, y: Raster, region: Optional[Region],
               scale: float) -> Optional[LinearFit]:
    """
    Ordinary least squares regression of ``y`` on ``x``.

    Returns:
        LinearFit or None with fewer than two pixels or var(x) == 0

    Examples:
        >>> fit = linear_fit(ndvi, lst, study_area, scale=1000)
        >>> fit.slope, fit.intercept
    """
    xs, ys = _joint_values(x, y, region, scale)
    if xs.size < 2 or np.ptp(xs) == 0:
        return None
    result = stats.linregress(xs, ys)
    r_value = float(result.rvalue) if np.isfinite(result.rvalue) else 0.0
    return LinearFit(float(result.slope), float(result.intercept), r_value, int(xs.size))


def sample_pairs(x: Raster, y: Raster, region: Optional[Region], scale: float,
                 num_pixels: int = 500, seed: Optional[int] = None) -> pd.DataFrame:
    """
    Uniform random subsample of jointly valid (x, y) pixel pairs.

    At most ``num_pixels`` rows are returned; fewer if the region holds fewer
    eligible pixels. Columns are named after the two bands.
    """
    xs, ys = _joint_values(x, y, region, scale)
    n = min(num_pixels, xs.size)
    rng = np.random.default_rng(seed)
    chosen = np.sort(rng.choice(xs.size, size=n, replace=False)) if n else np.array([], dtype=int)
    x_name, y_name = x.band_names[0], y.band_names[0]
    if x_name == y_name:
        y_name = f"{y_name}_2"
    return pd.DataFrame({x_name: xs[chosen], y_name: ys[chosen]})


def region_summary(raster: Raster, region: Optional[Region], scale: float) -> Dict[str, Dict[str, Optional[float]]]:
    """Count, mean, std, min and max of each band over the region (for reporting)."""
    sampled = sample_at_scale(raster, region, scale)
    summary = {}
    for index, name in enumerate(sampled.band_names):
        values = sampled.array.data[index][sampled.valid_mask[index]]
        if values.size == 0:
            summary[name] = {'count': 0, 'mean': None, 'std': None, 'min': None, 'max': None}
        else:
            summary[name] = {
                'count': int(values.size),
                'mean': float(values.mean()),
                'std': float(values.std()),
                'min': float(values.min()),
                'max': float(values.max()),
            }
    return summary

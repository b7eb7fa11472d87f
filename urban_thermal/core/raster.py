"""
Raster data model for the urban thermal analysis component.

A :class:`Raster` is a multi-band grid of float samples on a fixed CRS and
affine transform. Validity travels with the samples as the mask of a
``numpy.ma.MaskedArray``: a pixel is valid where it is not masked, and every
non-finite sample is masked on construction so out-of-range arithmetic never
leaks into later reductions.

Time series of rasters (:class:`RasterTimeSeries`), the analysis extent
(:class:`Region`) and band encodings (:class:`BandSpec`) are defined here too.

Author: Urban Thermal Analysis Team
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence, Tuple, Union

import numpy as np
import geopandas as gpd
from affine import Affine
from rasterio.crs import CRS
from rasterio.transform import array_bounds
from rasterio.warp import transform_geom
from shapely.geometry import box, mapping, shape
from shapely.geometry.base import BaseGeometry

from .exceptions import GridMismatchError

CRSLike = Union[CRS, str, int, dict]


def _as_crs(crs: CRSLike) -> CRS:
    return crs if isinstance(crs, CRS) else CRS.from_user_input(crs)


def as_datetime(value: Union[date, datetime, str]) -> datetime:
    """Normalize dates, datetimes and ISO strings to naive datetimes."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class GridSpec:
    """Pixel grid definition: CRS, affine transform and size."""

    crs: CRS
    transform: Affine
    width: int
    height: int

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(left, bottom, right, top) in grid CRS units."""
        return array_bounds(self.height, self.width, self.transform)

    @property
    def resolution(self) -> Tuple[float, float]:
        return (abs(self.transform.a), abs(self.transform.e))

    def same_grid(self, other: 'GridSpec', precision: float = 1e-6) -> bool:
        return (
            self.shape == other.shape
            and self.crs == other.crs
            and self.transform.almost_equals(other.transform, precision=precision)
        )


class Raster:
    """
    Immutable masked multi-band raster.

    Args:
        data: Array of shape (bands, rows, cols) or (rows, cols). A masked
            array keeps its mask; non-finite samples are always masked.
        transform: Affine transform of the pixel grid
        crs: Coordinate reference system
        band_names: One name per band (defaults to band_1, band_2, ...)

    Examples:
        >>> lst = Raster(values, transform, 'EPSG:32643', band_names=['LST'])
        >>> lst.valid_count
    """

    def __init__(self, data, transform: Affine, crs: CRSLike,
                 band_names: Optional[Sequence[str]] = None):
        values = np.array(np.ma.getdata(data), dtype=np.float64, copy=True)
        mask = np.array(np.ma.getmaskarray(data), dtype=bool, copy=True)

        if values.ndim == 2:
            values = values[np.newaxis]
            mask = mask[np.newaxis]
        if values.ndim != 3:
            raise ValueError(f"Raster data must be 2-D or 3-D, got shape {values.shape}")

        mask |= ~np.isfinite(values)

        if band_names is None:
            band_names = [f"band_{i + 1}" for i in range(values.shape[0])]
        band_names = tuple(band_names)
        if len(band_names) != values.shape[0]:
            raise ValueError(
                f"Got {len(band_names)} band names for {values.shape[0]} bands"
            )

        self._array = np.ma.MaskedArray(values, mask=mask)
        self._transform = transform
        self._crs = _as_crs(crs)
        self._band_names = band_names

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_array(cls, array, transform: Affine, crs: CRSLike,
                   band_names: Optional[Sequence[str]] = None,
                   valid: Optional[np.ndarray] = None) -> 'Raster':
        """Build a raster from a plain array and an optional validity mask."""
        array = np.asarray(array, dtype=np.float64)
        mask = np.zeros(array.shape, dtype=bool) if valid is None else ~np.asarray(valid, dtype=bool)
        return cls(np.ma.MaskedArray(array, mask=np.broadcast_to(mask, array.shape)),
                   transform, crs, band_names)

    @classmethod
    def fully_masked(cls, grid: GridSpec, band_names: Sequence[str]) -> 'Raster':
        """All-invalid raster on ``grid`` with the given band schema."""
        shape = (len(band_names), grid.height, grid.width)
        return cls(np.ma.MaskedArray(np.zeros(shape), mask=np.ones(shape, dtype=bool)),
                   grid.transform, grid.crs, band_names)

    def with_values(self, data, band_names: Optional[Sequence[str]] = None) -> 'Raster':
        """New raster on the same grid holding ``data``."""
        return Raster(data, self._transform, self._crs,
                      self._band_names if band_names is None else band_names)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def array(self) -> np.ma.MaskedArray:
        """Masked samples, shape (bands, rows, cols). Treat as read-only."""
        return self._array

    @property
    def transform(self) -> Affine:
        return self._transform

    @property
    def crs(self) -> CRS:
        return self._crs

    @property
    def band_names(self) -> Tuple[str, ...]:
        return self._band_names

    @property
    def count(self) -> int:
        return self._array.shape[0]

    @property
    def height(self) -> int:
        return self._array.shape[1]

    @property
    def width(self) -> int:
        return self._array.shape[2]

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self._array.shape

    @property
    def grid(self) -> GridSpec:
        return GridSpec(self._crs, self._transform, self.width, self.height)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return self.grid.bounds

    @property
    def scale(self) -> float:
        """Nominal pixel size in CRS units (geometric mean of both axes)."""
        return math.sqrt(abs(self._transform.a * self._transform.e))

    @property
    def valid_mask(self) -> np.ndarray:
        """Boolean validity per band and pixel."""
        return ~np.ma.getmaskarray(self._array)

    def joint_valid_mask(self) -> np.ndarray:
        """2-D mask of pixels valid in every band."""
        return self.valid_mask.all(axis=0)

    @property
    def valid_count(self) -> int:
        return int(self.joint_valid_mask().sum())

    # ------------------------------------------------------------------
    # Band handling
    # ------------------------------------------------------------------

    def band_index(self, name: str) -> int:
        try:
            return self._band_names.index(name)
        except ValueError:
            raise KeyError(f"Band '{name}' not in {list(self._band_names)}")

    def band(self, name: str) -> np.ma.MaskedArray:
        """2-D masked array of one band."""
        return self._array[self.band_index(name)]

    def select(self, *names: str) -> 'Raster':
        indices = [self.band_index(n) for n in names]
        return self.with_values(self._array[indices], band_names=names)

    def rename(self, *names: str) -> 'Raster':
        return self.with_values(self._array, band_names=names)

    def filled(self, fill_value: float = np.nan) -> np.ndarray:
        return self._array.filled(fill_value)

    def __repr__(self) -> str:
        return (f"Raster(bands={list(self._band_names)}, shape={self.shape[1:]}, "
                f"crs={self._crs}, scale={self.scale:g}, valid={self.valid_count})")


def check_same_grid(*rasters: Raster) -> None:
    """Raise GridMismatchError unless all rasters share one pixel grid."""
    reference = rasters[0].grid
    for raster in rasters[1:]:
        if not reference.same_grid(raster.grid):
            raise GridMismatchError(
                f"Raster grids differ: {reference} vs {raster.grid}"
            )


@dataclass(frozen=True)
class BandSpec:
    """Named channel with the linear rescale from stored integers to physical units."""

    name: str
    scale: float = 1.0
    offset: float = 0.0


@dataclass(frozen=True)
class Region:
    """Immutable analysis extent: polygon or multipolygon plus its CRS."""

    geometry: BaseGeometry
    crs: CRS

    def __post_init__(self):
        if self.geometry.geom_type not in ('Polygon', 'MultiPolygon'):
            raise ValueError(f"Region must be a polygon or multipolygon, got {self.geometry.geom_type}")
        object.__setattr__(self, 'crs', _as_crs(self.crs))

    @classmethod
    def from_bounds(cls, left: float, bottom: float, right: float, top: float,
                    crs: CRSLike) -> 'Region':
        return cls(box(left, bottom, right, top), crs)

    @classmethod
    def from_file(cls, path: Union[str, Path], layer: Optional[str] = None) -> 'Region':
        """Load a vector file and dissolve all features into one region."""
        frame = gpd.read_file(path, layer=layer) if layer else gpd.read_file(path)
        if frame.empty:
            raise ValueError(f"No features found in {path}")
        dissolved = frame.dissolve()
        return cls(dissolved.geometry.iloc[0], frame.crs)

    def geometry_in(self, crs: CRSLike) -> BaseGeometry:
        """Region geometry expressed in ``crs``."""
        crs = _as_crs(crs)
        if crs == self.crs:
            return self.geometry
        return shape(transform_geom(self.crs, crs, mapping(self.geometry)))

    def bounds_in(self, crs: CRSLike) -> Tuple[float, float, float, float]:
        return self.geometry_in(crs).bounds


@dataclass(frozen=True)
class Observation:
    timestamp: datetime
    raster: Raster


class RasterTimeSeries:
    """
    Time-ordered, immutable collection of observations sharing one grid and
    band schema. An empty series still knows its grid and band names so that
    composites of empty windows keep the right shape.
    """

    def __init__(self, observations: Iterable[Observation] = (),
                 grid: Optional[GridSpec] = None,
                 band_names: Optional[Sequence[str]] = None):
        observations = tuple(sorted(observations, key=lambda o: o.timestamp))

        if observations:
            first = observations[0].raster
            grid = grid or first.grid
            band_names = tuple(band_names) if band_names else first.band_names
            for obs in observations:
                if not grid.same_grid(obs.raster.grid):
                    raise GridMismatchError(
                        f"Observation {obs.timestamp:%Y-%m-%d} is not on the series grid"
                    )
                if obs.raster.band_names != band_names:
                    raise ValueError(
                        f"Observation {obs.timestamp:%Y-%m-%d} has bands "
                        f"{obs.raster.band_names}, expected {band_names}"
                    )
        elif grid is None or band_names is None:
            raise ValueError("An empty time series needs an explicit grid and band schema")

        self._observations = observations
        self._grid = grid
        self._band_names = tuple(band_names)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Union[date, datetime, str], Raster]],
                   grid: Optional[GridSpec] = None,
                   band_names: Optional[Sequence[str]] = None) -> 'RasterTimeSeries':
        return cls([Observation(as_datetime(t), r) for t, r in pairs], grid, band_names)

    @property
    def grid(self) -> GridSpec:
        return self._grid

    @property
    def band_names(self) -> Tuple[str, ...]:
        return self._band_names

    @property
    def timestamps(self) -> Tuple[datetime, ...]:
        return tuple(o.timestamp for o in self._observations)

    def __len__(self) -> int:
        return len(self._observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self._observations)

    def filter_date(self, start, end) -> 'RasterTimeSeries':
        """Observations with ``start <= timestamp < end``."""
        start, end = as_datetime(start), as_datetime(end)
        return RasterTimeSeries(
            [o for o in self._observations if start <= o.timestamp < end],
            self._grid, self._band_names
        )

    def map(self, fn: Callable[[Raster], Raster],
            band_names: Optional[Sequence[str]] = None) -> 'RasterTimeSeries':
        """
        Apply ``fn`` to every raster. ``band_names`` declares the output
        schema, which an empty series cannot infer.
        """
        mapped = [Observation(o.timestamp, fn(o.raster)) for o in self._observations]
        if mapped:
            return RasterTimeSeries(mapped)
        return RasterTimeSeries((), self._grid, band_names or self._band_names)

    def merge(self, other: 'RasterTimeSeries') -> 'RasterTimeSeries':
        if not self._grid.same_grid(other.grid):
            raise GridMismatchError("Cannot merge time series on different grids")
        return RasterTimeSeries(self._observations + tuple(other), self._grid, self._band_names)

    def __repr__(self) -> str:
        if not self._observations:
            return f"RasterTimeSeries(empty, bands={list(self._band_names)})"
        return (f"RasterTimeSeries(n={len(self)}, bands={list(self._band_names)}, "
                f"{self.timestamps[0]:%Y-%m-%d} .. {self.timestamps[-1]:%Y-%m-%d})")

"""
Season definitions and temporal compositing of raster time series.

A composite reduces every observation in a half-open date window
``[start, end)`` to one raster, independently per pixel and band, using
only the valid observations at that location. A composite pixel is valid
iff at least one contributing observation was valid there. An empty window
is not an error: it yields an all-invalid raster with the series grid.

Author: Urban Thermal Analysis Team
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

import numpy as np

from shared_utils import get_logger

from .exceptions import ConfigurationError
from .raster import Raster, RasterTimeSeries, Region, as_datetime
from .raster_algebra import clip

logger = get_logger('temporal_compositing')

REDUCERS = {
    'mean': lambda stack: np.ma.mean(stack, axis=0),
    'median': lambda stack: np.ma.median(stack, axis=0),
}


@dataclass(frozen=True)
class Season:
    """
    Named date range recurring every year.

    The window of ``year`` starts on (start_month, start_day) of
    ``year + start_year_offset`` and ends, exclusive, on (end_month, end_day)
    of ``year``. Only offsets 0 and -1 are meaningful; Winter uses -1 so that
    it spans December of the previous year through February.
    """

    name: str
    start_month: int
    start_day: int
    end_month: int
    end_day: int
    start_year_offset: int = 0

    def __post_init__(self):
        if self.start_year_offset not in (0, -1):
            raise ConfigurationError(
                f"Season {self.name}: start_year_offset must be 0 or -1, got {self.start_year_offset}"
            )
        # Raises ValueError for impossible month/day combinations
        start, end = self.window(2001)
        if start >= end:
            raise ConfigurationError(f"Season {self.name} has an empty window: {start} >= {end}")

    def window(self, year: int) -> Tuple[date, date]:
        """Half-open (start, end) dates of this season for ``year``."""
        start = date(year + self.start_year_offset, self.start_month, self.start_day)
        end = date(year, self.end_month, self.end_day)
        return start, end

    @classmethod
    def from_config(cls, section: Dict) -> 'Season':
        start_month, start_day = (int(v) for v in str(section['start']).split('-'))
        end_month, end_day = (int(v) for v in str(section['end']).split('-'))
        return cls(
            name=section['name'],
            start_month=start_month,
            start_day=start_day,
            end_month=end_month,
            end_day=end_day,
            start_year_offset=int(section.get('start_year_offset', 0)),
        )


SUMMER = Season('Summer', 3, 1, 6, 1, 0)
WINTER = Season('Winter', 12, 1, 3, 1, -1)
DEFAULT_SEASONS = (SUMMER, WINTER)


def seasons_from_config(config: Dict) -> List[Season]:
    """Seasons declared under ``seasons`` in the config, or the defaults."""
    sections = config.get('seasons')
    if not sections:
        return list(DEFAULT_SEASONS)
    return [Season.from_config(s) for s in sections]


def composite(series: RasterTimeSeries, start, end,
              region: Optional[Region] = None, reducer: str = 'mean') -> Raster:
    """
    Reduce the observations of ``series`` within ``[start, end)`` to one raster.

    Args:
        series: Input time series (not modified)
        start: Inclusive window start (date, datetime or ISO string)
        end: Exclusive window end
        region: Optional region to clip the composite to
        reducer: 'mean' or 'median' over valid observations

    Returns:
        Raster: Composite on the series grid, all-invalid for an empty window

    Examples:
        >>> summer = composite(lst_series, '2010-03-01', '2010-06-01', study_area)
    """
    if reducer not in REDUCERS:
        raise ValueError(f"Unknown reducer '{reducer}', expected one of {sorted(REDUCERS)}")

    start, end = as_datetime(start), as_datetime(end)
    subset = series.filter_date(start, end)

    if len(subset) == 0:
        logger.debug(f"No observations between {start:%Y-%m-%d} and {end:%Y-%m-%d}")
        result = Raster.fully_masked(series.grid, series.band_names)
    else:
        stack = np.ma.stack([obs.raster.array for obs in subset])
        reduced = REDUCERS[reducer](stack)
        first = next(iter(subset)).raster
        result = first.with_values(reduced)
        logger.debug(
            f"Composited {len(subset)} observations ({reducer}) between "
            f"{start:%Y-%m-%d} and {end:%Y-%m-%d}: {result.valid_count} valid pixels"
        )

    return clip(result, region)


def composite_season(series: RasterTimeSeries, season: Season, year: int,
                     region: Optional[Region] = None, reducer: str = 'mean') -> Raster:
    """Composite of ``series`` over the window of ``season`` in ``year``."""
    start, end = season.window(year)
    return composite(series, start, end, region=region, reducer=reducer)

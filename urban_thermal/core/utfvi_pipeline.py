"""
Urban Thermal Field Variance Index (UTFVI).

    UTFVI = (Ts - Tmean) / Tmean

where ``Ts`` is the seasonal mean LST of a pixel and ``Tmean`` the mean of
that composite over the study region at the analysis scale. Units whose
composite has no valid pixel in the region (``Tmean`` is NoData) are
reported as skipped. So are units with ``Tmean == 0``, for which the index is
undefined.

Author: Urban Thermal Analysis Team
"""

from typing import List, Optional, Tuple

from shared_utils.central_data_paths_constants import UTFVI_RESULTS_DIR

from .pipeline_base import STATUS_SKIPPED, BasePipeline, UnitResult
from .raster import Raster
from .raster_algebra import divide, subtract
from .region_statistics import mean, region_summary
from .temporal_compositing import Season

UTFVI_BAND = 'UTFVI'


class UTFVIPipeline(BasePipeline):
    """
    Seasonal UTFVI maps for every analysis year.

    Examples:
        >>> pipeline = UTFVIPipeline(region=study_area)
        >>> utfvi, t_mean = pipeline.compute_utfvi(pipeline.seasonal_composite(2010, 'Summer'))
    """

    pipeline_name = 'utfvi'
    default_results_dir = UTFVI_RESULTS_DIR

    @property
    def folder(self) -> str:
        return self.export_config.get('utfvi_folder', 'UTFVI')

    def compute_utfvi(self, composite: Raster) -> Tuple[Optional[Raster], Optional[float]]:
        """
        UTFVI of a seasonal LST composite.

        Returns:
            Tuple of (UTFVI raster, Tmean); the raster is None when Tmean is
            NoData or zero
        """
        t_mean = mean(composite, self.region, self.scale)
        if t_mean is None or t_mean == 0:
            return None, t_mean
        utfvi = divide(subtract(composite, t_mean), t_mean)
        return utfvi.rename(UTFVI_BAND), t_mean

    def units(self) -> List[Tuple[int, Season]]:
        return [(year, season) for year in self.years for season in self.seasons]

    def process_unit(self, unit: Tuple[int, Season]) -> UnitResult:
        year, season = unit
        composite = self.seasonal_composite(year, season)
        utfvi, t_mean = self.compute_utfvi(composite)

        if utfvi is None:
            reason = 'no valid LST in region' if t_mean is None else 'Tmean is zero'
            message = f"UTFVI undefined for {season.name} {year}: {reason}"
            self.logger.warning(f"[{self.pipeline_name}] {message}")
            return UnitResult(self.pipeline_name, year, season.name, STATUS_SKIPPED, message,
                              metrics={'t_mean': t_mean})

        name = f"UTFVI_{season.name}_{year}"
        output = self.export(utfvi, name, self.folder)

        if year in self.visualization_config.get('utfvi_years', [self.years[0], self.years[-1]]):
            vis = self.visualization_config.get('utfvi', {})
            self.visualizer.show_raster(utfvi, vis.get('min', -0.05), vis.get('max', 0.05),
                                        vis.get('palette', ['blue', 'white', 'red']),
                                        f"{season.name} UTFVI {year}")

        summary = region_summary(utfvi, self.region, self.scale)[UTFVI_BAND]
        return UnitResult(
            self.pipeline_name, year, season.name,
            metrics={'t_mean': t_mean, 'utfvi_min': summary['min'], 'utfvi_max': summary['max']},
            outputs=[output],
        )

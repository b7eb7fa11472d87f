"""
Seasonal MODIS LST composites.

For every analysis year and season the quality-masked daytime LST scenes of
the season window are averaged per pixel, clipped to the study region and
exported as ``<Season>_LST_<year>``. A season without usable scenes is
reported as a ``no_data`` unit and nothing is exported for it.

Author: Urban Thermal Analysis Team
"""

from typing import List, Tuple

from shared_utils.central_data_paths_constants import SEASONAL_LST_RESULTS_DIR

from .pipeline_base import STATUS_NO_DATA, BasePipeline, UnitResult
from .region_statistics import mean
from .temporal_compositing import Season


class SeasonalLSTPipeline(BasePipeline):
    """
    Seasonal mean LST pipeline.

    Examples:
        >>> pipeline = SeasonalLSTPipeline(region=study_area)
        >>> pipeline.run_full_pipeline()
    """

    pipeline_name = 'seasonal_lst'
    default_results_dir = SEASONAL_LST_RESULTS_DIR

    @property
    def folder(self) -> str:
        return self.export_config.get('seasonal_folder', 'Seasonal_LST')

    def units(self) -> List[Tuple[int, Season]]:
        return [(year, season) for year in self.years for season in self.seasons]

    def process_unit(self, unit: Tuple[int, Season]) -> UnitResult:
        year, season = unit
        lst = self.seasonal_composite(year, season)

        if lst.valid_count == 0:
            message = f"No valid LST observations for {season.name} {year}"
            self.logger.warning(f"[{self.pipeline_name}] {message}")
            return UnitResult(self.pipeline_name, year, season.name, STATUS_NO_DATA, message)

        name = f"{season.name}_LST_{year}"
        output = self.export(lst, name, self.folder)

        if year == self.years[0]:
            vis = self.visualization_config.get('lst', {})
            self.visualizer.show_raster(lst, vis.get('min', 20), vis.get('max', 45),
                                        vis.get('palette', ['blue', 'cyan', 'yellow', 'red']),
                                        f"{season.name} LST {year}")

        return UnitResult(
            self.pipeline_name, year, season.name,
            metrics={'mean_lst': mean(lst, self.region, self.scale),
                     'valid_pixels': lst.valid_count},
            outputs=[output],
        )

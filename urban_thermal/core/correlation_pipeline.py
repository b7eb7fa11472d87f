"""
NDVI-LST relationship analysis.

For each analysis year a spring Landsat NDVI mosaic is built from the
sensor collections the sensor policy assigns to that year, aggregated onto
the MODIS LST grid by area-weighted averaging, and related to the summer
LST composite through Pearson correlation and an OLS fit
``LST = slope * NDVI + intercept``. A seeded random subsample of the paired
pixels is written to CSV and handed to the visualizer as a scatter chart.

Author: Urban Thermal Analysis Team
"""

from pathlib import Path
from typing import List, Optional

from shared_utils import ensure_directory, log_section
from shared_utils.central_data_paths_constants import NDVI_LST_RESULTS_DIR

from .exceptions import ImagerySourceError, SceneNotFoundError
from .pipeline_base import STATUS_NO_DATA, BasePipeline, UnitResult
from .raster import Raster, RasterTimeSeries
from .raster_algebra import normalized_difference
from .region_statistics import linear_fit, pearson_correlation, sample_pairs
from .resolution_alignment import align_to
from .sensors import LST_BAND, NIR_BAND, RED_BAND, SensorPolicy, prepare_landsat_reflectance
from .temporal_compositing import composite

NDVI_BAND = 'NDVI'


class NDVILSTCorrelationPipeline(BasePipeline):
    """
    NDVI-LST correlation and regression per analysis year.

    Examples:
        >>> pipeline = NDVILSTCorrelationPipeline(region=study_area)
        >>> result = pipeline.analyze_year(2014)
        >>> result.metrics['pearson_r'], result.metrics['slope']
    """

    pipeline_name = 'ndvi_lst_correlation'
    default_results_dir = NDVI_LST_RESULTS_DIR

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        analysis = self.config['analysis']
        if not kwargs.get('years'):
            self.years = sorted(analysis.get('correlation_years', [2004, 2014, 2024]))
        self.sample_size = int(analysis.get('scatter_sample_size', 500))
        self.sample_seed = analysis.get('scatter_seed')

        landsat = self.config.get('landsat', {})
        self.policy = SensorPolicy.from_config(landsat)
        self.ndvi_start = str(landsat.get('ndvi_window', {}).get('start', '03-01'))
        self.ndvi_end = str(landsat.get('ndvi_window', {}).get('end', '05-31'))
        self.ndvi_reducer = landsat.get('reducer', 'median')

    def units(self) -> List[int]:
        return list(self.years)

    def describe_unit(self, unit):
        return unit, self.season('Summer').name

    def process_unit(self, unit: int) -> UnitResult:
        return self.analyze_year(unit)

    def reflectance_series(self, year: int) -> RasterTimeSeries:
        """
        Cloud-masked Red/NIR reflectance of every collection assigned to ``year``.

        A collection that cannot be delivered is skipped as long as another
        one of the same year is available.
        """
        merged = None
        for collection in self.policy.collections_for(year):
            family = self.policy.family_for(collection)
            try:
                raw = self.with_retries(
                    self.imagery_source.fetch, collection, list(family.band_names),
                    (year, year), self.region, description=f"{collection} fetch for {year}"
                )
            except ImagerySourceError as e:
                self.logger.warning(f"Skipping {collection} for {year}: {e}")
                continue

            series = raw.map(lambda scene, family=family: prepare_landsat_reflectance(scene, family),
                             band_names=[RED_BAND, NIR_BAND])
            self.logger.info(f"{collection} ({family.name}): {len(series)} scenes for {year}")
            merged = series if merged is None else merged.merge(series)

        if merged is None:
            raise SceneNotFoundError(
                f"No Landsat collection delivered for {year} "
                f"(policy: {list(self.policy.collections_for(year))})"
            )
        return merged

    def ndvi_mosaic(self, year: int) -> Raster:
        """Spring NDVI from the reflectance mosaic of ``year``, clipped to the region."""
        start = f"{year}-{self.ndvi_start}"
        end = f"{year}-{self.ndvi_end}"
        mosaic = composite(self.reflectance_series(year), start, end,
                           region=self.region, reducer=self.ndvi_reducer)
        return normalized_difference(mosaic.select(NIR_BAND), mosaic.select(RED_BAND), NDVI_BAND)

    def analyze_year(self, year: int, lst: Optional[Raster] = None) -> UnitResult:
        """
        Correlate spring NDVI with summer LST for one year.

        Args:
            year: Analysis year
            lst: Summer LST raster; defaults to this pipeline's summer composite

        Returns:
            UnitResult: metrics ``pearson_r``, ``r_squared``, ``slope``,
            ``intercept`` and ``n_pixels``
        """
        season = self.season('Summer').name
        if lst is None:
            lst = self.seasonal_composite(year, season)
        if lst.count != 1:
            raise ValueError(f"LST raster must have one band, got {list(lst.band_names)}")
        lst = lst.rename(LST_BAND)

        ndvi = align_to(self.ndvi_mosaic(year), lst, max_pixels=self.max_pixels)

        r = pearson_correlation(ndvi, lst, self.region, self.scale)
        fit = linear_fit(ndvi, lst, self.region, self.scale)
        if r is None or fit is None:
            message = (f"NDVI-LST relationship undefined for {year}: fewer than two jointly "
                       f"valid pixels or constant input")
            self.logger.warning(f"[{self.pipeline_name}] {message}")
            return UnitResult(self.pipeline_name, year, season, STATUS_NO_DATA, message)

        log_section(self.logger, f"NDVI-LST {year}")
        self.logger.info(f"Pearson r: {r:.4f}  R²: {r ** 2:.4f}")
        self.logger.info(f"LST = {fit.slope:.4f} * NDVI + {fit.intercept:.4f}  (n={fit.n_pixels})")

        samples = sample_pairs(ndvi, lst, self.region, self.scale,
                               num_pixels=self.sample_size, seed=self.sample_seed)
        samples_path = self.save_samples(samples, year)
        self.visualizer.scatter_chart(samples, fit, f"LST vs NDVI ({year})")

        return UnitResult(
            self.pipeline_name, year, season,
            metrics={
                'pearson_r': r,
                'r_squared': r ** 2,
                'slope': fit.slope,
                'intercept': fit.intercept,
                'n_pixels': fit.n_pixels,
            },
            outputs=[str(samples_path)],
        )

    def save_samples(self, samples, year: int) -> Path:
        savepath = ensure_directory(self.results_dir) / f"ndvi_lst_samples_{year}.csv"
        samples.to_csv(savepath, index=False)
        return savepath

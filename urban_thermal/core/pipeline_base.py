"""
Shared scaffolding for the urban thermal analysis pipelines.

A pipeline is configured from the component ``config.yaml`` (or a dict),
wired to its collaborators (imagery source, study region, export sink,
visualizer) and evaluated as a set of independent units. Each unit yields a
:class:`UnitResult`; NoData and collaborator failures are recorded in the
result table instead of aborting sibling units.

Author: Urban Thermal Analysis Team
"""

import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from shared_utils import (
    ensure_directory, get_config_value, load_config, log_pipeline_end, log_pipeline_start,
    save_config, setup_logging, validate_config
)
from shared_utils.central_data_paths_constants import (
    EXPORTS_DIR, FIGURES_DIR, IMAGERY_RAW_DIR, RESULTS_DIR, STUDY_AREA_FILE
)

from .collaborators import GeoTiffImagerySource, ImagerySource, VectorGeometrySource
from .execution import call_with_retries, run_units
from .export import DEFAULT_MAX_PIXELS_CAP, ExportSink, GeoTiffExportSink
from .raster import Raster, RasterTimeSeries, Region
from .resolution_alignment import DEFAULT_MAX_PIXELS
from .sensors import LST_BAND, ModisLSTProduct, prepare_modis_lst
from .temporal_compositing import Season, composite_season, seasons_from_config
from .visualization import MatplotlibVisualizer, NullVisualizer, Visualizer

STATUS_OK = 'ok'
STATUS_NO_DATA = 'no_data'
STATUS_SKIPPED = 'skipped'
STATUS_FAILED = 'failed'

REQUIRED_SECTIONS = ['study_period', 'analysis']


@dataclass
class UnitResult:
    """Outcome of one independent pipeline unit, e.g. one (year, season)."""

    pipeline: str
    year: int
    season: Optional[str]
    status: str = STATUS_OK
    message: str = ''
    metrics: Dict[str, Any] = field(default_factory=dict)
    outputs: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def to_record(self) -> Dict[str, Any]:
        record = {
            'pipeline': self.pipeline,
            'year': self.year,
            'season': self.season,
            'status': self.status,
            'message': self.message,
        }
        record.update(self.metrics)
        record['outputs'] = ';'.join(self.outputs)
        return record


class BasePipeline:
    """
    Base class holding configuration, collaborators and the MODIS LST series.

    Args:
        config: Path to a configuration file, a configuration dict, or None
            for the component default
        imagery_source: Imagery collaborator (default: GeoTIFF directory)
        region: Study region (default: loaded from the study area file)
        export_sink: Export collaborator (default: GeoTIFF files)
        visualizer: Visualization collaborator (default from config)
        output_dir: Directory for result tables (default: pipeline results dir)
        years: Analysis years overriding the configured study period
        figures_dir: Figure directory when visualization is enabled
    """

    pipeline_name = 'pipeline'
    default_results_dir = RESULTS_DIR

    def __init__(self, config: Optional[Union[str, Path, Dict[str, Any]]] = None,
                 imagery_source: Optional[ImagerySource] = None,
                 region: Optional[Region] = None,
                 export_sink: Optional[ExportSink] = None,
                 visualizer: Optional[Visualizer] = None,
                 output_dir: Optional[Union[str, Path]] = None,
                 years: Optional[Sequence[int]] = None,
                 figures_dir: Optional[Union[str, Path]] = None):
        # Load configuration
        if isinstance(config, dict):
            self.config = config
        else:
            self.config = load_config(config, component_name="urban_thermal")
        validate_config(self.config, REQUIRED_SECTIONS)

        # Setup logging
        self.logger = setup_logging(
            level=get_config_value(self.config, 'logging.level', 'INFO'),
            component_name=self.pipeline_name,
            log_file=get_config_value(self.config, 'logging.log_file')
        )

        # Extract configuration
        period = self.config['study_period']
        self.years = sorted(years) if years else list(
            range(int(period['start_year']), int(period['end_year']) + 1)
        )
        self.seasons = seasons_from_config(self.config)
        self.modis = ModisLSTProduct.from_config(self.config.get('modis_lst', {}))

        analysis = self.config['analysis']
        self.scale = float(analysis.get('scale', 1000))
        self.max_pixels = int(analysis.get('max_pixels', DEFAULT_MAX_PIXELS))

        self.export_config = self.config.get('export', {})
        self.max_pixels_cap = float(self.export_config.get('max_pixels_cap', DEFAULT_MAX_PIXELS_CAP))
        self.visualization_config = self.config.get('visualization', {})

        compute = self.config.get('compute', {})
        self.num_workers = int(compute.get('num_workers', 1))
        self.max_retries = int(compute.get('max_retries', 3))
        self.retry_delay = float(compute.get('retry_delay', 5))

        # Collaborators
        self.imagery_source = imagery_source or GeoTiffImagerySource(IMAGERY_RAW_DIR)
        self._region = region
        self.export_sink = export_sink or GeoTiffExportSink(EXPORTS_DIR, max_pixels=self.max_pixels)
        if visualizer is not None:
            self.visualizer = visualizer
        elif self.visualization_config.get('enabled', False):
            self.visualizer = MatplotlibVisualizer(figures_dir or FIGURES_DIR)
        else:
            self.visualizer = NullVisualizer()

        self.results_dir = Path(output_dir) if output_dir else self.default_results_dir

        self._lst_series: Optional[RasterTimeSeries] = None
        self._lst_lock = threading.Lock()
        self.results: List[UnitResult] = []

        self.logger.info(f"Initialized {self.__class__.__name__}")

    # ------------------------------------------------------------------
    # Collaborator access
    # ------------------------------------------------------------------

    @property
    def region(self) -> Region:
        if self._region is None:
            self._region = VectorGeometrySource().load_region(STUDY_AREA_FILE)
        return self._region

    def with_retries(self, fn, *args, description: str = 'operation', **kwargs):
        return call_with_retries(fn, *args, max_retries=self.max_retries,
                                 retry_delay=self.retry_delay, description=description, **kwargs)

    def export(self, raster: Raster, name: str, folder: str) -> str:
        """Export ``raster`` at the analysis scale, clipped to the study region."""
        return self.with_retries(
            self.export_sink.write, raster, name, folder, self.region, self.scale,
            max_pixels_cap=self.max_pixels_cap, description=f"export of {name}"
        )

    # ------------------------------------------------------------------
    # MODIS LST
    # ------------------------------------------------------------------

    @property
    def lst_series(self) -> RasterTimeSeries:
        """Prepared (quality-masked, Celsius) LST series, loaded once on first use."""
        with self._lst_lock:
            if self._lst_series is None:
                self._lst_series = self.load_lst_series(self.years)
        return self._lst_series

    def load_lst_series(self, years: Sequence[int]) -> RasterTimeSeries:
        # Winter of the first year starts in December of the previous year
        year_range = (min(years) - 1, max(years))
        self.logger.info(f"Fetching {self.modis.sensor_id} scenes for {year_range[0]}-{year_range[1]}")
        raw = self.with_retries(
            self.imagery_source.fetch, self.modis.sensor_id, list(self.modis.band_names),
            year_range, self.region, description=f"{self.modis.sensor_id} fetch"
        )
        series = raw.map(lambda scene: prepare_modis_lst(scene, self.modis), band_names=[LST_BAND])
        self.logger.info(f"Prepared {len(series)} LST observations")
        return series

    def season(self, season: Union[Season, str]) -> Season:
        if isinstance(season, Season):
            return season
        for candidate in self.seasons:
            if candidate.name.lower() == str(season).lower():
                return candidate
        raise KeyError(f"Unknown season '{season}', configured: {[s.name for s in self.seasons]}")

    def seasonal_composite(self, year: int, season: Union[Season, str]) -> Raster:
        """
        Mean LST composite of ``season`` in ``year`` clipped to the study region.

        Examples:
            >>> summer_2004 = pipeline.seasonal_composite(2004, 'Summer')
        """
        return composite_season(self.lst_series, self.season(season), year,
                                region=self.region, reducer='mean')

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def units(self) -> List[Any]:
        raise NotImplementedError

    def process_unit(self, unit) -> UnitResult:
        raise NotImplementedError

    def prepare(self) -> None:
        """Load shared inputs before units are dispatched."""
        self.lst_series

    def finalize(self, results: List[UnitResult]) -> None:
        """Hook run once after all units completed."""

    def _run_unit(self, unit) -> UnitResult:
        try:
            return self.process_unit(unit)
        except Exception as e:
            year, season = self.describe_unit(unit)
            self.logger.error(f"{self.pipeline_name} unit ({year}, {season}) failed: {e}")
            return UnitResult(self.pipeline_name, year, season, STATUS_FAILED, str(e))

    def describe_unit(self, unit):
        year, season = unit
        return year, getattr(season, 'name', season)

    def results_table(self, results: Optional[List[UnitResult]] = None) -> pd.DataFrame:
        results = self.results if results is None else results
        return pd.DataFrame([r.to_record() for r in results])

    def save_results(self, results: List[UnitResult]) -> Path:
        ensure_directory(self.results_dir)
        savepath = self.results_dir / f"{self.pipeline_name}_results.csv"
        self.results_table(results).to_csv(savepath, index=False)
        save_config(self.config, self.results_dir / f"{self.pipeline_name}_config.yaml")
        self.logger.info(f"Results table saved to: {savepath}")
        return savepath

    def run_full_pipeline(self) -> bool:
        """
        Execute every unit of the pipeline.

        Returns:
            bool: True if no unit failed (NoData units do not count as failures)
        """
        start_time = time.time()
        log_pipeline_start(self.logger, self.pipeline_name, {
            'years': f"{self.years[0]}-{self.years[-1]}",
            'seasons': [s.name for s in self.seasons],
            'scale': self.scale,
            'num_workers': self.num_workers,
        })

        try:
            self.prepare()
            self.results = run_units(self._run_unit, self.units(), num_workers=self.num_workers,
                                     description=f"Running {self.pipeline_name}")
            self.finalize(self.results)
            self.save_results(self.results)

            counts = pd.Series([r.status for r in self.results]).value_counts().to_dict()
            self.logger.info(f"Unit outcomes: {counts}")
            success = counts.get(STATUS_FAILED, 0) == 0

        except Exception as e:
            self.logger.error(f"{self.pipeline_name} pipeline failed: {str(e)}")
            success = False

        log_pipeline_end(self.logger, self.pipeline_name, success, time.time() - start_time)
        return success

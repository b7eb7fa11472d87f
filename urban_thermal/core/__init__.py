"""
Core processing modules for urban thermal analysis.

This package contains the raster data model, the processing stages
(quality masking, raster algebra, temporal compositing, multi-resolution
alignment, region statistics), the collaborator interfaces and the three
analysis pipelines.

Modules:
    raster: Raster, RasterTimeSeries, Region and BandSpec data model
    quality_masks: Packed bit-flag QC and cloud masks
    raster_algebra: Elementwise algebra with mask propagation
    temporal_compositing: Seasons and per-pixel temporal composites
    resolution_alignment: Area-weighted aggregation onto coarser grids
    region_statistics: Region mean, Pearson correlation and OLS fit
    sensors: MODIS LST product, Landsat sensor families and sensor policy
    collaborators: Imagery and study-area sources
    export: GeoTIFF and in-memory export sinks
    visualization: Map and scatter chart rendering
    seasonal_pipeline: Seasonal MODIS LST composites
    utfvi_pipeline: Urban Thermal Field Variance Index
    correlation_pipeline: NDVI-LST correlation and regression

Author: Urban Thermal Analysis Team
"""

from .exceptions import (
    ConfigurationError, ExportError, GridMismatchError, ImagerySourceError, SceneNotFoundError,
    UrbanThermalError,
)
from .raster import BandSpec, GridSpec, Raster, RasterTimeSeries, Region
from .temporal_compositing import SUMMER, WINTER, Season, composite
from .collaborators import (
    GeoTiffImagerySource, ImagerySource, InMemoryImagerySource, VectorGeometrySource
)
from .export import ExportSink, GeoTiffExportSink, MemoryExportSink
from .visualization import MatplotlibVisualizer, NullVisualizer, Visualizer
from .seasonal_pipeline import SeasonalLSTPipeline
from .utfvi_pipeline import UTFVIPipeline
from .correlation_pipeline import NDVILSTCorrelationPipeline

__all__ = [
    "UrbanThermalError",
    "GridMismatchError",
    "ConfigurationError",
    "ImagerySourceError",
    "SceneNotFoundError",
    "ExportError",
    "BandSpec",
    "GridSpec",
    "Raster",
    "RasterTimeSeries",
    "Region",
    "Season",
    "SUMMER",
    "WINTER",
    "composite",
    "ImagerySource",
    "GeoTiffImagerySource",
    "InMemoryImagerySource",
    "VectorGeometrySource",
    "ExportSink",
    "GeoTiffExportSink",
    "MemoryExportSink",
    "Visualizer",
    "MatplotlibVisualizer",
    "NullVisualizer",
    "SeasonalLSTPipeline",
    "UTFVIPipeline",
    "NDVILSTCorrelationPipeline"
]

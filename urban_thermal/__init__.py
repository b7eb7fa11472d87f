"""
Urban Thermal Analysis Component

This component derives urban heat indicators from MODIS land surface
temperature and Landsat surface reflectance, including:

- Bit-flag quality masking of MODIS LST and Landsat cloud flags
- Seasonal (Summer, Winter) mean LST composites
- Urban Thermal Field Variance Index (UTFVI) maps
- NDVI-LST Pearson correlation and linear regression
- Area-weighted alignment of 30 m NDVI onto the ~1 km LST grid

Pipeline Workflow:
    1. Seasonal LST: Quality-mask, convert and composite MODIS LST per season
    2. UTFVI: Relate every composite pixel to the regional mean temperature
    3. NDVI-LST: Correlate spring NDVI with summer LST for selected years

Components:
    core/: Core processing modules
    scripts/: Executable entry points
    config.yaml: Component configuration

Author: Urban Thermal Analysis Team
"""

from .core.seasonal_pipeline import SeasonalLSTPipeline
from .core.utfvi_pipeline import UTFVIPipeline
from .core.correlation_pipeline import NDVILSTCorrelationPipeline

__version__ = "1.0.0"
__component__ = "urban_thermal"

__all__ = [
    "SeasonalLSTPipeline",
    "UTFVIPipeline",
    "NDVILSTCorrelationPipeline"
]

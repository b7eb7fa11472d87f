"""
Executable scripts for the urban thermal analysis component.

This package contains command-line entry points for the urban thermal
analysis pipeline, providing easy access to component functionality.

Scripts:
    run_seasonal_lst.py: Seasonal MODIS LST composites
    run_utfvi.py: Urban Thermal Field Variance Index maps
    run_ndvi_lst_correlation.py: NDVI-LST correlation and regression
    run_full_pipeline.py: Complete pipeline orchestrator

Author: Urban Thermal Analysis Team
"""

# Package level imports for easy access
from .run_seasonal_lst import main as run_seasonal_lst
from .run_utfvi import main as run_utfvi
from .run_ndvi_lst_correlation import main as run_ndvi_lst_correlation
from .run_full_pipeline import main as run_full_pipeline

__all__ = [
    "run_seasonal_lst",
    "run_utfvi",
    "run_ndvi_lst_correlation",
    "run_full_pipeline"
]

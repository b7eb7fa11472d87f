"""
Central Data Paths - Constants

Centralized path management for the Urban Thermal Analysis repository.
All components should import default paths from this module instead of
defining their own. Scripts may override them from the command line.

Usage:
    from shared_utils.central_data_paths_constants import IMAGERY_RAW_DIR

Author: Urban Thermal Analysis Team
"""

from pathlib import Path

# Root directories
DATA_ROOT = Path("data")

RAW_DIR = DATA_ROOT / "raw"
PROCESSED_DIR = DATA_ROOT / "processed"
RESULTS_DIR = DATA_ROOT / "results"

# Satellite scenes (one GeoTIFF per sensor and acquisition date)
IMAGERY_RAW_DIR = RAW_DIR / "imagery"

# Study area
STUDY_AREA_DIR = RAW_DIR / "study_area"
STUDY_AREA_FILE = STUDY_AREA_DIR / "study_area.gpkg"

# Exported rasters
EXPORTS_DIR = PROCESSED_DIR / "exports"

# Tabular results
SEASONAL_LST_RESULTS_DIR = RESULTS_DIR / "seasonal_lst"
UTFVI_RESULTS_DIR = RESULTS_DIR / "utfvi"
NDVI_LST_RESULTS_DIR = RESULTS_DIR / "ndvi_lst_relationship"

# Figures
FIGURES_DIR = RESULTS_DIR / "figures"

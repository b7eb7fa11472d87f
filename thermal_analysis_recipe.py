#!/usr/bin/env python3
"""
Recipe: Urban Thermal Analysis

Reproduces all urban thermal results from raw satellite scenes:
1. Seasonal MODIS LST composites (Summer, Winter) for the study period
2. Urban Thermal Field Variance Index (UTFVI) maps
3. NDVI-LST correlation and regression for the analysis years

Usage:
    python thermal_analysis_recipe.py [OPTIONS]

Examples:
    # Run complete analysis
    python thermal_analysis_recipe.py

    # Custom configuration
    python thermal_analysis_recipe.py --config my_config.yaml

    # Skip the NDVI-LST stage
    python thermal_analysis_recipe.py --skip-correlation

Author: Urban Thermal Analysis Team
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

# Add repo root to path for absolute imports
sys.path.insert(0, str(Path(__file__).parent))

from shared_utils import ensure_directory, find_files, setup_logging
from shared_utils.central_data_paths_constants import (
    EXPORTS_DIR, FIGURES_DIR, IMAGERY_RAW_DIR, NDVI_LST_RESULTS_DIR,
    SEASONAL_LST_RESULTS_DIR, STUDY_AREA_FILE, UTFVI_RESULTS_DIR
)

from urban_thermal.core.seasonal_pipeline import SeasonalLSTPipeline
from urban_thermal.core.utfvi_pipeline import UTFVIPipeline
from urban_thermal.core.correlation_pipeline import NDVILSTCorrelationPipeline


class ThermalAnalysisRecipe:
    """
    Recipe for complete urban thermal analysis reproduction.

    Runs the seasonal LST, UTFVI and NDVI-LST pipelines against the central
    data layout and records the outcome of every stage.
    """

    def __init__(self, config_path: Optional[str] = None, log_level: str = "INFO"):
        """
        Initialize thermal analysis recipe.

        Args:
            config_path: Component configuration file (default: urban_thermal/config.yaml)
            log_level: Logging level
        """
        self.config_path = config_path

        # Setup logging
        self.logger = setup_logging(
            level=log_level,
            component_name='thermal_analysis_recipe'
        )

        # Track stage results
        self.stage_results = {}

        self.logger.info("Initialized Thermal Analysis Recipe")

    def validate_prerequisites(self) -> bool:
        """
        Validate that required input data exists.

        Returns:
            bool: True if prerequisites are met
        """
        self.logger.info("Validating prerequisites for thermal analysis...")

        if not STUDY_AREA_FILE.exists():
            self.logger.error(f"Study area file not found: {STUDY_AREA_FILE}")
            return False
        self.logger.info("✅ Study area found")

        modis_files = find_files(IMAGERY_RAW_DIR, "MOD11A2_*.tif")
        if not modis_files:
            self.logger.error(f"No MOD11A2 scenes found in {IMAGERY_RAW_DIR}")
            return False
        self.logger.info(f"✅ Found {len(modis_files)} MODIS LST scenes")

        landsat_files = find_files(IMAGERY_RAW_DIR, "L[CTE]0*_*.tif")
        if landsat_files:
            self.logger.info(f"✅ Found {len(landsat_files)} Landsat scenes")
        else:
            self.logger.warning("No Landsat scenes found, the NDVI-LST stage will fail")

        return True

    def create_output_structure(self) -> None:
        """Create necessary output directories."""
        for directory in [EXPORTS_DIR, FIGURES_DIR, SEASONAL_LST_RESULTS_DIR,
                          UTFVI_RESULTS_DIR, NDVI_LST_RESULTS_DIR]:
            ensure_directory(directory)
        self.logger.info("✅ Output directory structure created")

    def run_stage(self, stage_name: str, pipeline_class) -> bool:
        """
        Run one analysis pipeline.

        Returns:
            bool: True if the pipeline reported no failed units
        """
        self.logger.info(f"\n{'='*60}")
        self.logger.info(f"Starting {stage_name}")
        self.logger.info(f"{'='*60}")

        stage_start = time.time()

        try:
            pipeline = pipeline_class(self.config_path)
            success = pipeline.run_full_pipeline()
            stage_time = time.time() - stage_start

            self.stage_results[stage_name] = {
                'success': success,
                'duration_minutes': stage_time / 60,
                'units': len(pipeline.results),
            }

            if success:
                self.logger.info(f"{stage_name} completed successfully in {stage_time/60:.2f} minutes")
            else:
                self.logger.error(f"{stage_name} failed after {stage_time/60:.2f} minutes")

            return success

        except Exception as e:
            stage_time = time.time() - stage_start

            self.stage_results[stage_name] = {
                'success': False,
                'duration_minutes': stage_time / 60,
                'error': str(e)
            }

            self.logger.error(f"{stage_name} failed with error: {str(e)}")
            return False


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Urban thermal analysis recipe",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--config', type=str, help='Path to configuration file')
    parser.add_argument('--log-level', default='INFO', help='Logging level')
    parser.add_argument('--skip-utfvi', action='store_true', help='Skip the UTFVI stage')
    parser.add_argument('--skip-correlation', action='store_true', help='Skip the NDVI-LST stage')
    return parser.parse_args()


def main():
    """Main entry point for thermal analysis recipe."""
    args = parse_arguments()
    start_time = time.time()

    # Initialize recipe
    recipe = ThermalAnalysisRecipe(args.config, args.log_level)

    # Validate prerequisites
    if not recipe.validate_prerequisites():
        recipe.logger.error("Prerequisites validation failed")
        recipe.logger.error("Please place the study area and imagery under data/raw/")
        sys.exit(1)

    # Create output structure
    recipe.create_output_structure()

    stages = [("Seasonal LST", SeasonalLSTPipeline)]
    if not args.skip_utfvi:
        stages.append(("UTFVI", UTFVIPipeline))
    if not args.skip_correlation:
        stages.append(("NDVI-LST Relationship", NDVILSTCorrelationPipeline))

    # Track overall success
    overall_success = True
    for stage_name, pipeline_class in stages:
        success = recipe.run_stage(stage_name, pipeline_class)
        overall_success = overall_success and success

    if overall_success:
        elapsed_time = time.time() - start_time
        recipe.logger.info(f"Thermal analysis recipe completed successfully in {elapsed_time/60:.2f} minutes!")
    else:
        recipe.logger.error("Thermal analysis recipe finished with failed stages")
        sys.exit(1)

if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
NDVI-LST relationship script.

Command-line interface for correlating spring Landsat NDVI with summer MODIS
LST (Pearson r, R² and OLS fit) for the configured analysis years.

Usage:
    python run_ndvi_lst_correlation.py --region data/raw/study_area/study_area.gpkg

Author: Urban Thermal Analysis Team
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from urban_thermal.core.correlation_pipeline import NDVILSTCorrelationPipeline
from urban_thermal.scripts.common import add_common_arguments, pipeline_kwargs


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Analyse the NDVI-LST relationship",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    return add_common_arguments(parser).parse_args()


def main():
    """Main entry point for NDVI-LST correlation."""
    args = parse_arguments()

    pipeline = NDVILSTCorrelationPipeline(**pipeline_kwargs(args, 'ndvi_lst_relationship'))
    success = pipeline.run_full_pipeline()
    return success

if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)

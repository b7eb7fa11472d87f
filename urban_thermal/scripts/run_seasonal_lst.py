#!/usr/bin/env python3
"""
Seasonal MODIS LST composite script.

Command-line interface for computing quality-masked Summer and Winter mean
land surface temperature composites and exporting them as GeoTIFFs.

Usage:
    python run_seasonal_lst.py --region data/raw/study_area/study_area.gpkg

Author: Urban Thermal Analysis Team
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from urban_thermal.core.seasonal_pipeline import SeasonalLSTPipeline
from urban_thermal.scripts.common import add_common_arguments, pipeline_kwargs


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Compute seasonal MODIS LST composites",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    return add_common_arguments(parser).parse_args()


def main():
    """Main entry point for seasonal LST composites."""
    args = parse_arguments()

    pipeline = SeasonalLSTPipeline(**pipeline_kwargs(args, 'seasonal_lst'))
    success = pipeline.run_full_pipeline()
    return success

if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)

#!/usr/bin/env python3
"""
Urban Thermal Field Variance Index script.

Command-line interface for computing seasonal UTFVI maps relative to the
regional mean land surface temperature.

Usage:
    python run_utfvi.py --region data/raw/study_area/study_area.gpkg

Author: Urban Thermal Analysis Team
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from urban_thermal.core.utfvi_pipeline import UTFVIPipeline
from urban_thermal.scripts.common import add_common_arguments, pipeline_kwargs


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Compute seasonal UTFVI maps",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    return add_common_arguments(parser).parse_args()


def main():
    """Main entry point for UTFVI computation."""
    args = parse_arguments()

    pipeline = UTFVIPipeline(**pipeline_kwargs(args, 'utfvi'))
    success = pipeline.run_full_pipeline()
    return success

if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)

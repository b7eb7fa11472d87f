#!/usr/bin/env python3
"""
Complete urban thermal analysis pipeline orchestrator.

Runs the seasonal LST, UTFVI and NDVI-LST stages in sequence. A stage that
reports failed units does not prevent later stages from running.

Usage:
    python run_full_pipeline.py --region data/raw/study_area/study_area.gpkg
    python run_full_pipeline.py --stages seasonal_lst utfvi

Author: Urban Thermal Analysis Team
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from urban_thermal.core.seasonal_pipeline import SeasonalLSTPipeline
from urban_thermal.core.utfvi_pipeline import UTFVIPipeline
from urban_thermal.core.correlation_pipeline import NDVILSTCorrelationPipeline
from urban_thermal.scripts.common import add_common_arguments, pipeline_kwargs
from shared_utils import get_logger

STAGES = {
    'seasonal_lst': (SeasonalLSTPipeline, 'seasonal_lst'),
    'utfvi': (UTFVIPipeline, 'utfvi'),
    'ndvi_lst': (NDVILSTCorrelationPipeline, 'ndvi_lst_relationship'),
}


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Complete urban thermal analysis pipeline orchestrator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    add_common_arguments(parser)
    parser.add_argument(
        '--stages',
        nargs='+',
        choices=list(STAGES),
        default=list(STAGES),
        help='Stages to run, in order'
    )
    return parser.parse_args()


def main():
    """Main entry point for the full urban thermal pipeline."""
    args = parse_arguments()

    results = {}
    for stage in args.stages:
        pipeline_class, results_subdir = STAGES[stage]
        pipeline = pipeline_class(**pipeline_kwargs(args, results_subdir))
        results[stage] = pipeline.run_full_pipeline()

    logger = get_logger('full_pipeline')
    for stage, success in results.items():
        logger.info(f"{stage}: {'✅ completed' if success else '❌ failed'}")

    return all(results.values())

if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)

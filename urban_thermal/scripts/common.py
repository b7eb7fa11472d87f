"""
Command-line arguments shared by the urban thermal entry points.

Author: Urban Thermal Analysis Team
"""

import argparse
from pathlib import Path
from typing import Any, Dict

from urban_thermal.core.collaborators import GeoTiffImagerySource, VectorGeometrySource
from urban_thermal.core.export import GeoTiffExportSink


def add_common_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Add --config, --imagery-dir, --region, --output-dir and --years."""
    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration file (default: component config.yaml)'
    )
    parser.add_argument(
        '--imagery-dir',
        type=str,
        help='Directory of <SENSOR>_<YYYYMMDD>.tif scenes (default: data/raw/imagery)'
    )
    parser.add_argument(
        '--region',
        type=str,
        help='Study area vector file (default: data/raw/study_area/study_area.gpkg)'
    )
    parser.add_argument(
        '--output-dir',
        type=str,
        help='Root directory for exports, figures and result tables'
    )
    parser.add_argument(
        '--years',
        type=int,
        nargs='+',
        help='Analysis years (default: configured study period)'
    )
    return parser


def pipeline_kwargs(args: argparse.Namespace, results_subdir: str) -> Dict[str, Any]:
    """Pipeline constructor arguments from parsed command-line arguments."""
    kwargs: Dict[str, Any] = {'config': args.config, 'years': args.years}

    if args.imagery_dir:
        kwargs['imagery_source'] = GeoTiffImagerySource(args.imagery_dir)
    if args.region:
        kwargs['region'] = VectorGeometrySource().load_region(args.region)
    if args.output_dir:
        root = Path(args.output_dir)
        kwargs['export_sink'] = GeoTiffExportSink(root / 'exports')
        kwargs['figures_dir'] = root / 'figures'
        kwargs['output_dir'] = root / results_subdir

    return kwargs

#!/usr/bin/env python3
"""``lasqc`` LAS Quality Pipeline Runner.

Usage:
    python scripts/run_las_pipeline.py scripts/user_config.py
    python scripts/run_las_pipeline.py scripts/user_config.py --input-dir ./wells
    python scripts/run_las_pipeline.py scripts/user_config.py --workers 4 --no-netcdf

Note: User config in scripts/user_config.py, expert defaults in lasqc.schemas.param
"""

import sys
import argparse
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from lasqc.cli import run_las_pipeline


def main():
    parser = argparse.ArgumentParser(description="Run the lasqc LAS quality pipeline")
    parser.add_argument("config", help="Path to user config file")
    parser.add_argument("--input-dir", help="Directory containing LAS files")
    parser.add_argument("--output-dir", help="Output directory")
    parser.add_argument("--workers", type=int, help="Number of processor threads")
    parser.add_argument("--no-netcdf", action="store_true", help="Do not write processed NetCDF files")
    parser.add_argument("--max-runtime", type=float, help="Max runtime in minutes")
    parser.add_argument("--rerun", action="store_true", help="Delete output directory before running")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    summary = run_las_pipeline(
        args.config,
        cli_args={
            "input_dir": args.input_dir,
            "output_dir": args.output_dir,
            "workers": args.workers,
            "no_netcdf": args.no_netcdf or None,
        },
        max_runtime=args.max_runtime,
        rerun=args.rerun,
        verbose=args.verbose,
    )
    return 0 if not summary.get("failed") else 1


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Script to run the tract enrichment workflow.
Example: python scripts/run_enrichment.py --config config/settings.yaml
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

from tract_enrichment.config import LOG_DIR, MAPS_DIR, SETTINGS_FILE, ensure_directories, load_settings
from tract_enrichment.imputation.main import EnrichmentPipeline
from tract_enrichment.logging_utils import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Merge, impute and map tract measurements")
    parser.add_argument(
        "--config",
        type=str,
        default=str(SETTINGS_FILE),
        help="Settings YAML file"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=str(MAPS_DIR),
        help="Directory to save maps"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...)"
    )

    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    ensure_directories(output_dir)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    setup_logging(args.log_level, log_file=LOG_DIR / f"enrichment_{timestamp}.log")

    pipeline = EnrichmentPipeline(settings=load_settings(args.config), output_dir=output_dir)
    result = pipeline.run()

    summary = result.imputation.summary()
    print(f"\nEnriched {summary['total']} tracts "
          f"({result.imputation.n_imputed} imputed, {result.imputation.n_unresolved} still missing)")
    for name, path in result.output_files.items():
        print(f"  - {name}: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Validate a tax-year configuration file before it is deployed.

Loads every year, checks band contiguity, thresholds and rate sets, and
prints a one-line summary per year.

Usage:
    python scripts/validate_tax_years.py
    python scripts/validate_tax_years.py --file /path/to/tax_years.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings
from payroll_engine.calculators.errors import ConfigurationInvariantViolation
from payroll_engine.calculators.tax_data import load_tax_years

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Validate the file; return a process exit code."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--file",
        default=settings.tax_year_file,
        help="YAML file, absolute or relative to config/ (default: %(default)s)",
    )
    args = parser.parse_args(argv)

    try:
        years = load_tax_years(args.file)
    except ConfigurationInvariantViolation as exc:
        logger.error("Invalid tax-year configuration: %s", exc)
        return 1

    for label, data in sorted(years.items()):
        logger.info(
            "%s: %d bands, categories %s, frequencies %s",
            label,
            len(data.tax_bands),
            "/".join(sorted(data.contribution_rates)),
            "/".join(sorted(data.contribution_thresholds)),
        )
    if settings.default_tax_year not in years:
        logger.error("Default tax year %s is missing from %s", settings.default_tax_year, args.file)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

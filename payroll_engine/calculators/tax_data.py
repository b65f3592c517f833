"""Tax-year configuration — income tax bands, contribution rates and thresholds.

Tables live in config/tax_years.yaml and are validated when loaded, so a
broken table stops the service at startup instead of producing wrong
payslips mid-run. Calculators never read this module's cache themselves;
callers pass the bands, rate sets and thresholds in explicitly.
"""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, NamedTuple

from config import load_yaml_config
from config.settings import settings
from payroll_engine.calculators.errors import ConfigurationInvariantViolation, InvalidInput
from payroll_engine.calculators.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

PAY_PERIODS: dict[str, int] = {
    "weekly": 52,
    "fortnightly": 26,
    "four-weekly": 13,
    "monthly": 12,
}

# Frequencies whose thresholds are whole multiples of the weekly set.
_WEEKLY_MULTIPLES: dict[str, int] = {
    "fortnightly": 2,
    "four-weekly": 4,
}

DEFAULT_CATEGORY = "A"


class TaxBand(NamedTuple):
    """A single income tax band."""

    lower: Decimal  # inclusive
    upper: Decimal | None  # None = no cap
    rate: Decimal
    name: str = ""


class ContributionRateSet(NamedTuple):
    """Social-insurance rates for one contribution category."""

    employee_rate_below_ceiling: Decimal
    employee_rate_above_ceiling: Decimal
    employer_rate: Decimal
    employer_waived_below_ceiling: bool = False


class ContributionThresholds(NamedTuple):
    """Earnings cut-points for one pay frequency."""

    primary_threshold: Decimal
    upper_earnings_ceiling: Decimal
    secondary_threshold: Decimal


class TaxYearData(NamedTuple):
    """All deduction parameters for a single tax year."""

    label: str
    tax_bands: tuple[TaxBand, ...]
    contribution_rates: Mapping[str, ContributionRateSet]
    contribution_thresholds: Mapping[str, ContributionThresholds]

    def thresholds_for(self, frequency: str) -> ContributionThresholds:
        """Return the threshold set for a pay frequency.

        Fortnightly and four-weekly sets are multiples of the weekly set
        unless the year configures them directly.
        """
        if frequency in self.contribution_thresholds:
            return self.contribution_thresholds[frequency]
        multiple = _WEEKLY_MULTIPLES.get(frequency)
        if multiple is None or "weekly" not in self.contribution_thresholds:
            valid = ", ".join(sorted(set(self.contribution_thresholds) | set(_WEEKLY_MULTIPLES)))
            raise InvalidInput(f"Invalid pay frequency: {frequency}. Must be one of: {valid}")
        weekly = self.contribution_thresholds["weekly"]
        return ContributionThresholds(*(limit * multiple for limit in weekly))


def validate_bands(bands: tuple[TaxBand, ...] | list[TaxBand]) -> None:
    """Check that bands start at zero, are contiguous and rates strictly rise.

    Raises:
        ConfigurationInvariantViolation: on any structural defect.
    """
    if not bands:
        raise ConfigurationInvariantViolation("Tax band table is empty.")
    if bands[0].lower != ZERO:
        raise ConfigurationInvariantViolation(
            f"First tax band must start at 0, not {bands[0].lower}."
        )
    if bands[-1].upper is not None:
        raise ConfigurationInvariantViolation("Final tax band must be unbounded.")

    for index, band in enumerate(bands):
        if band.rate < ZERO:
            raise ConfigurationInvariantViolation(f"Band {index} has a negative rate.")
        if index == len(bands) - 1:
            break
        following = bands[index + 1]
        if band.upper is None:
            raise ConfigurationInvariantViolation(
                f"Band {index} is unbounded but is not the final band."
            )
        if band.upper <= band.lower:
            raise ConfigurationInvariantViolation(
                f"Band {index} upper limit {band.upper} is not above its lower limit {band.lower}."
            )
        if following.lower != band.upper:
            raise ConfigurationInvariantViolation(
                f"Bands {index} and {index + 1} are not contiguous "
                f"({band.upper} != {following.lower})."
            )
        if following.rate <= band.rate:
            raise ConfigurationInvariantViolation(
                f"Band rates must strictly increase ({band.rate} then {following.rate})."
            )


def validate_thresholds(thresholds: ContributionThresholds) -> None:
    """Reject negative thresholds and a primary threshold above the ceiling."""
    if any(limit < ZERO for limit in thresholds):
        raise InvalidInput("Contribution thresholds must be non-negative.")
    if thresholds.primary_threshold > thresholds.upper_earnings_ceiling:
        raise InvalidInput(
            f"Primary threshold {thresholds.primary_threshold} is above the "
            f"upper earnings ceiling {thresholds.upper_earnings_ceiling}."
        )


def _table_decimal(value: Any, what: str) -> Decimal:
    try:
        return to_decimal(value)
    except InvalidInput as exc:
        raise ConfigurationInvariantViolation(f"{what}: {exc}") from exc


def coerce_bands(bands: Iterable[TaxBand]) -> tuple[TaxBand, ...]:
    """Return the bands with limits and rates as Decimals.

    Raises:
        ConfigurationInvariantViolation: a limit or rate is not a finite number.
    """
    return tuple(
        band._replace(
            lower=_table_decimal(band.lower, f"Band {index} lower limit"),
            upper=_table_decimal(band.upper, f"Band {index} upper limit")
            if band.upper is not None
            else None,
            rate=_table_decimal(band.rate, f"Band {index} rate"),
        )
        for index, band in enumerate(bands)
    )


def coerce_thresholds(thresholds: ContributionThresholds) -> ContributionThresholds:
    """Return the thresholds as Decimals."""
    return ContributionThresholds(
        *(
            _table_decimal(limit, f"Contribution threshold {name}")
            for name, limit in zip(ContributionThresholds._fields, thresholds)
        )
    )


def coerce_rate_set(rates: ContributionRateSet) -> ContributionRateSet:
    """Return the rate set with Decimal rates."""
    return rates._replace(
        employee_rate_below_ceiling=_table_decimal(
            rates.employee_rate_below_ceiling, "Employee rate below ceiling"
        ),
        employee_rate_above_ceiling=_table_decimal(
            rates.employee_rate_above_ceiling, "Employee rate above ceiling"
        ),
        employer_rate=_table_decimal(rates.employer_rate, "Employer rate"),
    )


def _section(raw: Any, key: str) -> Any:
    section = raw[key]
    expected = list if key == "tax_bands" else dict
    if not isinstance(section, expected):
        raise TypeError(f"{key} must be a {expected.__name__}, got {type(section).__name__}")
    return section


def _parse_band(row: dict[str, Any]) -> TaxBand:
    upper = row.get("upper")
    return TaxBand(
        lower=to_decimal(row["lower"]),
        upper=to_decimal(upper) if upper is not None else None,
        rate=to_decimal(row["rate"]),
        name=str(row.get("name", "")),
    )


def _parse_thresholds(row: dict[str, Any]) -> ContributionThresholds:
    return ContributionThresholds(
        primary_threshold=to_decimal(row["primary_threshold"]),
        upper_earnings_ceiling=to_decimal(row["upper_earnings_ceiling"]),
        secondary_threshold=to_decimal(row["secondary_threshold"]),
    )


def _parse_rate_set(row: dict[str, Any]) -> ContributionRateSet:
    return ContributionRateSet(
        employee_rate_below_ceiling=to_decimal(row["employee_rate_below_ceiling"]),
        employee_rate_above_ceiling=to_decimal(row["employee_rate_above_ceiling"]),
        employer_rate=to_decimal(row["employer_rate"]),
        employer_waived_below_ceiling=bool(row.get("employer_waived_below_ceiling", False)),
    )


def parse_tax_year(label: str, raw: dict[str, Any]) -> TaxYearData:
    """Build and validate one tax year from its YAML mapping.

    The rate and threshold mappings on the result are read-only.

    Raises:
        ConfigurationInvariantViolation: malformed bands, thresholds or rates.
    """
    try:
        bands = tuple(_parse_band(row) for row in _section(raw, "tax_bands"))
        rates = {
            str(category): _parse_rate_set(row)
            for category, row in _section(raw, "contribution_rates").items()
        }
        thresholds = {
            str(frequency): _parse_thresholds(row)
            for frequency, row in _section(raw, "contribution_thresholds").items()
        }
    except (KeyError, TypeError, AttributeError, InvalidInput) as exc:
        raise ConfigurationInvariantViolation(f"Tax year {label} is malformed: {exc!r}") from exc

    validate_bands(bands)
    if DEFAULT_CATEGORY not in rates:
        raise ConfigurationInvariantViolation(
            f"Tax year {label} has no rate set for default category {DEFAULT_CATEGORY}."
        )
    for frequency, row in thresholds.items():
        try:
            validate_thresholds(row)
        except InvalidInput as exc:
            raise ConfigurationInvariantViolation(f"Tax year {label} {frequency}: {exc}") from exc

    return TaxYearData(
        label=label,
        tax_bands=bands,
        contribution_rates=MappingProxyType(rates),
        contribution_thresholds=MappingProxyType(thresholds),
    )


def load_tax_years(filename: str | Path | None = None) -> Mapping[str, TaxYearData]:
    """Load every tax year from a YAML file (defaults to settings.tax_year_file)."""
    raw = load_yaml_config(filename or settings.tax_year_file)
    years = {str(label): parse_tax_year(str(label), data) for label, data in raw.items()}
    logger.info("Loaded %d tax years: %s", len(years), ", ".join(sorted(years)))
    return MappingProxyType(years)


@lru_cache(maxsize=1)
def shipped_tax_years() -> Mapping[str, TaxYearData]:
    """Tax years from settings.tax_year_file, loaded once per process."""
    return load_tax_years()


def get_tax_year(
    label: str | None = None,
    years: Mapping[str, TaxYearData] | None = None,
) -> TaxYearData:
    """Return one tax year (defaults to settings.default_tax_year).

    Looks in ``years`` when given, otherwise in the shipped tables.

    Raises:
        KeyError: if the year is not configured.
    """
    label = label or settings.default_tax_year
    if years is None:
        years = shipped_tax_years()
    if label not in years:
        raise KeyError(f"Unknown tax year: {label}. Available: {', '.join(sorted(years))}")
    return years[label]

"""Social-insurance contributions — employee and employer sides by category."""

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import NamedTuple

from payroll_engine.calculators.errors import InvalidInput
from payroll_engine.calculators.money import ZERO, round_money, to_decimal
from payroll_engine.calculators.tax_data import (
    DEFAULT_CATEGORY,
    ContributionRateSet,
    ContributionThresholds,
    TaxYearData,
    coerce_rate_set,
    coerce_thresholds,
    validate_thresholds,
)

logger = logging.getLogger(__name__)


class ContributionResult(NamedTuple):
    """Contributions for one employee for one pay period."""

    gross_pay: Decimal
    category: str
    rate_category: str  # category whose rates were applied
    employee_contribution: Decimal
    employer_contribution: Decimal
    total_contribution: Decimal


def resolve_rate_set(
    category: str,
    rate_sets: Mapping[str, ContributionRateSet],
) -> tuple[str, ContributionRateSet]:
    """Look up a category's rates, falling back to the standard category.

    An unrecognised category is charged at the standard rate instead of
    failing the employee's payslip.
    """
    if category in rate_sets:
        return category, rate_sets[category]
    logger.warning(
        "Unknown contribution category %r; applying category %s rates",
        category,
        DEFAULT_CATEGORY,
    )
    return DEFAULT_CATEGORY, rate_sets[DEFAULT_CATEGORY]


def calculate_contribution(
    gross_pay: Decimal,
    category: str,
    thresholds: ContributionThresholds,
    rate_sets: Mapping[str, ContributionRateSet],
) -> ContributionResult:
    """Calculate employee and employer contributions for one period.

    The thresholds must match the pay frequency of ``gross_pay``.

    Args:
        gross_pay: Gross pay for the period (must be >= 0).
        category: Contribution category letter, e.g. "A".
        thresholds: Primary, secondary and ceiling figures for the frequency.
        rate_sets: Rates per category; must include the standard category.

    Raises:
        InvalidInput: negative pay or primary threshold above the ceiling.
        ConfigurationInvariantViolation: a threshold or rate is not a number.
    """
    gross_pay = to_decimal(gross_pay)
    if gross_pay < 0:
        raise InvalidInput("Gross pay must be non-negative.")
    thresholds = coerce_thresholds(thresholds)
    validate_thresholds(thresholds)

    rate_category, rates = resolve_rate_set(category, rate_sets)
    rates = coerce_rate_set(rates)
    ceiling = thresholds.upper_earnings_ceiling

    in_middle_band = max(ZERO, min(gross_pay, ceiling) - thresholds.primary_threshold)
    above_ceiling = max(ZERO, gross_pay - ceiling)
    employee = round_money(
        in_middle_band * rates.employee_rate_below_ceiling
        + above_ceiling * rates.employee_rate_above_ceiling
    )

    if rates.employer_waived_below_ceiling:
        # Nothing is due up to the ceiling, so the employer base starts there.
        employer_base = above_ceiling
    else:
        employer_base = max(ZERO, gross_pay - thresholds.secondary_threshold)
    employer = round_money(employer_base * rates.employer_rate)

    return ContributionResult(
        gross_pay=gross_pay,
        category=category,
        rate_category=rate_category,
        employee_contribution=employee,
        employer_contribution=employer,
        total_contribution=employee + employer,
    )


def calculate_contribution_for_frequency(
    gross_pay: Decimal,
    category: str,
    frequency: str,
    tax_year: TaxYearData,
) -> ContributionResult:
    """Calculate contributions using a tax year's threshold set for ``frequency``."""
    return calculate_contribution(
        gross_pay,
        category,
        tax_year.thresholds_for(frequency),
        tax_year.contribution_rates,
    )

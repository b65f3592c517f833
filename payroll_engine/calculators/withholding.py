"""Income tax withholding — banded tax on cumulative or period-only basis."""

import logging
import re
from decimal import Decimal
from typing import Literal, NamedTuple

from payroll_engine.calculators.errors import InvalidInput
from payroll_engine.calculators.money import ZERO, round_money, to_decimal
from payroll_engine.calculators.tax_data import TaxBand, coerce_bands, validate_bands

logger = logging.getLogger(__name__)

NON_CUMULATIVE = "non_cumulative"
CUMULATIVE = "cumulative"

_DIGITS = re.compile(r"\d+")


class BandTax(NamedTuple):
    """Tax charged within one band."""

    name: str
    lower: Decimal
    upper: Decimal | None
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal


class WithholdingResult(NamedTuple):
    """Tax due for one employee for one pay period.

    On the cumulative basis ``personal_allowance``, ``taxable_income`` and
    ``per_band_tax`` describe the year to date; only ``total_tax`` is the
    figure for this period.
    """

    gross_pay: Decimal
    allowance_code: str
    basis: Literal["non_cumulative", "cumulative"]
    personal_allowance: Decimal
    taxable_income: Decimal
    per_band_tax: tuple[BandTax, ...]
    tax_to_date: Decimal
    total_tax: Decimal


def parse_allowance_code(allowance_code: str) -> Decimal:
    """Annual tax-free allowance encoded in a code: its digits x 10.

    "1257L" is 12,570. A code without digits yields no allowance rather
    than an error.
    """
    match = _DIGITS.search(allowance_code or "")
    if match is None:
        logger.warning("Allowance code %r has no numeric part; using zero allowance", allowance_code)
        return ZERO
    return Decimal(match.group()) * 10


def scale_bands(
    bands: tuple[TaxBand, ...] | list[TaxBand],
    periods_per_year: int,
    period_index: int = 1,
) -> tuple[TaxBand, ...]:
    """Pro-rate annual band limits to ``period_index`` periods of the year."""
    scaled: list[TaxBand] = []
    for band in bands:
        upper = band.upper * period_index / periods_per_year if band.upper is not None else None
        scaled.append(band._replace(lower=band.lower * period_index / periods_per_year, upper=upper))
    return tuple(scaled)


def apply_bands(
    taxable: Decimal,
    bands: tuple[TaxBand, ...] | list[TaxBand],
) -> tuple[BandTax, ...]:
    """Consume a taxable amount band by band from the lowest band up.

    Each band's tax is rounded to pence where it is computed.
    """
    breakdown: list[BandTax] = []
    remaining = taxable

    for band in bands:
        if remaining <= 0:
            break

        if band.upper is None:
            in_band = remaining
        else:
            in_band = min(remaining, band.upper - band.lower)

        breakdown.append(
            BandTax(
                name=band.name,
                lower=band.lower,
                upper=band.upper,
                rate=band.rate,
                taxable_amount=in_band,
                tax=round_money(in_band * band.rate),
            )
        )
        remaining -= in_band

    return tuple(breakdown)


def _check_inputs(
    gross_pay: Decimal,
    period_index: int,
    periods_per_year: int,
    ytd_gross: Decimal,
    ytd_withheld: Decimal,
) -> None:
    if gross_pay < 0:
        raise InvalidInput("Gross pay must be non-negative.")
    if ytd_gross < 0 or ytd_withheld < 0:
        raise InvalidInput("Year-to-date figures must be non-negative.")
    if periods_per_year < 1:
        raise InvalidInput(f"Periods per year must be at least 1, got {periods_per_year}.")
    if not 1 <= period_index <= periods_per_year:
        raise InvalidInput(
            f"Period index {period_index} is outside 1..{periods_per_year}."
        )


def calculate_withholding(
    gross_pay: Decimal,
    allowance_code: str,
    period_index: int,
    ytd_gross: Decimal,
    ytd_withheld: Decimal,
    non_cumulative: bool,
    periods_per_year: int,
    bands: tuple[TaxBand, ...] | list[TaxBand],
) -> WithholdingResult:
    """Calculate the income tax to withhold for one pay period.

    Args:
        gross_pay: Gross pay for this period (must be >= 0).
        allowance_code: Allowance code such as "1257L".
        period_index: Period number within the tax year, 1..periods_per_year.
        ytd_gross: Gross pay in earlier periods of the year.
        ytd_withheld: Tax already withheld in earlier periods of the year.
        non_cumulative: Tax this period's pay alone, ignoring year-to-date.
        periods_per_year: 12 for monthly, 52 for weekly, etc.
        bands: Annual tax bands.

    Returns:
        WithholdingResult; ``total_tax`` is the tax due this period.

    Raises:
        InvalidInput: negative amounts or an out-of-range period index.
        ConfigurationInvariantViolation: bands are not contiguous and ascending,
            or a band limit or rate is not a number.
    """
    gross_pay = to_decimal(gross_pay)
    ytd_gross = to_decimal(ytd_gross)
    ytd_withheld = to_decimal(ytd_withheld)
    _check_inputs(gross_pay, period_index, periods_per_year, ytd_gross, ytd_withheld)
    bands = coerce_bands(bands)
    validate_bands(bands)

    annual_allowance = parse_allowance_code(allowance_code)

    if non_cumulative:
        allowance = round_money(annual_allowance / periods_per_year)
        taxable = round_money(max(ZERO, gross_pay - annual_allowance / periods_per_year))
        breakdown = apply_bands(taxable, scale_bands(bands, periods_per_year))
        total_tax = round_money(sum((b.tax for b in breakdown), ZERO))
        logger.debug(
            "Non-cumulative withholding: taxable=%s tax=%s", taxable, total_tax
        )
        return WithholdingResult(
            gross_pay=gross_pay,
            allowance_code=allowance_code,
            basis=NON_CUMULATIVE,
            personal_allowance=allowance,
            taxable_income=taxable,
            per_band_tax=breakdown,
            tax_to_date=total_tax,
            total_tax=total_tax,
        )

    gross_to_date = ytd_gross + gross_pay
    allowance_to_date = round_money(annual_allowance * period_index / periods_per_year)
    taxable_to_date = round_money(max(ZERO, gross_to_date - allowance_to_date))
    breakdown = apply_bands(taxable_to_date, scale_bands(bands, periods_per_year, period_index))
    tax_to_date = round_money(sum((b.tax for b in breakdown), ZERO))

    # Over-withholding earlier in the year is not refunded here.
    total_tax = round_money(max(ZERO, tax_to_date - ytd_withheld))
    logger.debug(
        "Cumulative withholding period %d: taxable_to_date=%s tax_to_date=%s due=%s",
        period_index,
        taxable_to_date,
        tax_to_date,
        total_tax,
    )
    return WithholdingResult(
        gross_pay=gross_pay,
        allowance_code=allowance_code,
        basis=CUMULATIVE,
        personal_allowance=allowance_to_date,
        taxable_income=taxable_to_date,
        per_band_tax=breakdown,
        tax_to_date=tax_to_date,
        total_tax=total_tax,
    )


def estimate_period_tax(
    gross_pay: Decimal,
    allowance_code: str,
    periods_per_year: int,
    bands: tuple[TaxBand, ...] | list[TaxBand],
) -> Decimal:
    """Quick estimate: annualise the period's taxable pay, tax it, divide back."""
    gross_pay = to_decimal(gross_pay)
    if gross_pay < 0:
        raise InvalidInput("Gross pay must be non-negative.")
    if periods_per_year < 1:
        raise InvalidInput(f"Periods per year must be at least 1, got {periods_per_year}.")
    bands = coerce_bands(bands)
    validate_bands(bands)

    annual_allowance = parse_allowance_code(allowance_code)
    taxable = max(ZERO, gross_pay - annual_allowance / periods_per_year)
    annual_tax = sum(
        (b.taxable_amount * b.rate for b in apply_bands(taxable * periods_per_year, bands)),
        ZERO,
    )
    return round_money(annual_tax / periods_per_year)

"""Period deductions — composites withholding and contributions for one employee."""

from decimal import Decimal
from typing import NamedTuple

from payroll_engine.calculators.contribution import (
    ContributionResult,
    calculate_contribution_for_frequency,
)
from payroll_engine.calculators.errors import InvalidInput
from payroll_engine.calculators.money import ZERO, to_decimal
from payroll_engine.calculators.tax_data import DEFAULT_CATEGORY, PAY_PERIODS, TaxYearData
from payroll_engine.calculators.withholding import WithholdingResult, calculate_withholding


class PeriodDeductions(NamedTuple):
    """Statutory deductions for one employee for one pay period."""

    pay_period: str
    tax_year: str
    withholding: WithholdingResult
    contribution: ContributionResult
    total_employee_deductions: Decimal
    net_pay: Decimal


def calculate_period_deductions(
    gross_pay: Decimal,
    tax_year: TaxYearData,
    allowance_code: str,
    category: str = DEFAULT_CATEGORY,
    pay_period: str = "monthly",
    period_index: int = 1,
    ytd_gross: Decimal = ZERO,
    ytd_withheld: Decimal = ZERO,
    non_cumulative: bool = False,
) -> PeriodDeductions:
    """Calculate income tax and contributions for one period.

    Other deductions (pension, student loan, benefits) are the caller's to
    add; ``net_pay`` here is gross less the statutory employee deductions.

    Args:
        gross_pay: Gross pay for the period (must be >= 0).
        tax_year: Configuration for the tax year being paid.
        allowance_code: Allowance code such as "1257L".
        category: Contribution category letter.
        pay_period: One of weekly, fortnightly, four-weekly, monthly.
        period_index: Period number within the tax year.
        ytd_gross: Gross pay in earlier periods of the year.
        ytd_withheld: Tax withheld in earlier periods of the year.
        non_cumulative: Use the period-only basis for income tax.

    Raises:
        InvalidInput: unknown pay period or invalid amounts.
    """
    if pay_period not in PAY_PERIODS:
        valid = ", ".join(sorted(PAY_PERIODS))
        raise InvalidInput(f"Invalid pay period: {pay_period}. Must be one of: {valid}")

    gross_pay = to_decimal(gross_pay)
    withholding = calculate_withholding(
        gross_pay,
        allowance_code,
        period_index,
        to_decimal(ytd_gross),
        to_decimal(ytd_withheld),
        non_cumulative,
        PAY_PERIODS[pay_period],
        tax_year.tax_bands,
    )
    contribution = calculate_contribution_for_frequency(gross_pay, category, pay_period, tax_year)

    total = withholding.total_tax + contribution.employee_contribution
    return PeriodDeductions(
        pay_period=pay_period,
        tax_year=tax_year.label,
        withholding=withholding,
        contribution=contribution,
        total_employee_deductions=total,
        net_pay=gross_pay - total,
    )

"""Tests for the social-insurance contribution calculator."""

import logging
from decimal import Decimal

import pytest

from payroll_engine.calculators.contribution import (
    calculate_contribution,
    calculate_contribution_for_frequency,
    resolve_rate_set,
)
from payroll_engine.calculators.errors import ConfigurationInvariantViolation, InvalidInput
from payroll_engine.calculators.tax_data import (
    ContributionRateSet,
    ContributionThresholds,
    TaxYearData,
)

D = Decimal

RateSets = dict[str, ContributionRateSet]


class TestStandardCategories:
    def test_zero_gross(self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets) -> None:
        for category in rate_sets:
            result = calculate_contribution(D("0"), category, monthly_thresholds, rate_sets)
            assert result.employee_contribution == 0
            assert result.employer_contribution == 0
            assert result.total_contribution == 0

    def test_between_secondary_and_primary(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets
    ) -> None:
        """900: no employee share; employer (900 - 758) @ 13.8% = 19.596 -> 19.60."""
        result = calculate_contribution(D("900"), "A", monthly_thresholds, rate_sets)
        assert result.employee_contribution == 0
        assert result.employer_contribution == D("19.60")

    def test_category_a_below_ceiling(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets
    ) -> None:
        """3,000: employee 1,952 @ 12% = 234.24; employer 2,242 @ 13.8% = 309.40."""
        result = calculate_contribution(D("3000"), "A", monthly_thresholds, rate_sets)
        assert result.employee_contribution == D("234.24")
        assert result.employer_contribution == D("309.40")
        assert result.total_contribution == D("543.64")

    def test_category_a_above_ceiling(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets
    ) -> None:
        """5,000: employee 3,141 @ 12% + 811 @ 2% = 393.14; employer 4,242 @ 13.8% = 585.40."""
        result = calculate_contribution(D("5000"), "A", monthly_thresholds, rate_sets)
        assert result.employee_contribution == D("393.14")
        assert result.employer_contribution == D("585.40")

    def test_reduced_rate_category_b(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets
    ) -> None:
        """1,952 @ 5.85% = 114.19."""
        result = calculate_contribution(D("3000"), "B", monthly_thresholds, rate_sets)
        assert result.employee_contribution == D("114.19")
        assert result.employer_contribution == D("309.40")

    def test_pension_age_category_c(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets
    ) -> None:
        result = calculate_contribution(D("3000"), "C", monthly_thresholds, rate_sets)
        assert result.employee_contribution == 0
        assert result.employer_contribution == D("309.40")

    def test_total_is_sum_of_rounded_sides(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets
    ) -> None:
        result = calculate_contribution(D("2345.67"), "A", monthly_thresholds, rate_sets)
        assert result.employee_contribution == result.employee_contribution.quantize(D("0.01"))
        assert result.employer_contribution == result.employer_contribution.quantize(D("0.01"))
        assert result.total_contribution == (
            result.employee_contribution + result.employer_contribution
        )


class TestWaivedCategories:
    @pytest.mark.parametrize("category", ["H", "M"])
    def test_nothing_up_to_ceiling(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets, category: str
    ) -> None:
        for gross in (D("900"), D("3000"), D("4189")):
            result = calculate_contribution(gross, category, monthly_thresholds, rate_sets)
            assert result.employer_contribution == 0

    def test_employee_side_unchanged(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets
    ) -> None:
        result = calculate_contribution(D("3000"), "H", monthly_thresholds, rate_sets)
        assert result.employee_contribution == D("234.24")

    def test_above_ceiling_uses_ceiling_base(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets
    ) -> None:
        """5,000: (5,000 - 4,189) @ 13.8% = 111.92, not (5,000 - 758) @ 13.8% = 585.40."""
        result = calculate_contribution(D("5000"), "M", monthly_thresholds, rate_sets)
        assert result.employer_contribution == D("111.92")
        assert result.employer_contribution != D("585.40")
        assert result.employee_contribution == D("393.14")


class TestCategoryFallback:
    def test_unknown_category_uses_standard_rates(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets
    ) -> None:
        standard = calculate_contribution(D("3000"), "A", monthly_thresholds, rate_sets)
        unknown = calculate_contribution(D("3000"), "Z", monthly_thresholds, rate_sets)
        assert unknown.category == "Z"
        assert unknown.rate_category == "A"
        assert unknown.employee_contribution == standard.employee_contribution
        assert unknown.employer_contribution == standard.employer_contribution

    def test_fallback_is_logged(self, rate_sets: RateSets, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            applied, rates = resolve_rate_set("X", rate_sets)
        assert applied == "A"
        assert rates == rate_sets["A"]
        assert "Unknown contribution category" in caplog.text

    def test_known_category_not_logged(self, rate_sets: RateSets, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            applied, _ = resolve_rate_set("C", rate_sets)
        assert applied == "C"
        assert caplog.text == ""


class TestValidation:
    def test_negative_gross(self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets) -> None:
        with pytest.raises(InvalidInput):
            calculate_contribution(D("-0.01"), "A", monthly_thresholds, rate_sets)

    def test_primary_above_ceiling(self, rate_sets: RateSets) -> None:
        inverted = ContributionThresholds(D("5000"), D("4189"), D("758"))
        with pytest.raises(InvalidInput):
            calculate_contribution(D("3000"), "A", inverted, rate_sets)

    def test_secondary_above_primary_is_allowed(self, rate_sets: RateSets) -> None:
        """Employer base starts at 1,200 while the employee base starts at 1,000."""
        thresholds = ContributionThresholds(D("1000"), D("4000"), D("1200"))
        result = calculate_contribution(D("2000"), "A", thresholds, rate_sets)
        assert result.employee_contribution == D("120.00")
        assert result.employer_contribution == D("110.40")

    @pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity", "abc"])
    def test_non_finite_gross(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets, amount: str
    ) -> None:
        with pytest.raises(InvalidInput):
            calculate_contribution(amount, "A", monthly_thresholds, rate_sets)


class TestPlainNumberTables:
    def test_float_rates_and_int_thresholds(self) -> None:
        """Same 234.24 / 309.40 as the Decimal tables at 3,000, category A."""
        result = calculate_contribution(
            D("3000"),
            "A",
            ContributionThresholds(1048, 4189, 758),
            {"A": ContributionRateSet(0.12, 0.02, 0.138)},
        )
        assert result.employee_contribution == D("234.24")
        assert result.employer_contribution == D("309.40")
        assert result.total_contribution == D("543.64")

    def test_fallback_to_plain_number_rates(self, monthly_thresholds: ContributionThresholds) -> None:
        result = calculate_contribution(
            D("5000"), "Z", monthly_thresholds, {"A": ContributionRateSet("0.12", "0.02", "0.138")}
        )
        assert result.rate_category == "A"
        assert result.employee_contribution == D("393.14")

    def test_non_numeric_rate(self, monthly_thresholds: ContributionThresholds) -> None:
        with pytest.raises(ConfigurationInvariantViolation, match="Employer rate"):
            calculate_contribution(
                D("3000"), "A", monthly_thresholds, {"A": ContributionRateSet(0.12, 0.02, "abc")}
            )

    def test_non_finite_threshold(self, rate_sets: RateSets) -> None:
        thresholds = ContributionThresholds(1048, float("inf"), 758)
        with pytest.raises(ConfigurationInvariantViolation, match="upper_earnings_ceiling"):
            calculate_contribution(D("3000"), "A", thresholds, rate_sets)


class TestFrequencies:
    def test_weekly(self, tax_year: TaxYearData) -> None:
        """500/week: employee 258 @ 12% = 30.96; employer 325 @ 13.8% = 44.85."""
        result = calculate_contribution_for_frequency(D("500"), "A", "weekly", tax_year)
        assert result.employee_contribution == D("30.96")
        assert result.employer_contribution == D("44.85")

    def test_fortnightly_derived_from_weekly(self, tax_year: TaxYearData) -> None:
        """Thresholds double: employee (1,000 - 484) @ 12%; employer (1,000 - 350) @ 13.8%."""
        result = calculate_contribution_for_frequency(D("1000"), "A", "fortnightly", tax_year)
        assert result.employee_contribution == D("61.92")
        assert result.employer_contribution == D("89.70")

    def test_annual(self, tax_year: TaxYearData) -> None:
        """60,000: 37,700 @ 12% + 9,730 @ 2% = 4,718.60; 50,900 @ 13.8% = 7,024.20."""
        result = calculate_contribution_for_frequency(D("60000"), "A", "annual", tax_year)
        assert result.employee_contribution == D("4718.60")
        assert result.employer_contribution == D("7024.20")

    def test_unknown_frequency(self, tax_year: TaxYearData) -> None:
        with pytest.raises(InvalidInput):
            calculate_contribution_for_frequency(D("1000"), "A", "daily", tax_year)


class TestProperties:
    @pytest.mark.parametrize("category", ["A", "B", "C", "H", "M", "Q"])
    def test_monotonic_and_non_negative(
        self, monthly_thresholds: ContributionThresholds, rate_sets: RateSets, category: str
    ) -> None:
        results = [
            calculate_contribution(D(gross), category, monthly_thresholds, rate_sets)
            for gross in range(0, 8001, 100)
        ]
        totals = [r.total_contribution for r in results]
        assert totals == sorted(totals)
        assert all(r.employee_contribution >= 0 and r.employer_contribution >= 0 for r in results)

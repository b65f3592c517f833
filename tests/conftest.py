"""Shared test fixtures."""

from decimal import Decimal

import pytest

from payroll_engine.calculators.tax_data import (
    ContributionRateSet,
    ContributionThresholds,
    TaxBand,
    TaxYearData,
)

D = Decimal


@pytest.fixture
def uk_bands() -> tuple[TaxBand, ...]:
    """Annual UK bands: 20% to 37,700, 40% to 125,140, 45% above."""
    return (
        TaxBand(D("0"), D("37700"), D("0.20"), "Basic Rate"),
        TaxBand(D("37700"), D("125140"), D("0.40"), "Higher Rate"),
        TaxBand(D("125140"), None, D("0.45"), "Additional Rate"),
    )


@pytest.fixture
def round_bands() -> tuple[TaxBand, ...]:
    """Bands with limits divisible by 12, so monthly boundaries are whole pounds."""
    return (
        TaxBand(D("0"), D("12000"), D("0.10"), "Low"),
        TaxBand(D("12000"), D("36000"), D("0.20"), "Middle"),
        TaxBand(D("36000"), D("120000"), D("0.40"), "Upper"),
        TaxBand(D("120000"), None, D("0.50"), "Top"),
    )


@pytest.fixture
def single_band() -> tuple[TaxBand, ...]:
    return (TaxBand(D("0"), None, D("0.20"), "Flat"),)


@pytest.fixture
def rate_sets() -> dict[str, ContributionRateSet]:
    return {
        "A": ContributionRateSet(D("0.12"), D("0.02"), D("0.138")),
        "B": ContributionRateSet(D("0.0585"), D("0.02"), D("0.138")),
        "C": ContributionRateSet(D("0"), D("0"), D("0.138")),
        "H": ContributionRateSet(D("0.12"), D("0.02"), D("0.138"), True),
        "M": ContributionRateSet(D("0.12"), D("0.02"), D("0.138"), True),
    }


@pytest.fixture
def monthly_thresholds() -> ContributionThresholds:
    return ContributionThresholds(D("1048"), D("4189"), D("758"))


@pytest.fixture
def tax_year(
    uk_bands: tuple[TaxBand, ...],
    rate_sets: dict[str, ContributionRateSet],
    monthly_thresholds: ContributionThresholds,
) -> TaxYearData:
    """A synthetic tax year using the fixtures above."""
    return TaxYearData(
        label="test-year",
        tax_bands=uk_bands,
        contribution_rates=rate_sets,
        contribution_thresholds={
            "weekly": ContributionThresholds(D("242"), D("967"), D("175")),
            "monthly": monthly_thresholds,
            "annual": ContributionThresholds(D("12570"), D("50270"), D("9100")),
        },
    )

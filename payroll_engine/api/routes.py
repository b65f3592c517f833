"""API routes for the payroll deduction calculators."""

import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.settings import settings
from payroll_engine.calculators.contribution import calculate_contribution_for_frequency
from payroll_engine.calculators.deductions import calculate_period_deductions
from payroll_engine.calculators.errors import InvalidInput
from payroll_engine.calculators.tax_data import DEFAULT_CATEGORY, PAY_PERIODS, TaxYearData, get_tax_year
from payroll_engine.calculators.withholding import calculate_withholding

logger = logging.getLogger(__name__)

router = APIRouter()

PayPeriod = Literal["weekly", "fortnightly", "four-weekly", "monthly"]


class WithholdingRequest(BaseModel):
    """Request body for the /withholding endpoint."""

    gross_pay: Decimal
    allowance_code: str
    period_index: int = 1
    ytd_gross: Decimal = Decimal("0")
    ytd_withheld: Decimal = Decimal("0")
    non_cumulative: bool = False
    pay_period: PayPeriod = "monthly"
    tax_year: str | None = None


class ContributionRequest(BaseModel):
    """Request body for the /contribution endpoint."""

    gross_pay: Decimal
    category: str = DEFAULT_CATEGORY
    frequency: PayPeriod | Literal["annual"] = "monthly"
    tax_year: str | None = None


class DeductionsRequest(BaseModel):
    """Request body for the /deductions endpoint."""

    gross_pay: Decimal
    allowance_code: str
    category: str = DEFAULT_CATEGORY
    period_index: int = 1
    ytd_gross: Decimal = Decimal("0")
    ytd_withheld: Decimal = Decimal("0")
    non_cumulative: bool = False
    pay_period: PayPeriod = "monthly"
    tax_year: str | None = None


def _jsonable(value: Any) -> Any:
    """Convert result tuples to JSON-ready dicts with float amounts."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, tuple) and hasattr(value, "_asdict"):
        return {key: _jsonable(item) for key, item in value._asdict().items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def _run(request: Request, label: str | None, calculate: Callable[[TaxYearData], Any]) -> JSONResponse:
    """Resolve the tax year and run a calculation, mapping errors to responses."""
    try:
        year = get_tax_year(label, request.app.state.tax_years)
    except KeyError as exc:
        return JSONResponse({"error": exc.args[0]}, status_code=404)
    try:
        result = calculate(year)
    except InvalidInput as exc:
        logger.info("Rejected calculation request: %s", exc)
        return JSONResponse({"error": str(exc)}, status_code=422)
    return JSONResponse(_jsonable(result))


@router.get("/health")
async def health(request: Request) -> dict:  # type: ignore[type-arg]
    """Health check endpoint listing loaded tax years."""
    years = getattr(request.app.state, "tax_years", {})
    return {"status": "ok", "tax_years": sorted(years)}


@router.get("/tax-years")
async def tax_years(request: Request) -> dict:  # type: ignore[type-arg]
    """List configured tax years and the default."""
    return {
        "tax_years": sorted(request.app.state.tax_years),
        "default": settings.default_tax_year,
    }


@router.post("/withholding")
async def withholding(body: WithholdingRequest, request: Request) -> JSONResponse:
    """Income tax due for one period."""
    return _run(
        request,
        body.tax_year,
        lambda year: calculate_withholding(
            body.gross_pay,
            body.allowance_code,
            body.period_index,
            body.ytd_gross,
            body.ytd_withheld,
            body.non_cumulative,
            PAY_PERIODS[body.pay_period],
            year.tax_bands,
        ),
    )


@router.post("/contribution")
async def contribution(body: ContributionRequest, request: Request) -> JSONResponse:
    """Employee and employer contributions for one period."""
    return _run(
        request,
        body.tax_year,
        lambda year: calculate_contribution_for_frequency(
            body.gross_pay, body.category, body.frequency, year
        ),
    )


@router.post("/deductions")
async def deductions(body: DeductionsRequest, request: Request) -> JSONResponse:
    """Income tax and contributions together for one period."""
    return _run(
        request,
        body.tax_year,
        lambda year: calculate_period_deductions(
            body.gross_pay,
            year,
            body.allowance_code,
            category=body.category,
            pay_period=body.pay_period,
            period_index=body.period_index,
            ytd_gross=body.ytd_gross,
            ytd_withheld=body.ytd_withheld,
            non_cumulative=body.non_cumulative,
        ),
    )

"""Exceptions raised by the deduction calculators."""


class CalculationError(Exception):
    """Base class for calculator errors."""


class InvalidInput(CalculationError, ValueError):
    """A per-employee input is out of range (negative pay, bad period index).

    Recoverable: a pay run reports it against the employee and carries on.
    """


class ConfigurationInvariantViolation(CalculationError):
    """A tax-year table is structurally broken (gaps, overlaps, falling rates)."""

"""Statutory deductions: social insurance and progressive income tax.

Everything here is a pure function of the input amount and one RateTable.
Each line is rounded on its own before any summing; long-term care is
derived from the rounded health-insurance figure, not from gross pay.
Changing that order moves results by whole currency units.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from hrhub_payroll.calculators.rate_table import RateTable
from hrhub_payroll.calculators.types import (
    ZERO,
    IncomeTaxResult,
    SocialInsuranceResult,
    TotalDeductionResult,
)

UNIT = Decimal("1")
MONTHS_PER_YEAR = Decimal("12")


def round_unit(amount: Decimal) -> Decimal:
    """Round half-up to a whole currency unit."""
    return amount.quantize(UNIT, rounding=ROUND_HALF_UP)


def floor_unit(amount: Decimal) -> Decimal:
    """Truncate toward negative infinity to a whole currency unit."""
    return amount.quantize(UNIT, rounding=ROUND_FLOOR)


class TaxCalculator:
    """Calculates social insurance and income tax against one rate table."""

    def __init__(self, rate_table: RateTable):
        self.rate_table = rate_table

    def hourly_wage(self, monthly_salary: Decimal) -> Decimal:
        """Ordinary hourly wage: monthly salary over standard monthly hours."""
        if monthly_salary <= 0:
            return ZERO
        return round_unit(monthly_salary / self.rate_table.standard_monthly_hours)

    def social_insurance(self, monthly_gross: Decimal) -> SocialInsuranceResult:
        """Employee share of pension, health, long-term care and employment insurance."""
        if monthly_gross <= 0:
            return SocialInsuranceResult()

        rates = self.rate_table.social_insurance

        pension_base = min(monthly_gross, rates.pension_ceiling)
        national_pension = round_unit(pension_base * rates.pension_rate)

        health_insurance = round_unit(monthly_gross * rates.health_rate)

        # Long-term care is a percentage of the health-insurance amount
        long_term_care = round_unit(health_insurance * rates.long_term_care_rate)

        employment_insurance = round_unit(monthly_gross * rates.employment_rate)

        return SocialInsuranceResult(
            national_pension=national_pension,
            health_insurance=health_insurance,
            long_term_care=long_term_care,
            employment_insurance=employment_insurance,
        )

    def earned_income_deduction(self, annual_gross: Decimal) -> Decimal:
        """Earned-income deduction for an annual gross figure."""
        if annual_gross <= 0:
            return ZERO

        floor = ZERO
        for band in self.rate_table.earned_income_bands:
            if band.up_to is None or annual_gross <= band.up_to:
                return band.base + (annual_gross - floor) * band.rate
            floor = band.up_to

        # Unreachable: the last band is validated to be open-ended
        raise AssertionError("earned income bands are not open-ended")

    def annual_income_tax(self, taxable_income: Decimal) -> Decimal:
        """Progressive tax in quick-deduction form.

        Brackets are walked in ascending order and the last bracket whose
        lower bound is exceeded determines the result.
        """
        annual_tax = ZERO
        for bracket in self.rate_table.income_tax_brackets:
            if taxable_income > bracket.min_amount:
                annual_tax = taxable_income * bracket.rate - bracket.quick_deduction
            else:
                break
        return annual_tax

    def income_tax(self, monthly_gross: Decimal) -> IncomeTaxResult:
        """Monthly income tax computed on an annualized basis.

        annual gross -> minus earned-income deduction -> progressive tax ->
        divided by 12 and floored. Local income tax is a floored surtax on
        the monthly figure.
        """
        if monthly_gross <= 0:
            return IncomeTaxResult()

        annual_gross = monthly_gross * MONTHS_PER_YEAR
        deduction = self.earned_income_deduction(annual_gross)
        taxable_income = max(ZERO, annual_gross - deduction)

        annual_tax = self.annual_income_tax(taxable_income)

        monthly_income_tax = max(ZERO, floor_unit(annual_tax / MONTHS_PER_YEAR))
        local_income_tax = floor_unit(monthly_income_tax * self.rate_table.local_income_tax_rate)

        return IncomeTaxResult(
            income_tax=monthly_income_tax,
            local_income_tax=local_income_tax,
        )

    def total_deductions(self, monthly_gross: Decimal) -> TotalDeductionResult:
        """Social insurance plus income tax for a monthly gross figure."""
        return TotalDeductionResult(
            social_insurance=self.social_insurance(monthly_gross),
            income_tax=self.income_tax(monthly_gross),
        )

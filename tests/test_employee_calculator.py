"""Tests for the per-employee payroll calculator."""

from datetime import date
from decimal import Decimal

import pytest

from hrhub_payroll.calculators.rate_table import RateTableNotFoundError
from hrhub_payroll.calculators.tax_calculator import TaxCalculator
from hrhub_payroll.calculators.types import AllowanceEntry, BenefitEntry

MARCH_START = date(2025, 3, 1)
MARCH_END = date(2025, 3, 31)


class TestBaseSalary:
    """Test compensation lookup."""

    async def test_monthly_from_annual(self, hr_data, employee_calculator, company_id):
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        assert detail.earnings.base_salary == Decimal("3000000")
        assert detail.overtime.hourly_wage == Decimal("14354")

    async def test_latest_effective_record_by_period_end(
        self, hr_data, employee_calculator, company_id
    ):
        emp = hr_data.add_employee("Lee", date(2020, 1, 1), Decimal("30000000"))
        hr_data.add_compensation(emp, Decimal("36000000"), date(2025, 3, 15))
        hr_data.add_compensation(emp, Decimal("48000000"), date(2025, 4, 1))

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        assert detail.earnings.base_salary == Decimal("3000000")

    async def test_monthly_salary_rounded(self, hr_data, employee_calculator, company_id):
        emp = hr_data.add_employee("Park", date(2020, 1, 1), Decimal("31000000"))

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        # 31,000,000 / 12 = 2,583,333.33
        assert detail.earnings.base_salary == Decimal("2583333")

    async def test_no_compensation_is_zero_not_error(
        self, hr_data, employee_calculator, company_id
    ):
        emp = hr_data.add_employee("Choi", date(2025, 3, 1))

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        assert detail.gross_pay == Decimal("0")
        assert detail.total_deductions == Decimal("0")
        assert detail.net_pay == Decimal("0")


class TestOvertimeAndAllowances:
    """Test overtime buckets and allowance buckets."""

    async def test_overtime_by_work_type(self, hr_data, employee_calculator, company_id):
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))
        hr_data.add_overtime(emp, date(2025, 3, 10), 120, "OVERTIME")
        hr_data.add_overtime(emp, date(2025, 3, 15), 60, "HOLIDAY")
        hr_data.add_overtime(emp, date(2025, 3, 20), 30, "NIGHT")
        # Outside the period
        hr_data.add_overtime(emp, date(2025, 2, 28), 600, "OVERTIME")

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        assert detail.overtime.weekday_ot_pay == Decimal("43062")
        assert detail.overtime.holiday_pay == Decimal("28708")
        assert detail.overtime.night_pay == Decimal("3589")
        assert detail.earnings.overtime_pay == Decimal("75359")
        assert detail.overtime.total_overtime_hours == Decimal("3.50")

    async def test_allowance_buckets(self, hr_data, employee_calculator, company_id):
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))
        hr_data.allowances[(emp, "2025-03")] = [
            AllowanceEntry("MEAL_ALLOWANCE", Decimal("100000")),
            AllowanceEntry("TRANSPORT_ALLOWANCE", Decimal("50000")),
            AllowanceEntry("OVERTIME_ALLOWANCE", Decimal("200000")),
            AllowanceEntry("CHILDCARE", Decimal("30000")),
        ]
        hr_data.allowances[(emp, "2025-02")] = [
            AllowanceEntry("MEAL_ALLOWANCE", Decimal("999999")),
        ]

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        earnings = detail.earnings
        assert earnings.meal_allowance == Decimal("100000")
        assert earnings.transport_allowance == Decimal("50000")
        assert earnings.fixed_overtime_allowance == Decimal("200000")
        assert earnings.other_earnings == Decimal("30000")
        assert earnings.total_allowances == Decimal("380000")

    async def test_benefits_add_to_allowances_of_same_kind(
        self, hr_data, employee_calculator, company_id
    ):
        """A recurring meal benefit is summed with an explicit meal allowance."""
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))
        hr_data.allowances[(emp, "2025-03")] = [
            AllowanceEntry("MEAL_ALLOWANCE", Decimal("100000")),
        ]
        hr_data.benefits[emp] = [
            BenefitEntry("MEAL", Decimal("100000")),
            BenefitEntry("TRANSPORT", Decimal("40000")),
            BenefitEntry("FITNESS", Decimal("20000")),
        ]

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        assert detail.earnings.meal_allowance == Decimal("200000")
        assert detail.earnings.transport_allowance == Decimal("40000")
        assert detail.earnings.other_earnings == Decimal("20000")


class TestPayDetail:
    """Test gross, deductions and net."""

    async def test_gross_and_net_decomposition(
        self, hr_data, employee_calculator, company_id, rate_table
    ):
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))
        hr_data.add_overtime(emp, date(2025, 3, 10), 120, "OVERTIME")
        hr_data.allowances[(emp, "2025-03")] = [
            AllowanceEntry("MEAL_ALLOWANCE", Decimal("100000")),
        ]

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        e = detail.earnings
        assert detail.gross_pay == (
            e.base_salary
            + e.overtime_pay
            + e.meal_allowance
            + e.transport_allowance
            + e.fixed_overtime_allowance
            + e.other_earnings
        )
        assert detail.gross_pay == Decimal("3143062")

        expected = TaxCalculator(rate_table).total_deductions(detail.gross_pay)
        assert detail.total_deductions == expected.total_deductions
        assert detail.net_pay == detail.gross_pay - detail.total_deductions

    async def test_typical_month_net(self, hr_data, employee_calculator, company_id):
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        assert detail.deductions.national_pension == Decimal("135000")
        assert detail.deductions.income_tax == Decimal("211875")
        assert detail.total_deductions == Decimal("515035")
        assert detail.net_pay == Decimal("2484965")

    async def test_detail_records_rate_table_version(
        self, hr_data, employee_calculator, company_id
    ):
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))

        detail = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)
        data = detail.to_dict()

        assert data["rate_table_version"] == "2025-01-01"
        assert Decimal(data["net_pay"]) == detail.net_pay
        assert data["earnings"]["base_salary"] == str(detail.earnings.base_salary)

    async def test_deterministic(self, hr_data, employee_calculator, company_id):
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))
        hr_data.add_overtime(emp, date(2025, 3, 10), 95, "NIGHT")

        first = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)
        second = await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

        assert first == second


class TestFailures:
    async def test_provider_errors_propagate(self, hr_data, employee_calculator, company_id):
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))
        hr_data.failing_attendance.add(emp)

        with pytest.raises(ConnectionError):
            await employee_calculator.calculate(emp, MARCH_START, MARCH_END, company_id)

    async def test_period_without_rate_table(self, hr_data, employee_calculator, company_id):
        emp = hr_data.add_employee("Kim", date(2020, 1, 1), Decimal("36000000"))

        with pytest.raises(RateTableNotFoundError):
            await employee_calculator.calculate(
                emp, date(2024, 3, 1), date(2024, 3, 31), company_id
            )

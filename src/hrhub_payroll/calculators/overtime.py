"""Overtime classification and premium pay."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from hrhub_payroll.calculators.rate_table import OvertimeMultipliers
from hrhub_payroll.calculators.tax_calculator import round_unit
from hrhub_payroll.calculators.types import (
    AttendanceRecord,
    OvertimeBreakdown,
    PayrollOvertime,
    WorkType,
)

MINUTES_PER_HOUR = Decimal("60")
HOURS_PRECISION = Decimal("0.01")


def _hours(minutes: int) -> Decimal:
    return Decimal(max(minutes, 0)) / MINUTES_PER_HOUR


def _report_hours(hours: Decimal) -> Decimal:
    return hours.quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)


def classify_attendance(records: Iterable[AttendanceRecord]) -> OvertimeBreakdown:
    """Bucket attendance overtime minutes by work-type tag.

    HOLIDAY goes to the holiday bucket, NIGHT to the night bucket, and every
    other tag (OVERTIME, NORMAL, untagged) to weekday overtime.
    """
    breakdown = OvertimeBreakdown()
    for record in records:
        minutes = record.overtime_minutes or 0
        if record.work_type == WorkType.HOLIDAY:
            breakdown.holiday_minutes += minutes
        elif record.work_type == WorkType.NIGHT:
            breakdown.night_minutes += minutes
        else:
            breakdown.weekday_ot_minutes += minutes
    return breakdown


class OvertimeCalculator:
    """Premium pay per overtime category.

    Each category is ``round(hourly_wage * multiplier * minutes / 60)``,
    rounded on its own; the total is the sum of the rounded figures.
    Reported hours are rounded to two places for display only.
    """

    def __init__(self, multipliers: OvertimeMultipliers):
        self.multipliers = multipliers

    def calculate(self, hourly_wage: Decimal, breakdown: OvertimeBreakdown) -> PayrollOvertime:
        weekday_ot_hours = _hours(breakdown.weekday_ot_minutes)
        weekend_hours = _hours(breakdown.weekend_minutes)
        holiday_hours = _hours(breakdown.holiday_minutes)
        night_hours = _hours(breakdown.night_minutes)

        m = self.multipliers
        total_hours = weekday_ot_hours + weekend_hours + holiday_hours + night_hours

        return PayrollOvertime(
            hourly_wage=hourly_wage,
            total_overtime_hours=_report_hours(total_hours),
            weekday_ot_hours=_report_hours(weekday_ot_hours),
            weekend_hours=_report_hours(weekend_hours),
            holiday_hours=_report_hours(holiday_hours),
            night_hours=_report_hours(night_hours),
            weekday_ot_pay=round_unit(hourly_wage * m.weekday * weekday_ot_hours),
            weekend_pay=round_unit(hourly_wage * m.weekend * weekend_hours),
            holiday_pay=round_unit(hourly_wage * m.holiday * holiday_hours),
            night_pay=round_unit(hourly_wage * m.night * night_hours),
        )

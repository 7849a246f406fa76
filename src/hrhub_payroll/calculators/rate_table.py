"""Versioned statutory rate tables.

A rate table is a JSON payload carrying one jurisdiction's rates as of an
effective date:
{
    "effective_from": "2025-01-01",
    "standard_monthly_hours": 209,
    "social_insurance": {
        "pension_rate": 0.045, "pension_ceiling": 5900000,
        "health_rate": 0.03545, "long_term_care_rate": 0.1281,
        "employment_rate": 0.009
    },
    "earned_income_deduction": [
        {"up_to": 5000000, "base": 0, "rate": 0.70},
        ...
        {"up_to": null, "base": 14750000, "rate": 0.02}
    ],
    "income_tax_brackets": [
        {"min": 0, "rate": 0.06, "deduction": 0},
        ...
    ],
    "local_income_tax_rate": 0.10,
    "overtime_multipliers": {"weekday": 1.5, "weekend": 1.5, "holiday": 2.0, "night": 0.5},
    "severance": {"eligibility_days": 365, "fallback_overtime_multiplier": 1.5}
}

RateSchedule keeps every version and resolves the one in force on a date,
so recalculating an old period uses that period's table.
"""

from __future__ import annotations

import bisect
import json
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from importlib import resources
from pathlib import Path
from typing import Any, Iterable

from hrhub_payroll.calculators.types import EarnedIncomeBand, TaxBracket


class RateTableError(Exception):
    """Raised when a rate-table payload is malformed."""


class RateTableNotFoundError(Exception):
    """Raised when no rate table is in force on a date."""

    def __init__(self, as_of_date: date):
        self.as_of_date = as_of_date
        super().__init__(f"No rate table effective on {as_of_date}")


def _dec(value: Any) -> Decimal:
    return Decimal(str(value))


@dataclass(frozen=True)
class SocialInsuranceRates:
    """Employee-share social-insurance rates."""

    pension_rate: Decimal
    pension_ceiling: Decimal
    health_rate: Decimal
    long_term_care_rate: Decimal  # applied to the health-insurance amount
    employment_rate: Decimal


@dataclass(frozen=True)
class OvertimeMultipliers:
    """Premium multipliers per overtime category.

    Night is an add-on premium over base pay counted elsewhere, hence < 1.
    """

    weekday: Decimal = Decimal("1.5")
    weekend: Decimal = Decimal("1.5")
    holiday: Decimal = Decimal("2.0")
    night: Decimal = Decimal("0.5")


@dataclass(frozen=True)
class SeverancePolicy:
    """Severance eligibility and fallback-estimation parameters."""

    eligibility_days: int = 365
    fallback_overtime_multiplier: Decimal = Decimal("1.5")


@dataclass(frozen=True)
class RateTable:
    """One dated version of the statutory rates."""

    effective_from: date
    standard_monthly_hours: Decimal
    social_insurance: SocialInsuranceRates
    earned_income_bands: tuple[EarnedIncomeBand, ...]
    income_tax_brackets: tuple[TaxBracket, ...]
    local_income_tax_rate: Decimal
    overtime_multipliers: OvertimeMultipliers
    severance: SeverancePolicy

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RateTable:
        """Parse and validate a rate-table payload."""
        try:
            si = payload["social_insurance"]
            social_insurance = SocialInsuranceRates(
                pension_rate=_dec(si["pension_rate"]),
                pension_ceiling=_dec(si["pension_ceiling"]),
                health_rate=_dec(si["health_rate"]),
                long_term_care_rate=_dec(si["long_term_care_rate"]),
                employment_rate=_dec(si["employment_rate"]),
            )

            bands = tuple(
                EarnedIncomeBand(
                    up_to=_dec(b["up_to"]) if b.get("up_to") is not None else None,
                    base=_dec(b["base"]),
                    rate=_dec(b["rate"]),
                )
                for b in payload["earned_income_deduction"]
            )

            brackets = tuple(
                sorted(
                    (
                        TaxBracket(
                            min_amount=_dec(b["min"]),
                            rate=_dec(b["rate"]),
                            quick_deduction=_dec(b.get("deduction", 0)),
                        )
                        for b in payload["income_tax_brackets"]
                    ),
                    key=lambda b: b.min_amount,
                )
            )

            ot = payload.get("overtime_multipliers", {})
            defaults = OvertimeMultipliers()
            multipliers = OvertimeMultipliers(
                weekday=_dec(ot.get("weekday", defaults.weekday)),
                weekend=_dec(ot.get("weekend", defaults.weekend)),
                holiday=_dec(ot.get("holiday", defaults.holiday)),
                night=_dec(ot.get("night", defaults.night)),
            )

            sev = payload.get("severance", {})
            severance = SeverancePolicy(
                eligibility_days=int(sev.get("eligibility_days", 365)),
                fallback_overtime_multiplier=_dec(
                    sev.get("fallback_overtime_multiplier", "1.5")
                ),
            )

            table = cls(
                effective_from=date.fromisoformat(payload["effective_from"]),
                standard_monthly_hours=_dec(payload["standard_monthly_hours"]),
                social_insurance=social_insurance,
                earned_income_bands=bands,
                income_tax_brackets=brackets,
                local_income_tax_rate=_dec(payload.get("local_income_tax_rate", "0.10")),
                overtime_multipliers=multipliers,
                severance=severance,
            )
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise RateTableError(f"Invalid rate table payload: {e!r}") from e

        table._validate()
        return table

    def _validate(self) -> None:
        if self.standard_monthly_hours <= 0:
            raise RateTableError("standard_monthly_hours must be positive")
        if not self.earned_income_bands:
            raise RateTableError("earned_income_deduction needs at least one band")
        if self.earned_income_bands[-1].up_to is not None:
            raise RateTableError("last earned_income_deduction band must be open-ended")
        limits = [b.up_to for b in self.earned_income_bands[:-1]]
        if any(limit is None for limit in limits) or limits != sorted(limits):
            raise RateTableError("earned_income_deduction bands must ascend")
        if not self.income_tax_brackets:
            raise RateTableError("income_tax_brackets must not be empty")


class RateSchedule:
    """Effective-date-keyed collection of rate tables."""

    def __init__(self, tables: Iterable[RateTable]):
        ordered = sorted(tables, key=lambda t: t.effective_from)
        dates = [t.effective_from for t in ordered]
        if len(set(dates)) != len(dates):
            raise RateTableError("Duplicate rate table effective dates")
        self._tables = ordered
        self._dates = dates

    def __len__(self) -> int:
        return len(self._tables)

    @property
    def versions(self) -> list[date]:
        return list(self._dates)

    def for_date(self, as_of_date: date) -> RateTable:
        """Get the table in force on a date (latest effective_from <= date)."""
        idx = bisect.bisect_right(self._dates, as_of_date)
        if idx == 0:
            raise RateTableNotFoundError(as_of_date)
        return self._tables[idx - 1]

    @classmethod
    def from_payloads(cls, payloads: Iterable[dict[str, Any]]) -> RateSchedule:
        return cls(RateTable.from_payload(p) for p in payloads)

    @classmethod
    def from_directory(cls, directory: str | Path) -> RateSchedule:
        """Load every ``*.json`` rate table in a directory."""
        paths = sorted(Path(directory).glob("*.json"))
        if not paths:
            raise RateTableError(f"No rate tables found in {directory}")
        return cls.from_payloads(json.loads(p.read_text(encoding="utf-8")) for p in paths)

    @classmethod
    def packaged(cls) -> RateSchedule:
        """Load the rate tables shipped with the package."""
        root = resources.files("hrhub_payroll").joinpath("data").joinpath("rate_tables")
        payloads = [
            json.loads(entry.read_text(encoding="utf-8"))
            for entry in sorted(root.iterdir(), key=lambda e: e.name)
            if entry.name.endswith(".json")
        ]
        return cls.from_payloads(payloads)


def load_rate_schedule(directory: str | Path | None = None) -> RateSchedule:
    """Load rate tables from a directory, or the packaged ones if none given."""
    if directory:
        return RateSchedule.from_directory(directory)
    return RateSchedule.packaged()

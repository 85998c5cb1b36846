"""Budgeting domain services: recurring items projected onto a calendar month."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from ..logging_config import get_logger
from ..money import ZERO, format_decimal, quantize_currency, to_decimal
from . import amortization

logger = get_logger(__name__)

INCOME = "income"
EXPENSE = "expense"
ITEM_TYPES = (INCOME, EXPENSE)

BI_WEEKLY_GAP_DAYS = 14


@dataclass(frozen=True, slots=True)
class BudgetLineItem:
    """A recurring income or expense. ``amount`` is per occurrence."""

    name: str
    type: str
    amount: Decimal
    frequency: str
    category: str = ""
    anchor_day: int | None = None
    start_date: date | None = None

    def __post_init__(self) -> None:
        if self.type not in ITEM_TYPES:
            raise ValueError(f"budget item type must be income or expense, got {self.type!r}")
        object.__setattr__(self, "amount", to_decimal(self.amount))
        if self.anchor_day is not None and not 1 <= self.anchor_day <= 31:
            raise ValueError(f"anchor_day must be within 1..31, got {self.anchor_day}")

    @property
    def sign(self) -> int:
        return 1 if self.type == INCOME else -1

    @property
    def monthly_amount(self) -> Decimal:
        return amortization.monthly_equivalent(self.amount, self.frequency)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "amount": format_decimal(quantize_currency(self.amount)),
            "category": self.category,
            "frequency": self.frequency,
            "anchor_day": self.anchor_day,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "monthly_amount": format_decimal(self.monthly_amount),
        }


@dataclass(frozen=True, slots=True)
class ProjectedEvent:
    """One dated cash-flow occurrence."""

    date: date
    name: str
    signed_amount: Decimal
    source_item: BudgetLineItem | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "name": self.name,
            "signed_amount": format_decimal(self.signed_amount),
            "type": self.source_item.type if self.source_item else None,
        }


@dataclass(frozen=True, slots=True)
class BudgetTotals:
    """Monthly-equivalent subtotals by item type."""

    total_income: Decimal
    total_expenses: Decimal

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expenses

    def to_dict(self) -> dict:
        return {
            "total_income": format_decimal(self.total_income),
            "total_expenses": format_decimal(self.total_expenses),
            "net": format_decimal(self.net),
        }


@dataclass(frozen=True, slots=True)
class MonthProjection:
    year: int
    month: int
    events: tuple[ProjectedEvent, ...]
    totals: BudgetTotals
    warnings: tuple[str, ...] = ()

    @property
    def total_income(self) -> Decimal:
        return self.totals.total_income

    @property
    def total_expenses(self) -> Decimal:
        return self.totals.total_expenses

    @property
    def net(self) -> Decimal:
        return self.totals.net

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "month": self.month,
            "events": [event.to_dict() for event in self.events],
            **self.totals.to_dict(),
            "warnings": list(self.warnings),
        }


def _expand_item(item: BudgetLineItem, *, year: int, month: int) -> list[ProjectedEvent]:
    days_in_month = calendar.monthrange(year, month)[1]
    frequency = amortization.normalize_frequency(item.frequency)
    per_occurrence = quantize_currency(item.amount) * item.sign

    if frequency == amortization.MONTHLY and item.anchor_day:
        day = min(item.anchor_day, days_in_month)
        return [ProjectedEvent(date(year, month, day), item.name, per_occurrence, item)]

    if frequency == amortization.BI_WEEKLY and item.anchor_day:
        first = min(item.anchor_day, days_in_month)
        second = min(item.anchor_day + BI_WEEKLY_GAP_DAYS, days_in_month)
        events = [ProjectedEvent(date(year, month, first), item.name, per_occurrence, item)]
        if second != first:
            events.append(
                ProjectedEvent(date(year, month, second), item.name, per_occurrence, item)
            )
        return events

    # everything else lands on day 1 as its monthly equivalent
    monthly = quantize_currency(
        amortization.monthly_equivalent_unrounded(item.amount, item.frequency)
    )
    return [ProjectedEvent(date(year, month, 1), item.name, monthly * item.sign, item)]


def monthly_totals(items: Iterable[BudgetLineItem]) -> BudgetTotals:
    """Sum monthly equivalents by type, independent of event expansion."""

    income = ZERO
    expenses = ZERO
    for item in items:
        amount = amortization.monthly_equivalent_unrounded(item.amount, item.frequency)
        if item.type == INCOME:
            income += amount
        else:
            expenses += amount
    return BudgetTotals(
        total_income=quantize_currency(income), total_expenses=quantize_currency(expenses)
    )


def project_month(items: Iterable[BudgetLineItem], *, year: int, month: int) -> MonthProjection:
    """Expand recurring items into dated events for one month.

    Monthly items with an anchor day produce one event on that day, clamped
    to the month's length. Bi-weekly items produce events on the anchor day
    and 14 days later, both clamped; the second is dropped when clamping
    makes it fall on the first. This approximates a true 14-day cycle and
    does not carry phase across months. Every other frequency, and monthly
    or bi-weekly items without an anchor, becomes one event on day 1 for the
    monthly-equivalent amount.

    Events are sorted by date; items keep their input order on the same day.
    """

    if not 1 <= month <= 12:
        raise ValueError(f"month must be within 1..12, got {month}")
    items = list(items)
    events: list[ProjectedEvent] = []
    warnings: list[str] = []
    for item in items:
        if not amortization.is_known_frequency(item.frequency):
            message = (
                f"Unknown frequency {item.frequency!r} for {item.name!r}; projected as monthly"
            )
            warnings.append(message)
            logger.warning(message, extra={"item": item.name, "frequency": item.frequency})
        events.extend(_expand_item(item, year=year, month=month))

    events.sort(key=lambda event: event.date)
    return MonthProjection(
        year=year,
        month=month,
        events=tuple(events),
        totals=monthly_totals(items),
        warnings=tuple(warnings),
    )


def reconciliation_gap(projection: MonthProjection) -> Decimal:
    """Event sum minus monthly-equivalent net.

    Non-zero when bi-weekly items show two events against a 26/12 monthly
    equivalent, or when a late anchor day suppresses the second event.
    """

    event_total = sum((event.signed_amount for event in projection.events), ZERO)
    return quantize_currency(event_total - projection.net)


def running_balance(events: Iterable[ProjectedEvent]) -> list[tuple[date, Decimal]]:
    """Return cumulative net cash flow by day."""

    daily: dict[date, Decimal] = {}
    for event in sorted(events, key=lambda e: e.date):
        daily[event.date] = daily.get(event.date, ZERO) + event.signed_amount

    running_total = ZERO
    rolling_values: list[tuple[date, Decimal]] = []
    for day in sorted(daily):
        running_total += daily[day]
        rolling_values.append((day, quantize_currency(running_total)))
    return rolling_values

"""Planning facade: load records from a source and run the calculators."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from ..logging_config import get_logger
from ..money import Number, to_decimal
from . import budgeting, debts
from .amortization import PayoffResult
from .credit import CreditAssessment, assess_credit

logger = get_logger(__name__)


class DebtSource(Protocol):
    """Anything that can hand over the current debts as planning records."""

    def debt_items(self) -> list[debts.DebtItem]:  # pragma: no cover - interface
        ...


class BudgetSource(Protocol):
    """Abstraction for fetching the budget lines that apply to a month."""

    def line_items_for_month(
        self, year: int, month: int
    ) -> list[budgeting.BudgetLineItem]:  # pragma: no cover - interface
        ...


def _first(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return default


def debt_items_from_records(records: Iterable[Mapping[str, Any]]) -> list[debts.DebtItem]:
    """Build ``DebtItem``s from plain mappings.

    ``interest_rate`` and ``type`` are accepted as aliases of
    ``annual_interest_rate_percent`` and ``kind``.
    """

    return [
        debts.DebtItem(
            name=str(record["name"]),
            balance=_first(record, "balance", default=0),
            annual_interest_rate_percent=_first(
                record, "annual_interest_rate_percent", "interest_rate", default=0
            ),
            minimum_payment=_first(record, "minimum_payment", "monthly_payment", default=0),
            kind=_first(record, "kind", "type", default="other"),
            credit_limit=record.get("credit_limit"),
        )
        for record in records
    ]


def budget_items_from_records(
    records: Iterable[Mapping[str, Any]],
) -> list[budgeting.BudgetLineItem]:
    """Build ``BudgetLineItem``s from plain mappings (``day_of_month`` aliases ``anchor_day``)."""

    items = []
    for record in records:
        start = record.get("start_date")
        anchor = _first(record, "anchor_day", "day_of_month", "day_of_month_1")
        items.append(
            budgeting.BudgetLineItem(
                name=str(record["name"]),
                type=record["type"],
                amount=record["amount"],
                frequency=record.get("frequency", "monthly"),
                category=record.get("category", ""),
                anchor_day=None if anchor is None else int(anchor),
                start_date=date.fromisoformat(start) if isinstance(start, str) else start,
            )
        )
    return items


@dataclass(slots=True)
class RecordSource:
    """In-memory source, e.g. loaded from a JSON export."""

    debt_records: list[debts.DebtItem]
    budget_records: list[budgeting.BudgetLineItem]

    def debt_items(self) -> list[debts.DebtItem]:
        return list(self.debt_records)

    def line_items_for_month(self, year: int, month: int) -> list[budgeting.BudgetLineItem]:
        return list(self.budget_records)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "RecordSource":
        return cls(
            debt_records=debt_items_from_records(payload.get("debts", [])),
            budget_records=budget_items_from_records(payload.get("budget_items", [])),
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> "RecordSource":
        with Path(path).open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        logger.info("Loaded planning records", extra={"path": str(path)})
        return cls.from_mapping(payload)


@dataclass(frozen=True, slots=True)
class DebtOverview:
    """One debt with its stand-alone payoff and, for revolving credit, its risk."""

    item: debts.DebtItem
    payoff: PayoffResult
    credit: CreditAssessment | None

    def to_dict(self) -> dict:
        return {
            **self.item.to_dict(),
            **self.payoff.to_dict(),
            "credit": self.credit.to_dict() if self.credit else None,
        }


class PlanningService:
    """Thin adapter between record sources and the pure calculators."""

    def __init__(
        self,
        *,
        debt_source: DebtSource,
        budget_source: BudgetSource | None = None,
        policy: debts.ExtraPaymentPolicy | None = None,
    ) -> None:
        self.debt_source = debt_source
        self.budget_source = budget_source
        self.policy = policy or debts.ExtraPaymentPolicy()

    def debt_overview(self) -> list[DebtOverview]:
        overview = []
        for item in self.debt_source.debt_items():
            result = item.payoff()
            if result.non_amortizing:
                logger.warning(
                    "Minimum payment never pays off debt", extra={"debt": item.name}
                )
            overview.append(
                DebtOverview(item=item, payoff=result, credit=assess_credit(item))
            )
        return overview

    def summary(self) -> debts.DebtSummary:
        return debts.summarize_debts(self.debt_source.debt_items())

    def strategies(self, *, extra_payment: Number | None = None) -> debts.StrategyComparison:
        comparison = debts.compare_strategies(
            self.debt_source.debt_items(), extra_payment=extra_payment, policy=self.policy
        )
        logger.info(
            "Compared payoff strategies",
            extra={
                "payment_budget": str(comparison.payment_budget),
                "preferred": comparison.preferred_strategy,
            },
        )
        return comparison

    def rollover(
        self, *, strategy: str, extra_payment: Number | None = None, start: date | None = None
    ) -> debts.RolloverSchedule:
        items = self.debt_source.debt_items()
        total_minimum = debts.total_minimum_payments(items)
        if extra_payment is None:
            extra = self.policy.recommend(total_minimum)
        else:
            extra = to_decimal(extra_payment)
        return debts.simulate_rollover(
            items,
            strategy=strategy,
            payment_budget=total_minimum + extra,
            start=start,
        )

    def project_month(self, *, year: int, month: int) -> budgeting.MonthProjection:
        if self.budget_source is None:
            raise ValueError("No budget source configured")
        items = self.budget_source.line_items_for_month(year, month)
        return budgeting.project_month(items, year=year, month=month)

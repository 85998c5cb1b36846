"""Debt payoff planning (snowball and avalanche)."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from ..errors import (
    InsufficientPaymentBudgetError,
    NonAmortizingPaymentError,
    UnknownStrategyError,
)
from ..logging_config import get_logger
from ..money import ZERO, Number, format_decimal, non_negative, quantize_currency, to_decimal
from . import amortization

logger = get_logger(__name__)

SNOWBALL = "snowball"
AVALANCHE = "avalanche"
STRATEGIES = (SNOWBALL, AVALANCHE)

DEBT_KINDS = (
    "credit_card",
    "personal_loan",
    "auto_loan",
    "mortgage",
    "student_loan",
    "line_of_credit",
    "other",
)


@dataclass(frozen=True, slots=True)
class DebtItem:
    """Represents a liability input for payoff projections."""

    name: str
    balance: Decimal
    annual_interest_rate_percent: Decimal
    minimum_payment: Decimal
    kind: str = "other"
    credit_limit: Decimal | None = None

    def __post_init__(self) -> None:
        # coerce once here so the math never re-parses strings or floats
        object.__setattr__(self, "balance", to_decimal(self.balance))
        object.__setattr__(
            self, "annual_interest_rate_percent", to_decimal(self.annual_interest_rate_percent)
        )
        object.__setattr__(self, "minimum_payment", to_decimal(self.minimum_payment))
        if self.credit_limit is not None:
            object.__setattr__(self, "credit_limit", to_decimal(self.credit_limit))
        if self.kind not in DEBT_KINDS:
            logger.warning("Unknown debt kind; using other", extra={"debt": self.name, "kind": self.kind})
            object.__setattr__(self, "kind", "other")

    def payoff(self, payment: Number | None = None) -> amortization.PayoffResult:
        """Stand-alone payoff at *payment* (defaults to the minimum payment)."""

        amount = self.minimum_payment if payment is None else to_decimal(payment)
        return amortization.payoff(self.balance, amount, self.annual_interest_rate_percent)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind,
            "balance": format_decimal(quantize_currency(self.balance)),
            "annual_interest_rate_percent": format_decimal(self.annual_interest_rate_percent),
            "minimum_payment": format_decimal(quantize_currency(self.minimum_payment)),
            "credit_limit": format_decimal(
                None if self.credit_limit is None else quantize_currency(self.credit_limit)
            ),
        }


@dataclass(frozen=True, slots=True)
class ExtraPaymentPolicy:
    """Advisory extra payment: ``clamp(ratio * total_minimum, floor, ceiling)``."""

    ratio: Decimal = Decimal("0.4")
    floor: Decimal = Decimal("200")
    ceiling: Decimal = Decimal("1000")

    def recommend(self, total_minimum: Number) -> Decimal:
        return recommended_extra_payment(
            total_minimum, ratio=self.ratio, floor=self.floor, ceiling=self.ceiling
        )


@dataclass(frozen=True, slots=True)
class PlanLine:
    """Payment and payoff figures for one debt inside a plan."""

    item: DebtItem
    payment: Decimal
    months_to_payoff: int | None
    total_interest: Decimal

    @property
    def non_amortizing(self) -> bool:
        return self.months_to_payoff is None

    def to_dict(self) -> dict:
        return {
            "name": self.item.name,
            "payment": format_decimal(self.payment),
            "months_to_payoff": self.months_to_payoff,
            "total_interest": format_decimal(self.total_interest),
        }


@dataclass(frozen=True, slots=True)
class StrategyPlan:
    """Ranked debts and the combined payoff horizon for one strategy."""

    strategy: str
    ordered_items: tuple[DebtItem, ...]
    lines: tuple[PlanLine, ...]
    total_months: int
    total_interest: Decimal
    payment_budget: Decimal
    savings_vs_minimum: Decimal
    undefined_items: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "ordered_items": [item.to_dict() for item in self.ordered_items],
            "lines": [line.to_dict() for line in self.lines],
            "total_months": self.total_months,
            "total_interest": format_decimal(self.total_interest),
            "payment_budget": format_decimal(self.payment_budget),
            "savings_vs_minimum": format_decimal(self.savings_vs_minimum),
            "undefined_items": list(self.undefined_items),
        }


@dataclass(frozen=True, slots=True)
class StrategyComparison:
    """Snowball and avalanche plans built against the same payment budget."""

    snowball: StrategyPlan
    avalanche: StrategyPlan
    total_minimum_payments: Decimal
    extra_payment: Decimal
    payment_budget: Decimal
    minimum_only_interest: Decimal

    @property
    def preferred_strategy(self) -> str:
        """Cheaper plan; fewer months breaks a tie, then avalanche."""

        snow = (self.snowball.total_interest, self.snowball.total_months)
        aval = (self.avalanche.total_interest, self.avalanche.total_months)
        return SNOWBALL if snow < aval else AVALANCHE

    def to_dict(self) -> dict:
        return {
            "snowball": self.snowball.to_dict(),
            "avalanche": self.avalanche.to_dict(),
            "total_minimum_payments": format_decimal(self.total_minimum_payments),
            "extra_payment": format_decimal(self.extra_payment),
            "payment_budget": format_decimal(self.payment_budget),
            "minimum_only_interest": format_decimal(self.minimum_only_interest),
            "preferred_strategy": self.preferred_strategy,
        }


def snowball_order(items: Iterable[DebtItem]) -> list[DebtItem]:
    """Smallest balance first; name breaks ties."""
    return sorted(items, key=lambda item: (item.balance, item.name))


def avalanche_order(items: Iterable[DebtItem]) -> list[DebtItem]:
    """Highest rate first; name breaks ties."""
    return sorted(items, key=lambda item: (-item.annual_interest_rate_percent, item.name))


def order_for(strategy: str, items: Iterable[DebtItem]) -> list[DebtItem]:
    if strategy == SNOWBALL:
        return snowball_order(items)
    if strategy == AVALANCHE:
        return avalanche_order(items)
    raise UnknownStrategyError(f"Invalid debt payoff strategy: {strategy!r}")


def total_minimum_payments(items: Iterable[DebtItem]) -> Decimal:
    return quantize_currency(sum((item.minimum_payment for item in items), ZERO))


def recommended_extra_payment(
    total_minimum: Number,
    *,
    ratio: Number = Decimal("0.4"),
    floor: Number = Decimal("200"),
    ceiling: Number = Decimal("1000"),
) -> Decimal:
    """Advisory extra monthly payment on top of the minimums."""

    suggested = to_decimal(ratio) * to_decimal(total_minimum)
    return quantize_currency(min(max(suggested, to_decimal(floor)), to_decimal(ceiling)))


def minimum_only_interest(items: Iterable[DebtItem]) -> Decimal:
    """Interest across all debts when each receives only its minimum.

    Debts whose minimum never amortizes are left out of the sum.
    """

    total = ZERO
    for item in items:
        result = item.payoff()
        if not result.non_amortizing:
            total += result.total_interest_paid
    return quantize_currency(total)


def build_plan(
    items: Iterable[DebtItem], *, strategy: str, payment_budget: Number
) -> StrategyPlan:
    """Rank debts for *strategy* and project each one's payoff.

    The first debt in the order that still carries a balance receives its
    minimum plus the whole surplus (``payment_budget - sum(minimums)``),
    so a cleared debt never absorbs it; every other debt receives its
    minimum. Each debt is projected independently, so ``total_months`` is the
    longest single horizon rather than a month-by-month rollover. Use
    :func:`simulate_rollover` for the waterfall alternative.
    """

    items = list(items)
    ordered = order_for(strategy, items)
    budget = quantize_currency(to_decimal(payment_budget))
    total_minimum = total_minimum_payments(items)
    if budget < total_minimum:
        raise InsufficientPaymentBudgetError(budget=budget, total_minimum=total_minimum)

    surplus = budget - total_minimum
    lines: list[PlanLine] = []
    undefined: list[str] = []
    head = next((index for index, item in enumerate(ordered) if item.balance > 0), None)
    for index, item in enumerate(ordered):
        payment = item.minimum_payment + surplus if index == head else item.minimum_payment
        result = item.payoff(payment)
        if result.non_amortizing:
            undefined.append(item.name)
            logger.warning(
                "Payment never amortizes debt",
                extra={"debt": item.name, "strategy": strategy, "payment": str(payment)},
            )
        lines.append(
            PlanLine(
                item=item,
                payment=quantize_currency(payment),
                months_to_payoff=result.months_to_payoff,
                total_interest=result.total_interest_paid,
            )
        )

    defined = [line for line in lines if not line.non_amortizing]
    total_months = max((line.months_to_payoff or 0 for line in defined), default=0)
    plan_interest = quantize_currency(sum((line.total_interest for line in defined), ZERO))
    savings = quantize_currency(non_negative(minimum_only_interest(items) - plan_interest))

    logger.debug(
        "Built payoff plan",
        extra={"strategy": strategy, "debts": len(lines), "total_months": total_months},
    )
    return StrategyPlan(
        strategy=strategy,
        ordered_items=tuple(ordered),
        lines=tuple(lines),
        total_months=total_months,
        total_interest=plan_interest,
        payment_budget=budget,
        savings_vs_minimum=savings,
        undefined_items=tuple(undefined),
    )


def compare_strategies(
    items: Iterable[DebtItem],
    *,
    extra_payment: Number | None = None,
    policy: ExtraPaymentPolicy | None = None,
) -> StrategyComparison:
    """Build snowball and avalanche plans for ``sum(minimums) + extra``.

    When *extra_payment* is omitted the policy's recommendation is used.
    """

    items = list(items)
    total_minimum = total_minimum_payments(items)
    if extra_payment is None:
        extra = (policy or ExtraPaymentPolicy()).recommend(total_minimum)
    else:
        extra = quantize_currency(non_negative(to_decimal(extra_payment)))
    budget = total_minimum + extra

    return StrategyComparison(
        snowball=build_plan(items, strategy=SNOWBALL, payment_budget=budget),
        avalanche=build_plan(items, strategy=AVALANCHE, payment_budget=budget),
        total_minimum_payments=total_minimum,
        extra_payment=extra,
        payment_budget=budget,
        minimum_only_interest=minimum_only_interest(items),
    )


# -- month-by-month rollover ----------------------------------------------------


@dataclass(frozen=True, slots=True)
class RolloverPayment:
    name: str
    payment: Decimal
    interest: Decimal
    remaining_balance: Decimal

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "payment": format_decimal(self.payment),
            "interest": format_decimal(self.interest),
            "remaining_balance": format_decimal(self.remaining_balance),
        }


@dataclass(frozen=True, slots=True)
class RolloverMonth:
    month: int
    date: date
    payments: tuple[RolloverPayment, ...]

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "date": self.date.isoformat(),
            "payments": [payment.to_dict() for payment in self.payments],
        }


@dataclass(frozen=True, slots=True)
class RolloverSchedule:
    """Waterfall projection where paid-off debts free their payment for the next one."""

    strategy: str
    rows: tuple[RolloverMonth, ...]
    total_interest: Decimal
    payoff_months: dict[str, int] = field(default_factory=dict)

    @property
    def total_months(self) -> int:
        return len(self.rows)

    @property
    def payoff_date(self) -> date | None:
        return self.rows[-1].date if self.rows else None

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "total_months": self.total_months,
            "total_interest": format_decimal(self.total_interest),
            "payoff_date": self.payoff_date.isoformat() if self.payoff_date else None,
            "payoff_months": dict(self.payoff_months),
            "rows": [row.to_dict() for row in self.rows],
        }


def _next_month(value: date) -> date:
    month = value.month + 1
    year = value.year + (month - 1) // 12
    month = ((month - 1) % 12) + 1
    return value.replace(year=year, month=month, day=1)


def _payoff_labels(ordered: Sequence[DebtItem]) -> list[str]:
    """Name each debt for ``payoff_months``; repeats become ``"Card #2"``."""

    seen: dict[str, int] = defaultdict(int)
    labels: list[str] = []
    for item in ordered:
        seen[item.name] += 1
        labels.append(item.name if seen[item.name] == 1 else f"{item.name} #{seen[item.name]}")
    return labels


def simulate_rollover(
    items: Iterable[DebtItem],
    *,
    strategy: str,
    payment_budget: Number,
    start: date | None = None,
    max_months: int = 1200,
) -> RolloverSchedule:
    """Simulate paying debts month by month with freed payments rolled forward.

    Each month every open debt receives its minimum; the surplus plus the
    minimums of debts already cleared go to the first open debt in strategy
    order, and any overpayment cascades down the order. Interest is rounded
    to cents monthly.

    Raises ``NonAmortizingPaymentError`` when total debt stops shrinking.
    """

    ordered = order_for(strategy, items)
    budget = quantize_currency(to_decimal(payment_budget))
    total_minimum = total_minimum_payments(ordered)
    if budget < total_minimum:
        raise InsufficientPaymentBudgetError(budget=budget, total_minimum=total_minimum)

    # state is positional; names only label output and may repeat
    balances = [quantize_currency(non_negative(item.balance)) for item in ordered]
    labels = _payoff_labels(ordered)
    surplus = budget - total_minimum
    # debts that start cleared free their minimum from month one
    freed_minimums = sum(
        (item.minimum_payment for item, balance in zip(ordered, balances) if balance <= 0), ZERO
    )
    total_interest = ZERO
    payoff_months: dict[str, int] = {}
    rows: list[RolloverMonth] = []
    current = (start or date.today()).replace(day=1)
    previous_total = sum(balances, ZERO)
    stagnant_periods = 0

    while any(balance > 0 for balance in balances):
        if len(rows) >= max_months:
            raise NonAmortizingPaymentError(
                balance=previous_total, payment=budget, monthly_interest=ZERO
            )
        extra_pool = surplus + freed_minimums
        month_interest = ZERO
        payments: list[RolloverPayment] = []

        for index, item in enumerate(ordered):
            balance = balances[index]
            if balance <= 0:
                continue

            rate = amortization.monthly_rate(item.annual_interest_rate_percent)
            interest = quantize_currency(balance * non_negative(rate))
            month_interest += interest
            payment = item.minimum_payment + extra_pool
            extra_pool = ZERO

            owed = balance + interest
            if payment >= owed:
                extra_pool = payment - owed
                payment = owed
                balances[index] = ZERO
                freed_minimums += item.minimum_payment
                payoff_months[labels[index]] = len(rows) + 1
            else:
                balances[index] = owed - payment

            payments.append(
                RolloverPayment(
                    name=item.name,
                    payment=quantize_currency(payment),
                    interest=interest,
                    remaining_balance=balances[index],
                )
            )

        total_interest += month_interest
        rows.append(RolloverMonth(month=len(rows) + 1, date=current, payments=tuple(payments)))

        # progress guard: total debt must keep shrinking
        remaining = sum(balances, ZERO)
        if remaining >= previous_total:
            stagnant_periods += 1
        else:
            stagnant_periods = 0
        if stagnant_periods >= 3:
            raise NonAmortizingPaymentError(
                balance=remaining, payment=budget, monthly_interest=month_interest
            )
        previous_total = remaining
        current = _next_month(current)

    return RolloverSchedule(
        strategy=strategy,
        rows=tuple(rows),
        total_interest=quantize_currency(total_interest),
        payoff_months=payoff_months,
    )


# -- portfolio summary ----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class KindBreakdown:
    count: int
    total_balance: Decimal
    total_minimum_payment: Decimal
    average_rate: Decimal

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_balance": format_decimal(self.total_balance),
            "total_minimum_payment": format_decimal(self.total_minimum_payment),
            "average_rate": format_decimal(self.average_rate),
        }


@dataclass(frozen=True, slots=True)
class DebtSummary:
    """Totals across debts with a positive balance."""

    count: int
    total_balance: Decimal
    total_minimum_payments: Decimal
    weighted_average_rate: Decimal
    highest_rate: Decimal | None
    lowest_rate: Decimal | None
    by_kind: dict[str, KindBreakdown]

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_balance": format_decimal(self.total_balance),
            "total_minimum_payments": format_decimal(self.total_minimum_payments),
            "weighted_average_rate": format_decimal(self.weighted_average_rate),
            "highest_rate": format_decimal(self.highest_rate),
            "lowest_rate": format_decimal(self.lowest_rate),
            "by_kind": {kind: value.to_dict() for kind, value in self.by_kind.items()},
        }


def _average(values: Sequence[Decimal]) -> Decimal:
    if not values:
        return ZERO
    return quantize_currency(sum(values, ZERO) / len(values))


def summarize_debts(items: Iterable[DebtItem]) -> DebtSummary:
    """Count, totals and balance-weighted average rate of open debts."""

    open_items = [item for item in items if item.balance > 0]
    total_balance = sum((item.balance for item in open_items), ZERO)
    rates = [item.annual_interest_rate_percent for item in open_items]
    weighted = ZERO
    if total_balance > 0:
        weighted = sum(
            (item.balance * item.annual_interest_rate_percent for item in open_items), ZERO
        ) / total_balance

    grouped: dict[str, list[DebtItem]] = defaultdict(list)
    for item in open_items:
        grouped[item.kind].append(item)
    by_kind = {
        kind: KindBreakdown(
            count=len(members),
            total_balance=quantize_currency(sum((m.balance for m in members), ZERO)),
            total_minimum_payment=total_minimum_payments(members),
            average_rate=_average([m.annual_interest_rate_percent for m in members]),
        )
        # largest balance first
        for kind, members in sorted(
            grouped.items(), key=lambda pair: -sum((m.balance for m in pair[1]), ZERO)
        )
    }

    return DebtSummary(
        count=len(open_items),
        total_balance=quantize_currency(total_balance),
        total_minimum_payments=total_minimum_payments(open_items),
        weighted_average_rate=quantize_currency(weighted),
        highest_rate=max(rates) if rates else None,
        lowest_rate=min(rates) if rates else None,
        by_kind=by_kind,
    )

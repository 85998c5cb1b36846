"""Tests for debt payoff planning (snowball/avalanche).

These tests verify:
- Strategy ordering and deterministic tie-breaks
- Plan construction against a payment budget
- Non-amortizing debts reported instead of failing the plan
- The advisory extra payment
- Month-by-month rollover of freed payments
- Portfolio summary by debt kind
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

import pytest

from finplan.errors import (
    InsufficientPaymentBudgetError,
    NonAmortizingPaymentError,
    UnknownStrategyError,
)
from finplan.services.debts import (
    AVALANCHE,
    SNOWBALL,
    DebtItem,
    ExtraPaymentPolicy,
    avalanche_order,
    build_plan,
    compare_strategies,
    minimum_only_interest,
    order_for,
    recommended_extra_payment,
    simulate_rollover,
    snowball_order,
    summarize_debts,
    total_minimum_payments,
)
from finplan.services.planning import debt_items_from_records


def _names(items):
    return [item.name for item in items]


@pytest.fixture
def three_debts(three_debt_records):
    return debt_items_from_records(three_debt_records)


@pytest.fixture
def diverging_debts():
    """A cheap small loan and an expensive large card: the strategies disagree."""
    return [
        DebtItem(name="Low", balance="1000", annual_interest_rate_percent="5", minimum_payment="50"),
        DebtItem(name="High", balance="3000", annual_interest_rate_percent="22", minimum_payment="90"),
    ]


class TestDebtItem:
    def test_coerces_to_decimal(self):
        item = DebtItem(name="Card", balance=1234.56, annual_interest_rate_percent="19.9", minimum_payment=35)

        assert item.balance == Decimal("1234.56")
        assert item.annual_interest_rate_percent == Decimal("19.9")
        assert item.minimum_payment == Decimal("35")

    def test_unknown_kind_becomes_other(self, caplog):
        with caplog.at_level(logging.WARNING, logger="finplan"):
            item = DebtItem(name="X", balance=1, annual_interest_rate_percent=0, minimum_payment=1, kind="pawn")

        assert item.kind == "other"
        assert "Unknown debt kind" in caplog.text
        assert caplog.records[-1].kind == "pawn"

    def test_known_kind_does_not_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="finplan"):
            DebtItem(name="X", balance=1, annual_interest_rate_percent=0, minimum_payment=1, kind="mortgage")

        assert caplog.records == []

    def test_to_dict_rounds_currency_to_cents(self):
        item = DebtItem(
            name="Card",
            balance="1234.567",
            annual_interest_rate_percent="19.99",
            minimum_payment="35.5",
            credit_limit=1000,
        )
        payload = item.to_dict()

        assert payload["balance"] == "1234.57"
        assert payload["minimum_payment"] == "35.50"
        assert payload["credit_limit"] == "1000.00"
        assert payload["annual_interest_rate_percent"] == "19.99"
        assert item.balance == Decimal("1234.567")

    def test_payoff_defaults_to_minimum(self):
        item = DebtItem(name="X", balance=5000, annual_interest_rate_percent=18, minimum_payment=150)
        assert item.payoff().months_to_payoff == 47
        assert item.payoff(200).months_to_payoff == 32


class TestOrdering:
    def test_strategy_orders(self, three_debts):
        assert _names(avalanche_order(three_debts)) == ["Card", "Loan", "Car"]
        assert _names(snowball_order(three_debts)) == ["Card", "Loan", "Car"]

    def test_ties_break_by_name(self):
        items = [
            DebtItem(name="Zeta", balance=500, annual_interest_rate_percent=10, minimum_payment=20),
            DebtItem(name="Alpha", balance=500, annual_interest_rate_percent=10, minimum_payment=20),
        ]
        assert _names(snowball_order(items)) == ["Alpha", "Zeta"]
        assert _names(avalanche_order(items)) == ["Alpha", "Zeta"]

    def test_ordering_does_not_mutate_input(self, three_debts):
        original = list(three_debts)
        snowball_order(three_debts)
        assert three_debts == original

    def test_unknown_strategy(self, three_debts):
        with pytest.raises(UnknownStrategyError):
            order_for("tsunami", three_debts)
        with pytest.raises(ValueError):
            build_plan(three_debts, strategy="tsunami", payment_budget=1000)


class TestBuildPlan:
    def test_head_receives_surplus(self, three_debts):
        plan = build_plan(three_debts, strategy=AVALANCHE, payment_budget=225)

        head, *rest = plan.lines
        assert head.item.name == "Card"
        assert head.payment == Decimal("125.00")
        assert head.months_to_payoff == 5
        assert head.total_interest == Decimal("125.00")
        assert [line.payment for line in rest] == [Decimal("40.00"), Decimal("60.00")]

    def test_cleared_debt_does_not_absorb_surplus(self):
        items = [
            DebtItem(name="Paid", balance=0, annual_interest_rate_percent=0, minimum_payment=25),
            DebtItem(name="Card", balance=2000, annual_interest_rate_percent=20, minimum_payment=50),
        ]
        plan = build_plan(items, strategy=SNOWBALL, payment_budget=275)

        paid, card = plan.lines
        assert paid.item.name == "Paid"
        assert paid.payment == Decimal("25.00")
        assert paid.months_to_payoff == 0
        assert card.payment == Decimal("275.00")
        assert card.months_to_payoff == 8
        assert card.total_interest == Decimal("200.00")
        assert plan.total_months == 8
        assert plan.savings_vs_minimum == Decimal("1150.00")

    def test_totals(self, three_debts):
        plan = build_plan(three_debts, strategy=SNOWBALL, payment_budget=225)

        assert plan.total_months == max(line.months_to_payoff for line in plan.lines)
        assert plan.total_interest == sum(line.total_interest for line in plan.lines)
        assert plan.payment_budget == Decimal("225.00")
        assert plan.undefined_items == ()

    def test_savings_against_minimum_only(self, three_debts):
        plan = build_plan(three_debts, strategy=AVALANCHE, payment_budget=225)
        expected = minimum_only_interest(three_debts) - plan.total_interest

        assert plan.savings_vs_minimum == expected
        assert plan.savings_vs_minimum > 0

    def test_budget_below_minimums(self, three_debts):
        with pytest.raises(InsufficientPaymentBudgetError) as excinfo:
            build_plan(three_debts, strategy=SNOWBALL, payment_budget=100)
        assert excinfo.value.total_minimum == Decimal("125.00")

    def test_empty_input(self):
        plan = build_plan([], strategy=SNOWBALL, payment_budget=0)

        assert plan.lines == ()
        assert plan.total_months == 0
        assert plan.total_interest == Decimal("0.00")
        assert plan.savings_vs_minimum == Decimal("0.00")

    def test_non_amortizing_debt_is_reported(self):
        items = [
            DebtItem(name="Small", balance=100, annual_interest_rate_percent=0, minimum_payment=50),
            DebtItem(name="Big", balance=5000, annual_interest_rate_percent=24, minimum_payment=10),
        ]
        plan = build_plan(items, strategy=SNOWBALL, payment_budget=60)

        assert plan.undefined_items == ("Big",)
        assert plan.total_months == 2
        assert plan.total_interest == Decimal("0.00")
        assert plan.lines[1].non_amortizing

    def test_to_dict_is_plain(self, three_debts):
        payload = build_plan(three_debts, strategy=SNOWBALL, payment_budget=225).to_dict()

        assert payload["strategy"] == "snowball"
        assert payload["payment_budget"] == "225.00"
        assert [entry["name"] for entry in payload["ordered_items"]] == ["Card", "Loan", "Car"]


class TestCompareStrategies:
    def test_avalanche_cheaper_when_orders_diverge(self, diverging_debts):
        comparison = compare_strategies(diverging_debts, extra_payment=200)

        assert comparison.total_minimum_payments == Decimal("140.00")
        assert comparison.payment_budget == Decimal("340.00")
        assert _names(comparison.snowball.ordered_items) == ["Low", "High"]
        assert _names(comparison.avalanche.ordered_items) == ["High", "Low"]
        assert comparison.avalanche.total_interest == Decimal("530.00")
        assert comparison.avalanche.total_interest <= comparison.snowball.total_interest
        assert comparison.preferred_strategy == AVALANCHE

    def test_recommended_extra_used_by_default(self, three_debts):
        comparison = compare_strategies(three_debts)

        assert comparison.extra_payment == Decimal("200.00")
        assert comparison.payment_budget == Decimal("325.00")

    def test_custom_policy(self, three_debts):
        policy = ExtraPaymentPolicy(ratio=Decimal("1"), floor=Decimal("0"), ceiling=Decimal("50"))
        assert compare_strategies(three_debts, policy=policy).extra_payment == Decimal("50.00")

    def test_negative_extra_is_ignored(self, three_debts):
        assert compare_strategies(three_debts, extra_payment=-10).extra_payment == Decimal("0.00")


class TestRecommendedExtra:
    @pytest.mark.parametrize(
        "total_minimum, expected",
        [(300, "200.00"), (1000, "400.00"), (5000, "1000.00"), (0, "200.00")],
    )
    def test_clamped_ratio(self, total_minimum, expected):
        assert recommended_extra_payment(total_minimum) == Decimal(expected)

    def test_total_minimums(self, three_debts):
        assert total_minimum_payments(three_debts) == Decimal("125.00")


class TestRollover:
    def test_single_debt_matches_schedule(self):
        item = DebtItem(name="Loan", balance=1000, annual_interest_rate_percent=12, minimum_payment=100)
        schedule = simulate_rollover([item], strategy=SNOWBALL, payment_budget=100, start=date(2024, 1, 15))

        assert schedule.total_months == 11
        assert schedule.payoff_months == {"Loan": 11}
        assert schedule.rows[0].date == date(2024, 1, 1)
        assert schedule.payoff_date == date(2024, 11, 1)
        assert schedule.rows[0].payments[0].interest == Decimal("10.00")

    def test_freed_minimum_rolls_to_next_debt(self):
        items = [
            DebtItem(name="A", balance=100, annual_interest_rate_percent=0, minimum_payment=50),
            DebtItem(name="B", balance=1000, annual_interest_rate_percent=0, minimum_payment=50),
        ]
        schedule = simulate_rollover(items, strategy=SNOWBALL, payment_budget=100, start=date(2024, 1, 1))

        assert schedule.payoff_months == {"A": 2, "B": 11}
        third = schedule.rows[2].payments
        assert [(p.name, p.payment) for p in third] == [("B", Decimal("100.00"))]
        assert schedule.total_interest == Decimal("0.00")

    def test_zero_balance_frees_minimum_from_start(self):
        items = [
            DebtItem(name="Done", balance=0, annual_interest_rate_percent=0, minimum_payment=50),
            DebtItem(name="B", balance=1000, annual_interest_rate_percent=0, minimum_payment=50),
        ]
        schedule = simulate_rollover(items, strategy=AVALANCHE, payment_budget=100, start=date(2024, 1, 1))

        assert schedule.total_months == 10
        assert "Done" not in schedule.payoff_months

    def test_duplicate_names_keep_separate_balances(self):
        items = [
            DebtItem(name="Card", balance=1000, annual_interest_rate_percent=20, minimum_payment=50),
            DebtItem(name="Card", balance=3000, annual_interest_rate_percent=10, minimum_payment=100),
        ]
        schedule = simulate_rollover(items, strategy=AVALANCHE, payment_budget=150, start=date(2024, 1, 1))

        first = schedule.rows[0].payments
        assert [(p.name, p.payment, p.interest, p.remaining_balance) for p in first] == [
            ("Card", Decimal("50.00"), Decimal("16.67"), Decimal("966.67")),
            ("Card", Decimal("100.00"), Decimal("25.00"), Decimal("2925.00")),
        ]
        assert set(schedule.payoff_months) == {"Card", "Card #2"}
        assert schedule.payoff_months["Card"] < schedule.payoff_months["Card #2"] == schedule.total_months

    def test_year_boundary(self):
        item = DebtItem(name="X", balance=300, annual_interest_rate_percent=0, minimum_payment=100)
        schedule = simulate_rollover([item], strategy=SNOWBALL, payment_budget=100, start=date(2024, 11, 3))

        assert [row.date for row in schedule.rows] == [
            date(2024, 11, 1),
            date(2024, 12, 1),
            date(2025, 1, 1),
        ]

    def test_growing_balance_raises(self):
        item = DebtItem(name="Big", balance=5000, annual_interest_rate_percent=24, minimum_payment=10)

        with pytest.raises(NonAmortizingPaymentError):
            simulate_rollover([item], strategy=SNOWBALL, payment_budget=10, start=date(2024, 1, 1))

    def test_budget_below_minimums(self, three_debts):
        with pytest.raises(InsufficientPaymentBudgetError):
            simulate_rollover(three_debts, strategy=SNOWBALL, payment_budget=50)

    def test_empty_input(self):
        schedule = simulate_rollover([], strategy=AVALANCHE, payment_budget=0)

        assert schedule.rows == ()
        assert schedule.payoff_date is None


class TestSummary:
    def test_summary_by_kind(self):
        items = [
            DebtItem(name="A", balance=1000, annual_interest_rate_percent=20, minimum_payment=30, kind="credit_card"),
            DebtItem(name="B", balance=3000, annual_interest_rate_percent=10, minimum_payment=90, kind="credit_card"),
            DebtItem(name="C", balance=6000, annual_interest_rate_percent=5, minimum_payment=200, kind="auto_loan"),
            DebtItem(name="D", balance=0, annual_interest_rate_percent=30, minimum_payment=25, kind="credit_card"),
        ]
        summary = summarize_debts(items)

        assert summary.count == 3
        assert summary.total_balance == Decimal("10000.00")
        assert summary.total_minimum_payments == Decimal("320.00")
        assert summary.weighted_average_rate == Decimal("8.00")
        assert summary.highest_rate == Decimal("20")
        assert summary.lowest_rate == Decimal("5")
        assert list(summary.by_kind) == ["auto_loan", "credit_card"]
        assert summary.by_kind["credit_card"].average_rate == Decimal("15.00")

    def test_empty_summary(self):
        summary = summarize_debts([])

        assert summary.count == 0
        assert summary.highest_rate is None
        assert summary.to_dict()["by_kind"] == {}

"""Named error conditions raised by the planning core."""

from __future__ import annotations

from decimal import Decimal


class FinPlanError(Exception):
    """Base exception for the planning core."""


class NonAmortizingPaymentError(FinPlanError):
    """The payment never covers the interest, so the balance never reaches zero."""

    def __init__(
        self,
        *,
        balance: Decimal,
        payment: Decimal,
        monthly_interest: Decimal,
        name: str | None = None,
    ) -> None:
        self.balance = balance
        self.payment = payment
        self.monthly_interest = monthly_interest
        self.name = name
        label = f"{name!r}: " if name else ""
        super().__init__(
            f"{label}payment {payment} does not cover first-month interest "
            f"{monthly_interest} on balance {balance}"
        )


class InsufficientPaymentBudgetError(FinPlanError):
    """Monthly payment budget is below the sum of minimum payments."""

    def __init__(self, *, budget: Decimal, total_minimum: Decimal) -> None:
        self.budget = budget
        self.total_minimum = total_minimum
        super().__init__(
            f"payment budget {budget} is below the total minimum payments {total_minimum}"
        )


class UnknownStrategyError(FinPlanError, ValueError):
    """Requested payoff strategy is not snowball or avalanche."""

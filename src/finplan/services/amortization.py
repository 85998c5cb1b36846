"""Amortization math for constant-payment, constant-rate monthly debts."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal, localcontext

from ..errors import NonAmortizingPaymentError
from ..logging_config import get_logger
from ..money import ZERO, Number, format_decimal, non_negative, quantize_currency, to_decimal

logger = get_logger(__name__)

WEEKLY = "weekly"
BI_WEEKLY = "bi-weekly"
SEMI_MONTHLY = "semi-monthly"
MONTHLY = "monthly"
QUARTERLY = "quarterly"
YEARLY = "yearly"

# (multiplier, divisor) pairs so the conversion stays exact until the final rounding
_FREQUENCY_FACTORS: dict[str, tuple[int, int]] = {
    WEEKLY: (52, 12),
    BI_WEEKLY: (26, 12),
    SEMI_MONTHLY: (2, 1),
    MONTHLY: (1, 1),
    QUARTERLY: (1, 3),
    YEARLY: (1, 12),
}

FREQUENCIES = tuple(_FREQUENCY_FACTORS)

_MONTHS_TOLERANCE = Decimal("1e-9")


@dataclass(frozen=True, slots=True)
class PayoffResult:
    """Months and interest needed to clear one balance at a fixed payment."""

    months_to_payoff: int | None
    total_interest_paid: Decimal
    payment: Decimal
    non_amortizing: bool = False

    def to_dict(self) -> dict:
        return {
            "months_to_payoff": self.months_to_payoff,
            "total_interest_paid": format_decimal(self.total_interest_paid),
            "payment": format_decimal(self.payment),
            "non_amortizing": self.non_amortizing,
        }


@dataclass(frozen=True, slots=True)
class ScheduleRow:
    """Single month in an amortization schedule."""

    month: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    remaining_balance: Decimal

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "payment": format_decimal(self.payment),
            "principal": format_decimal(self.principal),
            "interest": format_decimal(self.interest),
            "remaining_balance": format_decimal(self.remaining_balance),
        }


def monthly_rate(annual_rate_percent: Number) -> Decimal:
    """Convert an annual percentage rate to a monthly fraction."""

    return to_decimal(annual_rate_percent) / 100 / 12


def normalize_frequency(frequency: str | None) -> str:
    return (frequency or "").strip().lower().replace("_", "-")


def is_known_frequency(frequency: str | None) -> bool:
    return normalize_frequency(frequency) in _FREQUENCY_FACTORS


def monthly_equivalent_unrounded(amount: Number, frequency: str | None) -> Decimal:
    """Monthly equivalent before cent rounding; unknown frequencies pass through."""

    amount = to_decimal(amount)
    factors = _FREQUENCY_FACTORS.get(normalize_frequency(frequency))
    if factors is None:
        return amount
    multiplier, divisor = factors
    return amount * multiplier / divisor


def monthly_equivalent(amount: Number, frequency: str | None) -> Decimal:
    """Normalize a per-occurrence amount to its monthly equivalent.

    Unknown frequencies are returned unchanged and logged as a data-quality
    warning; they never raise.
    """

    if not is_known_frequency(frequency):
        logger.warning(
            "Unknown frequency; treating amount as monthly",
            extra={"frequency": frequency, "amount": str(amount)},
        )
    return quantize_currency(monthly_equivalent_unrounded(amount, frequency))


def months_to_payoff(balance: Number, payment: Number, annual_rate_percent: Number) -> int:
    """Return the number of monthly payments needed to clear *balance*.

    Raises ``NonAmortizingPaymentError`` when the payment does not exceed the
    first month's interest.
    """

    balance = to_decimal(balance)
    payment = to_decimal(payment)
    if balance <= 0 or payment <= 0:
        return 0

    rate = non_negative(monthly_rate(annual_rate_percent))
    if rate == 0:
        return int((balance / payment).to_integral_value(rounding=ROUND_CEILING))

    monthly_interest = balance * rate
    if payment <= monthly_interest:
        raise NonAmortizingPaymentError(
            balance=balance,
            payment=payment,
            monthly_interest=quantize_currency(monthly_interest),
        )

    with localcontext() as ctx:
        ctx.prec = 28
        months = -(1 - monthly_interest / payment).ln() / (1 + rate).ln()
        # trim log noise so an exact count such as 12 never ceils to 13
        months = months.quantize(_MONTHS_TOLERANCE)
    return int(months.to_integral_value(rounding=ROUND_CEILING))


def total_interest(balance: Number, payment: Number, annual_rate_percent: Number) -> Decimal:
    """Interest paid over the payoff horizon, floored at zero."""

    balance = to_decimal(balance)
    payment = to_decimal(payment)
    if balance <= 0 or payment <= 0 or to_decimal(annual_rate_percent) <= 0:
        return quantize_currency(ZERO)
    months = months_to_payoff(balance, payment, annual_rate_percent)
    return quantize_currency(non_negative(months * payment - balance))


def payoff(balance: Number, payment: Number, annual_rate_percent: Number) -> PayoffResult:
    """Return months and interest, or the undefined sentinel for a non-amortizing payment."""

    payment = to_decimal(payment)
    try:
        months = months_to_payoff(balance, payment, annual_rate_percent)
        interest = total_interest(balance, payment, annual_rate_percent)
    except NonAmortizingPaymentError:
        return PayoffResult(
            months_to_payoff=None,
            total_interest_paid=quantize_currency(ZERO),
            payment=quantize_currency(payment),
            non_amortizing=True,
        )
    return PayoffResult(
        months_to_payoff=months,
        total_interest_paid=interest,
        payment=quantize_currency(payment),
    )


def level_payment(principal: Number, annual_rate_percent: Number, term_months: int) -> Decimal:
    """Monthly payment that retires *principal* in exactly *term_months* payments."""

    principal = to_decimal(principal)
    if term_months <= 0:
        raise ValueError("term_months must be positive")
    if principal <= 0:
        return quantize_currency(ZERO)
    rate = non_negative(monthly_rate(annual_rate_percent))
    if rate == 0:
        return quantize_currency(principal / term_months)
    growth = (1 + rate) ** term_months
    return quantize_currency(principal * rate * growth / (growth - 1))


def amortization_schedule(
    balance: Number,
    payment: Number,
    annual_rate_percent: Number,
    *,
    max_months: int = 600,
) -> list[ScheduleRow]:
    """Month-by-month breakdown of a fixed payment against one balance.

    Interest is rounded to cents each month. The last row pays only what is
    left. The schedule is cut at *max_months* rows.
    """

    balance = quantize_currency(to_decimal(balance))
    payment = quantize_currency(to_decimal(payment))
    if balance <= 0 or payment <= 0:
        return []

    rate = non_negative(monthly_rate(annual_rate_percent))
    first_interest = quantize_currency(balance * rate)
    if rate > 0 and payment <= first_interest:
        raise NonAmortizingPaymentError(
            balance=balance, payment=payment, monthly_interest=first_interest
        )

    rows: list[ScheduleRow] = []
    month = 0
    while balance > 0 and month < max_months:
        month += 1
        interest = quantize_currency(balance * rate)
        paid = min(payment, balance + interest)
        principal = paid - interest
        balance = balance - principal
        rows.append(
            ScheduleRow(
                month=month,
                payment=paid,
                principal=principal,
                interest=interest,
                remaining_balance=balance,
            )
        )
    return rows

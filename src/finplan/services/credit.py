"""Credit utilization and risk classification for revolving products."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..money import Number, format_decimal, quantize_currency, to_decimal
from .debts import DebtItem

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

HIGH_UTILIZATION_PERCENT = Decimal("80")
MEDIUM_UTILIZATION_PERCENT = Decimal("50")


@dataclass(frozen=True, slots=True)
class CreditAssessment:
    utilization_percent: Decimal
    risk_level: str
    available_credit: Decimal

    def to_dict(self) -> dict:
        return {
            "utilization_percent": format_decimal(self.utilization_percent),
            "risk_level": self.risk_level,
            "available_credit": format_decimal(self.available_credit),
        }


def _raw_utilization(balance: Decimal, credit_limit: Decimal | None) -> Decimal | None:
    if credit_limit is None or credit_limit <= 0:
        return None
    return balance / credit_limit * 100


def utilization_percent(balance: Number, credit_limit: Number | None) -> Decimal | None:
    """Balance as a percentage of the limit, one decimal place.

    Returns ``None`` when there is no positive limit.
    """

    limit = None if credit_limit is None else to_decimal(credit_limit)
    raw = _raw_utilization(to_decimal(balance), limit)
    if raw is None:
        return None
    return raw.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def classify_utilization(percent: Number) -> str:
    percent = to_decimal(percent)
    if percent > HIGH_UTILIZATION_PERCENT:
        return HIGH
    if percent > MEDIUM_UTILIZATION_PERCENT:
        return MEDIUM
    return LOW


def assess_credit(item: DebtItem) -> CreditAssessment | None:
    """Utilization, risk level and available credit, or ``None`` when unclassified."""

    raw = _raw_utilization(item.balance, item.credit_limit)
    if raw is None:
        return None
    # risk uses the unrounded ratio
    return CreditAssessment(
        utilization_percent=raw.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP),
        risk_level=classify_utilization(raw),
        available_credit=quantize_currency(item.credit_limit - item.balance),
    )

"""Debt and credit product entities."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..money import to_decimal
from ..services.debts import DebtItem


class Debt(SQLModel, table=True):
    """Installment or revolving debt as stored; converted to ``DebtItem`` for planning."""

    __tablename__: ClassVar[str] = "debt"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=255, index=True)
    kind: str = Field(default="other", max_length=32)
    balance: float = Field(default=0.0, nullable=False, ge=0)
    interest_rate: float = Field(default=0.0, nullable=False, ge=0, le=100)
    minimum_payment: float = Field(nullable=False, gt=0)
    credit_limit: Optional[float] = Field(default=None)
    due_day: int = Field(default=1, ge=1, le=31)
    opened_on: Optional[date] = Field(default=None)
    priority: str = Field(default="medium", max_length=16)
    notes: str = Field(default="", max_length=500)

    def to_debt_item(self) -> DebtItem:
        return DebtItem(
            name=self.name,
            balance=to_decimal(self.balance),
            annual_interest_rate_percent=to_decimal(self.interest_rate),
            minimum_payment=to_decimal(self.minimum_payment),
            kind=self.kind,
            credit_limit=None if self.credit_limit is None else to_decimal(self.credit_limit),
        )

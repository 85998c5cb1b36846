"""Budgeting tables."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..money import to_decimal
from ..services.budgeting import BudgetLineItem


class Budget(SQLModel, table=True):
    """A time-boxed budget grouping recurring items."""

    __tablename__: ClassVar[str] = "budget"

    id: Optional[int] = Field(default=None, primary_key=True)
    label: str = Field(default="", max_length=64)
    period_start: date = Field(index=True, nullable=False)
    period_end: date = Field(index=True, nullable=False)

    items: list["BudgetItem"] = Relationship(
        back_populates="budget",
        sa_relationship=relationship("BudgetItem", back_populates="budget"),
    )


class BudgetItem(SQLModel, table=True):
    """Recurring income or expense line; ``amount`` is per occurrence."""

    __tablename__: ClassVar[str] = "budget_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    budget_id: int = Field(foreign_key="budget.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=255)
    type: str = Field(nullable=False, max_length=16)
    amount: float = Field(nullable=False, gt=0)
    category: str = Field(default="", max_length=100)
    frequency: str = Field(default="monthly", max_length=32)
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    start_date: Optional[date] = Field(default=None)

    budget: "Budget" = Relationship(
        back_populates="items",
        sa_relationship=relationship("Budget", back_populates="items"),
    )

    def to_budget_line_item(self) -> BudgetLineItem:
        return BudgetLineItem(
            name=self.name,
            type=self.type,
            amount=to_decimal(self.amount),
            frequency=self.frequency,
            category=self.category,
            anchor_day=self.day_of_month,
            start_date=self.start_date,
        )

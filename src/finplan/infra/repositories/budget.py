"""SQLModel implementation of the budget repository."""

from __future__ import annotations

import calendar
from datetime import date
from typing import Optional

from sqlmodel import select

from ...models.budget import Budget, BudgetItem
from ...services.budgeting import BudgetLineItem
from ..database import SessionFactory


class SQLModelBudgetRepository:
    """SQLModel-based budget repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, budget_id: int) -> Optional[Budget]:
        with self.session_factory() as session:
            return session.get(Budget, budget_id)

    def get_for_month(self, year: int, month: int) -> Optional[Budget]:
        """Budget whose period overlaps the given month, earliest start first."""
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        with self.session_factory() as session:
            statement = (
                select(Budget)
                .where(Budget.period_start <= last, Budget.period_end >= first)
                .order_by(Budget.period_start)  # type: ignore[arg-type]
            )
            return session.exec(statement).first()

    def list_all(self) -> list[Budget]:
        with self.session_factory() as session:
            statement = select(Budget).order_by(Budget.period_start)  # type: ignore[arg-type]
            return list(session.exec(statement).all())

    def create(self, budget: Budget) -> Budget:
        with self.session_factory() as session:
            session.add(budget)
            session.commit()
            session.refresh(budget)
            return budget

    def create_item(self, item: BudgetItem) -> BudgetItem:
        with self.session_factory() as session:
            session.add(item)
            session.commit()
            session.refresh(item)
            return item

    def get_items_for_budget(self, budget_id: int) -> list[BudgetItem]:
        with self.session_factory() as session:
            statement = (
                select(BudgetItem)
                .where(BudgetItem.budget_id == budget_id)
                .order_by(BudgetItem.id)  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    def delete_item(self, item_id: int) -> None:
        with self.session_factory() as session:
            item = session.get(BudgetItem, item_id)
            if item:
                session.delete(item)
                session.commit()

    def line_items(self, budget_id: int) -> list[BudgetLineItem]:
        """Budget items as projection records, in insertion order."""
        return [item.to_budget_line_item() for item in self.get_items_for_budget(budget_id)]

    def line_items_for_month(self, year: int, month: int) -> list[BudgetLineItem]:
        budget = self.get_for_month(year, month)
        if budget is None or budget.id is None:
            return []
        return self.line_items(budget.id)

"""SQLModel implementation of the debt repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.debt import Debt
from ...services.debts import DebtItem
from ..database import SessionFactory


class SQLModelDebtRepository:
    """SQLModel-based debt repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, debt_id: int) -> Optional[Debt]:
        with self.session_factory() as session:
            return session.get(Debt, debt_id)

    def list_all(self) -> list[Debt]:
        with self.session_factory() as session:
            statement = select(Debt).order_by(Debt.name)  # type: ignore[arg-type]
            return list(session.exec(statement).all())

    def list_active(self) -> list[Debt]:
        """List debts with non-zero balances."""
        with self.session_factory() as session:
            statement = (
                select(Debt)
                .where(Debt.balance > 0)
                .order_by(Debt.name)  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    def create(self, debt: Debt) -> Debt:
        with self.session_factory() as session:
            session.add(debt)
            session.commit()
            session.refresh(debt)
            return debt

    def delete(self, debt_id: int) -> None:
        with self.session_factory() as session:
            debt = session.get(Debt, debt_id)
            if debt:
                session.delete(debt)
                session.commit()

    def debt_items(self) -> list[DebtItem]:
        """Active debts as planning records."""
        return [debt.to_debt_item() for debt in self.list_active()]

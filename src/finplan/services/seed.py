"""Demo data seeding."""

from __future__ import annotations

from calendar import monthrange
from datetime import date

from sqlmodel import Session, select

from ..infra.database import SessionFactory
from ..logging_config import get_logger
from ..models import Budget, BudgetItem, Debt

logger = get_logger(__name__)

DEMO_DEBTS = [
    # revolving
    {"name": "Visa Card", "kind": "credit_card", "balance": 2340.67, "interest_rate": 24.99,
     "minimum_payment": 75.0, "credit_limit": 5000.0, "due_day": 15},
    {"name": "Store Card", "kind": "credit_card", "balance": 567.89, "interest_rate": 26.99,
     "minimum_payment": 25.0, "credit_limit": 600.0, "due_day": 22},
    # installment
    {"name": "Auto Loan", "kind": "auto_loan", "balance": 18750.00, "interest_rate": 5.49,
     "minimum_payment": 385.0, "due_day": 1},
    {"name": "Personal Loan", "kind": "personal_loan", "balance": 4500.00, "interest_rate": 9.99,
     "minimum_payment": 150.0, "due_day": 10},
    {"name": "Medical Plan", "kind": "other", "balance": 1200.00, "interest_rate": 0.0,
     "minimum_payment": 100.0, "due_day": 20},
]

DEMO_BUDGET_ITEMS = [
    {"name": "Salary", "type": "income", "amount": 2100.0, "category": "salary",
     "frequency": "bi-weekly", "day_of_month": 5},
    {"name": "Rent", "type": "expense", "amount": 1200.0, "category": "housing",
     "frequency": "monthly", "day_of_month": 1},
    {"name": "Utilities", "type": "expense", "amount": 140.0, "category": "utilities",
     "frequency": "monthly", "day_of_month": 18},
    {"name": "Groceries", "type": "expense", "amount": 95.0, "category": "food",
     "frequency": "weekly"},
    {"name": "Car Insurance", "type": "expense", "amount": 540.0, "category": "insurance",
     "frequency": "quarterly"},
]


def _seed_debts(session: Session) -> list[Debt]:
    debts: list[Debt] = []
    for spec in DEMO_DEBTS:
        existing = session.exec(select(Debt).where(Debt.name == spec["name"])).one_or_none()
        if existing is None:
            existing = Debt(**spec)
            session.add(existing)
        else:
            existing.balance = spec["balance"]
            existing.interest_rate = spec["interest_rate"]
            existing.minimum_payment = spec["minimum_payment"]
        debts.append(existing)
    session.flush()
    return debts


def _seed_budget(session: Session, today: date) -> int:
    first_of_month = today.replace(day=1)
    end_of_month = today.replace(day=monthrange(today.year, today.month)[1])

    budget = session.exec(
        select(Budget).where(
            Budget.period_start == first_of_month, Budget.period_end == end_of_month
        )
    ).one_or_none()
    if budget is None:
        budget = Budget(
            period_start=first_of_month,
            period_end=end_of_month,
            label=f"{today.strftime('%B %Y')} Budget",
        )
        session.add(budget)
        session.flush()

    existing = session.exec(select(BudgetItem).where(BudgetItem.budget_id == budget.id)).all()
    if existing:
        return len(existing)
    session.add_all(BudgetItem(budget_id=budget.id, **spec) for spec in DEMO_BUDGET_ITEMS)
    session.flush()
    return len(DEMO_BUDGET_ITEMS)


def seed_demo_data(session_factory: SessionFactory, *, today: date | None = None) -> dict[str, int]:
    """Seed demo debts and a budget for the month of ``today``; safe to re-run."""

    today = today or date.today()
    with session_factory() as session:
        debts = _seed_debts(session)
        item_count = _seed_budget(session, today)
    logger.info("Demo data seeded", extra={"debts": len(debts), "budget_items": item_count})
    return {"debts": len(debts), "budget_items": item_count}

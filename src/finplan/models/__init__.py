"""SQLModel table exports."""

from .budget import Budget, BudgetItem
from .debt import Debt

__all__ = [
    "Budget",
    "BudgetItem",
    "Debt",
]

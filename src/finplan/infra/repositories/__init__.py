"""Concrete repository implementations using SQLModel."""

from .budget import SQLModelBudgetRepository
from .debt import SQLModelDebtRepository

__all__ = [
    "SQLModelBudgetRepository",
    "SQLModelDebtRepository",
]

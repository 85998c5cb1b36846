"""Service module exports."""

from . import amortization, budgeting, credit, debts, planning

__all__ = [
    "amortization",
    "budgeting",
    "credit",
    "debts",
    "planning",
]

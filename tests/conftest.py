"""Pytest configuration and shared fixtures for FinPlan tests.

This module provides database fixtures, test data factories, and helper utilities
for testing the calculators, repositories, and services without touching a real
data directory.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

from finplan.infra.database import create_session_factory

# Import all models to ensure they're registered with SQLModel metadata
from finplan.models import Budget, BudgetItem, Debt


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path, monkeypatch):
    """Keep config-created directories and log files inside the test's tmp dir."""
    monkeypatch.setenv("FINPLAN_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("FINPLAN_DATABASE_URL", raising=False)
    monkeypatch.delenv("FINPLAN_LOG_LEVEL", raising=False)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers that ``setup_logging`` attached during a test."""
    yield
    logger = logging.getLogger("finplan")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to the test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one repositories receive in production."""
    return create_session_factory(db_engine)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def debt_factory(session_factory):
    """Factory for creating persisted debts.

    Returns:
        Callable: Function that creates and persists Debt instances
    """

    def _create_debt(
        name: str = "Test Debt",
        balance: float = 1000.00,
        interest_rate: float = 18.0,
        minimum_payment: float = 25.00,
        kind: str = "credit_card",
        credit_limit: float | None = None,
    ) -> Debt:
        debt = Debt(
            name=name,
            balance=balance,
            interest_rate=interest_rate,
            minimum_payment=minimum_payment,
            kind=kind,
            credit_limit=credit_limit,
        )
        with session_factory() as session:
            session.add(debt)
            session.flush()
            session.refresh(debt)
        return debt

    return _create_debt


@pytest.fixture
def budget_factory(session_factory):
    """Factory for creating a budget period with its recurring items.

    Returns:
        Callable: Function taking the period and a list of item dicts
    """

    def _create_budget(
        period_start: date = date(2024, 3, 1),
        period_end: date = date(2024, 3, 31),
        items: list[dict] | None = None,
        label: str = "Test Budget",
    ) -> Budget:
        with session_factory() as session:
            budget = Budget(label=label, period_start=period_start, period_end=period_end)
            session.add(budget)
            session.flush()
            for spec in items or []:
                session.add(BudgetItem(budget_id=budget.id, **spec))
            session.flush()
            session.refresh(budget)
        return budget

    return _create_budget


@pytest.fixture
def three_debt_records() -> list[dict]:
    """Three debts whose snowball and avalanche orders coincide."""
    return [
        {"name": "Card", "balance": "500", "annual_interest_rate_percent": "25", "minimum_payment": "25"},
        {"name": "Car", "balance": "2000", "annual_interest_rate_percent": "5", "minimum_payment": "60"},
        {"name": "Loan", "balance": "1000", "annual_interest_rate_percent": "15", "minimum_payment": "40"},
    ]


# =============================================================================
# Test Utilities
# =============================================================================


def assert_decimal_equal(actual, expected, places: int = 2):
    """Assert two amounts are equal after rounding to *places* decimals.

    Args:
        actual: Actual value (Decimal, str, int or float)
        expected: Expected value
        places: Number of decimal places to compare
    """
    quantum = Decimal(1).scaleb(-places)
    actual_q = Decimal(str(actual)).quantize(quantum)
    expected_q = Decimal(str(expected)).quantize(quantum)
    assert actual_q == expected_q, f"Expected {expected_q}, got {actual_q}"

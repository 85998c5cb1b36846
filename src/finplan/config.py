"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from .money import to_decimal

if TYPE_CHECKING:  # pragma: no cover
    from .services.debts import ExtraPaymentPolicy

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_decimal(name: str, default: str) -> Decimal:
    return to_decimal(os.getenv(name), default=Decimal(default))


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "FinPlan"
    DB_FILENAME = "finplan.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self) -> None:
        self.DEV_MODE = _env_bool("FINPLAN_DEV_MODE", default=True)
        self.LOG_LEVEL = os.getenv("FINPLAN_LOG_LEVEL", "INFO").upper()
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("FINPLAN_DATABASE_URL", self._build_sqlite_url())
        # advisory extra payment: clamp(ratio * total minimums, floor, ceiling)
        self.EXTRA_PAYMENT_RATIO = _env_decimal("FINPLAN_EXTRA_RATIO", "0.4")
        self.EXTRA_PAYMENT_FLOOR = _env_decimal("FINPLAN_EXTRA_FLOOR", "200")
        self.EXTRA_PAYMENT_CEILING = _env_decimal("FINPLAN_EXTRA_CEILING", "1000")
        if self.EXTRA_PAYMENT_FLOOR > self.EXTRA_PAYMENT_CEILING:
            raise ValueError("FINPLAN_EXTRA_FLOOR must not exceed FINPLAN_EXTRA_CEILING.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("FINPLAN_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {}

    def extra_payment_policy(self) -> "ExtraPaymentPolicy":
        """Recommended-extra-payment settings for the payoff planner."""

        from .services.debts import ExtraPaymentPolicy

        return ExtraPaymentPolicy(
            ratio=self.EXTRA_PAYMENT_RATIO,
            floor=self.EXTRA_PAYMENT_FLOOR,
            ceiling=self.EXTRA_PAYMENT_CEILING,
        )


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """In-memory database for tests."""

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"

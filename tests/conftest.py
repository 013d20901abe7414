"""
Pytest fixtures for the bookkeeping test suite.

Provides:
- Structured logging configured for every test, plus ``captured_logs``
- A fresh in-memory SQLite database and session per test
- Catalog and entry builders for the engine tests
"""

import json
import logging
from collections.abc import Generator
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from bookkeeping_engines.catalog import Catalog
from bookkeeping_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from bookkeeping_kernel.domain.model import (
    BonusClaim,
    BusinessSnapshot,
    DailyEntry,
    Employee,
    PaySnapshot,
    Role,
    Service,
)
from bookkeeping_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture bookkeeping logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            aggregate_day(...)
            logs = captured_logs()
            assert any(r["message"] == "BOOKKEEPING_ENGINE_TRACE" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("bookkeeping")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Fresh in-memory SQLite engine with all tables created."""
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield engine
    reset_engine()


@pytest.fixture(scope="function")
def session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session on a private in-memory database."""
    sess = get_session()
    yield sess
    sess.close()


# =============================================================================
# Catalog fixtures
# =============================================================================

HAIRCUT = Service("svc-cut", "Potong Rambut", Decimal("50000"))
SHAVE = Service("svc-shave", "Cukur Jenggot", Decimal("25000"))
COLOR = Service("svc-color", "Semir", Decimal("100000"))
WASH = Service("svc-wash", "Keramas", Decimal("10000"), bonusable=True)
MASSAGE = Service("svc-massage", "Pijat", Decimal("15000"), bonusable=True)

OWNER = Employee("emp-owner", "Bagus", Role.OWNER)
BUDI = Employee("emp-budi", "Budi", Role.KARYAWAN)
SITI = Employee("emp-siti", "Siti", Role.KARYAWAN)


@pytest.fixture
def services() -> tuple[Service, ...]:
    return (HAIRCUT, SHAVE, COLOR, WASH, MASSAGE)


@pytest.fixture
def employees() -> tuple[Employee, ...]:
    return (OWNER, BUDI, SITI)


@pytest.fixture
def catalog(services, employees) -> Catalog:
    return Catalog(services, employees)


@pytest.fixture
def make_entry():
    """Factory fixture for DailyEntry values.

    ``bonus`` maps (main_id, bonus_id) to a quantity; listed claims are
    enabled unless named in ``disabled``.
    """

    def _make(
        date: str = "2024-05-14",
        employee_id: str = BUDI.id,
        services: dict | None = None,
        bonus: dict | None = None,
        disabled: tuple = (),
        cached: PaySnapshot | None = None,
    ) -> DailyEntry:
        claims = tuple(
            BonusClaim(main_id, bonus_id, (main_id, bonus_id) not in disabled, quantity)
            for (main_id, bonus_id), quantity in (bonus or {}).items()
        )
        return DailyEntry(
            date=date,
            employee_id=employee_id,
            service_quantities=dict(services or {}),
            bonus_claims=claims,
            cached=cached,
        )

    return _make


@pytest.fixture
def make_snapshot(services, employees):
    """Factory fixture for a BusinessSnapshot over the standard catalog."""

    def _make(entries=(), transactions=(), product_sales=(), overrides=(), **kwargs):
        return BusinessSnapshot(
            business_name=kwargs.pop("business_name", "Nekat Mbois"),
            services=kwargs.pop("services", services),
            employees=kwargs.pop("employees", employees),
            daily_records={e.key: e for e in entries},
            transactions={t.id: t for t in transactions},
            product_sales={s.id: s for s in product_sales},
            overrides=tuple(overrides),
            **kwargs,
        )

    return _make

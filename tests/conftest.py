# tests/conftest.py
# ---------------------------------------------------------------------
# - Every test gets a fresh in-memory SQLite database (StaticPool keeps
#   the single connection alive for the whole test)
# - Seed rows are committed so both services and the HTTP client see them
# - The HTTP client shares the test session through a get_db override
# - Rate limiting is switched off except where a test turns it on
# ---------------------------------------------------------------------
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from battery_ledger.core.config import settings
from battery_ledger.core.database import get_db, init_db
from battery_ledger.main import app
from battery_ledger.models import Customer, Supplier, BatteryType


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


# ---------- Seed data ----------
@pytest.fixture
def supplier(db):
    supplier = Supplier(supplier_code="S001", name="Abu Salem Scrap", phone="0501000001")
    db.add(supplier)
    db.commit()
    return supplier


@pytest.fixture
def other_supplier(db):
    supplier = Supplier(supplier_code="S002", name="Eastern Recycling", phone="0501000002")
    db.add(supplier)
    db.commit()
    return supplier


@pytest.fixture
def customer(db):
    customer = Customer(customer_code="C001", name="Gulf Smelting", phone="0552000001")
    db.add(customer)
    db.commit()
    return customer


@pytest.fixture
def battery_types(db):
    car = BatteryType(name="Car battery", unit_price=Decimal("3.50"), current_qty=Decimal("0"))
    truck = BatteryType(name="Truck battery", unit_price=Decimal("4.00"), current_qty=Decimal("0"))
    db.add_all([car, truck])
    db.commit()
    return car, truck


@pytest.fixture
def today():
    return date(2024, 5, 20)


# ---------- HTTP ----------
@pytest.fixture
def client(db, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)

    def override_get_db():
        try:
            yield db
        finally:
            # Mirrors closing the request session: uncommitted work is discarded
            db.rollback()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()

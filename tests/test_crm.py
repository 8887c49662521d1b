from datetime import date, timedelta
from decimal import Decimal

import pytest

from battery_ledger.core.messages import MessageError
from battery_ledger.schemas import (
    CustomerCreate, CustomerUpdate, SupplierCreate, PurchaseCreate, SaleCreate, TransactionItemCreate,
    DailyPurchaseCreate
)
from battery_ledger.services.crm_service import CustomerService, SupplierService
from battery_ledger.services.daily_purchase_service import DailyPurchaseService
from battery_ledger.services.purchase_service import PurchaseService
from battery_ledger.services.sales_service import SalesService


def test_codes_are_sequential(db, customer, supplier):
    """New counterparties take the next code after the highest existing one."""
    new_customer = CustomerService(db).create(CustomerCreate(name="Al Noor Foundry"))
    new_supplier = SupplierService(db).create(SupplierCreate(name="Workshop 7"))

    assert new_customer.customer_code == "C002"
    assert new_supplier.supplier_code == "S002"
    assert CustomerService(db).get_next_code() == "C003"


def test_first_code_starts_at_one(db):
    """An empty table starts numbering at 001."""
    assert SupplierService(db).get_next_code() == "S001"


@pytest.mark.parametrize("code, key", [("X12", "invalid_code"), ("C001", "code_exists")])
def test_explicit_code_is_validated(db, customer, code, key):
    """Typed codes must match the prefix pattern and be unused."""
    with pytest.raises(MessageError) as exc:
        CustomerService(db).create(CustomerCreate(name="Dup", customer_code=code))

    assert exc.value.key == key


def test_search_and_paginate(db):
    """Search matches name, phone and code; pagination reports totals."""
    service = CustomerService(db)
    for index in range(12):
        service.create(CustomerCreate(name=f"Buyer {index}", phone=f"05500000{index:02d}"))
    service.create(CustomerCreate(name="Smelter Co", phone="0599999999"))

    page = service.get_all(page=2, limit=5)
    assert page["pagination"] == {"page": 2, "limit": 5, "total": 13, "total_pages": 3}
    assert len(page["data"]) == 5

    assert service.get_all(search="Smelter")["pagination"]["total"] == 1
    assert service.get_all(search="0599")["pagination"]["total"] == 1
    assert service.get_all(search="C013")["data"][0].name == "Smelter Co"


def test_update_changes_only_given_fields(db, customer):
    """Fields left out of the update keep their values."""
    CustomerService(db).update(customer.id, CustomerUpdate(notes="Pays monthly"))

    assert customer.notes == "Pays monthly"
    assert customer.phone == "0552000001"


def test_block_requires_reason_and_unblock_clears_it(db, supplier):
    """Blocking records a reason; unblocking removes it."""
    service = SupplierService(db)

    with pytest.raises(MessageError) as exc:
        service.block(supplier.id, "  ")
    assert exc.value.key == "block_reason_required"

    service.block(supplier.id, "Disputed weights")
    assert supplier.is_blocked is True
    assert supplier.block_reason == "Disputed weights"
    assert service.get_all(blocked=True)["pagination"]["total"] == 1

    service.unblock(supplier.id)
    assert supplier.is_blocked is False
    assert supplier.block_reason is None


def test_delete_refused_while_transactions_exist(db, customer, battery_types):
    """A customer with sales cannot be deleted."""
    car, _ = battery_types
    SalesService(db).create(SaleCreate(
        date=date(2024, 5, 1), customer_id=customer.id,
        items=[TransactionItemCreate(battery_type_id=car.id, quantity=Decimal("1"), price_per_kg=Decimal("1"))]
    ))

    with pytest.raises(MessageError) as exc:
        CustomerService(db).delete(customer.id)

    assert exc.value.key == "customer_has_sales"


def test_delete_without_transactions(db, supplier):
    """A supplier with no history is hard deleted."""
    service = SupplierService(db)

    assert service.delete(supplier.id) is True
    assert service.get_by_id(supplier.id) is None
    assert service.delete(supplier.id) is False


def test_last_transactions_are_two_distinct_battery_types(db, supplier, battery_types):
    """The preview shows the latest line of the two most recent battery types."""
    car, truck = battery_types
    purchases = PurchaseService(db)
    for day, battery_type, price in [
        (date(2024, 5, 1), car, "9"),
        (date(2024, 5, 2), truck, "11"),
        (date(2024, 5, 3), car, "10"),
    ]:
        purchases.create(PurchaseCreate(
            date=day, supplier_id=supplier.id,
            items=[TransactionItemCreate(battery_type_id=battery_type.id, quantity=Decimal("2"), price_per_kg=Decimal(price))]
        ))

    preview = SupplierService(db).get_last_transactions(supplier.id)

    assert [(row["battery_type"], row["price"]) for row in preview] == [
        ("Car battery", Decimal("10")),
        ("Truck battery", Decimal("11")),
    ]


def test_last_transactions_include_daily_purchases(db, supplier, battery_types):
    """Quick-entry rows for a linked supplier appear in the preview."""
    DailyPurchaseService(db).create(DailyPurchaseCreate(
        date=date(2024, 6, 1), supplier_id=supplier.id, battery_type="Truck battery",
        quantity=Decimal("3"), price_per_kg=Decimal("4")
    ))

    preview = SupplierService(db).get_last_transactions(supplier.id)

    assert preview[0]["battery_type"] == "Truck battery"
    assert preview[0]["total"] == Decimal("12")


def test_follow_up_flags_stale_and_silent_counterparties(db, customer, battery_types, today):
    """Customers idle beyond the window are listed; those never seen report 999 days."""
    car, _ = battery_types
    service = CustomerService(db)
    recent = service.create(CustomerCreate(name="Recent buyer"))
    SalesService(db).create(SaleCreate(
        date=today - timedelta(days=3), customer_id=recent.id,
        items=[TransactionItemCreate(battery_type_id=car.id, quantity=Decimal("1"), price_per_kg=Decimal("1"))]
    ))
    stale = service.create(CustomerCreate(name="Stale buyer"))
    SalesService(db).create(SaleCreate(
        date=today - timedelta(days=45), customer_id=stale.id,
        items=[TransactionItemCreate(battery_type_id=car.id, quantity=Decimal("1"), price_per_kg=Decimal("1"))]
    ))
    service.mark_message_sent(stale.id, today=today - timedelta(days=2))

    rows = service.get_follow_up(today=today, days=30)

    assert [row["name"] for row in rows] == [customer.name, "Stale buyer"]
    assert rows[0]["days_since_last_transaction"] == 999
    assert rows[1]["days_since_last_transaction"] == 45
    assert rows[1]["days_since_last_message"] == 2
    assert rows[1]["message_sent"] is True


def test_blocked_counterparties_are_not_followed_up(db, supplier, today):
    """Blocked suppliers drop out of the follow-up list."""
    service = SupplierService(db)
    service.block(supplier.id, "Closed")

    assert service.get_follow_up(today=today) == []


def test_mark_message_sent_stamps_today(db, customer, today):
    """Marking a message stores the flag and the date."""
    CustomerService(db).mark_message_sent(customer.id, today=today)

    assert customer.message_sent is True
    assert customer.last_message_sent == today

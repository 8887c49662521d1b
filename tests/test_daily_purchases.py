from datetime import date
from decimal import Decimal

import pytest

from battery_ledger.core.messages import MessageError
from battery_ledger.models import DailyPurchase
from battery_ledger.schemas import DailyPurchaseCreate, DailyPurchaseUpdate
from battery_ledger.services.daily_purchase_service import DailyPurchaseService, line_totals

DAY = date(2024, 5, 20)


def _entry(**fields):
    values = {
        "date": DAY,
        "supplier_name": "Walk-in seller",
        "battery_type": "Car battery",
        "quantity": Decimal("10"),
        "price_per_kg": Decimal("3.5"),
    }
    values.update(fields)
    return DailyPurchaseCreate(**values)


def test_row_total_is_rounded_before_discount():
    """3 kg at 3.35 is 10.05, rounded to 10, then the discount applies."""
    total, final_total = line_totals(Decimal("3"), Decimal("3.35"), Decimal("2"))

    assert total == Decimal("10")
    assert final_total == Decimal("8")


def test_save_links_supplier_and_receives_stock(db, supplier, battery_types):
    """A row for a known supplier updates stock and the supplier totals using the final total."""
    car, _ = battery_types

    entry = DailyPurchaseService(db).create(_entry(
        supplier_id=supplier.id, supplier_name=None, discount=Decimal("5"), payment_method="check"
    ))

    assert entry.supplier_name == supplier.name
    assert entry.supplier_code == "S001"
    assert entry.total == Decimal("35")
    assert entry.final_total == Decimal("30")
    assert car.current_qty == Decimal("10")
    assert supplier.total_purchases == Decimal("10")
    assert supplier.total_amount == Decimal("30")
    assert supplier.balance == Decimal("30")
    assert supplier.last_purchase == DAY


def test_supplier_resolves_by_code(db, supplier, battery_types):
    """Typing the supplier code is enough to link the row."""
    entry = DailyPurchaseService(db).create(_entry(supplier_code="S001"))

    assert entry.supplier_id == supplier.id


def test_unlinked_row_still_moves_stock(db, battery_types):
    """A walk-in seller without a supplier record only changes inventory."""
    car, _ = battery_types

    entry = DailyPurchaseService(db).create(_entry())

    assert entry.supplier_id is None
    assert car.current_qty == Decimal("10")


@pytest.mark.parametrize("fields, key", [
    ({"supplier_name": None}, "required_fields"),
    ({"quantity": None}, "required_fields"),
    ({"quantity": Decimal("0")}, "quantity_positive"),
    ({"price_per_kg": Decimal("0")}, "price_positive"),
    ({"discount": Decimal("-1")}, "discount_not_negative"),
    ({"battery_type": "Unknown alloy"}, "unknown_battery_type"),
])
def test_invalid_rows_are_rejected(db, battery_types, fields, key):
    """Rows missing required values or with bad amounts are refused without a write."""
    car, _ = battery_types

    with pytest.raises(MessageError) as exc:
        DailyPurchaseService(db).create(_entry(**fields))

    assert exc.value.key == key
    assert db.query(DailyPurchase).count() == 0
    assert car.current_qty == 0


def test_save_then_delete_round_trips(db, supplier, battery_types):
    """Deleting a saved row restores stock and supplier figures exactly."""
    car, _ = battery_types
    service = DailyPurchaseService(db)

    entry = service.create(_entry(supplier_id=supplier.id, payment_method="check"))
    assert service.delete(entry.id) is True

    assert car.current_qty == 0
    assert supplier.total_purchases == 0
    assert supplier.total_amount == 0
    assert supplier.balance == 0
    assert supplier.last_purchase is None


def test_update_recomputes_stock_and_supplier(db, supplier, battery_types):
    """Editing quantity and battery type re-applies stock and recomputes the supplier."""
    car, truck = battery_types
    service = DailyPurchaseService(db)
    entry = service.create(_entry(supplier_id=supplier.id))

    service.update(entry.id, DailyPurchaseUpdate(battery_type_id=truck.id, quantity=Decimal("4")))

    assert car.current_qty == 0
    assert truck.current_qty == Decimal("4")
    assert entry.battery_type == "Truck battery"
    assert entry.total == Decimal("14")
    assert supplier.total_purchases == Decimal("4")
    assert supplier.total_amount == Decimal("14")


def test_list_is_in_entry_order_for_the_day(db, battery_types):
    """Only the requested day's rows come back, oldest first."""
    service = DailyPurchaseService(db)
    first = service.create(_entry(supplier_name="First"))
    second = service.create(_entry(supplier_name="Second"))
    service.create(_entry(supplier_name="Yesterday", date=date(2024, 5, 19)))

    rows = service.get_by_date(DAY)

    assert [row.id for row in rows] == [first.id, second.id]


def test_clear_day_reverts_everything(db, supplier, battery_types):
    """Clearing a day removes its rows, their stock and their supplier totals."""
    car, _ = battery_types
    service = DailyPurchaseService(db)
    service.create(_entry(supplier_id=supplier.id))
    service.create(_entry(supplier_id=supplier.id, quantity=Decimal("6")))
    service.create(_entry(date=date(2024, 5, 21)))

    assert service.clear_day(DAY) == 2

    assert car.current_qty == Decimal("10")
    assert supplier.total_purchases == 0
    assert db.query(DailyPurchase).count() == 1


def test_summary_totals_the_day(db, battery_types):
    """The summary adds quantities, totals and discounts for the day."""
    service = DailyPurchaseService(db)
    service.create(_entry(quantity=Decimal("10"), price_per_kg=Decimal("2"), discount=Decimal("1")))
    service.create(_entry(quantity=Decimal("5"), price_per_kg=Decimal("4")))

    summary = service.get_summary(DAY)

    assert summary["count"] == 2
    assert summary["total_quantity"] == Decimal("15")
    assert summary["total"] == Decimal("40")
    assert summary["total_discount"] == Decimal("1")
    assert summary["final_total"] == Decimal("39")

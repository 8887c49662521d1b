from datetime import date
from decimal import Decimal

import pytest

from battery_ledger.core.messages import MessageError
from battery_ledger.schemas import (
    VoucherCreate, VoucherUpdate, VoucherItemCreate, PurchaseCreate, SaleCreate, TransactionItemCreate
)
from battery_ledger.services.crm_service import CustomerService, SupplierService
from battery_ledger.services.purchase_service import PurchaseService
from battery_ledger.services.sales_service import SalesService
from battery_ledger.services.voucher_service import VoucherService


def _voucher(entity_type, entity_id, voucher_type="payment", **fields):
    values = {
        "date": date(2024, 5, 10),
        "type": voucher_type,
        "entity_type": entity_type,
        "entity_id": entity_id,
    }
    values.update(fields)
    return VoucherCreate(**values)


def test_items_drive_voucher_totals(db, supplier):
    """Line VAT is a percentage of each amount and the voucher amount equals the grand total."""
    voucher = VoucherService(db).create(_voucher("supplier", supplier.id, items=[
        VoucherItemCreate(description="Scrap lot", amount=Decimal("100"), vat=Decimal("15")),
        VoucherItemCreate(description="Transport", amount=Decimal("50")),
    ]))

    assert voucher.voucher_number == "V001"
    assert voucher.subtotal == Decimal("150")
    assert voucher.total_vat == Decimal("15")
    assert voucher.total == Decimal("165")
    assert voucher.amount == Decimal("165")
    assert voucher.items[0].vat_amount == Decimal("15")
    assert voucher.items[0].total_amount == Decimal("115")
    assert voucher.entity_name == supplier.name


def test_plain_amount_voucher(db, customer):
    """Without items the given amount is the total."""
    voucher = VoucherService(db).create(_voucher(
        "customer", customer.id, "receipt", amount=Decimal("80"), payment_method="transfer"
    ))

    assert voucher.total == Decimal("80")
    assert voucher.total_vat == 0
    assert voucher.payment_method == "bank_transfer"


def test_voucher_numbers_are_sequential(db, customer):
    """Numbers run V001, V002 and so on."""
    service = VoucherService(db)
    service.create(_voucher("customer", customer.id, amount=Decimal("1")))
    service.create(_voucher("customer", customer.id, amount=Decimal("1")))

    assert service.get_next_number() == "V003"


def test_voucher_requires_positive_amount(db, customer):
    """A voucher with no items and no amount is refused."""
    with pytest.raises(MessageError) as exc:
        VoucherService(db).create(_voucher("customer", customer.id))

    assert exc.value.key == "amount_positive"


def test_voucher_requires_existing_counterparty(db):
    """The referenced customer or supplier must exist."""
    with pytest.raises(MessageError) as exc:
        VoucherService(db).create(_voucher("supplier", 404, amount=Decimal("10")))

    assert exc.value.key == "unknown_entity"


def test_update_replaces_items(db, supplier):
    """New items replace the old ones and the totals follow."""
    service = VoucherService(db)
    voucher = service.create(_voucher("supplier", supplier.id, amount=Decimal("10")))

    service.update(voucher.id, VoucherUpdate(items=[
        VoucherItemCreate(description="Balance payment", amount=Decimal("40"), vat=Decimal("5"))
    ]))

    assert len(voucher.items) == 1
    assert voucher.total == Decimal("42")


def test_list_filters_by_type_and_search(db, supplier, customer):
    """Type 'all' disables the filter; search matches the counterparty name."""
    service = VoucherService(db)
    service.create(_voucher("supplier", supplier.id, "payment", amount=Decimal("5")))
    service.create(_voucher("customer", customer.id, "receipt", amount=Decimal("7")))

    assert service.get_all(voucher_type="all")["pagination"]["total"] == 2
    assert service.get_all(voucher_type="receipt")["pagination"]["total"] == 1
    assert service.get_all(search="Gulf")["data"][0].entity_type == "customer"

    with pytest.raises(MessageError):
        service.get_all(voucher_type="refund")


def test_vouchers_leave_stored_balance_alone(db, supplier, battery_types):
    """A payment voucher lowers the statement's net balance but not the stored balance."""
    car, _ = battery_types
    PurchaseService(db).create(PurchaseCreate(
        date=date(2024, 5, 1), supplier_id=supplier.id, payment_method="check",
        items=[TransactionItemCreate(battery_type_id=car.id, quantity=Decimal("50"), price_per_kg=Decimal("10"))]
    ))
    VoucherService(db).create(_voucher("supplier", supplier.id, "payment", amount=Decimal("200")))

    statement = SupplierService(db).get_statement(supplier.id)

    assert supplier.balance == Decimal("500")
    assert statement["balance"] == Decimal("500")
    assert statement["net_balance"] == Decimal("300")
    assert [line["kind"] for line in statement["lines"]] == ["purchase", "voucher"]
    assert statement["lines"][-1]["running_balance"] == Decimal("300")


def test_customer_receipt_reduces_net_balance(db, customer, battery_types):
    """Money received from a customer is subtracted from what they owe."""
    car, _ = battery_types
    SalesService(db).create(SaleCreate(
        date=date(2024, 5, 1), customer_id=customer.id, payment_method="check",
        items=[TransactionItemCreate(battery_type_id=car.id, quantity=Decimal("10"), price_per_kg=Decimal("12"))]
    ))
    VoucherService(db).create(_voucher("customer", customer.id, "receipt", amount=Decimal("20")))

    statement = CustomerService(db).get_statement(customer.id)

    assert statement["net_balance"] == Decimal("100")

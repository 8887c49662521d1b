"""
Purchases Service - Supplier invoices with inventory and ledger reconciliation
"""
from typing import Optional, List, Iterable
from sqlalchemy.orm import Session, joinedload
from decimal import Decimal
from datetime import date
from enum import Enum
import logging

from battery_ledger.core.messages import MessageError
from battery_ledger.models import Purchase, PurchaseItem, Supplier, BatteryType
from battery_ledger.schemas import PurchaseCreate, PurchaseUpdate, TransactionItemCreate
from battery_ledger.services.inventory_service import BatteryTypeService
from battery_ledger.services.ledger_service import LedgerService, normalize_payment_method

logger = logging.getLogger(__name__)


def build_line_totals(db: Session, items: List[TransactionItemCreate]) -> List[dict]:
    """Validate line items and compute their totals before anything is written"""
    if not items:
        raise MessageError("items_required")

    lines = []
    for item in items:
        if item.quantity is None or item.quantity <= 0:
            raise MessageError("quantity_positive")
        if item.price_per_kg is None or item.price_per_kg < 0:
            raise MessageError("price_not_negative")
        battery_type = db.query(BatteryType).filter(BatteryType.id == item.battery_type_id).first()
        if not battery_type:
            raise MessageError("unknown_battery_type", value=item.battery_type_id)
        lines.append({
            "battery_type_id": battery_type.id,
            "quantity": item.quantity,
            "price_per_kg": item.price_per_kg,
            "total": item.quantity * item.price_per_kg,
        })
    return lines


def invoice_total(subtotal: Decimal, discount: Decimal, tax: Decimal, total: Optional[Decimal] = None) -> Decimal:
    if total is not None:
        return total
    return subtotal - (discount or Decimal("0")) + (tax or Decimal("0"))


def next_invoice_number(invoice_numbers: Iterable[Optional[str]], prefix: str) -> str:
    """Highest numeric suffix under the prefix plus one; free-form numbers are ignored"""
    suffixes = [
        int(number[len(prefix):])
        for number in invoice_numbers
        if number and number.startswith(prefix) and number[len(prefix):].isdigit()
    ]
    return f"{prefix}{(max(suffixes) if suffixes else 0) + 1:05d}"


def totals_affected(update_data: dict, items_replaced: bool) -> bool:
    """An edit only reprices the invoice when lines, discount or tax change"""
    return items_replaced or any(update_data.get(key) is not None for key in ("discount", "tax"))


# Columns an update leaves alone when the request sends them as null
NON_NULLABLE_FIELDS = ("invoice_number", "date", "discount", "tax", "status")


class PurchaseService:
    NUMBER_PREFIX = "PUR-"

    def __init__(self, db: Session):
        self.db = db
        self.inventory = BatteryTypeService(db)
        self.ledger = LedgerService(db)

    def get_by_id(self, purchase_id: int) -> Optional[Purchase]:
        return self.db.query(Purchase).options(
            joinedload(Purchase.items).joinedload(PurchaseItem.battery_type),
            joinedload(Purchase.supplier)
        ).filter(Purchase.id == purchase_id).first()

    def get_all(
        self,
        supplier_id: int = None,
        start_date: date = None,
        end_date: date = None,
        payment_method: str = None
    ) -> List[Purchase]:
        query = self.db.query(Purchase).options(joinedload(Purchase.supplier))
        if supplier_id:
            query = query.filter(Purchase.supplier_id == supplier_id)
        if start_date:
            query = query.filter(Purchase.date >= start_date)
        if end_date:
            query = query.filter(Purchase.date <= end_date)
        if payment_method:
            query = query.filter(Purchase.payment_method == payment_method)
        return query.order_by(Purchase.date.desc(), Purchase.id.desc()).all()

    def get_next_number(self) -> str:
        numbers = self.db.query(Purchase.invoice_number).filter(
            Purchase.invoice_number.like(f"{self.NUMBER_PREFIX}%")
        ).all()
        return next_invoice_number((row[0] for row in numbers), self.NUMBER_PREFIX)

    def _get_supplier(self, supplier_id: int) -> Supplier:
        supplier = self.db.query(Supplier).filter(Supplier.id == supplier_id).first()
        if not supplier:
            raise MessageError("unknown_supplier", value=supplier_id)
        return supplier

    def _apply_inventory(self, purchase: Purchase, sign: int):
        for item in purchase.items:
            self.inventory.adjust_quantity(item.battery_type_id, sign * item.quantity)

    def create(self, purchase_data: PurchaseCreate) -> Purchase:
        supplier = self._get_supplier(purchase_data.supplier_id)
        payment_method = normalize_payment_method(purchase_data.payment_method)
        if purchase_data.discount < 0:
            raise MessageError("discount_not_negative")
        lines = build_line_totals(self.db, purchase_data.items)

        subtotal = sum((line["total"] for line in lines), Decimal("0"))
        purchase = Purchase(
            invoice_number=purchase_data.invoice_number or self.get_next_number(),
            date=purchase_data.date,
            supplier_id=supplier.id,
            subtotal=subtotal,
            discount=purchase_data.discount,
            tax=purchase_data.tax,
            total=invoice_total(subtotal, purchase_data.discount, purchase_data.tax, purchase_data.total),
            payment_method=payment_method,
            status=purchase_data.status.value,
            notes=purchase_data.notes
        )
        self.db.add(purchase)
        self.db.flush()

        for line in lines:
            purchase.items.append(PurchaseItem(purchase_id=purchase.id, **line))
        self.db.flush()

        # Stock comes in
        self._apply_inventory(purchase, 1)
        self.ledger.recompute_supplier(supplier.id)

        logger.info(f"Purchase {purchase.invoice_number} created for supplier {supplier.supplier_code}")
        return purchase

    def update(self, purchase_id: int, purchase_data: PurchaseUpdate) -> Optional[Purchase]:
        purchase = self.get_by_id(purchase_id)
        if not purchase:
            return None

        update_data = purchase_data.model_dump(exclude_unset=True)
        new_items = update_data.pop("items", None)
        explicit_total = update_data.pop("total", None)

        # Validate everything before touching stock
        if update_data.get("supplier_id") is not None:
            self._get_supplier(update_data["supplier_id"])
        if "payment_method" in update_data:
            update_data["payment_method"] = normalize_payment_method(update_data["payment_method"])
        if update_data.get("discount") is not None and update_data["discount"] < 0:
            raise MessageError("discount_not_negative")
        lines = build_line_totals(self.db, purchase_data.items) if new_items is not None else None

        previous_supplier_id = purchase.supplier_id
        self._apply_inventory(purchase, -1)

        for key, value in update_data.items():
            if value is None and (key in NON_NULLABLE_FIELDS or key == "supplier_id"):
                continue
            if isinstance(value, Enum):
                value = value.value
            setattr(purchase, key, value)

        if lines is not None:
            purchase.items.clear()
            self.db.flush()
            for line in lines:
                purchase.items.append(PurchaseItem(purchase_id=purchase.id, **line))
        self.db.flush()

        if lines is not None:
            purchase.subtotal = sum((item.total for item in purchase.items), Decimal("0"))
        if explicit_total is not None:
            purchase.total = explicit_total
        elif totals_affected(update_data, lines is not None):
            purchase.total = invoice_total(purchase.subtotal, purchase.discount, purchase.tax)

        self._apply_inventory(purchase, 1)
        self.ledger.recompute_supplier(purchase.supplier_id)
        if previous_supplier_id != purchase.supplier_id:
            self.ledger.recompute_supplier(previous_supplier_id)

        logger.info(f"Purchase {purchase.invoice_number} updated")
        return purchase

    def delete(self, purchase_id: int) -> bool:
        purchase = self.get_by_id(purchase_id)
        if not purchase:
            return False

        supplier_id = purchase.supplier_id
        invoice_number = purchase.invoice_number

        # Stock goes back out
        self._apply_inventory(purchase, -1)
        self.db.delete(purchase)
        self.db.flush()

        self.ledger.recompute_supplier(supplier_id)

        logger.info(f"Purchase {invoice_number} deleted")
        return True

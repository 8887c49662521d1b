"""
Sales Service - Customer invoices with inventory and ledger reconciliation
"""
from typing import Optional, List
from sqlalchemy.orm import Session, joinedload
from decimal import Decimal
from datetime import date
from enum import Enum
import logging

from battery_ledger.core.messages import MessageError
from battery_ledger.models import Sale, SaleItem, Customer
from battery_ledger.schemas import SaleCreate, SaleUpdate
from battery_ledger.services.inventory_service import BatteryTypeService
from battery_ledger.services.ledger_service import LedgerService, normalize_payment_method
from battery_ledger.services.purchase_service import (
    NON_NULLABLE_FIELDS, build_line_totals, invoice_total, next_invoice_number, totals_affected
)

logger = logging.getLogger(__name__)


class SalesService:
    NUMBER_PREFIX = "INV-"

    def __init__(self, db: Session):
        self.db = db
        self.inventory = BatteryTypeService(db)
        self.ledger = LedgerService(db)

    def get_by_id(self, sale_id: int) -> Optional[Sale]:
        return self.db.query(Sale).options(
            joinedload(Sale.items).joinedload(SaleItem.battery_type),
            joinedload(Sale.customer)
        ).filter(Sale.id == sale_id).first()

    def get_all(
        self,
        customer_id: int = None,
        start_date: date = None,
        end_date: date = None,
        payment_method: str = None
    ) -> List[Sale]:
        query = self.db.query(Sale).options(joinedload(Sale.customer))
        if customer_id:
            query = query.filter(Sale.customer_id == customer_id)
        if start_date:
            query = query.filter(Sale.date >= start_date)
        if end_date:
            query = query.filter(Sale.date <= end_date)
        if payment_method:
            query = query.filter(Sale.payment_method == payment_method)
        return query.order_by(Sale.date.desc(), Sale.id.desc()).all()

    def get_next_number(self) -> str:
        numbers = self.db.query(Sale.invoice_number).filter(
            Sale.invoice_number.like(f"{self.NUMBER_PREFIX}%")
        ).all()
        return next_invoice_number((row[0] for row in numbers), self.NUMBER_PREFIX)

    def _get_customer(self, customer_id: int) -> Customer:
        customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise MessageError("unknown_customer", value=customer_id)
        return customer

    def _apply_inventory(self, sale: Sale, sign: int):
        for item in sale.items:
            self.inventory.adjust_quantity(item.battery_type_id, sign * item.quantity)

    def create(self, sale_data: SaleCreate) -> Sale:
        customer = self._get_customer(sale_data.customer_id)
        payment_method = normalize_payment_method(sale_data.payment_method)
        if sale_data.discount < 0:
            raise MessageError("discount_not_negative")
        lines = build_line_totals(self.db, sale_data.items)

        subtotal = sum((line["total"] for line in lines), Decimal("0"))
        sale = Sale(
            invoice_number=sale_data.invoice_number or self.get_next_number(),
            date=sale_data.date,
            customer_id=customer.id,
            subtotal=subtotal,
            discount=sale_data.discount,
            tax=sale_data.tax,
            total=invoice_total(subtotal, sale_data.discount, sale_data.tax, sale_data.total),
            payment_method=payment_method,
            status=sale_data.status.value,
            notes=sale_data.notes
        )
        self.db.add(sale)
        self.db.flush()

        for line in lines:
            sale.items.append(SaleItem(sale_id=sale.id, **line))
        self.db.flush()

        # Stock goes out, clamped at zero
        self._apply_inventory(sale, -1)
        self.ledger.recompute_customer(customer.id)

        logger.info(f"Sale {sale.invoice_number} created for customer {customer.customer_code}")
        return sale

    def update(self, sale_id: int, sale_data: SaleUpdate) -> Optional[Sale]:
        sale = self.get_by_id(sale_id)
        if not sale:
            return None

        update_data = sale_data.model_dump(exclude_unset=True)
        new_items = update_data.pop("items", None)
        explicit_total = update_data.pop("total", None)

        if update_data.get("customer_id") is not None:
            self._get_customer(update_data["customer_id"])
        if "payment_method" in update_data:
            update_data["payment_method"] = normalize_payment_method(update_data["payment_method"])
        if update_data.get("discount") is not None and update_data["discount"] < 0:
            raise MessageError("discount_not_negative")
        lines = build_line_totals(self.db, sale_data.items) if new_items is not None else None

        previous_customer_id = sale.customer_id
        self._apply_inventory(sale, 1)

        for key, value in update_data.items():
            if value is None and (key in NON_NULLABLE_FIELDS or key == "customer_id"):
                continue
            if isinstance(value, Enum):
                value = value.value
            setattr(sale, key, value)

        if lines is not None:
            sale.items.clear()
            self.db.flush()
            for line in lines:
                sale.items.append(SaleItem(sale_id=sale.id, **line))
        self.db.flush()

        if lines is not None:
            sale.subtotal = sum((item.total for item in sale.items), Decimal("0"))
        if explicit_total is not None:
            sale.total = explicit_total
        elif totals_affected(update_data, lines is not None):
            sale.total = invoice_total(sale.subtotal, sale.discount, sale.tax)

        self._apply_inventory(sale, -1)
        self.ledger.recompute_customer(sale.customer_id)
        if previous_customer_id != sale.customer_id:
            self.ledger.recompute_customer(previous_customer_id)

        logger.info(f"Sale {sale.invoice_number} updated")
        return sale

    def delete(self, sale_id: int) -> bool:
        sale = self.get_by_id(sale_id)
        if not sale:
            return False

        customer_id = sale.customer_id
        invoice_number = sale.invoice_number

        # Sold stock returns to the shelf
        self._apply_inventory(sale, 1)
        self.db.delete(sale)
        self.db.flush()

        self.ledger.recompute_customer(customer_id)

        logger.info(f"Sale {invoice_number} deleted")
        return True

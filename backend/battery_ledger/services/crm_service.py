"""
CRM Service - Business Logic for Customers and Suppliers
"""
from typing import Optional, List
from sqlalchemy.orm import Session, Query
from sqlalchemy import or_
from decimal import Decimal
from datetime import date
import logging
import math
import re

from battery_ledger.core.config import settings
from battery_ledger.core.messages import MessageError
from battery_ledger.models import (
    Customer, Supplier, Purchase, PurchaseItem, Sale, SaleItem, DailyPurchase, Voucher,
    BatteryType, EntityType, VoucherType
)
from battery_ledger.services.ledger_service import LedgerService, is_deferred

logger = logging.getLogger(__name__)

NO_TRANSACTION_DAYS = 999


def paginate(query: Query, page: int = 1, limit: int = None) -> dict:
    """Slice a query into a page, clamping the page size to the configured maximum"""
    limit = min(max(limit or settings.DEFAULT_PAGE_SIZE, 1), settings.MAX_PAGE_SIZE)
    page = max(page or 1, 1)
    total = query.count()
    data = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "data": data,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


class CounterpartyService:
    """Shared behaviour of customers and suppliers; subclasses bind the model"""

    model = None
    entity_type = None
    code_field = None
    code_prefix = None
    last_date_field = None
    has_transactions_key = None

    def __init__(self, db: Session):
        self.db = db
        self.ledger = LedgerService(db)

    @property
    def code_column(self):
        return getattr(self.model, self.code_field)

    def get_by_id(self, entity_id: int):
        return self.db.query(self.model).filter(self.model.id == entity_id).first()

    def get_by_code(self, code: str):
        return self.db.query(self.model).filter(self.code_column == code).first()

    def get_all(self, search: str = None, blocked: bool = None, page: int = 1, limit: int = None) -> dict:
        query = self.db.query(self.model)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                self.model.name.ilike(pattern),
                self.model.phone.ilike(pattern),
                self.code_column.ilike(pattern)
            ))
        if blocked is not None:
            query = query.filter(self.model.is_blocked == blocked)
        return paginate(query.order_by(self.code_column), page, limit)

    def get_next_code(self) -> str:
        codes = [row[0] for row in self.db.query(self.code_column).all()]
        numbers = [
            int(code[len(self.code_prefix):])
            for code in codes
            if code and code.startswith(self.code_prefix) and code[len(self.code_prefix):].isdigit()
        ]
        return f"{self.code_prefix}{(max(numbers) if numbers else 0) + 1:03d}"

    def _validate_code(self, code: str, exclude_id: int = None) -> str:
        code = code.strip().upper()
        if not re.fullmatch(rf"{self.code_prefix}\d{{3,}}", code):
            raise MessageError("invalid_code", value=code)
        query = self.db.query(self.model).filter(self.code_column == code)
        if exclude_id:
            query = query.filter(self.model.id != exclude_id)
        if query.first():
            raise MessageError("code_exists", value=code)
        return code

    def create(self, entity_data):
        requested_code = getattr(entity_data, self.code_field)
        code = self._validate_code(requested_code) if requested_code else self.get_next_code()

        fields = entity_data.model_dump(exclude={self.code_field})
        entity = self.model(**fields, **{self.code_field: code})
        self.db.add(entity)
        self.db.flush()

        logger.info(f"Created {self.entity_type} {code}")
        return entity

    def update(self, entity_id: int, entity_data):
        entity = self.get_by_id(entity_id)
        if not entity:
            return None

        update_data = entity_data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if key == "name" and value is None:
                continue
            setattr(entity, key, value)

        self.db.flush()
        return entity

    def delete(self, entity_id: int) -> bool:
        entity = self.get_by_id(entity_id)
        if not entity:
            return False

        if self.has_transactions(entity_id):
            raise MessageError(self.has_transactions_key)

        self.db.delete(entity)
        self.db.flush()
        return True

    def block(self, entity_id: int, reason: Optional[str]):
        if not reason or not reason.strip():
            raise MessageError("block_reason_required")
        entity = self.get_by_id(entity_id)
        if not entity:
            return None

        entity.is_blocked = True
        entity.block_reason = reason.strip()
        self.db.flush()

        logger.info(f"Blocked {self.entity_type} {getattr(entity, self.code_field)}")
        return entity

    def unblock(self, entity_id: int):
        entity = self.get_by_id(entity_id)
        if not entity:
            return None

        entity.is_blocked = False
        entity.block_reason = None
        self.db.flush()
        return entity

    def mark_message_sent(self, entity_id: int, today: date = None):
        entity = self.get_by_id(entity_id)
        if not entity:
            return None

        entity.message_sent = True
        entity.last_message_sent = today or date.today()
        self.db.flush()
        return entity

    def get_follow_up(self, today: date = None, days: int = None) -> List[dict]:
        """Counterparties with no transaction for longer than the follow-up window"""
        today = today or date.today()
        days = settings.FOLLOW_UP_DAYS if days is None else days

        entities = self.db.query(self.model).filter(self.model.is_blocked == False).all()
        result = []
        for entity in entities:
            last_date = getattr(entity, self.last_date_field)
            days_since = (today - last_date).days if last_date else NO_TRANSACTION_DAYS
            if days_since <= days:
                continue
            result.append({
                "id": entity.id,
                "code": getattr(entity, self.code_field),
                "name": entity.name,
                "phone": entity.phone,
                "last_transaction_date": last_date,
                "days_since_last_transaction": days_since,
                "days_since_last_message": (
                    (today - entity.last_message_sent).days if entity.last_message_sent else None
                ),
                "message_sent": bool(entity.message_sent),
                "balance": entity.balance or Decimal("0.00"),
            })

        result.sort(key=lambda row: row["days_since_last_transaction"], reverse=True)
        return result

    def get_last_transactions(self, entity_id: int, limit: int = 2) -> List[dict]:
        """Most recent line per battery type, newest first"""
        seen = set()
        result = []
        for line in self.transaction_lines(entity_id):
            if line["battery_type"] in seen:
                continue
            seen.add(line["battery_type"])
            result.append(line)
            if len(result) == limit:
                break
        return result

    def get_statement(self, entity_id: int) -> Optional[dict]:
        """Transactions and vouchers in date order with a running balance"""
        entity = self.get_by_id(entity_id)
        if not entity:
            return None

        entries = self.statement_entries(entity_id)
        vouchers = self.db.query(Voucher).filter(
            Voucher.entity_type == self.entity_type,
            Voucher.entity_id == entity_id
        ).all()
        for voucher in vouchers:
            entries.append({
                "date": voucher.date,
                "kind": "voucher",
                "reference": voucher.voucher_number,
                "description": voucher.type,
                "quantity": Decimal("0"),
                "amount": voucher.total,
                "payment_method": voucher.payment_method,
                "balance_effect": self.voucher_effect(voucher.type, voucher.total),
                "_order": (2, voucher.id),
            })

        entries.sort(key=lambda row: (row["date"] or date.min, row["_order"]))
        running = Decimal("0")
        for row in entries:
            row.pop("_order")
            running += row["balance_effect"]
            row["running_balance"] = running

        return {
            "entity_type": self.entity_type,
            "entity_id": entity.id,
            "code": getattr(entity, self.code_field),
            "name": entity.name,
            "balance": entity.balance or Decimal("0"),
            "net_balance": running,
            "lines": entries,
        }

    def _deferred_effect(self, payment_method: str, amount: Decimal) -> Decimal:
        return amount if is_deferred(payment_method, self.ledger.deferred_methods) else Decimal("0")

    # Hooks
    def has_transactions(self, entity_id: int) -> bool:
        raise NotImplementedError

    def transaction_lines(self, entity_id: int) -> List[dict]:
        raise NotImplementedError

    def statement_entries(self, entity_id: int) -> List[dict]:
        raise NotImplementedError

    def voucher_effect(self, voucher_type: str, amount: Decimal) -> Decimal:
        raise NotImplementedError


class CustomerService(CounterpartyService):
    model = Customer
    entity_type = EntityType.CUSTOMER.value
    code_field = "customer_code"
    code_prefix = "C"
    last_date_field = "last_sale"
    has_transactions_key = "customer_has_sales"

    def has_transactions(self, customer_id: int) -> bool:
        has_sales = self.db.query(Sale).filter(Sale.customer_id == customer_id).first()
        has_vouchers = self.db.query(Voucher).filter(
            Voucher.entity_type == self.entity_type,
            Voucher.entity_id == customer_id
        ).first()
        return bool(has_sales or has_vouchers)

    def transaction_lines(self, customer_id: int) -> List[dict]:
        rows = self.db.query(SaleItem, Sale, BatteryType).join(
            Sale, SaleItem.sale_id == Sale.id
        ).join(
            BatteryType, SaleItem.battery_type_id == BatteryType.id
        ).filter(
            Sale.customer_id == customer_id
        ).order_by(Sale.date.desc(), Sale.id.desc(), SaleItem.id.desc()).all()

        return [
            {
                "battery_type": battery_type.name,
                "price": item.price_per_kg,
                "total": item.total,
                "date": sale.date,
            }
            for item, sale, battery_type in rows
        ]

    def statement_entries(self, customer_id: int) -> List[dict]:
        sales = self.db.query(Sale).filter(Sale.customer_id == customer_id).all()
        return [
            {
                "date": sale.date,
                "kind": "sale",
                "reference": sale.invoice_number,
                "description": sale.notes,
                "quantity": sale.total_quantity,
                "amount": sale.total,
                "payment_method": sale.payment_method,
                "balance_effect": self._deferred_effect(sale.payment_method, sale.total),
                "_order": (0, sale.id),
            }
            for sale in sales
        ]

    def voucher_effect(self, voucher_type: str, amount: Decimal) -> Decimal:
        # Money received from a customer settles what they owe
        if voucher_type == VoucherType.RECEIPT.value:
            return -amount
        return amount


class SupplierService(CounterpartyService):
    model = Supplier
    entity_type = EntityType.SUPPLIER.value
    code_field = "supplier_code"
    code_prefix = "S"
    last_date_field = "last_purchase"
    has_transactions_key = "supplier_has_purchases"

    def has_transactions(self, supplier_id: int) -> bool:
        has_purchases = self.db.query(Purchase).filter(Purchase.supplier_id == supplier_id).first()
        has_daily = self.db.query(DailyPurchase).filter(DailyPurchase.supplier_id == supplier_id).first()
        has_vouchers = self.db.query(Voucher).filter(
            Voucher.entity_type == self.entity_type,
            Voucher.entity_id == supplier_id
        ).first()
        return bool(has_purchases or has_daily or has_vouchers)

    def transaction_lines(self, supplier_id: int) -> List[dict]:
        rows = self.db.query(PurchaseItem, Purchase, BatteryType).join(
            Purchase, PurchaseItem.purchase_id == Purchase.id
        ).join(
            BatteryType, PurchaseItem.battery_type_id == BatteryType.id
        ).filter(
            Purchase.supplier_id == supplier_id
        ).all()

        lines = [
            {
                "battery_type": battery_type.name,
                "price": item.price_per_kg,
                "total": item.total,
                "date": purchase.date,
                "_created": item.created_at,
            }
            for item, purchase, battery_type in rows
        ]
        daily_purchases = self.db.query(DailyPurchase).filter(
            DailyPurchase.supplier_id == supplier_id
        ).all()
        lines.extend(
            {
                "battery_type": entry.battery_type,
                "price": entry.price_per_kg,
                "total": entry.final_total,
                "date": entry.date,
                "_created": entry.created_at,
            }
            for entry in daily_purchases
        )

        lines.sort(key=lambda row: (row["date"] or date.min, row["_created"]), reverse=True)
        for row in lines:
            row.pop("_created")
        return lines

    def statement_entries(self, supplier_id: int) -> List[dict]:
        purchases = self.db.query(Purchase).filter(Purchase.supplier_id == supplier_id).all()
        entries = [
            {
                "date": purchase.date,
                "kind": "purchase",
                "reference": purchase.invoice_number,
                "description": purchase.notes,
                "quantity": purchase.total_quantity,
                "amount": purchase.total,
                "payment_method": purchase.payment_method,
                "balance_effect": self._deferred_effect(purchase.payment_method, purchase.total),
                "_order": (0, purchase.id),
            }
            for purchase in purchases
        ]
        daily_purchases = self.db.query(DailyPurchase).filter(
            DailyPurchase.supplier_id == supplier_id
        ).all()
        entries.extend(
            {
                "date": entry.date,
                "kind": "daily_purchase",
                "reference": None,
                "description": entry.battery_type,
                "quantity": entry.quantity,
                "amount": entry.final_total,
                "payment_method": entry.payment_method,
                "balance_effect": self._deferred_effect(entry.payment_method, entry.final_total),
                "_order": (1, entry.id),
            }
            for entry in daily_purchases
        )
        return entries

    def voucher_effect(self, voucher_type: str, amount: Decimal) -> Decimal:
        # Paying a supplier reduces what we owe them
        if voucher_type == VoucherType.PAYMENT.value:
            return -amount
        return amount

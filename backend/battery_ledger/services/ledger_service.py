"""
Ledger Service - Counterparty balances and totals derived from transactions
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
import logging

from sqlalchemy.orm import Session, joinedload

from battery_ledger.core.config import settings
from battery_ledger.core.messages import MessageError
from battery_ledger.models import (
    Customer, Supplier, Purchase, Sale, DailyPurchase, PaymentMethod
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

PAYMENT_METHOD_ALIASES = {
    "transfer": PaymentMethod.BANK_TRANSFER.value,
}


@dataclass(frozen=True)
class TransactionRecord:
    quantity: Decimal
    total: Decimal
    date: Optional[date]
    payment_method: Optional[str]


@dataclass(frozen=True)
class LedgerStats:
    total_quantity: Decimal
    total_amount: Decimal
    average_price: Decimal
    last_date: Optional[date]
    balance: Decimal


def is_deferred(payment_method: Optional[str], deferred_methods: Optional[Iterable[str]] = None) -> bool:
    """True when the amount stays owed instead of being settled on the spot"""
    if deferred_methods is None:
        deferred_methods = settings.deferred_payment_methods
    return (payment_method or "").strip().lower() in {m.lower() for m in deferred_methods}


def normalize_payment_method(payment_method: Optional[str]) -> str:
    """Map aliases and reject methods that are neither settled nor deferred"""
    value = (payment_method or PaymentMethod.CASH.value).strip()
    value = PAYMENT_METHOD_ALIASES.get(value.lower(), value)
    allowed = {method.value for method in PaymentMethod} | set(settings.deferred_payment_methods)
    if value in allowed:
        return value
    if value.lower() in allowed:
        return value.lower()
    raise MessageError("invalid_payment_method", value=payment_method)


def aggregate_transactions(
    records: Iterable[TransactionRecord],
    deferred_methods: Optional[Iterable[str]] = None
) -> LedgerStats:
    """
    Fold a counterparty's transactions into its derived totals.

    Only deferred payments accrue to the balance; cash, card and bank
    transfers are settled immediately. The result depends only on the set
    of records, never on their order.
    """
    if deferred_methods is None:
        deferred_methods = settings.deferred_payment_methods
    deferred = {method.lower() for method in deferred_methods}

    total_quantity = ZERO
    total_amount = ZERO
    balance = ZERO
    last_date = None

    for record in records:
        quantity = Decimal(record.quantity or 0)
        total = Decimal(record.total or 0)
        total_quantity += quantity
        total_amount += total
        if (record.payment_method or "").strip().lower() in deferred:
            balance += total
        if record.date and (last_date is None or record.date > last_date):
            last_date = record.date

    average_price = total_amount / total_quantity if total_quantity else ZERO

    return LedgerStats(
        total_quantity=total_quantity,
        total_amount=total_amount,
        average_price=average_price,
        last_date=last_date,
        balance=balance,
    )


class LedgerService:
    """Recomputes stored counterparty figures from the full transaction history"""

    def __init__(self, db: Session, deferred_methods: Optional[Iterable[str]] = None):
        self.db = db
        self.deferred_methods = (
            frozenset(deferred_methods) if deferred_methods is not None
            else settings.deferred_payment_methods
        )

    def supplier_records(self, supplier_id: int) -> List[TransactionRecord]:
        purchases = self.db.query(Purchase).options(
            joinedload(Purchase.items)
        ).filter(Purchase.supplier_id == supplier_id).all()

        records = [
            TransactionRecord(
                quantity=purchase.total_quantity,
                total=purchase.total,
                date=purchase.date,
                payment_method=purchase.payment_method,
            )
            for purchase in purchases
        ]

        daily_purchases = self.db.query(DailyPurchase).filter(
            DailyPurchase.supplier_id == supplier_id
        ).all()
        records.extend(
            TransactionRecord(
                quantity=entry.quantity,
                total=entry.final_total,
                date=entry.date,
                payment_method=entry.payment_method,
            )
            for entry in daily_purchases
        )
        return records

    def customer_records(self, customer_id: int) -> List[TransactionRecord]:
        sales = self.db.query(Sale).options(
            joinedload(Sale.items)
        ).filter(Sale.customer_id == customer_id).all()

        return [
            TransactionRecord(
                quantity=sale.total_quantity,
                total=sale.total,
                date=sale.date,
                payment_method=sale.payment_method,
            )
            for sale in sales
        ]

    def get_stats(self, entity_type: str, entity_id: int) -> Optional[LedgerStats]:
        """Aggregate without writing anything back"""
        self.db.flush()
        if entity_type == "supplier":
            if not self.db.query(Supplier).filter(Supplier.id == entity_id).first():
                return None
            return aggregate_transactions(self.supplier_records(entity_id), self.deferred_methods)
        if entity_type == "customer":
            if not self.db.query(Customer).filter(Customer.id == entity_id).first():
                return None
            return aggregate_transactions(self.customer_records(entity_id), self.deferred_methods)
        raise MessageError("invalid_entity_type", value=entity_type)

    def recompute_supplier(self, supplier_id: int) -> Optional[LedgerStats]:
        self.db.flush()
        supplier = self.db.query(Supplier).filter(Supplier.id == supplier_id).first()
        if not supplier:
            return None

        stats = aggregate_transactions(self.supplier_records(supplier_id), self.deferred_methods)
        supplier.total_purchases = stats.total_quantity
        supplier.total_amount = stats.total_amount
        supplier.average_price = stats.average_price
        supplier.last_purchase = stats.last_date
        supplier.balance = stats.balance
        self.db.flush()

        logger.debug(
            f"Recomputed supplier {supplier.supplier_code}: qty={stats.total_quantity} "
            f"amount={stats.total_amount} balance={stats.balance}"
        )
        return stats

    def recompute_customer(self, customer_id: int) -> Optional[LedgerStats]:
        self.db.flush()
        customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            return None

        stats = aggregate_transactions(self.customer_records(customer_id), self.deferred_methods)
        customer.total_sales = stats.total_quantity
        customer.total_amount = stats.total_amount
        customer.average_price = stats.average_price
        customer.last_sale = stats.last_date
        customer.balance = stats.balance
        self.db.flush()

        logger.debug(
            f"Recomputed customer {customer.customer_code}: qty={stats.total_quantity} "
            f"amount={stats.total_amount} balance={stats.balance}"
        )
        return stats

    def recompute_all(self) -> dict:
        """Rebuild every counterparty and every stock level from scratch"""
        from battery_ledger.services.inventory_service import BatteryTypeService

        supplier_ids = [row.id for row in self.db.query(Supplier.id).all()]
        customer_ids = [row.id for row in self.db.query(Customer.id).all()]

        for supplier_id in supplier_ids:
            self.recompute_supplier(supplier_id)
        for customer_id in customer_ids:
            self.recompute_customer(customer_id)

        battery_types = BatteryTypeService(self.db).rebuild_quantities()

        logger.info(
            f"Full recalculation: {len(customer_ids)} customers, "
            f"{len(supplier_ids)} suppliers, {battery_types} battery types"
        )
        return {
            "customers": len(customer_ids),
            "suppliers": len(supplier_ids),
            "battery_types": battery_types,
        }

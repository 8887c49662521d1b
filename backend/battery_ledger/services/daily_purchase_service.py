"""
Daily Purchase Service - Same-day quick entry of single-line purchases
"""
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session
from decimal import Decimal, ROUND_HALF_UP
from datetime import date
import logging

from battery_ledger.core.messages import MessageError
from battery_ledger.models import DailyPurchase, Supplier, BatteryType
from battery_ledger.schemas import DailyPurchaseCreate, DailyPurchaseUpdate
from battery_ledger.services.inventory_service import BatteryTypeService
from battery_ledger.services.ledger_service import LedgerService, normalize_payment_method

logger = logging.getLogger(__name__)


def line_totals(quantity: Decimal, price_per_kg: Decimal, discount: Decimal) -> Tuple[Decimal, Decimal]:
    """Row total is rounded to whole currency units before the discount"""
    total = (quantity * price_per_kg).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return total, total - discount


class DailyPurchaseService:
    def __init__(self, db: Session):
        self.db = db
        self.inventory = BatteryTypeService(db)
        self.ledger = LedgerService(db)

    def get_by_id(self, entry_id: int) -> Optional[DailyPurchase]:
        return self.db.query(DailyPurchase).filter(DailyPurchase.id == entry_id).first()

    def get_by_date(self, day: date) -> List[DailyPurchase]:
        return self.db.query(DailyPurchase).filter(
            DailyPurchase.date == day
        ).order_by(DailyPurchase.created_at, DailyPurchase.id).all()

    def _resolve_supplier(self, supplier_id: int = None, code: str = None, phone: str = None) -> Optional[Supplier]:
        if supplier_id:
            supplier = self.db.query(Supplier).filter(Supplier.id == supplier_id).first()
            if not supplier:
                raise MessageError("unknown_supplier", value=supplier_id)
            return supplier
        if code:
            supplier = self.db.query(Supplier).filter(Supplier.supplier_code == code.strip()).first()
            if supplier:
                return supplier
        if phone:
            return self.db.query(Supplier).filter(Supplier.phone == phone.strip()).first()
        return None

    def _resolve_battery_type(self, battery_type_id: int = None, name: str = None) -> BatteryType:
        if battery_type_id:
            battery_type = self.inventory.get_by_id(battery_type_id)
            if not battery_type:
                raise MessageError("unknown_battery_type", value=battery_type_id)
            return battery_type
        if not name or not name.strip():
            raise MessageError("required_fields")
        battery_type = self.inventory.get_by_name(name)
        if not battery_type:
            raise MessageError("unknown_battery_type", value=name)
        return battery_type

    def _validate_amounts(self, quantity: Optional[Decimal], price_per_kg: Optional[Decimal], discount: Optional[Decimal]):
        if quantity is None or price_per_kg is None:
            raise MessageError("required_fields")
        if quantity <= 0:
            raise MessageError("quantity_positive")
        if price_per_kg <= 0:
            raise MessageError("price_positive")
        if discount is not None and discount < 0:
            raise MessageError("discount_not_negative")

    def create(self, entry_data: DailyPurchaseCreate) -> DailyPurchase:
        supplier = self._resolve_supplier(
            entry_data.supplier_id, entry_data.supplier_code, entry_data.supplier_phone
        )
        supplier_name = (entry_data.supplier_name or "").strip() or (supplier.name if supplier else "")
        if not supplier_name:
            raise MessageError("required_fields")
        self._validate_amounts(entry_data.quantity, entry_data.price_per_kg, entry_data.discount)
        battery_type = self._resolve_battery_type(entry_data.battery_type_id, entry_data.battery_type)
        payment_method = normalize_payment_method(entry_data.payment_method)

        total, final_total = line_totals(entry_data.quantity, entry_data.price_per_kg, entry_data.discount)
        entry = DailyPurchase(
            date=entry_data.date or date.today(),
            supplier_id=supplier.id if supplier else None,
            supplier_name=supplier_name,
            supplier_code=supplier.supplier_code if supplier else entry_data.supplier_code,
            supplier_phone=entry_data.supplier_phone or (supplier.phone if supplier else None),
            battery_type_id=battery_type.id,
            battery_type=battery_type.name,
            quantity=entry_data.quantity,
            price_per_kg=entry_data.price_per_kg,
            total=total,
            discount=entry_data.discount,
            final_total=final_total,
            payment_method=payment_method,
            is_saved=True
        )
        self.db.add(entry)
        self.db.flush()

        self.inventory.adjust_quantity(battery_type.id, entry.quantity)
        if entry.supplier_id:
            self.ledger.recompute_supplier(entry.supplier_id)

        logger.info(f"Daily purchase saved: {supplier_name} {entry.quantity} x {battery_type.name}")
        return entry

    def update(self, entry_id: int, entry_data: DailyPurchaseUpdate) -> Optional[DailyPurchase]:
        entry = self.get_by_id(entry_id)
        if not entry:
            return None

        update_data = entry_data.model_dump(exclude_unset=True)

        # Resolve the new state fully before reverting anything
        supplier_fields = {"supplier_id", "supplier_code", "supplier_phone"}
        supplier = entry.supplier
        if supplier_fields & update_data.keys():
            supplier = self._resolve_supplier(
                update_data.get("supplier_id"),
                update_data.get("supplier_code"),
                update_data.get("supplier_phone")
            )
        supplier_name = (update_data.get("supplier_name") or "").strip() or entry.supplier_name
        if "supplier_id" in update_data and supplier and not update_data.get("supplier_name"):
            supplier_name = supplier.name

        battery_type = entry.battery_type_ref
        if "battery_type_id" in update_data or "battery_type" in update_data:
            battery_type = self._resolve_battery_type(
                update_data.get("battery_type_id"), update_data.get("battery_type")
            )
        if battery_type is None:
            battery_type = self._resolve_battery_type(None, entry.battery_type)

        quantity = update_data.get("quantity", entry.quantity)
        price_per_kg = update_data.get("price_per_kg", entry.price_per_kg)
        discount = update_data["discount"] if update_data.get("discount") is not None else entry.discount
        self._validate_amounts(quantity, price_per_kg, discount)
        payment_method = entry.payment_method
        if update_data.get("payment_method"):
            payment_method = normalize_payment_method(update_data["payment_method"])

        previous_supplier_id = entry.supplier_id

        # Revert the old line, then apply the new one
        if entry.battery_type_id:
            self.inventory.adjust_quantity(entry.battery_type_id, -entry.quantity)

        total, final_total = line_totals(quantity, price_per_kg, discount)
        entry.date = update_data.get("date") or entry.date
        entry.supplier_id = supplier.id if supplier else None
        entry.supplier_name = supplier_name
        entry.supplier_code = supplier.supplier_code if supplier else update_data.get("supplier_code", entry.supplier_code)
        entry.supplier_phone = update_data.get("supplier_phone") or entry.supplier_phone
        entry.battery_type_id = battery_type.id
        entry.battery_type = battery_type.name
        entry.quantity = quantity
        entry.price_per_kg = price_per_kg
        entry.discount = discount
        entry.total = total
        entry.final_total = final_total
        entry.payment_method = payment_method
        self.db.flush()

        self.inventory.adjust_quantity(battery_type.id, quantity)
        for supplier_id in {previous_supplier_id, entry.supplier_id} - {None}:
            self.ledger.recompute_supplier(supplier_id)

        logger.info(f"Daily purchase {entry.id} updated")
        return entry

    def delete(self, entry_id: int) -> bool:
        entry = self.get_by_id(entry_id)
        if not entry:
            return False

        supplier_id = entry.supplier_id
        if entry.battery_type_id:
            self.inventory.adjust_quantity(entry.battery_type_id, -entry.quantity)
        self.db.delete(entry)
        self.db.flush()

        if supplier_id:
            self.ledger.recompute_supplier(supplier_id)
        return True

    def clear_day(self, day: date) -> int:
        """Delete every entry recorded on a day, reverting stock and supplier totals"""
        entries = self.get_by_date(day)
        supplier_ids = {entry.supplier_id for entry in entries if entry.supplier_id}

        for entry in entries:
            if entry.battery_type_id:
                self.inventory.adjust_quantity(entry.battery_type_id, -entry.quantity)
            self.db.delete(entry)
        self.db.flush()

        for supplier_id in supplier_ids:
            self.ledger.recompute_supplier(supplier_id)

        logger.info(f"Cleared {len(entries)} daily purchases for {day.isoformat()}")
        return len(entries)

    def get_summary(self, day: date) -> dict:
        entries = self.get_by_date(day)
        zero = Decimal("0")
        return {
            "date": day,
            "count": len(entries),
            "total_quantity": sum((entry.quantity for entry in entries), zero),
            "total": sum((entry.total for entry in entries), zero),
            "total_discount": sum((entry.discount or zero for entry in entries), zero),
            "final_total": sum((entry.final_total for entry in entries), zero),
        }

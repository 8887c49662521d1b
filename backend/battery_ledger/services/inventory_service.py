"""
Inventory Service - Battery Types and Stock Levels
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func
from decimal import Decimal
import logging

from battery_ledger.core.messages import MessageError
from battery_ledger.models import BatteryType, PurchaseItem, SaleItem, DailyPurchase
from battery_ledger.schemas import BatteryTypeCreate, BatteryTypeUpdate

logger = logging.getLogger(__name__)


class BatteryTypeService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, battery_type_id: int) -> Optional[BatteryType]:
        return self.db.query(BatteryType).filter(BatteryType.id == battery_type_id).first()

    def get_by_name(self, name: str) -> Optional[BatteryType]:
        return self.db.query(BatteryType).filter(BatteryType.name == name.strip()).first()

    def is_name_unique(self, name: str, exclude_id: int = None) -> bool:
        query = self.db.query(BatteryType).filter(BatteryType.name == name.strip())
        if exclude_id:
            query = query.filter(BatteryType.id != exclude_id)
        return query.first() is None

    def get_all(self, include_inactive: bool = False) -> List[BatteryType]:
        query = self.db.query(BatteryType)
        if not include_inactive:
            query = query.filter(BatteryType.is_active == True)
        return query.order_by(BatteryType.name).all()

    def create(self, battery_type_data: BatteryTypeCreate) -> BatteryType:
        if not self.is_name_unique(battery_type_data.name):
            raise MessageError("battery_type_exists", value=battery_type_data.name)
        if battery_type_data.unit_price < 0:
            raise MessageError("price_not_negative")
        if battery_type_data.current_qty < 0:
            raise MessageError("quantity_not_negative")

        battery_type = BatteryType(
            name=battery_type_data.name.strip(),
            description=battery_type_data.description,
            unit_price=battery_type_data.unit_price,
            current_qty=battery_type_data.current_qty,
            opening_qty=battery_type_data.current_qty,
            adjusted_qty=Decimal("0"),
            is_active=True
        )
        self.db.add(battery_type)
        self.db.flush()
        return battery_type

    def update(self, battery_type_id: int, battery_type_data: BatteryTypeUpdate) -> Optional[BatteryType]:
        battery_type = self.get_by_id(battery_type_id)
        if not battery_type:
            return None

        update_data = battery_type_data.model_dump(exclude_unset=True)
        if update_data.get("name") is not None:
            if not self.is_name_unique(update_data["name"], exclude_id=battery_type_id):
                raise MessageError("battery_type_exists", value=update_data["name"])
            update_data["name"] = update_data["name"].strip()
        if update_data.get("unit_price") is not None and update_data["unit_price"] < 0:
            raise MessageError("price_not_negative")

        for key, value in update_data.items():
            setattr(battery_type, key, value)

        self.db.flush()
        return battery_type

    def is_referenced(self, battery_type_id: int) -> bool:
        return any(
            self.db.query(model).filter(model.battery_type_id == battery_type_id).first() is not None
            for model in (PurchaseItem, SaleItem, DailyPurchase)
        )

    def delete(self, battery_type_id: int, soft: bool = False) -> bool:
        battery_type = self.get_by_id(battery_type_id)
        if not battery_type:
            return False

        if soft:
            battery_type.is_active = False
            self.db.flush()
            return True

        if self.is_referenced(battery_type_id):
            raise MessageError("battery_type_in_use")

        self.db.delete(battery_type)
        self.db.flush()
        return True

    def adjust_quantity(self, battery_type_id: int, change: Decimal) -> Optional[BatteryType]:
        """Apply a stock delta; the level never drops below zero"""
        battery_type = self.get_by_id(battery_type_id)
        if not battery_type:
            return None

        current = Decimal(battery_type.current_qty or 0)
        new_qty = current + Decimal(change)
        if new_qty < 0:
            logger.warning(
                f"Stock for battery type '{battery_type.name}' would drop to {new_qty}; clamped at 0"
            )
            new_qty = Decimal("0")

        battery_type.current_qty = new_qty
        self.db.flush()
        return battery_type

    def record_adjustment(self, battery_type_id: int, change: Decimal, reason: str = None) -> Optional[BatteryType]:
        """Manual stock correction, remembered so a rebuild keeps it"""
        battery_type = self.get_by_id(battery_type_id)
        if not battery_type:
            return None

        before = Decimal(battery_type.current_qty or 0)
        self.adjust_quantity(battery_type_id, change)
        applied = Decimal(battery_type.current_qty) - before
        battery_type.adjusted_qty = Decimal(battery_type.adjusted_qty or 0) + applied
        self.db.flush()

        logger.info(f"Stock of '{battery_type.name}' adjusted by {applied}: {reason or 'no reason given'}")
        return battery_type

    def rebuild_quantities(self) -> int:
        """Recompute every stock level from opening stock, manual corrections and transaction lines"""
        self.db.flush()

        purchased = dict(
            self.db.query(PurchaseItem.battery_type_id, func.sum(PurchaseItem.quantity))
            .group_by(PurchaseItem.battery_type_id).all()
        )
        bought_daily = dict(
            self.db.query(DailyPurchase.battery_type_id, func.sum(DailyPurchase.quantity))
            .filter(DailyPurchase.battery_type_id.isnot(None))
            .group_by(DailyPurchase.battery_type_id).all()
        )
        sold = dict(
            self.db.query(SaleItem.battery_type_id, func.sum(SaleItem.quantity))
            .group_by(SaleItem.battery_type_id).all()
        )

        battery_types = self.db.query(BatteryType).all()
        for battery_type in battery_types:
            quantity = (
                Decimal(battery_type.opening_qty or 0)
                + Decimal(battery_type.adjusted_qty or 0)
                + Decimal(purchased.get(battery_type.id) or 0)
                + Decimal(bought_daily.get(battery_type.id) or 0)
                - Decimal(sold.get(battery_type.id) or 0)
            )
            battery_type.current_qty = max(Decimal("0"), quantity)

        self.db.flush()
        return len(battery_types)

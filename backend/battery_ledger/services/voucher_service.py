"""
Voucher Service - Receipt and payment vouchers against customers and suppliers
"""
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_
from decimal import Decimal
from datetime import date
from enum import Enum
import logging

from battery_ledger.core.messages import MessageError
from battery_ledger.models import Voucher, VoucherItem, Customer, Supplier, EntityType, VoucherType
from battery_ledger.schemas import VoucherCreate, VoucherUpdate, VoucherItemCreate
from battery_ledger.services.crm_service import paginate
from battery_ledger.services.ledger_service import normalize_payment_method

logger = logging.getLogger(__name__)


def build_voucher_items(items: List[VoucherItemCreate]) -> Tuple[List[VoucherItem], Decimal, Decimal, Decimal]:
    """Line VAT is a percentage of the line amount"""
    voucher_items = []
    subtotal = Decimal("0")
    total_vat = Decimal("0")
    for item in items:
        if item.amount is None or item.amount <= 0:
            raise MessageError("amount_positive")
        vat = item.vat or Decimal("0")
        vat_amount = item.amount * vat / Decimal("100")
        voucher_items.append(VoucherItem(
            description=item.description,
            amount=item.amount,
            vat=vat,
            vat_amount=vat_amount,
            total_amount=item.amount + vat_amount
        ))
        subtotal += item.amount
        total_vat += vat_amount
    return voucher_items, subtotal, total_vat, subtotal + total_vat


class VoucherService:
    NUMBER_PREFIX = "V"

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, voucher_id: int) -> Optional[Voucher]:
        return self.db.query(Voucher).options(
            joinedload(Voucher.items)
        ).filter(Voucher.id == voucher_id).first()

    def get_all(
        self,
        search: str = None,
        voucher_type: str = None,
        entity_type: str = None,
        entity_id: int = None,
        start_date: date = None,
        end_date: date = None,
        page: int = 1,
        limit: int = None
    ) -> dict:
        query = self.db.query(Voucher).options(joinedload(Voucher.items))

        if voucher_type and voucher_type != VoucherType.ALL.value:
            if voucher_type not in (VoucherType.RECEIPT.value, VoucherType.PAYMENT.value):
                raise MessageError("invalid_voucher_type", value=voucher_type)
            query = query.filter(Voucher.type == voucher_type)
        if entity_type:
            query = query.filter(Voucher.entity_type == entity_type)
        if entity_id:
            query = query.filter(Voucher.entity_id == entity_id)
        if start_date:
            query = query.filter(Voucher.date >= start_date)
        if end_date:
            query = query.filter(Voucher.date <= end_date)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Voucher.voucher_number.ilike(pattern),
                Voucher.entity_name.ilike(pattern),
                Voucher.reference.ilike(pattern)
            ))

        return paginate(query.order_by(Voucher.date.desc(), Voucher.id.desc()), page, limit)

    def get_next_number(self) -> str:
        numbers = [
            int(row[0][len(self.NUMBER_PREFIX):])
            for row in self.db.query(Voucher.voucher_number).all()
            if row[0] and row[0][len(self.NUMBER_PREFIX):].isdigit()
        ]
        return f"{self.NUMBER_PREFIX}{(max(numbers) if numbers else 0) + 1:03d}"

    def _resolve_entity(self, entity_type: str, entity_id: int):
        if entity_type == EntityType.CUSTOMER.value:
            model = Customer
        elif entity_type == EntityType.SUPPLIER.value:
            model = Supplier
        else:
            raise MessageError("invalid_entity_type", value=entity_type)

        entity = self.db.query(model).filter(model.id == entity_id).first()
        if not entity:
            raise MessageError("unknown_entity", value=entity_id)
        return entity

    def _apply_amounts(self, voucher: Voucher, items: Optional[List[VoucherItemCreate]], amount: Optional[Decimal]):
        if items:
            voucher_items, subtotal, total_vat, total = build_voucher_items(items)
            voucher.items = voucher_items
            voucher.subtotal = subtotal
            voucher.total_vat = total_vat
            voucher.total = total
            voucher.amount = total
            return

        if amount is None or amount <= 0:
            raise MessageError("amount_positive")
        voucher.items = []
        voucher.amount = amount
        voucher.subtotal = amount
        voucher.total_vat = Decimal("0")
        voucher.total = amount

    def create(self, voucher_data: VoucherCreate) -> Voucher:
        entity_type = voucher_data.entity_type.value
        entity = self._resolve_entity(entity_type, voucher_data.entity_id)

        voucher = Voucher(
            voucher_number=self.get_next_number(),
            date=voucher_data.date,
            type=voucher_data.type.value,
            entity_type=entity_type,
            entity_id=entity.id,
            entity_name=entity.name,
            payment_method=normalize_payment_method(voucher_data.payment_method),
            status=voucher_data.status.value,
            reference=voucher_data.reference,
            notes=voucher_data.notes
        )
        self._apply_amounts(voucher, voucher_data.items, voucher_data.amount)
        self.db.add(voucher)
        self.db.flush()

        logger.info(f"Voucher {voucher.voucher_number} ({voucher.type}) created for {entity_type} {entity.id}")
        return voucher

    def update(self, voucher_id: int, voucher_data: VoucherUpdate) -> Optional[Voucher]:
        voucher = self.get_by_id(voucher_id)
        if not voucher:
            return None

        update_data = voucher_data.model_dump(exclude_unset=True)
        items = update_data.pop("items", None)
        amount = update_data.pop("amount", None)

        if update_data.get("payment_method"):
            update_data["payment_method"] = normalize_payment_method(update_data["payment_method"])

        if items is not None or amount is not None:
            self._apply_amounts(voucher, voucher_data.items, amount if amount is not None else voucher.subtotal)

        for key, value in update_data.items():
            if value is None and key in ("date", "type", "payment_method", "status"):
                continue
            if isinstance(value, Enum):
                value = value.value
            setattr(voucher, key, value)

        self.db.flush()
        return voucher

    def delete(self, voucher_id: int) -> bool:
        voucher = self.get_by_id(voucher_id)
        if not voucher:
            return False

        self.db.delete(voucher)
        self.db.flush()
        return True

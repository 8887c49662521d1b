"""
SQLAlchemy Models for the Battery Trade Back-Office
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Date, Numeric,
    ForeignKey, Index
)
from sqlalchemy.orm import relationship
import enum

from battery_ledger.core.database import Base


# ==================== ENUMS ====================

class PaymentMethod(enum.Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"  # Deferred ("آجل")


class StatusType(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EntityType(enum.Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class VoucherType(enum.Enum):
    RECEIPT = "receipt"
    PAYMENT = "payment"
    ALL = "all"  # Filter value only


class NoteType(enum.Enum):
    NOTE = "note"
    CHECKLIST = "checklist"


# ==================== COUNTERPARTIES ====================

class Customer(Base):
    """Customer (battery buyer)"""
    __tablename__ = 'customers'

    id = Column(Integer, primary_key=True)
    customer_code = Column(String(20), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Derived from sales, written only by the ledger service
    balance = Column(Numeric(15, 2), default=Decimal("0.00"))
    total_sales = Column(Numeric(15, 2), default=Decimal("0.00"))  # Quantity sold to the customer
    total_amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    average_price = Column(Numeric(15, 2), default=Decimal("0.00"))
    last_sale = Column(Date, nullable=True)

    is_blocked = Column(Boolean, default=False)
    block_reason = Column(Text, nullable=True)
    message_sent = Column(Boolean, default=False)
    last_message_sent = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    sales = relationship("Sale", back_populates="customer")

    __table_args__ = (
        Index('ix_customers_name', 'name'),
        Index('ix_customers_phone', 'phone'),
    )


class Supplier(Base):
    """Supplier (battery/scrap seller)"""
    __tablename__ = 'suppliers'

    id = Column(Integer, primary_key=True)
    supplier_code = Column(String(20), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Derived from purchases, written only by the ledger service
    balance = Column(Numeric(15, 2), default=Decimal("0.00"))
    total_purchases = Column(Numeric(15, 2), default=Decimal("0.00"))  # Quantity bought from the supplier
    total_amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    average_price = Column(Numeric(15, 2), default=Decimal("0.00"))
    last_purchase = Column(Date, nullable=True)

    is_blocked = Column(Boolean, default=False)
    block_reason = Column(Text, nullable=True)
    message_sent = Column(Boolean, default=False)
    last_message_sent = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    purchases = relationship("Purchase", back_populates="supplier")
    daily_purchases = relationship("DailyPurchase", back_populates="supplier")

    __table_args__ = (
        Index('ix_suppliers_name', 'name'),
        Index('ix_suppliers_phone', 'phone'),
    )


# ==================== INVENTORY ====================

class BatteryType(Base):
    """Battery type with running stock level"""
    __tablename__ = 'battery_types'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    unit_price = Column(Numeric(15, 2), default=Decimal("0.00"))
    current_qty = Column(Numeric(15, 2), default=Decimal("0.00"))  # Never negative
    opening_qty = Column(Numeric(15, 2), default=Decimal("0.00"))
    adjusted_qty = Column(Numeric(15, 2), default=Decimal("0.00"))  # Net of manual corrections
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    purchase_items = relationship("PurchaseItem", back_populates="battery_type")
    sale_items = relationship("SaleItem", back_populates="battery_type")


# ==================== PURCHASES ====================

class Purchase(Base):
    """Invoice-style purchase from a supplier"""
    __tablename__ = 'purchases'

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String(50), nullable=False)
    date = Column(Date, nullable=False)
    supplier_id = Column(Integer, ForeignKey('suppliers.id', ondelete='RESTRICT'), nullable=False)
    subtotal = Column(Numeric(15, 2), default=Decimal("0.00"))
    discount = Column(Numeric(15, 2), default=Decimal("0.00"))
    tax = Column(Numeric(15, 2), default=Decimal("0.00"))
    total = Column(Numeric(15, 2), default=Decimal("0.00"))
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    status = Column(String(20), default=StatusType.COMPLETED.value)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    supplier = relationship("Supplier", back_populates="purchases")
    items = relationship("PurchaseItem", back_populates="purchase", cascade="all, delete-orphan")

    @property
    def supplier_name(self):
        return self.supplier.name if self.supplier else None

    @property
    def total_quantity(self):
        return sum((item.quantity for item in self.items), Decimal("0"))

    __table_args__ = (
        Index('ix_purchases_supplier_id', 'supplier_id'),
        Index('ix_purchases_date', 'date'),
    )


class PurchaseItem(Base):
    """Purchase line item"""
    __tablename__ = 'purchase_items'

    id = Column(Integer, primary_key=True)
    purchase_id = Column(Integer, ForeignKey('purchases.id', ondelete='CASCADE'), nullable=False)
    battery_type_id = Column(Integer, ForeignKey('battery_types.id', ondelete='RESTRICT'), nullable=False)
    quantity = Column(Numeric(15, 2), nullable=False)
    price_per_kg = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    purchase = relationship("Purchase", back_populates="items")
    battery_type = relationship("BatteryType", back_populates="purchase_items")

    @property
    def battery_type_name(self):
        return self.battery_type.name if self.battery_type else None


# ==================== SALES ====================

class Sale(Base):
    """Invoice-style sale to a customer"""
    __tablename__ = 'sales'

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String(50), nullable=False)
    date = Column(Date, nullable=False)
    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='RESTRICT'), nullable=False)
    subtotal = Column(Numeric(15, 2), default=Decimal("0.00"))
    discount = Column(Numeric(15, 2), default=Decimal("0.00"))
    tax = Column(Numeric(15, 2), default=Decimal("0.00"))
    total = Column(Numeric(15, 2), default=Decimal("0.00"))
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    status = Column(String(20), default=StatusType.COMPLETED.value)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="sales")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")

    @property
    def customer_name(self):
        return self.customer.name if self.customer else None

    @property
    def total_quantity(self):
        return sum((item.quantity for item in self.items), Decimal("0"))

    __table_args__ = (
        Index('ix_sales_customer_id', 'customer_id'),
        Index('ix_sales_date', 'date'),
    )


class SaleItem(Base):
    """Sale line item"""
    __tablename__ = 'sale_items'

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey('sales.id', ondelete='CASCADE'), nullable=False)
    battery_type_id = Column(Integer, ForeignKey('battery_types.id', ondelete='RESTRICT'), nullable=False)
    quantity = Column(Numeric(15, 2), nullable=False)
    price_per_kg = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    sale = relationship("Sale", back_populates="items")
    battery_type = relationship("BatteryType", back_populates="sale_items")

    @property
    def battery_type_name(self):
        return self.battery_type.name if self.battery_type else None


# ==================== DAILY PURCHASES ====================

class DailyPurchase(Base):
    """Single-line quick-entry purchase recorded on the day"""
    __tablename__ = 'daily_purchases'

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    supplier_id = Column(Integer, ForeignKey('suppliers.id', ondelete='SET NULL'), nullable=True)
    # Snapshot of the supplier as typed on the row
    supplier_name = Column(String(255), nullable=False)
    supplier_code = Column(String(20), nullable=True)
    supplier_phone = Column(String(50), nullable=True)
    battery_type_id = Column(Integer, ForeignKey('battery_types.id', ondelete='SET NULL'), nullable=True)
    battery_type = Column(String(255), nullable=False)
    quantity = Column(Numeric(15, 2), nullable=False)
    price_per_kg = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)
    discount = Column(Numeric(15, 2), default=Decimal("0.00"))
    final_total = Column(Numeric(15, 2), nullable=False)
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    is_saved = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    supplier = relationship("Supplier", back_populates="daily_purchases")
    battery_type_ref = relationship("BatteryType")

    __table_args__ = (
        Index('ix_daily_purchases_date', 'date'),
    )


# ==================== VOUCHERS ====================

class Voucher(Base):
    """Receipt or payment voucher against a customer or supplier"""
    __tablename__ = 'vouchers'

    id = Column(Integer, primary_key=True)
    voucher_number = Column(String(20), nullable=False, unique=True)
    date = Column(Date, nullable=False)
    type = Column(String(20), nullable=False)  # receipt, payment
    entity_type = Column(String(20), nullable=False)  # customer, supplier
    entity_id = Column(Integer, nullable=False)
    entity_name = Column(String(255), nullable=True)
    amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    subtotal = Column(Numeric(15, 2), default=Decimal("0.00"))
    total_vat = Column(Numeric(15, 2), default=Decimal("0.00"))
    total = Column(Numeric(15, 2), default=Decimal("0.00"))
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    status = Column(String(20), default=StatusType.COMPLETED.value)
    reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    items = relationship("VoucherItem", back_populates="voucher", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_vouchers_entity', 'entity_type', 'entity_id'),
        Index('ix_vouchers_date', 'date'),
    )


class VoucherItem(Base):
    """Voucher line item"""
    __tablename__ = 'voucher_items'

    id = Column(Integer, primary_key=True)
    voucher_id = Column(Integer, ForeignKey('vouchers.id', ondelete='CASCADE'), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    vat = Column(Numeric(5, 2), default=Decimal("0.00"))  # Percent
    vat_amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    total_amount = Column(Numeric(15, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    voucher = relationship("Voucher", back_populates="items")


# ==================== NOTES & TASKS ====================

class Note(Base):
    """Sticky note for a day"""
    __tablename__ = 'notes'

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=True)
    color = Column(String(20), default="yellow")
    type = Column(String(20), default=NoteType.NOTE.value)
    completed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    checklist_items = relationship(
        "ChecklistItem", back_populates="note", cascade="all, delete-orphan",
        order_by="ChecklistItem.id"
    )

    __table_args__ = (
        Index('ix_notes_date', 'date'),
    )


class ChecklistItem(Base):
    """Checklist line on a note"""
    __tablename__ = 'checklist_items'

    id = Column(Integer, primary_key=True)
    note_id = Column(Integer, ForeignKey('notes.id', ondelete='CASCADE'), nullable=False)
    text = Column(Text, nullable=False)
    completed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    note = relationship("Note", back_populates="checklist_items")


class TaskGroup(Base):
    """Named list of tasks"""
    __tablename__ = 'task_groups'

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    color = Column(String(20), nullable=True)
    created_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    tasks = relationship("Task", back_populates="group", cascade="all, delete-orphan", order_by="Task.id")


class Task(Base):
    """To-do item"""
    __tablename__ = 'tasks'

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    completed = Column(Boolean, default=False)
    color = Column(String(20), nullable=True)
    created_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    task_group_id = Column(Integer, ForeignKey('task_groups.id', ondelete='CASCADE'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    group = relationship("TaskGroup", back_populates="tasks")

"""
Pydantic Schemas for API Validation
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime, date as date_type
from decimal import Decimal
from enum import Enum


# ==================== ENUMS ====================

class EntityTypeEnum(str, Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class VoucherTypeEnum(str, Enum):
    RECEIPT = "receipt"
    PAYMENT = "payment"


class NoteTypeEnum(str, Enum):
    NOTE = "note"
    CHECKLIST = "checklist"


class StatusEnum(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ==================== SHARED SCHEMAS ====================

class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class BlockRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class LastTransactionEntry(BaseModel):
    battery_type: str
    price: Decimal
    total: Decimal
    date: Optional[date_type] = None


class FollowUpEntry(BaseModel):
    id: int
    code: str
    name: str
    phone: Optional[str] = None
    last_transaction_date: Optional[date_type] = None
    days_since_last_transaction: int
    days_since_last_message: Optional[int] = None
    message_sent: bool = False
    balance: Decimal = Decimal("0.00")


class StatementLine(BaseModel):
    date: Optional[date_type] = None
    kind: str  # purchase, sale, daily_purchase, voucher
    reference: Optional[str] = None
    description: Optional[str] = None
    quantity: Decimal = Decimal("0.00")
    amount: Decimal
    payment_method: Optional[str] = None
    balance_effect: Decimal
    running_balance: Decimal


class StatementResponse(BaseModel):
    entity_type: EntityTypeEnum
    entity_id: int
    code: str
    name: str
    balance: Decimal
    net_balance: Decimal
    lines: List[StatementLine] = []


# ==================== CUSTOMER SCHEMAS ====================

class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    notes: Optional[str] = None


class CustomerCreate(CustomerBase):
    customer_code: Optional[str] = Field(None, max_length=20)


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    notes: Optional[str] = None
    message_sent: Optional[bool] = None
    last_message_sent: Optional[date_type] = None


class CustomerResponse(CustomerBase):
    id: int
    customer_code: str
    balance: Decimal
    total_sales: Decimal
    total_amount: Decimal
    average_price: Decimal
    last_sale: Optional[date_type] = None
    is_blocked: bool
    block_reason: Optional[str] = None
    message_sent: bool
    last_message_sent: Optional[date_type] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerListResponse(BaseModel):
    data: List[CustomerResponse]
    pagination: PaginationInfo


# ==================== SUPPLIER SCHEMAS ====================

class SupplierBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    notes: Optional[str] = None


class SupplierCreate(SupplierBase):
    supplier_code: Optional[str] = Field(None, max_length=20)


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    notes: Optional[str] = None
    message_sent: Optional[bool] = None
    last_message_sent: Optional[date_type] = None


class SupplierResponse(SupplierBase):
    id: int
    supplier_code: str
    balance: Decimal
    total_purchases: Decimal
    total_amount: Decimal
    average_price: Decimal
    last_purchase: Optional[date_type] = None
    is_blocked: bool
    block_reason: Optional[str] = None
    message_sent: bool
    last_message_sent: Optional[date_type] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupplierListResponse(BaseModel):
    data: List[SupplierResponse]
    pagination: PaginationInfo


# ==================== BATTERY TYPE SCHEMAS ====================

class BatteryTypeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    unit_price: Decimal = Field(default=Decimal("0.00"))


class BatteryTypeCreate(BatteryTypeBase):
    current_qty: Decimal = Field(default=Decimal("0.00"))


class BatteryTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    unit_price: Optional[Decimal] = None
    is_active: Optional[bool] = None


class BatteryTypeResponse(BatteryTypeBase):
    id: int
    current_qty: Decimal
    opening_qty: Decimal = Decimal("0.00")
    adjusted_qty: Decimal = Decimal("0.00")
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuantityAdjustment(BaseModel):
    change: Decimal = Field(..., description="Positive for increase, negative for decrease")
    reason: Optional[str] = Field(None, max_length=500)


# ==================== PURCHASE SCHEMAS ====================

class TransactionItemCreate(BaseModel):
    battery_type_id: int
    quantity: Decimal
    price_per_kg: Decimal


class TransactionItemResponse(BaseModel):
    id: int
    battery_type_id: int
    battery_type_name: Optional[str] = None
    quantity: Decimal
    price_per_kg: Decimal
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class PurchaseBase(BaseModel):
    date: date_type
    supplier_id: int
    discount: Decimal = Field(default=Decimal("0.00"))
    tax: Decimal = Field(default=Decimal("0.00"))
    payment_method: str = Field(default="cash", max_length=20)
    status: StatusEnum = StatusEnum.COMPLETED
    notes: Optional[str] = None


class PurchaseCreate(PurchaseBase):
    invoice_number: Optional[str] = Field(None, max_length=50)
    total: Optional[Decimal] = None
    items: List[TransactionItemCreate] = []


class PurchaseUpdate(BaseModel):
    invoice_number: Optional[str] = Field(None, max_length=50)
    date: Optional[date_type] = None
    supplier_id: Optional[int] = None
    discount: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Optional[Decimal] = None
    payment_method: Optional[str] = Field(None, max_length=20)
    status: Optional[StatusEnum] = None
    notes: Optional[str] = None
    items: Optional[List[TransactionItemCreate]] = None


class PurchaseResponse(PurchaseBase):
    id: int
    invoice_number: str
    supplier_name: Optional[str] = None
    subtotal: Decimal
    total: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PurchaseWithItems(PurchaseResponse):
    items: List[TransactionItemResponse] = []


# ==================== SALE SCHEMAS ====================

class SaleBase(BaseModel):
    date: date_type
    customer_id: int
    discount: Decimal = Field(default=Decimal("0.00"))
    tax: Decimal = Field(default=Decimal("0.00"))
    payment_method: str = Field(default="cash", max_length=20)
    status: StatusEnum = StatusEnum.COMPLETED
    notes: Optional[str] = None


class SaleCreate(SaleBase):
    invoice_number: Optional[str] = Field(None, max_length=50)
    total: Optional[Decimal] = None
    items: List[TransactionItemCreate] = []


class SaleUpdate(BaseModel):
    invoice_number: Optional[str] = Field(None, max_length=50)
    date: Optional[date_type] = None
    customer_id: Optional[int] = None
    discount: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Optional[Decimal] = None
    payment_method: Optional[str] = Field(None, max_length=20)
    status: Optional[StatusEnum] = None
    notes: Optional[str] = None
    items: Optional[List[TransactionItemCreate]] = None


class SaleResponse(SaleBase):
    id: int
    invoice_number: str
    customer_name: Optional[str] = None
    subtotal: Decimal
    total: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SaleWithItems(SaleResponse):
    items: List[TransactionItemResponse] = []


# ==================== DAILY PURCHASE SCHEMAS ====================

class DailyPurchaseCreate(BaseModel):
    date: Optional[date_type] = None  # Defaults to today
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = Field(None, max_length=255)
    supplier_code: Optional[str] = Field(None, max_length=20)
    supplier_phone: Optional[str] = Field(None, max_length=50)
    battery_type_id: Optional[int] = None
    battery_type: Optional[str] = Field(None, max_length=255)
    quantity: Optional[Decimal] = None
    price_per_kg: Optional[Decimal] = None
    discount: Decimal = Field(default=Decimal("0.00"))
    payment_method: str = Field(default="cash", max_length=20)


class DailyPurchaseUpdate(BaseModel):
    date: Optional[date_type] = None
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = Field(None, max_length=255)
    supplier_code: Optional[str] = Field(None, max_length=20)
    supplier_phone: Optional[str] = Field(None, max_length=50)
    battery_type_id: Optional[int] = None
    battery_type: Optional[str] = Field(None, max_length=255)
    quantity: Optional[Decimal] = None
    price_per_kg: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    payment_method: Optional[str] = Field(None, max_length=20)


class DailyPurchaseResponse(BaseModel):
    id: int
    date: date_type
    supplier_id: Optional[int] = None
    supplier_name: str
    supplier_code: Optional[str] = None
    supplier_phone: Optional[str] = None
    battery_type_id: Optional[int] = None
    battery_type: str
    quantity: Decimal
    price_per_kg: Decimal
    total: Decimal
    discount: Decimal
    final_total: Decimal
    payment_method: str
    is_saved: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DailySummary(BaseModel):
    date: date_type
    count: int
    total_quantity: Decimal
    total: Decimal
    total_discount: Decimal
    final_total: Decimal


# ==================== VOUCHER SCHEMAS ====================

class VoucherItemCreate(BaseModel):
    description: str = Field(..., min_length=1)
    amount: Decimal
    vat: Decimal = Field(default=Decimal("0.00"), ge=0, le=100)


class VoucherItemResponse(BaseModel):
    id: int
    description: str
    amount: Decimal
    vat: Decimal
    vat_amount: Decimal
    total_amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class VoucherCreate(BaseModel):
    date: date_type
    type: VoucherTypeEnum
    entity_type: EntityTypeEnum
    entity_id: int
    amount: Optional[Decimal] = None
    payment_method: str = Field(default="cash", max_length=20)
    status: StatusEnum = StatusEnum.COMPLETED
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    items: List[VoucherItemCreate] = []


class VoucherUpdate(BaseModel):
    date: Optional[date_type] = None
    type: Optional[VoucherTypeEnum] = None
    amount: Optional[Decimal] = None
    payment_method: Optional[str] = Field(None, max_length=20)
    status: Optional[StatusEnum] = None
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    items: Optional[List[VoucherItemCreate]] = None


class VoucherResponse(BaseModel):
    id: int
    voucher_number: str
    date: date_type
    type: str
    entity_type: str
    entity_id: int
    entity_name: Optional[str] = None
    amount: Decimal
    subtotal: Decimal
    total_vat: Decimal
    total: Decimal
    payment_method: str
    status: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    items: List[VoucherItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class VoucherListResponse(BaseModel):
    data: List[VoucherResponse]
    pagination: PaginationInfo


# ==================== NOTE SCHEMAS ====================

class ChecklistItemCreate(BaseModel):
    text: str = Field(..., min_length=1)
    completed: bool = False


class ChecklistItemResponse(BaseModel):
    id: int
    text: str
    completed: bool

    model_config = ConfigDict(from_attributes=True)


class NoteCreate(BaseModel):
    date: date_type
    title: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = None
    color: str = Field(default="yellow", max_length=20)
    type: NoteTypeEnum = NoteTypeEnum.NOTE
    completed: bool = False
    checklist_items: List[ChecklistItemCreate] = []


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)
    type: Optional[NoteTypeEnum] = None
    completed: Optional[bool] = None
    checklist_items: Optional[List[ChecklistItemCreate]] = None


class NoteResponse(BaseModel):
    id: int
    date: date_type
    title: Optional[str] = None
    content: Optional[str] = None
    color: Optional[str] = None
    type: str
    completed: bool
    created_at: datetime
    checklist_items: List[ChecklistItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


# ==================== TASK SCHEMAS ====================

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)
    created_date: Optional[date_type] = None
    task_group_id: Optional[int] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)
    completed: Optional[bool] = None
    task_group_id: Optional[int] = None


class TaskResponse(BaseModel):
    id: int
    title: str
    completed: bool
    color: Optional[str] = None
    created_date: Optional[date_type] = None
    completed_date: Optional[date_type] = None
    task_group_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class TaskGroupCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)
    created_date: Optional[date_type] = None


class TaskGroupUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)


class TaskGroupResponse(BaseModel):
    id: int
    title: str
    color: Optional[str] = None
    created_date: Optional[date_type] = None
    tasks: List[TaskResponse] = []

    model_config = ConfigDict(from_attributes=True)


# ==================== LEDGER SCHEMAS ====================

class LedgerStatsResponse(BaseModel):
    entity_type: EntityTypeEnum
    entity_id: int
    total_quantity: Decimal
    total_amount: Decimal
    average_price: Decimal
    last_date: Optional[date_type] = None
    balance: Decimal


class RecalculateResponse(BaseModel):
    message: str
    customers: int
    suppliers: int
    battery_types: int


# ==================== COMMON SCHEMAS ====================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    detail: str
    code: Optional[str] = None

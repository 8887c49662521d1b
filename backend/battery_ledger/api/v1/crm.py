"""
CRM API Routes - Customers and Suppliers
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from battery_ledger.core.database import get_db
from battery_ledger.core.messages import get_language, get_message, localize_error
from battery_ledger.schemas import (
    CustomerCreate, CustomerUpdate, CustomerResponse, CustomerListResponse,
    SupplierCreate, SupplierUpdate, SupplierResponse, SupplierListResponse,
    BlockRequest, FollowUpEntry, LastTransactionEntry, StatementResponse, MessageResponse
)
from battery_ledger.services.crm_service import CustomerService, SupplierService

router = APIRouter(prefix="/crm", tags=["CRM"])


# ==================== CUSTOMERS ====================

@router.get("/customers", response_model=CustomerListResponse)
async def list_customers(
    search: Optional[str] = None,
    blocked: Optional[bool] = None,
    page: int = 1,
    limit: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Search customers by name, phone or code"""
    customer_service = CustomerService(db)
    return customer_service.get_all(search, blocked, page, limit)


@router.get("/customers/follow-up", response_model=List[FollowUpEntry])
async def customers_follow_up(
    days: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Customers with no sale within the follow-up window"""
    customer_service = CustomerService(db)
    return customer_service.get_follow_up(days=days)


@router.get("/customers/next-code")
async def next_customer_code(db: Session = Depends(get_db)):
    """Get next customer code"""
    return {"next_code": CustomerService(db).get_next_code()}


@router.post("/customers", response_model=CustomerResponse, status_code=201)
async def create_customer(
    customer_data: CustomerCreate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Create a new customer"""
    customer_service = CustomerService(db)
    try:
        customer = customer_service.create(customer_data)
        db.commit()
        return customer
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Get customer by ID"""
    customer = CustomerService(db).get_by_id(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail=get_message("customer_not_found", lang))
    return customer


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Update customer"""
    customer = CustomerService(db).update(customer_id, customer_data)
    if not customer:
        raise HTTPException(status_code=404, detail=get_message("customer_not_found", lang))
    db.commit()
    return customer


@router.delete("/customers/{customer_id}", response_model=MessageResponse)
async def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete customer"""
    customer_service = CustomerService(db)
    try:
        if not customer_service.delete(customer_id):
            raise HTTPException(status_code=404, detail=get_message("customer_not_found", lang))
        db.commit()
        return {"message": get_message("deleted", lang)}
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))


@router.post("/customers/{customer_id}/block", response_model=CustomerResponse)
async def block_customer(
    customer_id: int,
    block_data: BlockRequest,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Block customer with a reason"""
    try:
        customer = CustomerService(db).block(customer_id, block_data.reason)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not customer:
        raise HTTPException(status_code=404, detail=get_message("customer_not_found", lang))
    db.commit()
    return customer


@router.post("/customers/{customer_id}/unblock", response_model=CustomerResponse)
async def unblock_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Unblock customer"""
    customer = CustomerService(db).unblock(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail=get_message("customer_not_found", lang))
    db.commit()
    return customer


@router.post("/customers/{customer_id}/message-sent", response_model=CustomerResponse)
async def mark_customer_message_sent(
    customer_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Record that a follow-up message was sent today"""
    customer = CustomerService(db).mark_message_sent(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail=get_message("customer_not_found", lang))
    db.commit()
    return customer


@router.get("/customers/{customer_id}/last-transactions", response_model=List[LastTransactionEntry])
async def customer_last_transactions(
    customer_id: int,
    limit: int = 2,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Latest sale line for the customer's most recent battery types"""
    customer_service = CustomerService(db)
    if not customer_service.get_by_id(customer_id):
        raise HTTPException(status_code=404, detail=get_message("customer_not_found", lang))
    return customer_service.get_last_transactions(customer_id, limit)


@router.get("/customers/{customer_id}/statement", response_model=StatementResponse)
async def customer_statement(
    customer_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Account statement with running balance"""
    statement = CustomerService(db).get_statement(customer_id)
    if not statement:
        raise HTTPException(status_code=404, detail=get_message("customer_not_found", lang))
    return statement


# ==================== SUPPLIERS ====================

@router.get("/suppliers", response_model=SupplierListResponse)
async def list_suppliers(
    search: Optional[str] = None,
    blocked: Optional[bool] = None,
    page: int = 1,
    limit: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Search suppliers by name, phone or code"""
    supplier_service = SupplierService(db)
    return supplier_service.get_all(search, blocked, page, limit)


@router.get("/suppliers/follow-up", response_model=List[FollowUpEntry])
async def suppliers_follow_up(
    days: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Suppliers with no purchase within the follow-up window"""
    supplier_service = SupplierService(db)
    return supplier_service.get_follow_up(days=days)


@router.get("/suppliers/next-code")
async def next_supplier_code(db: Session = Depends(get_db)):
    """Get next supplier code"""
    return {"next_code": SupplierService(db).get_next_code()}


@router.post("/suppliers", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    supplier_data: SupplierCreate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Create a new supplier"""
    supplier_service = SupplierService(db)
    try:
        supplier = supplier_service.create(supplier_data)
        db.commit()
        return supplier
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))


@router.get("/suppliers/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Get supplier by ID"""
    supplier = SupplierService(db).get_by_id(supplier_id)
    if not supplier:
        raise HTTPException(status_code=404, detail=get_message("supplier_not_found", lang))
    return supplier


@router.put("/suppliers/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: int,
    supplier_data: SupplierUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Update supplier"""
    supplier = SupplierService(db).update(supplier_id, supplier_data)
    if not supplier:
        raise HTTPException(status_code=404, detail=get_message("supplier_not_found", lang))
    db.commit()
    return supplier


@router.delete("/suppliers/{supplier_id}", response_model=MessageResponse)
async def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete supplier"""
    supplier_service = SupplierService(db)
    try:
        if not supplier_service.delete(supplier_id):
            raise HTTPException(status_code=404, detail=get_message("supplier_not_found", lang))
        db.commit()
        return {"message": get_message("deleted", lang)}
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))


@router.post("/suppliers/{supplier_id}/block", response_model=SupplierResponse)
async def block_supplier(
    supplier_id: int,
    block_data: BlockRequest,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Block supplier with a reason"""
    try:
        supplier = SupplierService(db).block(supplier_id, block_data.reason)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not supplier:
        raise HTTPException(status_code=404, detail=get_message("supplier_not_found", lang))
    db.commit()
    return supplier


@router.post("/suppliers/{supplier_id}/unblock", response_model=SupplierResponse)
async def unblock_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Unblock supplier"""
    supplier = SupplierService(db).unblock(supplier_id)
    if not supplier:
        raise HTTPException(status_code=404, detail=get_message("supplier_not_found", lang))
    db.commit()
    return supplier


@router.post("/suppliers/{supplier_id}/message-sent", response_model=SupplierResponse)
async def mark_supplier_message_sent(
    supplier_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Record that a follow-up message was sent today"""
    supplier = SupplierService(db).mark_message_sent(supplier_id)
    if not supplier:
        raise HTTPException(status_code=404, detail=get_message("supplier_not_found", lang))
    db.commit()
    return supplier


@router.get("/suppliers/{supplier_id}/last-transactions", response_model=List[LastTransactionEntry])
async def supplier_last_transactions(
    supplier_id: int,
    limit: int = 2,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Latest purchase line for the supplier's most recent battery types"""
    supplier_service = SupplierService(db)
    if not supplier_service.get_by_id(supplier_id):
        raise HTTPException(status_code=404, detail=get_message("supplier_not_found", lang))
    return supplier_service.get_last_transactions(supplier_id, limit)


@router.get("/suppliers/{supplier_id}/statement", response_model=StatementResponse)
async def supplier_statement(
    supplier_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Account statement with running balance"""
    statement = SupplierService(db).get_statement(supplier_id)
    if not statement:
        raise HTTPException(status_code=404, detail=get_message("supplier_not_found", lang))
    return statement

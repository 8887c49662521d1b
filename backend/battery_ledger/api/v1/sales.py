"""
Sales API Routes - Customer Invoices
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from battery_ledger.core.database import get_db
from battery_ledger.core.messages import get_language, get_message, localize_error
from battery_ledger.schemas import SaleCreate, SaleUpdate, SaleResponse, SaleWithItems, MessageResponse
from battery_ledger.services.sales_service import SalesService

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.get("", response_model=List[SaleResponse])
async def list_sales(
    customer_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    payment_method: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List sales, newest first"""
    return SalesService(db).get_all(customer_id, start_date, end_date, payment_method)


@router.get("/next-number")
async def get_next_sale_number(db: Session = Depends(get_db)):
    """Get next sales invoice number"""
    return {"next_number": SalesService(db).get_next_number()}


@router.post("", response_model=SaleWithItems, status_code=201)
async def create_sale(
    sale_data: SaleCreate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Record a sale, issue its stock and refresh the customer ledger"""
    sales_service = SalesService(db)
    try:
        sale = sales_service.create(sale_data)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    return sales_service.get_by_id(sale.id)


@router.get("/{sale_id}", response_model=SaleWithItems)
async def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Get sale by ID with line items"""
    sale = SalesService(db).get_by_id(sale_id)
    if not sale:
        raise HTTPException(status_code=404, detail=get_message("sale_not_found", lang))
    return sale


@router.put("/{sale_id}", response_model=SaleWithItems)
async def update_sale(
    sale_id: int,
    sale_data: SaleUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Update a sale, re-reconciling stock and customer totals"""
    sales_service = SalesService(db)
    try:
        sale = sales_service.update(sale_id, sale_data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not sale:
        raise HTTPException(status_code=404, detail=get_message("sale_not_found", lang))
    db.commit()
    return sales_service.get_by_id(sale_id)


@router.delete("/{sale_id}", response_model=MessageResponse)
async def delete_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete a sale, returning its stock and refreshing customer totals"""
    if not SalesService(db).delete(sale_id):
        raise HTTPException(status_code=404, detail=get_message("sale_not_found", lang))
    db.commit()
    return {"message": get_message("deleted", lang)}

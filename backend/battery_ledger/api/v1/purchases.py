"""
Purchases API Routes - Supplier Invoices
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from battery_ledger.core.database import get_db
from battery_ledger.core.messages import get_language, get_message, localize_error
from battery_ledger.schemas import (
    PurchaseCreate, PurchaseUpdate, PurchaseResponse, PurchaseWithItems, MessageResponse
)
from battery_ledger.services.purchase_service import PurchaseService

router = APIRouter(prefix="/purchases", tags=["Purchases"])


@router.get("", response_model=List[PurchaseResponse])
async def list_purchases(
    supplier_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    payment_method: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List purchases, newest first"""
    return PurchaseService(db).get_all(supplier_id, start_date, end_date, payment_method)


@router.get("/next-number")
async def get_next_purchase_number(db: Session = Depends(get_db)):
    """Get next purchase invoice number"""
    return {"next_number": PurchaseService(db).get_next_number()}


@router.post("", response_model=PurchaseWithItems, status_code=201)
async def create_purchase(
    purchase_data: PurchaseCreate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Record a purchase, receive its stock and refresh the supplier ledger"""
    purchase_service = PurchaseService(db)
    try:
        purchase = purchase_service.create(purchase_data)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    return purchase_service.get_by_id(purchase.id)


@router.get("/{purchase_id}", response_model=PurchaseWithItems)
async def get_purchase(
    purchase_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Get purchase by ID with line items"""
    purchase = PurchaseService(db).get_by_id(purchase_id)
    if not purchase:
        raise HTTPException(status_code=404, detail=get_message("purchase_not_found", lang))
    return purchase


@router.put("/{purchase_id}", response_model=PurchaseWithItems)
async def update_purchase(
    purchase_id: int,
    purchase_data: PurchaseUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Update a purchase, re-reconciling stock and supplier totals"""
    purchase_service = PurchaseService(db)
    try:
        purchase = purchase_service.update(purchase_id, purchase_data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not purchase:
        raise HTTPException(status_code=404, detail=get_message("purchase_not_found", lang))
    db.commit()
    return purchase_service.get_by_id(purchase_id)


@router.delete("/{purchase_id}", response_model=MessageResponse)
async def delete_purchase(
    purchase_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete a purchase, reverting its stock and supplier totals"""
    if not PurchaseService(db).delete(purchase_id):
        raise HTTPException(status_code=404, detail=get_message("purchase_not_found", lang))
    db.commit()
    return {"message": get_message("deleted", lang)}

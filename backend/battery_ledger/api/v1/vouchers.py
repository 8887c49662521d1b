"""
Vouchers API Routes - Receipts and Payments
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from battery_ledger.core.database import get_db
from battery_ledger.core.messages import get_language, get_message, localize_error
from battery_ledger.schemas import (
    VoucherCreate, VoucherUpdate, VoucherResponse, VoucherListResponse, MessageResponse
)
from battery_ledger.services.voucher_service import VoucherService

router = APIRouter(prefix="/vouchers", tags=["Vouchers"])


@router.get("", response_model=VoucherListResponse)
async def list_vouchers(
    search: Optional[str] = None,
    voucher_type: Optional[str] = Query(None, alias="type"),
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Search vouchers; type=all disables the type filter"""
    try:
        return VoucherService(db).get_all(
            search, voucher_type, entity_type, entity_id, start_date, end_date, page, limit
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=localize_error(e, lang))


@router.get("/next-number")
async def get_next_voucher_number(db: Session = Depends(get_db)):
    """Get next voucher number"""
    return {"next_number": VoucherService(db).get_next_number()}


@router.post("", response_model=VoucherResponse, status_code=201)
async def create_voucher(
    voucher_data: VoucherCreate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Create a receipt or payment voucher"""
    voucher_service = VoucherService(db)
    try:
        voucher = voucher_service.create(voucher_data)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    return voucher_service.get_by_id(voucher.id)


@router.get("/{voucher_id}", response_model=VoucherResponse)
async def get_voucher(
    voucher_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Get voucher by ID with line items"""
    voucher = VoucherService(db).get_by_id(voucher_id)
    if not voucher:
        raise HTTPException(status_code=404, detail=get_message("voucher_not_found", lang))
    return voucher


@router.put("/{voucher_id}", response_model=VoucherResponse)
async def update_voucher(
    voucher_id: int,
    voucher_data: VoucherUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Update voucher"""
    voucher_service = VoucherService(db)
    try:
        voucher = voucher_service.update(voucher_id, voucher_data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not voucher:
        raise HTTPException(status_code=404, detail=get_message("voucher_not_found", lang))
    db.commit()
    return voucher_service.get_by_id(voucher_id)


@router.delete("/{voucher_id}", response_model=MessageResponse)
async def delete_voucher(
    voucher_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete voucher"""
    if not VoucherService(db).delete(voucher_id):
        raise HTTPException(status_code=404, detail=get_message("voucher_not_found", lang))
    db.commit()
    return {"message": get_message("deleted", lang)}

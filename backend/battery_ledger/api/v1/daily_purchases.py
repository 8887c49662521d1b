"""
Daily Purchases API Routes - Same-day quick entry
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from battery_ledger.core.database import get_db
from battery_ledger.core.messages import get_language, get_message, localize_error
from battery_ledger.schemas import (
    DailyPurchaseCreate, DailyPurchaseUpdate, DailyPurchaseResponse, DailySummary, MessageResponse
)
from battery_ledger.services.daily_purchase_service import DailyPurchaseService

router = APIRouter(prefix="/daily-purchases", tags=["Daily Purchases"])


@router.get("", response_model=List[DailyPurchaseResponse])
async def list_daily_purchases(
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db)
):
    """List the rows entered on a day (today by default), in entry order"""
    return DailyPurchaseService(db).get_by_date(day or date.today())


@router.get("/summary", response_model=DailySummary)
async def daily_summary(
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db)
):
    """Totals for a day"""
    return DailyPurchaseService(db).get_summary(day or date.today())


@router.post("", response_model=DailyPurchaseResponse, status_code=201)
async def save_daily_purchase(
    entry_data: DailyPurchaseCreate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Save one row, receiving stock and refreshing the linked supplier"""
    try:
        entry = DailyPurchaseService(db).create(entry_data)
        db.commit()
        return entry
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))


@router.put("/{entry_id}", response_model=DailyPurchaseResponse)
async def update_daily_purchase(
    entry_id: int,
    entry_data: DailyPurchaseUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Edit one row"""
    try:
        entry = DailyPurchaseService(db).update(entry_id, entry_data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not entry:
        raise HTTPException(status_code=404, detail=get_message("daily_purchase_not_found", lang))
    db.commit()
    return entry


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_daily_purchase(
    entry_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete one row"""
    if not DailyPurchaseService(db).delete(entry_id):
        raise HTTPException(status_code=404, detail=get_message("daily_purchase_not_found", lang))
    db.commit()
    return {"message": get_message("deleted", lang)}


@router.delete("", response_model=MessageResponse)
async def clear_day(
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete every row entered on a day"""
    DailyPurchaseService(db).clear_day(day)
    db.commit()
    return {"message": get_message("day_cleared", lang)}

"""
Inventory API Routes - Battery Types and Stock
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from battery_ledger.core.database import get_db
from battery_ledger.core.messages import get_language, get_message, localize_error
from battery_ledger.schemas import (
    BatteryTypeCreate, BatteryTypeUpdate, BatteryTypeResponse, QuantityAdjustment, MessageResponse
)
from battery_ledger.services.inventory_service import BatteryTypeService

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.get("/battery-types", response_model=List[BatteryTypeResponse])
async def list_battery_types(
    include_inactive: bool = False,
    db: Session = Depends(get_db)
):
    """List battery types with current stock"""
    return BatteryTypeService(db).get_all(include_inactive)


@router.post("/battery-types", response_model=BatteryTypeResponse, status_code=201)
async def create_battery_type(
    battery_type_data: BatteryTypeCreate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Create a new battery type"""
    try:
        battery_type = BatteryTypeService(db).create(battery_type_data)
        db.commit()
        return battery_type
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))


@router.get("/battery-types/{battery_type_id}", response_model=BatteryTypeResponse)
async def get_battery_type(
    battery_type_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Get battery type by ID"""
    battery_type = BatteryTypeService(db).get_by_id(battery_type_id)
    if not battery_type:
        raise HTTPException(status_code=404, detail=get_message("battery_type_not_found", lang))
    return battery_type


@router.put("/battery-types/{battery_type_id}", response_model=BatteryTypeResponse)
async def update_battery_type(
    battery_type_id: int,
    battery_type_data: BatteryTypeUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Update battery type"""
    try:
        battery_type = BatteryTypeService(db).update(battery_type_id, battery_type_data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not battery_type:
        raise HTTPException(status_code=404, detail=get_message("battery_type_not_found", lang))
    db.commit()
    return battery_type


@router.delete("/battery-types/{battery_type_id}", response_model=MessageResponse)
async def delete_battery_type(
    battery_type_id: int,
    soft: bool = False,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete battery type, or deactivate it with ?soft=true"""
    try:
        deleted = BatteryTypeService(db).delete(battery_type_id, soft=soft)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not deleted:
        raise HTTPException(status_code=404, detail=get_message("battery_type_not_found", lang))
    db.commit()
    return {"message": get_message("deleted", lang)}


@router.post("/battery-types/{battery_type_id}/adjust", response_model=BatteryTypeResponse)
async def adjust_battery_type_quantity(
    battery_type_id: int,
    adjustment: QuantityAdjustment,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Manual stock correction; the level never drops below zero"""
    battery_type = BatteryTypeService(db).record_adjustment(
        battery_type_id, adjustment.change, adjustment.reason
    )
    if not battery_type:
        raise HTTPException(status_code=404, detail=get_message("battery_type_not_found", lang))
    db.commit()
    return battery_type

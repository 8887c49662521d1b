"""
Ledger API Routes - Recalculation and derived counterparty figures
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from battery_ledger.core.database import get_db
from battery_ledger.core.messages import get_language, get_message, localize_error
from battery_ledger.schemas import EntityTypeEnum, LedgerStatsResponse, RecalculateResponse
from battery_ledger.services.ledger_service import LedgerService

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.post("/recalculate", response_model=RecalculateResponse)
async def recalculate(
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Rebuild every balance and stock level from the transaction history"""
    counts = LedgerService(db).recompute_all()
    db.commit()
    return {"message": get_message("recalculated", lang), **counts}


@router.get("/{entity_type}/{entity_id}", response_model=LedgerStatsResponse)
async def get_ledger_stats(
    entity_type: EntityTypeEnum,
    entity_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Aggregate a counterparty's transactions without writing anything"""
    try:
        stats = LedgerService(db).get_stats(entity_type.value, entity_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not stats:
        raise HTTPException(status_code=404, detail=get_message(f"{entity_type.value}_not_found", lang))
    return {
        "entity_type": entity_type,
        "entity_id": entity_id,
        "total_quantity": stats.total_quantity,
        "total_amount": stats.total_amount,
        "average_price": stats.average_price,
        "last_date": stats.last_date,
        "balance": stats.balance,
    }

"""
Dashboard API Routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from battery_ledger.core.database import get_db
from battery_ledger.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def get_dashboard_stats(db: Session = Depends(get_db)):
    """Get main dashboard statistics"""
    dashboard_service = DashboardService(db)
    return dashboard_service.get_stats()

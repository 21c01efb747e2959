"""
Estadísticas del panel (solo administradores).
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from core.database import get_db
from core.dependencies import get_current_admin_user
from core.statistics_service import get_dashboard_stats, get_monthly_sales
from models.user import User

router = APIRouter(
    prefix="/statistics",
    tags=["statistics"]
)


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    return {
        "success": True,
        "status_code": 200,
        "message": "Estadísticas obtenidas exitosamente",
        "data": get_dashboard_stats(db)
    }


@router.get("/monthly")
async def monthly_sales(
    months: int = Query(3, ge=1, le=12, description="Cantidad de meses"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """Ventas por mes, del más antiguo al actual"""
    return {
        "success": True,
        "status_code": 200,
        "message": "Ventas mensuales obtenidas exitosamente",
        "data": get_monthly_sales(db, months=months)
    }

"""
Endpoints de Movimientos de Caja (ingresos, retiros, ajustes, pérdidas).
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.cash_register import MovementType
from app.schemas.cash_register import (
    CashMovementCreate,
    CashMovementListResponse,
    CashMovementResponse,
)
from app.services import cash_register_service

router = APIRouter()


@router.post("", response_model=CashMovementResponse, status_code=201)
async def create_movement(
    data: CashMovementCreate,
    db: AsyncSession = Depends(get_db),
):
    """Registra un movimiento en una sesión abierta."""
    return await cash_register_service.create_movement(db, data)


@router.get("", response_model=CashMovementListResponse)
async def list_movements(
    session_id: UUID | None = Query(None, description="Filtrar por sesión"),
    movement_type: MovementType | None = Query(None),
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Lista movimientos de caja con filtros opcionales."""
    return await cash_register_service.list_movements(
        db, session_id, movement_type, page, size
    )

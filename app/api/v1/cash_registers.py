"""
Endpoints de Cajas Registradoras.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.cash_register import CashRegisterCreate, CashRegisterResponse
from app.services import cash_register_service

router = APIRouter()


@router.get("", response_model=list[CashRegisterResponse])
async def list_registers(
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """Lista cajas (activas por defecto) con su sesión abierta."""
    return await cash_register_service.list_registers(db, include_inactive)


@router.post("", response_model=CashRegisterResponse, status_code=201)
async def create_register(
    data: CashRegisterCreate,
    db: AsyncSession = Depends(get_db),
):
    return await cash_register_service.create_register(db, data)


@router.post("/{register_id}/deactivate", response_model=CashRegisterResponse)
async def deactivate_register(
    register_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Desactiva una caja sin sesión abierta."""
    return await cash_register_service.deactivate_register(db, register_id)

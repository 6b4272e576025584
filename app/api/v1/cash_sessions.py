"""
Endpoints de Sesiones de Caja.
Apertura y cierre (con cuadre) por acción, consultas y resumen.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.cash_register import CashSessionStatus
from app.schemas.cash_register import (
    CashSessionAction,
    CashSessionClose,
    CashSessionListResponse,
    CashSessionResponse,
    CashSessionSummary,
)
from app.services import cash_register_service

router = APIRouter()


@router.post("", response_model=CashSessionResponse, status_code=201)
async def manage_session(
    data: CashSessionAction,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """
    Abre (`action=open`, 201) o cierra (`action=close`, 200) una sesión de caja.
    El cierre calcula saldo esperado y diferencia contra lo contado.
    """
    if isinstance(data, CashSessionClose):
        response.status_code = status.HTTP_200_OK
        return await cash_register_service.close_session(db, data)
    return await cash_register_service.open_session(db, data)


@router.get("", response_model=CashSessionListResponse)
async def list_sessions(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: CashSessionStatus | None = Query(None),
    cash_register_id: UUID | None = Query(None, description="Filtrar por caja"),
    db: AsyncSession = Depends(get_db),
):
    """Lista sesiones con caja, usuarios, ventas y movimientos."""
    return await cash_register_service.list_sessions(
        db, page, size, status, cash_register_id
    )


@router.get("/current", response_model=CashSessionResponse | None)
async def get_current_session(
    cash_register_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Retorna la sesión abierta de la caja (o null si no hay)."""
    return await cash_register_service.get_current_session(db, cash_register_id)


@router.get("/{session_id}", response_model=CashSessionResponse)
async def get_session(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await cash_register_service.get_session(db, session_id)


@router.get("/{session_id}/summary", response_model=CashSessionSummary)
async def get_session_summary(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Resumen agregado y saldo esperado al momento."""
    return await cash_register_service.get_session_summary(db, session_id)

"""
Endpoints de Ventas.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.sale import SaleCreate, SaleListResponse, SaleResponse
from app.services import sale_service

router = APIRouter()


@router.post("", response_model=SaleResponse, status_code=201)
async def create_sale(
    data: SaleCreate,
    db: AsyncSession = Depends(get_db),
):
    """Registra una venta, descuenta stock y emite su recibo."""
    return await sale_service.create_sale(db, data)


@router.get("", response_model=SaleListResponse)
async def list_sales(
    cash_session_id: UUID | None = Query(None, description="Filtrar por sesión"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await sale_service.list_sales(db, cash_session_id, page, size)


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(
    sale_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await sale_service.get_sale(db, sale_id)

"""
Endpoints de Recibos.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.receipt import ReceiptCreate, ReceiptListResponse, ReceiptResponse
from app.services import receipt_service

router = APIRouter()


@router.post("", response_model=ReceiptResponse, status_code=201)
async def create_receipt(
    data: ReceiptCreate,
    db: AsyncSession = Depends(get_db),
):
    """Emite el recibo de una venta (uno por venta)."""
    return await receipt_service.create_receipt(db, data)


@router.get("", response_model=ReceiptListResponse)
async def list_receipts(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await receipt_service.list_receipts(db, page, size)


@router.get("/{receipt_id}", response_model=ReceiptResponse)
async def get_receipt(
    receipt_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await receipt_service.get_receipt(db, receipt_id)

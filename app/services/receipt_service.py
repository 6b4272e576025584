"""
Lógica de negocio para Recibos.
Un recibo copia los montos de la venta al emitirse y no se modifica.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ConflictException, NotFoundException, ValidationException
from app.models.cash_register import CashSession
from app.models.daily_sequence import SequenceType
from app.models.owner import Owner, Pet
from app.models.receipt import Receipt
from app.models.sale import PaymentStatus, Sale
from app.models.user import UserRole
from app.schemas.receipt import ReceiptCreate, ReceiptListResponse, ReceiptResponse
from app.services.sequence_service import next_number
from app.services.staff_service import get_active_user

logger = logging.getLogger(__name__)

_DUPLICATE_RECEIPT = "Ya existe un recibo para esta venta"


def _receipt_options():
    return (
        selectinload(Receipt.sale).selectinload(Sale.items),
        selectinload(Receipt.sale)
        .selectinload(Sale.cash_session)
        .selectinload(CashSession.cash_register),
        selectinload(Receipt.owner),
        selectinload(Receipt.pet),
        selectinload(Receipt.veterinarian),
        selectinload(Receipt.creator),
    )


async def issue_for_sale(
    db: AsyncSession,
    sale: Sale,
    created_by: UUID,
    pet_id: UUID | None = None,
    owner_id: UUID | None = None,
    veterinarian_id: UUID | None = None,
    payment_status: PaymentStatus | None = None,
) -> Receipt:
    """Crea el recibo de una venta copiando total, método y estado de pago."""
    receipt = Receipt(
        receipt_number=await next_number(db, SequenceType.RECEIPT),
        sale_id=sale.id,
        pet_id=pet_id,
        owner_id=owner_id or sale.owner_id,
        veterinarian_id=veterinarian_id,
        created_by=created_by,
        issue_date=datetime.now(timezone.utc),
        total_amount=sale.total,
        payment_method=sale.payment_method,
        payment_status=payment_status or sale.payment_status,
        notes=sale.notes,
    )
    db.add(receipt)
    await db.flush()

    logger.info(f"Recibo {receipt.receipt_number} emitido para la venta {sale.sale_number}")
    return receipt


async def create_receipt(db: AsyncSession, data: ReceiptCreate) -> Receipt:
    """Emite manualmente el recibo de una venta que aún no lo tiene."""
    sale = await db.get(Sale, data.sale_id)
    if sale is None:
        raise ValidationException("Venta no encontrada")
    await get_active_user(db, data.created_by)

    existing = await db.execute(
        select(Receipt.id).where(Receipt.sale_id == data.sale_id)
    )
    if existing.scalar_one_or_none():
        logger.warning(f"Recibo duplicado rechazado para la venta {sale.sale_number}")
        raise ConflictException(_DUPLICATE_RECEIPT)

    if data.owner_id is not None and await db.get(Owner, data.owner_id) is None:
        raise ValidationException(f"Propietario no encontrado: {data.owner_id}")
    if data.pet_id is not None and await db.get(Pet, data.pet_id) is None:
        raise ValidationException(f"Mascota no encontrada: {data.pet_id}")
    if data.veterinarian_id is not None:
        await get_active_user(db, data.veterinarian_id, role=UserRole.VETERINARIAN)

    try:
        receipt = await issue_for_sale(
            db,
            sale,
            created_by=data.created_by,
            pet_id=data.pet_id,
            owner_id=data.owner_id,
            veterinarian_id=data.veterinarian_id,
        )
    except IntegrityError:
        raise ConflictException(_DUPLICATE_RECEIPT)

    return await get_receipt(db, receipt.id)


async def get_receipt(db: AsyncSession, receipt_id: UUID) -> Receipt:
    result = await db.execute(
        select(Receipt)
        .options(*_receipt_options())
        .where(Receipt.id == receipt_id)
        .execution_options(populate_existing=True)
    )
    receipt = result.scalar_one_or_none()
    if receipt is None:
        raise NotFoundException(detail="Recibo no encontrado")
    return receipt


async def list_receipts(
    db: AsyncSession, page: int = 1, size: int = 20
) -> ReceiptListResponse:
    """Lista recibos con paginación, más recientes primero."""
    total_result = await db.execute(select(func.count()).select_from(Receipt))
    total = total_result.scalar() or 0

    result = await db.execute(
        select(Receipt)
        .options(*_receipt_options())
        .order_by(Receipt.created_at.desc())
        .offset((page - 1) * size)
        .limit(size)
    )
    receipts = result.scalars().all()

    pages = (total + size - 1) // size if total > 0 else 1

    return ReceiptListResponse(
        items=[ReceiptResponse.model_validate(r) for r in receipts],
        total=total,
        page=page,
        size=size,
        pages=pages,
    )

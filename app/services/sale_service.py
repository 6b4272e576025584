"""
Lógica de negocio para Ventas.

Una venta se registra completa o no se registra: cabecera, líneas,
descuento de stock, acumulados de la sesión y recibo comparten la
transacción del request.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import (
    InsufficientStockException,
    NotFoundException,
    ValidationException,
)
from app.models.cash_register import CashSession, CashSessionStatus
from app.models.daily_sequence import SequenceType
from app.models.owner import Owner
from app.models.product import Product
from app.models.sale import PaymentMethod, PaymentStatus, Sale, SaleItem, SaleItemType
from app.models.service import Service
from app.schemas.sale import SaleCreate, SaleItemCreate, SaleListResponse, SaleResponse
from app.services import receipt_service
from app.services.cash_register_service import SESSION_NOT_OPEN, get_open_session_locked
from app.services.sequence_service import next_number
from app.services.settlement import MAX_AMOUNT, to_money
from app.services.staff_service import get_active_user

logger = logging.getLogger(__name__)

# Acumulado de la sesión que suma cada método de pago (además de total_sales)
_SESSION_TOTAL_BY_METHOD = {
    PaymentMethod.CASH: "total_cash",
    PaymentMethod.CARD: "total_card",
    PaymentMethod.TRANSFER: "total_transfer",
}


@dataclass
class _PricedLine:
    item_type: SaleItemType
    description: str
    quantity: int
    unit_price: Decimal
    product_id: UUID | None = None
    service_id: UUID | None = None

    @property
    def total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


# ── Helpers ───────────────────────────────────────────


def _sale_options():
    return (
        selectinload(Sale.items),
        selectinload(Sale.cash_session).selectinload(CashSession.cash_register),
        selectinload(Sale.owner),
        selectinload(Sale.seller),
        selectinload(Sale.receipt),
    )


async def _price_items(
    db: AsyncSession, items: list[SaleItemCreate]
) -> list[_PricedLine]:
    """
    Valida cada línea contra el catálogo y fija su precio.
    La cantidad pedida de un mismo producto se acumula entre líneas.
    """
    lines: list[_PricedLine] = []
    requested: dict[UUID, int] = defaultdict(int)

    for item in items:
        if item.type == SaleItemType.PRODUCT:
            product = await db.get(Product, item.product_id, populate_existing=True)
            if product is None or not product.is_active:
                raise ValidationException(f"Producto no encontrado: {item.product_id}")

            requested[product.id] += item.quantity
            if product.current_stock < requested[product.id]:
                logger.warning(
                    f"Venta rechazada: stock insuficiente para {product.name} "
                    f"(disponible {product.current_stock}, pedido {requested[product.id]})"
                )
                raise InsufficientStockException(product.name, product.current_stock)

            unit_price = item.unit_price if item.unit_price is not None else product.unit_price
            if unit_price is None:
                raise ValidationException(f"El producto {product.name} no tiene precio de venta")

            lines.append(
                _PricedLine(
                    item_type=SaleItemType.PRODUCT,
                    product_id=product.id,
                    description=product.name,
                    quantity=item.quantity,
                    unit_price=to_money(unit_price),
                )
            )
        else:
            service = await db.get(Service, item.service_id)
            if service is None or not service.is_active:
                raise ValidationException(f"Servicio no encontrado: {item.service_id}")

            unit_price = item.unit_price if item.unit_price is not None else service.price
            lines.append(
                _PricedLine(
                    item_type=SaleItemType.SERVICE,
                    service_id=service.id,
                    description=service.name,
                    quantity=item.quantity,
                    unit_price=to_money(unit_price),
                )
            )

    return lines


def _check_amount_limits(
    session: CashSession, lines: list[_PricedLine], total: Decimal
) -> None:
    """Rechaza montos que no caben en las columnas de dinero."""
    for line in lines:
        if line.total > MAX_AMOUNT:
            raise ValidationException(
                f"El total de la línea {line.description} excede el máximo permitido ({MAX_AMOUNT})"
            )
    if total > MAX_AMOUNT:
        raise ValidationException(f"El total de la venta excede el máximo permitido ({MAX_AMOUNT})")
    if session.total_sales + total > MAX_AMOUNT:
        raise ValidationException(
            f"La venta excede el acumulado máximo de la sesión ({MAX_AMOUNT})"
        )


async def _decrement_stock(db: AsyncSession, line: _PricedLine) -> None:
    """
    Descuenta stock con un UPDATE condicional; si ninguna fila cumple
    current_stock >= cantidad, otra venta se llevó el stock primero.
    """
    result = await db.execute(
        update(Product)
        .where(
            Product.id == line.product_id,
            Product.current_stock >= line.quantity,
        )
        .values(current_stock=Product.current_stock - line.quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        available = await db.scalar(
            select(Product.current_stock).where(Product.id == line.product_id)
        )
        logger.warning(f"Descuento de stock rechazado para {line.description}")
        raise InsufficientStockException(line.description, available or 0)


async def _add_to_session_totals(
    db: AsyncSession,
    session_id: UUID,
    total: Decimal,
    payment_method: PaymentMethod,
) -> None:
    """Suma la venta a los acumulados de la sesión, solo si sigue abierta."""
    values = {"total_sales": CashSession.total_sales + total}
    column = _SESSION_TOTAL_BY_METHOD.get(payment_method)
    if column:
        values[column] = getattr(CashSession, column) + total

    result = await db.execute(
        update(CashSession)
        .where(
            CashSession.id == session_id,
            CashSession.status == CashSessionStatus.OPEN,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ValidationException(SESSION_NOT_OPEN)


async def _warn_low_stock(db: AsyncSession, product_ids: set[UUID]) -> None:
    if not product_ids:
        return
    result = await db.execute(
        select(Product.name, Product.current_stock, Product.min_stock).where(
            Product.id.in_(product_ids),
            Product.current_stock <= Product.min_stock,
        )
    )
    for name, current, minimum in result.all():
        logger.warning(f"Stock bajo para {name}: {current} <= mín {minimum}")


# ── Operations ────────────────────────────────────────


async def get_sale(db: AsyncSession, sale_id: UUID) -> Sale:
    result = await db.execute(
        select(Sale)
        .options(*_sale_options())
        .where(Sale.id == sale_id)
        .execution_options(populate_existing=True)
    )
    sale = result.scalar_one_or_none()
    if sale is None:
        raise NotFoundException(detail="Venta no encontrada")
    return sale


async def create_sale(db: AsyncSession, data: SaleCreate) -> Sale:
    """
    Registra una venta contra una sesión abierta.

    1. Valida sesión, vendedor, propietario y cada línea (stock, catálogo)
    2. Crea la venta y sus líneas
    3. Descuenta stock de los productos
    4. Suma el total a los acumulados de la sesión según método de pago
    5. Emite el recibo (PAID)
    """
    session = await get_open_session_locked(db, data.cash_session_id)
    await get_active_user(db, data.sold_by)
    if data.owner_id is not None and await db.get(Owner, data.owner_id) is None:
        raise ValidationException(f"Propietario no encontrado: {data.owner_id}")

    lines = await _price_items(db, data.items)
    subtotal = sum((line.total for line in lines), Decimal("0.00"))
    total = subtotal  # sin impuestos ni descuentos
    _check_amount_limits(session, lines, total)

    sale = Sale(
        sale_number=await next_number(db, SequenceType.SALE),
        cash_session_id=session.id,
        owner_id=data.owner_id,
        sold_by=data.sold_by,
        payment_method=data.payment_method,
        payment_status=PaymentStatus.PAID,
        subtotal=subtotal,
        total=total,
        notes=data.notes.strip() if data.notes and data.notes.strip() else None,
    )
    db.add(sale)
    await db.flush()

    for line in lines:
        db.add(
            SaleItem(
                sale_id=sale.id,
                item_type=line.item_type,
                product_id=line.product_id,
                service_id=line.service_id,
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total=line.total,
            )
        )
        if line.item_type == SaleItemType.PRODUCT:
            await _decrement_stock(db, line)
    await db.flush()

    await _add_to_session_totals(db, session.id, total, data.payment_method)

    await receipt_service.issue_for_sale(
        db, sale, created_by=data.sold_by, payment_status=PaymentStatus.PAID
    )

    logger.info(
        f"Venta {sale.sale_number} registrada en {session.session_number}: "
        f"{len(lines)} líneas, total {total} [{data.payment_method.value}]"
    )
    await _warn_low_stock(db, {line.product_id for line in lines if line.product_id})

    return await get_sale(db, sale.id)


async def list_sales(
    db: AsyncSession,
    cash_session_id: UUID | None = None,
    page: int = 1,
    size: int = 20,
) -> SaleListResponse:
    """Lista ventas con paginación."""
    query = select(Sale).options(*_sale_options())
    count_query = select(func.count()).select_from(Sale)

    if cash_session_id:
        query = query.where(Sale.cash_session_id == cash_session_id)
        count_query = count_query.where(Sale.cash_session_id == cash_session_id)

    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(Sale.created_at.desc())
    query = query.offset((page - 1) * size).limit(size)

    result = await db.execute(query)
    sales = result.scalars().all()

    pages = (total + size - 1) // size if total > 0 else 1

    return SaleListResponse(
        items=[SaleResponse.model_validate(s) for s in sales],
        total=total,
        page=page,
        size=size,
        pages=pages,
    )

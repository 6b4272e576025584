"""
Lógica de negocio para el módulo de Caja.
Cajas registradoras, apertura/cierre de sesiones con cuadre y
movimientos manuales de efectivo.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import get_settings
from app.core.exceptions import ConflictException, NotFoundException, ValidationException
from app.models.cash_register import (
    CashMovement,
    CashRegister,
    CashSession,
    CashSessionStatus,
    MovementType,
)
from app.models.daily_sequence import SequenceType
from app.models.sale import Sale
from app.schemas.cash_register import (
    CashMovementCreate,
    CashMovementListResponse,
    CashMovementResponse,
    CashRegisterCreate,
    CashRegisterResponse,
    CashSessionClose,
    CashSessionListResponse,
    CashSessionOpen,
    CashSessionResponse,
    CashSessionSummary,
    OpenSessionBrief,
)
from app.services import settlement
from app.services.sequence_service import next_number
from app.services.staff_service import get_active_user

logger = logging.getLogger(__name__)
settings = get_settings()

SESSION_NOT_OPEN = "Sesión de caja no encontrada o cerrada"
_SESSION_ALREADY_OPEN = "Ya hay una sesión de caja abierta para este registro"
_SESSION_NOT_CLOSABLE = "Sesión de caja no encontrada o ya cerrada"
_OPEN_SESSION_INDEX = "uq_cash_session_register_open"


# ── Helpers ───────────────────────────────────────────


def _session_options():
    return (
        selectinload(CashSession.cash_register),
        selectinload(CashSession.opener),
        selectinload(CashSession.closer),
        selectinload(CashSession.sales),
        selectinload(CashSession.movements),
    )


def _movement_options():
    return (
        selectinload(CashMovement.cash_session).selectinload(CashSession.cash_register),
        selectinload(CashMovement.performer),
    )


async def get_open_session_locked(db: AsyncSession, session_id: UUID) -> CashSession:
    """
    Carga la sesión bloqueando su fila hasta el fin de la transacción.
    Falla con 400 si no existe o ya está cerrada.
    """
    session = await db.get(
        CashSession, session_id, with_for_update=True, populate_existing=True
    )
    if session is None or not session.is_open:
        raise ValidationException(SESSION_NOT_OPEN)
    return session


async def _open_session_id(db: AsyncSession, cash_register_id: UUID) -> UUID | None:
    result = await db.execute(
        select(CashSession.id).where(
            CashSession.cash_register_id == cash_register_id,
            CashSession.status == CashSessionStatus.OPEN,
        )
    )
    return result.scalar_one_or_none()


def _is_open_session_clash(exc: IntegrityError) -> bool:
    """True si la violación es del índice de sesión abierta por caja."""
    message = str(exc.orig)
    # PostgreSQL nombra el índice; SQLite nombra la columna
    return (
        _OPEN_SESSION_INDEX in message
        or "cash_sessions.cash_register_id" in message
    )


async def _load_settlement_inputs(
    db: AsyncSession, session_id: UUID
) -> tuple[list[Decimal], list[tuple[MovementType, Decimal]]]:
    """Totales de ventas y movimientos de la sesión, leídos de la base."""
    sales_result = await db.execute(
        select(Sale.total).where(Sale.cash_session_id == session_id)
    )
    sale_totals = [Decimal(str(total)) for total in sales_result.scalars().all()]

    movements_result = await db.execute(
        select(CashMovement.movement_type, CashMovement.amount).where(
            CashMovement.cash_session_id == session_id
        )
    )
    movements = [
        (row.movement_type, Decimal(str(row.amount))) for row in movements_result.all()
    ]
    return sale_totals, movements


# ── Register operations ───────────────────────────────


async def list_registers(
    db: AsyncSession, include_inactive: bool = False
) -> list[CashRegisterResponse]:
    """Lista cajas con su sesión abierta, si la tienen."""
    query = select(CashRegister).order_by(CashRegister.name.asc())
    if not include_inactive:
        query = query.where(CashRegister.is_active.is_(True))
    registers = (await db.execute(query)).scalars().all()

    open_result = await db.execute(
        select(CashSession)
        .options(selectinload(CashSession.opener))
        .where(
            CashSession.status == CashSessionStatus.OPEN,
            CashSession.cash_register_id.in_([r.id for r in registers]),
        )
    )
    open_by_register = {s.cash_register_id: s for s in open_result.scalars().all()}

    items = []
    for register in registers:
        open_session = open_by_register.get(register.id)
        items.append(
            CashRegisterResponse(
                id=register.id,
                name=register.name,
                location=register.location,
                is_active=register.is_active,
                created_at=register.created_at,
                open_session=OpenSessionBrief.model_validate(open_session) if open_session else None,
            )
        )
    return items


async def create_register(
    db: AsyncSession, data: CashRegisterCreate
) -> CashRegisterResponse:
    """Da de alta una caja registradora activa."""
    register = CashRegister(name=data.name, location=data.location, is_active=True)
    db.add(register)
    await db.flush()
    await db.refresh(register)

    logger.info(f"Caja registrada: {register.name} ({register.location})")
    return CashRegisterResponse.model_validate(register)


async def deactivate_register(
    db: AsyncSession, register_id: UUID
) -> CashRegisterResponse:
    """Desactiva una caja; no se permite con una sesión abierta."""
    register = await db.get(CashRegister, register_id, populate_existing=True)
    if register is None:
        raise NotFoundException(detail="Caja registradora no encontrada")

    if await _open_session_id(db, register_id):
        raise ValidationException("No se puede desactivar: la caja tiene una sesión abierta")

    register.is_active = False
    await db.flush()
    await db.refresh(register)

    logger.info(f"Caja desactivada: {register.name}")
    return CashRegisterResponse.model_validate(register)


# ── Session operations ────────────────────────────────


async def get_session(db: AsyncSession, session_id: UUID) -> CashSession:
    """Sesión con caja, usuarios, ventas y movimientos cargados."""
    result = await db.execute(
        select(CashSession)
        .options(*_session_options())
        .where(CashSession.id == session_id)
        .execution_options(populate_existing=True)
    )
    session = result.scalar_one_or_none()
    if session is None:
        raise NotFoundException(detail="Sesión de caja no encontrada")
    return session


async def get_current_session(
    db: AsyncSession, cash_register_id: UUID
) -> CashSession | None:
    """Retorna la sesión abierta de la caja, o None."""
    result = await db.execute(
        select(CashSession)
        .options(*_session_options())
        .where(
            CashSession.cash_register_id == cash_register_id,
            CashSession.status == CashSessionStatus.OPEN,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def open_session(db: AsyncSession, data: CashSessionOpen) -> CashSession:
    """
    Abre una sesión de caja.

    Si el fondo inicial es mayor a cero se registra además un movimiento
    IN "Apertura de caja" en la nueva sesión.
    """
    register = await db.get(CashRegister, data.cash_register_id)
    if register is None or not register.is_active:
        raise ValidationException("Caja registradora no encontrada o inactiva")
    await get_active_user(db, data.opened_by)

    if await _open_session_id(db, data.cash_register_id):
        logger.warning(f"Apertura rechazada: la caja {register.name} ya tiene sesión abierta")
        raise ConflictException(_SESSION_ALREADY_OPEN)

    session = CashSession(
        session_number=await next_number(db, SequenceType.CASH_SESSION),
        cash_register_id=data.cash_register_id,
        opened_by=data.opened_by,
        status=CashSessionStatus.OPEN,
        initial_cash=data.opening_balance,
        notes=data.notes,
    )
    db.add(session)
    try:
        await db.flush()
    except IntegrityError as exc:
        if not _is_open_session_clash(exc):
            raise
        # Otra apertura concurrente ganó el índice único parcial
        logger.warning(f"Apertura concurrente rechazada para la caja {register.name}")
        raise ConflictException(_SESSION_ALREADY_OPEN)

    if data.opening_balance > 0:
        db.add(
            CashMovement(
                cash_session_id=session.id,
                movement_type=MovementType.IN,
                amount=data.opening_balance,
                reason=settings.OPENING_MOVEMENT_REASON,
                performed_by=data.opened_by,
            )
        )
        await db.flush()

    logger.info(
        f"Caja abierta: {session.session_number} en {register.name} "
        f"con fondo {data.opening_balance}"
    )
    return await get_session(db, session.id)


async def close_session(db: AsyncSession, data: CashSessionClose) -> CashSession:
    """Cierra una sesión de caja con cuadre de montos."""
    session = await db.get(
        CashSession, data.session_id, with_for_update=True, populate_existing=True
    )
    if session is None or not session.is_open:
        raise ValidationException(_SESSION_NOT_CLOSABLE)
    await get_active_user(db, data.closed_by)

    sale_totals, movements = await _load_settlement_inputs(db, session.id)
    result = settlement.settle(
        session.initial_cash, sale_totals, movements, data.final_balance
    )

    notes = session.notes
    if data.notes:
        notes = (notes + "\n" + data.notes) if notes else data.notes

    closed = await db.execute(
        update(CashSession)
        .where(
            CashSession.id == session.id,
            CashSession.status == CashSessionStatus.OPEN,
        )
        .values(
            status=CashSessionStatus.CLOSED,
            closed_by=data.closed_by,
            closed_at=datetime.now(timezone.utc),
            actual_cash=result.actual,
            expected_cash=result.expected,
            difference=result.difference,
            notes=notes,
        )
        .execution_options(synchronize_session=False)
    )
    if closed.rowcount == 0:
        raise ValidationException(_SESSION_NOT_CLOSABLE)

    logger.info(
        f"Caja cerrada: {session.session_number} esperado={result.expected} "
        f"contado={result.actual} diferencia={result.difference} ({result.outcome.value})"
    )
    return await get_session(db, session.id)


async def list_sessions(
    db: AsyncSession,
    page: int = 1,
    size: int = 20,
    status: CashSessionStatus | None = None,
    cash_register_id: UUID | None = None,
) -> CashSessionListResponse:
    """Lista sesiones de caja con paginación."""
    query = select(CashSession).options(*_session_options())
    count_query = select(func.count()).select_from(CashSession)

    if status:
        query = query.where(CashSession.status == status)
        count_query = count_query.where(CashSession.status == status)
    if cash_register_id:
        query = query.where(CashSession.cash_register_id == cash_register_id)
        count_query = count_query.where(CashSession.cash_register_id == cash_register_id)

    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(CashSession.opened_at.desc())
    query = query.offset((page - 1) * size).limit(size)
    query = query.execution_options(populate_existing=True)

    result = await db.execute(query)
    sessions = result.scalars().all()

    pages = (total + size - 1) // size if total > 0 else 1

    return CashSessionListResponse(
        items=[CashSessionResponse.model_validate(s) for s in sessions],
        total=total,
        page=page,
        size=size,
        pages=pages,
    )


async def get_session_summary(
    db: AsyncSession, session_id: UUID
) -> CashSessionSummary:
    """Calcula el resumen agregado y el saldo esperado de una sesión."""
    session = await db.get(CashSession, session_id, populate_existing=True)
    if session is None:
        raise NotFoundException(detail="Sesión de caja no encontrada")

    sale_totals, movements = await _load_settlement_inputs(db, session_id)

    # Ventas agrupadas por método de pago
    by_method_result = await db.execute(
        select(Sale.payment_method, func.coalesce(func.sum(Sale.total), 0))
        .where(Sale.cash_session_id == session_id)
        .group_by(Sale.payment_method)
    )
    sales_by_method = {
        row[0].value: Decimal(str(row[1])) for row in by_method_result.all()
    }

    movements_by_type: dict[str, Decimal] = {}
    for movement_type, amount in movements:
        key = movement_type.value
        movements_by_type[key] = movements_by_type.get(key, Decimal("0")) + amount

    outcome = None
    if session.difference is not None:
        outcome = settlement.classify_difference(session.difference)

    return CashSessionSummary(
        session_id=session.id,
        session_number=session.session_number,
        status=session.status,
        initial_cash=session.initial_cash,
        total_sales=sum(sale_totals, Decimal("0")),
        sales_by_method=sales_by_method,
        movements_by_type=movements_by_type,
        movements_net=settlement.movements_net(movements),
        expected_balance=settlement.expected_balance(
            session.initial_cash, sale_totals, movements
        ),
        actual_cash=session.actual_cash,
        difference=session.difference,
        outcome=outcome,
        sale_count=len(sale_totals),
        movement_count=len(movements),
    )


# ── Movement operations ──────────────────────────────


async def get_movement(db: AsyncSession, movement_id: UUID) -> CashMovement:
    result = await db.execute(
        select(CashMovement)
        .options(*_movement_options())
        .where(CashMovement.id == movement_id)
        .execution_options(populate_existing=True)
    )
    movement = result.scalar_one_or_none()
    if movement is None:
        raise NotFoundException(detail="Movimiento de caja no encontrado")
    return movement


async def create_movement(
    db: AsyncSession, data: CashMovementCreate
) -> CashMovement:
    """Registra un movimiento manual en una sesión abierta."""
    session = await get_open_session_locked(db, data.session_id)
    await get_active_user(db, data.performed_by)

    movement = CashMovement(
        cash_session_id=session.id,
        movement_type=data.movement_type,
        amount=data.amount,
        reason=data.reason,
        performed_by=data.performed_by,
    )
    db.add(movement)
    await db.flush()

    logger.info(
        f"Movimiento {data.movement_type.value} de {data.amount} en {session.session_number}: {data.reason}"
    )
    return await get_movement(db, movement.id)


async def list_movements(
    db: AsyncSession,
    session_id: UUID | None = None,
    movement_type: MovementType | None = None,
    page: int = 1,
    size: int = 50,
) -> CashMovementListResponse:
    """Lista movimientos con filtros opcionales."""
    query = select(CashMovement).options(*_movement_options())
    count_query = select(func.count()).select_from(CashMovement)

    if session_id:
        query = query.where(CashMovement.cash_session_id == session_id)
        count_query = count_query.where(CashMovement.cash_session_id == session_id)
    if movement_type:
        query = query.where(CashMovement.movement_type == movement_type)
        count_query = count_query.where(CashMovement.movement_type == movement_type)

    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(CashMovement.created_at.desc())
    query = query.offset((page - 1) * size).limit(size)

    result = await db.execute(query)
    movements = result.scalars().all()

    pages = (total + size - 1) // size if total > 0 else 1

    return CashMovementListResponse(
        items=[CashMovementResponse.model_validate(m) for m in movements],
        total=total,
        page=page,
        size=size,
        pages=pages,
    )

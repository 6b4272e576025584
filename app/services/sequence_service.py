"""
Generación de números de documento con correlativo diario.

CSH20260301001 (sesiones), VTA20260301001 (ventas), REC202603010001 (recibos).
El contador vive en daily_sequences y se incrementa dentro de la misma
transacción que crea el documento; si la operación falla, el número
no se consume.
"""

import uuid
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.daily_sequence import DailySequence, SequenceType

settings = get_settings()

# tipo → (prefijo, dígitos del correlativo)
_NUMBER_FORMATS = {
    SequenceType.CASH_SESSION: ("CSH", 3),
    SequenceType.SALE: ("VTA", 3),
    SequenceType.RECEIPT: ("REC", 4),
}


def business_today() -> date:
    """Fecha calendario usada para numerar (zona horaria del negocio)."""
    return datetime.now(ZoneInfo(settings.BUSINESS_TIMEZONE)).date()


def format_number(sequence_type: SequenceType, day: date, number: int) -> str:
    prefix, width = _NUMBER_FORMATS[sequence_type]
    return f"{prefix}{day:%Y%m%d}{number:0{width}d}"


def _insert_ignoring_conflict(db: AsyncSession, sequence_type: SequenceType, day: date):
    """INSERT ... ON CONFLICT DO NOTHING para la fila del día."""
    dialect = db.get_bind().dialect.name
    insert = sqlite_insert if dialect == "sqlite" else pg_insert
    return (
        insert(DailySequence)
        .values(id=uuid.uuid4(), sequence_type=sequence_type, day=day, last_number=0)
        .on_conflict_do_nothing(index_elements=["sequence_type", "day"])
    )


async def next_number(
    db: AsyncSession,
    sequence_type: SequenceType,
    day: date | None = None,
) -> str:
    """
    Reserva el siguiente número del día para el tipo de documento.
    La fila del día se crea sin fallar si otra transacción la crea a la
    vez; luego se bloquea con SELECT FOR UPDATE para incrementarla.
    """
    day = day or business_today()

    await db.execute(_insert_ignoring_conflict(db, sequence_type, day))

    result = await db.execute(
        select(DailySequence)
        .where(
            DailySequence.sequence_type == sequence_type,
            DailySequence.day == day,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    seq = result.scalar_one()

    seq.last_number += 1
    await db.flush()
    return format_number(sequence_type, day, seq.last_number)

"""
Modelo DailySequence — Correlativos diarios para números de documento.

Genera CSH20260301001, VTA20260301001, REC202603010001 etc. con un
contador por tipo y día, bloqueado con SELECT FOR UPDATE.
"""

import enum
import uuid
from datetime import date

from sqlalchemy import (
    Date,
    Enum,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class SequenceType(str, enum.Enum):
    """Documentos con numeración diaria."""
    CASH_SESSION = "cash_session"
    SALE = "sale"
    RECEIPT = "receipt"


class DailySequence(Base):
    __tablename__ = "daily_sequences"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    sequence_type: Mapped[SequenceType] = mapped_column(
        Enum(SequenceType, values_callable=lambda e: [x.value for x in e]),
        nullable=False
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)
    last_number: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "sequence_type", "day",
            name="uq_daily_sequence_type_day"
        ),
    )

    def __repr__(self) -> str:
        return f"<DailySequence {self.sequence_type.value} {self.day} #{self.last_number}>"

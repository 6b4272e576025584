"""
Modelo Receipt — Recibo inmutable derivado de una venta.

Copia los totales de la venta al momento de emitirse; a lo sumo un
recibo por venta.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.sale import PaymentMethod, PaymentStatus


class Receipt(Base):
    __tablename__ = "receipts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    receipt_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False,
        comment="REC<YYYYMMDD><NNNN>"
    )
    sale_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("sales.id"), unique=True, nullable=False
    )

    # ── Referencias desnormalizadas opcionales ───────
    pet_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("pets.id")
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("owners.id")
    )
    veterinarian_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )

    issue_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod, values_callable=lambda e: [x.value for x in e]),
        nullable=False
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, values_callable=lambda e: [x.value for x in e]),
        nullable=False, default=PaymentStatus.PAID
    )
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    sale: Mapped["Sale"] = relationship("Sale", back_populates="receipt")  # noqa: F821
    pet: Mapped["Pet | None"] = relationship("Pet")  # noqa: F821
    owner: Mapped["Owner | None"] = relationship("Owner")  # noqa: F821
    veterinarian: Mapped["User | None"] = relationship(  # noqa: F821
        "User", foreign_keys=[veterinarian_id]
    )
    creator: Mapped["User"] = relationship("User", foreign_keys=[created_by])  # noqa: F821

    __table_args__ = (
        Index("idx_receipt_issue_date", "issue_date"),
    )

    def __repr__(self) -> str:
        return f"<Receipt {self.receipt_number} {self.total_amount} [{self.payment_status.value}]>"

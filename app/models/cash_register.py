"""
Modelos CashRegister + CashSession + CashMovement — Control de Caja.

Gestión de cajas físicas, apertura/cierre de sesiones, movimientos
manuales de efectivo y cuadre de saldos al cierre.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


# ── Enums ─────────────────────────────────────────────


class CashSessionStatus(str, enum.Enum):
    """Estado de la sesión de caja."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class MovementType(str, enum.Enum):
    """Tipo de movimiento. Solo IN suma al saldo; el resto resta."""
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"
    EXPIRED = "EXPIRED"
    LOST = "LOST"


# ── CashRegister ──────────────────────────────────────


class CashRegister(Base):
    __tablename__ = "cash_registers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    sessions: Mapped[list["CashSession"]] = relationship(
        "CashSession", back_populates="cash_register"
    )

    def __repr__(self) -> str:
        return f"<CashRegister {self.name} ({self.location})>"


# ── CashSession ───────────────────────────────────────


class CashSession(Base):
    __tablename__ = "cash_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    session_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False,
        comment="CSH<YYYYMMDD><NNN>"
    )
    cash_register_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cash_registers.id"), nullable=False
    )
    opened_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
        comment="Usuario que abrió la caja"
    )
    closed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"),
        comment="Usuario que cerró la caja"
    )

    status: Mapped[CashSessionStatus] = mapped_column(
        Enum(CashSessionStatus, values_callable=lambda e: [x.value for x in e]),
        nullable=False, default=CashSessionStatus.OPEN
    )
    initial_cash: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False,
        comment="Fondo inicial declarado al abrir"
    )

    # ── Acumulados (solo crecen mientras está abierta) ─
    total_sales: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    total_cash: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    total_card: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    total_transfer: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )

    # ── Cuadre (solo al cerrar) ──────────────────────
    expected_cash: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2),
        comment="Monto esperado al cerrar (calculado)"
    )
    actual_cash: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2),
        comment="Monto real contado al cerrar"
    )
    difference: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2),
        comment="Diferencia: actual - esperado (sobrante/faltante)"
    )

    notes: Mapped[str | None] = mapped_column(Text)

    opened_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    cash_register: Mapped["CashRegister"] = relationship(
        "CashRegister", back_populates="sessions"
    )
    opener: Mapped["User"] = relationship("User", foreign_keys=[opened_by])  # noqa: F821
    closer: Mapped["User | None"] = relationship("User", foreign_keys=[closed_by])  # noqa: F821
    movements: Mapped[list["CashMovement"]] = relationship(
        "CashMovement", back_populates="cash_session",
        order_by="CashMovement.created_at",
    )
    sales: Mapped[list["Sale"]] = relationship(  # noqa: F821
        "Sale", back_populates="cash_session", order_by="Sale.created_at"
    )

    # ── Índices ──────────────────────────────────────
    __table_args__ = (
        # Una sola sesión abierta por caja
        Index(
            "uq_cash_session_register_open",
            "cash_register_id",
            unique=True,
            postgresql_where=text("status = 'OPEN'"),
            sqlite_where=text("status = 'OPEN'"),
        ),
        Index("idx_cash_session_register_status", "cash_register_id", "status"),
        Index("idx_cash_session_opened_at", "opened_at"),
    )

    @property
    def is_open(self) -> bool:
        return self.status == CashSessionStatus.OPEN

    def __repr__(self) -> str:
        return f"<CashSession {self.session_number} [{self.status.value}] inicial={self.initial_cash}>"


# ── CashMovement ──────────────────────────────────────


class CashMovement(Base):
    __tablename__ = "cash_movements"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    cash_session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cash_sessions.id"), nullable=False,
        comment="Sesión de caja a la que pertenece"
    )
    performed_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
        comment="Usuario que registró el movimiento"
    )

    movement_type: Mapped[MovementType] = mapped_column(
        Enum(MovementType, values_callable=lambda e: [x.value for x in e]),
        nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False,
        comment="Monto (siempre positivo, el signo lo da el tipo)"
    )
    reason: Mapped[str] = mapped_column(
        String(500), nullable=False,
        comment="Motivo del movimiento"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    cash_session: Mapped["CashSession"] = relationship(
        "CashSession", back_populates="movements"
    )
    performer: Mapped["User"] = relationship("User")  # noqa: F821

    # ── Índices ──────────────────────────────────────
    __table_args__ = (
        Index("idx_movement_session", "cash_session_id"),
        Index("idx_movement_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        sign = "+" if self.movement_type == MovementType.IN else "-"
        return f"<CashMovement {sign}{self.amount} [{self.movement_type.value}]>"

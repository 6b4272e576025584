"""
Modelos Sale + SaleItem — Ventas de productos y servicios en caja.

Una venta pertenece a una sesión de caja abierta y no se modifica ni
elimina después de creada.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


# ── Enums ─────────────────────────────────────────────


class PaymentMethod(str, enum.Enum):
    """Método de pago de la venta."""
    CASH = "CASH"
    CARD = "CARD"
    TRANSFER = "TRANSFER"
    CREDIT = "CREDIT"


class PaymentStatus(str, enum.Enum):
    """Estado de pago."""
    PAID = "PAID"
    PENDING = "PENDING"


class SaleItemType(str, enum.Enum):
    """Tipo de línea de venta."""
    PRODUCT = "PRODUCT"
    SERVICE = "SERVICE"


# ── Sale ──────────────────────────────────────────────


class Sale(Base):
    __tablename__ = "sales"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    sale_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False,
        comment="VTA<YYYYMMDD><NNN>"
    )
    cash_session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cash_sessions.id"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("owners.id"),
        comment="Propietario (cliente) opcional"
    )
    sold_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )

    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod, values_callable=lambda e: [x.value for x in e]),
        nullable=False, default=PaymentMethod.CASH
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, values_callable=lambda e: [x.value for x in e]),
        nullable=False, default=PaymentStatus.PAID
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False,
        comment="Igual al subtotal: sin impuestos ni descuentos"
    )
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    cash_session: Mapped["CashSession"] = relationship(  # noqa: F821
        "CashSession", back_populates="sales"
    )
    owner: Mapped["Owner | None"] = relationship("Owner")  # noqa: F821
    seller: Mapped["User"] = relationship("User")  # noqa: F821
    items: Mapped[list["SaleItem"]] = relationship(
        "SaleItem", back_populates="sale"
    )
    receipt: Mapped["Receipt | None"] = relationship(  # noqa: F821
        "Receipt", back_populates="sale", uselist=False
    )

    __table_args__ = (
        Index("idx_sale_session", "cash_session_id"),
        Index("idx_sale_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Sale {self.sale_number} total={self.total} [{self.payment_method.value}]>"


# ── SaleItem ──────────────────────────────────────────


class SaleItem(Base):
    __tablename__ = "sale_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    sale_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("sales.id"), nullable=False
    )
    item_type: Mapped[SaleItemType] = mapped_column(
        Enum(SaleItemType, values_callable=lambda e: [x.value for x in e]),
        nullable=False
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id")
    )
    service_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("services.id")
    )
    description: Mapped[str] = mapped_column(
        String(300), nullable=False,
        comment="Nombre del producto/servicio al momento de la venta"
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False,
        comment="quantity * unit_price"
    )

    # ── Relaciones ───────────────────────────────────
    sale: Mapped["Sale"] = relationship("Sale", back_populates="items")
    product: Mapped["Product | None"] = relationship("Product")  # noqa: F821
    service: Mapped["Service | None"] = relationship("Service")  # noqa: F821

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sale_item_quantity_positive"),
        CheckConstraint(
            "(product_id IS NULL) <> (service_id IS NULL)",
            name="ck_sale_item_product_xor_service",
        ),
        Index("idx_sale_item_sale", "sale_id"),
    )

    def __repr__(self) -> str:
        return f"<SaleItem {self.description} x{self.quantity} = {self.total}>"

"""
Modelo Product — Productos de farmacia y tienda veterinaria.

El stock se descuenta al registrar ventas (ver sale_service).
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class UnitType(str, enum.Enum):
    """Unidad de venta del producto."""
    UNIT = "unidad"
    BOX = "caja"
    BOTTLE = "frasco"
    BAG = "bolsa"
    ML = "mililitro"
    TABLET = "tableta"
    OTHER = "otro"


class Product(Base):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    unit_type: Mapped[UnitType] = mapped_column(
        Enum(UnitType, values_callable=lambda e: [x.value for x in e]),
        nullable=False, default=UnitType.UNIT
    )
    unit_price: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), comment="Precio de venta unitario"
    )
    current_stock: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Stock actual"
    )
    min_stock: Mapped[int] = mapped_column(
        Integer, nullable=False, default=5,
        comment="Stock mínimo para alerta"
    )
    requires_prescription: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_product_stock_non_negative"),
        Index("idx_product_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<Product {self.name} stock={self.current_stock}>"

"""
Modelo Service — Catálogo de servicios veterinarios.

Consultas, vacunas, cirugías, baños, etc. con su precio de venta.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class ServiceCategory(str, enum.Enum):
    """Categorías de servicios veterinarios."""
    CONSULTATION = "consultation"
    VACCINATION = "vaccination"
    SURGERY = "surgery"
    GROOMING = "grooming"
    LABORATORY = "laboratory"
    HOSPITALIZATION = "hospitalization"
    OTHER = "other"


class Service(Base):
    __tablename__ = "services"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(
        String(150), nullable=False,
        comment="Nombre del servicio"
    )
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[ServiceCategory] = mapped_column(
        Enum(ServiceCategory, values_callable=lambda e: [x.value for x in e]),
        nullable=False, default=ServiceCategory.OTHER,
        comment="Categoría del servicio"
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00"),
        comment="Precio de venta"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_service_category", "category"),
        UniqueConstraint("name", name="uq_service_name"),
    )

    def __repr__(self) -> str:
        return f"<Service {self.name} [{self.category.value}] {self.price}>"

"""
Modelos Owner + Pet — Propietarios y mascotas.

Solo se modelan los campos que ventas y recibos referencian; el CRUD
de propietarios y mascotas vive fuera de este servicio.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Owner(Base):
    __tablename__ = "owners"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    identification_number: Mapped[str | None] = mapped_column(
        String(20), comment="Documento de identidad del propietario"
    )
    phone: Mapped[str | None] = mapped_column(String(20))
    email: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    pets: Mapped[list["Pet"]] = relationship("Pet", back_populates="owner")

    def __repr__(self) -> str:
        return f"<Owner {self.name}>"


class Pet(Base):
    __tablename__ = "pets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("owners.id"), nullable=False
    )
    internal_id: Mapped[str | None] = mapped_column(
        String(30), comment="Código interno de la mascota"
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    species: Mapped[str] = mapped_column(String(50), nullable=False)
    breed: Mapped[str | None] = mapped_column(String(100))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    owner: Mapped["Owner"] = relationship("Owner", back_populates="pets")

    __table_args__ = (
        Index("idx_pet_owner", "owner_id"),
    )

    def __repr__(self) -> str:
        return f"<Pet {self.name} ({self.species})>"

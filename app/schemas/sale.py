"""
Schemas para Sale y SaleItem — Ventas en caja.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.models.sale import PaymentMethod, PaymentStatus, SaleItemType
from app.schemas.cash_register import CashRegisterBrief, OperatorBrief
from app.services.settlement import MAX_QUANTITY


# ── Request ───────────────────────────────────────────


class SaleItemCreate(BaseModel):
    """Línea de venta: producto o servicio, nunca ambos."""
    type: SaleItemType
    product_id: UUID | None = None
    service_id: UUID | None = None
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY)
    unit_price: Decimal | None = Field(
        None, ge=0, max_digits=12, decimal_places=2,
        description="Precio unitario; si se omite se usa el del catálogo",
    )

    @model_validator(mode="after")
    def _check_reference(self) -> "SaleItemCreate":
        if self.type == SaleItemType.PRODUCT:
            if self.product_id is None or self.service_id is not None:
                raise ValueError("Una línea PRODUCT requiere product_id y no admite service_id")
        else:
            if self.service_id is None or self.product_id is not None:
                raise ValueError("Una línea SERVICE requiere service_id y no admite product_id")
        return self


class SaleCreate(BaseModel):
    """Request para registrar una venta."""
    cash_session_id: UUID
    owner_id: UUID | None = None
    items: list[SaleItemCreate] = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str | None = Field(None, max_length=2000)
    sold_by: UUID


# ── Response ──────────────────────────────────────────


class SaleItemResponse(BaseModel):
    id: UUID
    item_type: SaleItemType
    product_id: UUID | None = None
    service_id: UUID | None = None
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal

    model_config = {"from_attributes": True}


class SaleSessionBrief(BaseModel):
    id: UUID
    session_number: str
    cash_register: CashRegisterBrief

    model_config = {"from_attributes": True}


class OwnerBrief(BaseModel):
    id: UUID
    name: str
    identification_number: str | None = None

    model_config = {"from_attributes": True}


class SaleReceiptBrief(BaseModel):
    id: UUID
    receipt_number: str

    model_config = {"from_attributes": True}


class SaleResponse(BaseModel):
    """Respuesta de una venta con sus líneas y recibo."""
    id: UUID
    sale_number: str
    cash_session_id: UUID
    owner_id: UUID | None = None
    sold_by: UUID
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    subtotal: Decimal
    total: Decimal
    notes: str | None = None
    created_at: datetime
    items: list[SaleItemResponse]
    cash_session: SaleSessionBrief
    owner: OwnerBrief | None = None
    seller: OperatorBrief
    receipt: SaleReceiptBrief | None = None

    model_config = {"from_attributes": True}


class SaleListResponse(BaseModel):
    """Respuesta paginada de ventas."""
    items: list[SaleResponse]
    total: int
    page: int
    size: int
    pages: int

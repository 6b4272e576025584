"""
Schemas para Receipt — Recibos de venta.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, computed_field

from app.models.sale import PaymentMethod, PaymentStatus
from app.schemas.cash_register import OperatorBrief
from app.schemas.sale import OwnerBrief, SaleItemResponse, SaleSessionBrief


class ReceiptCreate(BaseModel):
    """Request para emitir el recibo de una venta."""
    sale_id: UUID
    pet_id: UUID | None = None
    owner_id: UUID | None = None
    veterinarian_id: UUID | None = None
    created_by: UUID


class PetBrief(BaseModel):
    id: UUID
    name: str
    species: str
    breed: str | None = None
    internal_id: str | None = None

    model_config = {"from_attributes": True}


class ReceiptSaleBrief(BaseModel):
    id: UUID
    sale_number: str
    subtotal: Decimal
    total: Decimal
    items: list[SaleItemResponse]
    cash_session: SaleSessionBrief

    model_config = {"from_attributes": True}


class ReceiptResponse(BaseModel):
    """Respuesta de un recibo; impuestos y descuentos siempre en cero."""
    id: UUID
    receipt_number: str
    sale_id: UUID
    pet_id: UUID | None = None
    owner_id: UUID | None = None
    veterinarian_id: UUID | None = None
    created_by: UUID
    issue_date: datetime
    total_amount: Decimal
    tax_amount: Decimal = Decimal("0.00")
    discount_amount: Decimal = Decimal("0.00")
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    notes: str | None = None
    created_at: datetime
    sale: ReceiptSaleBrief
    owner: OwnerBrief | None = None
    pet: PetBrief | None = None
    veterinarian: OperatorBrief | None = None
    creator: OperatorBrief

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return self.total_amount + self.discount_amount - self.tax_amount


class ReceiptListResponse(BaseModel):
    """Respuesta paginada de recibos."""
    items: list[ReceiptResponse]
    total: int
    page: int
    size: int
    pages: int

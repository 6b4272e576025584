"""
Schemas para CashRegister, CashSession y CashMovement — Control de Caja.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.cash_register import CashSessionStatus, MovementType
from app.models.sale import PaymentMethod
from app.services.settlement import SettlementOutcome


# ── Referencias compartidas ───────────────────────────


class OperatorBrief(BaseModel):
    """Usuario resumido (quien abre, cierra, vende o registra)."""
    id: UUID
    full_name: str

    model_config = {"from_attributes": True}


class CashRegisterBrief(BaseModel):
    id: UUID
    name: str
    location: str

    model_config = {"from_attributes": True}


# ── Register ──────────────────────────────────────────


class CashRegisterCreate(BaseModel):
    """Request para dar de alta una caja."""
    name: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=200)

    @field_validator("name", "location")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Nombre y ubicación son requeridos")
        return v


class OpenSessionBrief(BaseModel):
    id: UUID
    session_number: str
    opened_at: datetime
    opener: OperatorBrief

    model_config = {"from_attributes": True}


class CashRegisterResponse(BaseModel):
    id: UUID
    name: str
    location: str
    is_active: bool
    created_at: datetime
    open_session: OpenSessionBrief | None = None

    model_config = {"from_attributes": True}


# ── Session ───────────────────────────────────────────


class CashSessionOpen(BaseModel):
    """Request para abrir una sesión de caja."""
    action: Literal["open"]
    cash_register_id: UUID
    opening_balance: Decimal = Field(
        ..., ge=0, max_digits=12, decimal_places=2,
        description="Monto de fondo inicial",
    )
    opened_by: UUID
    notes: str | None = Field(None, max_length=2000)


class CashSessionClose(BaseModel):
    """Request para cerrar una sesión de caja."""
    action: Literal["close"]
    session_id: UUID
    final_balance: Decimal = Field(
        ..., ge=0, max_digits=12, decimal_places=2,
        description="Monto real contado",
    )
    closed_by: UUID
    notes: str | None = Field(None, max_length=2000)


CashSessionAction = Annotated[
    Union[CashSessionOpen, CashSessionClose],
    Field(discriminator="action"),
]


class SessionSaleBrief(BaseModel):
    id: UUID
    sale_number: str
    total: Decimal
    payment_method: PaymentMethod
    created_at: datetime

    model_config = {"from_attributes": True}


class SessionMovementBrief(BaseModel):
    id: UUID
    movement_type: MovementType
    amount: Decimal
    reason: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CashSessionResponse(BaseModel):
    """Respuesta de una sesión de caja con sus relaciones."""
    id: UUID
    session_number: str
    cash_register_id: UUID
    status: CashSessionStatus
    initial_cash: Decimal
    total_sales: Decimal
    total_cash: Decimal
    total_card: Decimal
    total_transfer: Decimal
    expected_cash: Decimal | None = None
    actual_cash: Decimal | None = None
    difference: Decimal | None = None
    notes: str | None = None
    opened_by: UUID
    closed_by: UUID | None = None
    opened_at: datetime
    closed_at: datetime | None = None
    cash_register: CashRegisterBrief
    opener: OperatorBrief
    closer: OperatorBrief | None = None
    sales: list[SessionSaleBrief] = []
    movements: list[SessionMovementBrief] = []

    model_config = {"from_attributes": True}


class CashSessionListResponse(BaseModel):
    """Respuesta paginada de sesiones de caja."""
    items: list[CashSessionResponse]
    total: int
    page: int
    size: int
    pages: int


# ── Movement ──────────────────────────────────────────


class CashMovementCreate(BaseModel):
    """Request para registrar un movimiento de caja."""
    session_id: UUID
    movement_type: MovementType
    amount: Decimal = Field(
        ..., gt=0, max_digits=12, decimal_places=2,
        description="Monto (siempre positivo)",
    )
    reason: str = Field(..., min_length=1, max_length=500)
    performed_by: UUID

    @field_validator("reason")
    @classmethod
    def _strip_reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("El motivo es requerido")
        return v


class MovementSessionBrief(BaseModel):
    id: UUID
    session_number: str
    opened_at: datetime
    cash_register: CashRegisterBrief

    model_config = {"from_attributes": True}


class CashMovementResponse(BaseModel):
    """Respuesta de un movimiento de caja."""
    id: UUID
    cash_session_id: UUID
    movement_type: MovementType
    amount: Decimal
    reason: str
    performed_by: UUID
    created_at: datetime
    cash_session: MovementSessionBrief
    performer: OperatorBrief

    model_config = {"from_attributes": True}


class CashMovementListResponse(BaseModel):
    """Respuesta paginada de movimientos de caja."""
    items: list[CashMovementResponse]
    total: int
    page: int
    size: int
    pages: int


# ── Summary ───────────────────────────────────────────


class CashSessionSummary(BaseModel):
    """Resumen de la sesión de caja con el cuadre calculado al momento."""
    session_id: UUID
    session_number: str
    status: CashSessionStatus
    initial_cash: Decimal
    total_sales: Decimal
    sales_by_method: dict[str, Decimal]
    movements_by_type: dict[str, Decimal]
    movements_net: Decimal
    expected_balance: Decimal
    actual_cash: Decimal | None = None
    difference: Decimal | None = None
    outcome: SettlementOutcome | None = None
    sale_count: int
    movement_count: int

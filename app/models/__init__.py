"""
Modelos SQLAlchemy — exportar todos para que Alembic los detecte.
"""

from app.models.user import User, UserRole
from app.models.owner import Owner, Pet
from app.models.product import Product, UnitType
from app.models.service import Service, ServiceCategory
from app.models.cash_register import (
    CashMovement,
    CashRegister,
    CashSession,
    CashSessionStatus,
    MovementType,
)
from app.models.sale import PaymentMethod, PaymentStatus, Sale, SaleItem, SaleItemType
from app.models.receipt import Receipt
from app.models.daily_sequence import DailySequence, SequenceType

__all__ = [
    "User",
    "UserRole",
    "Owner",
    "Pet",
    "Product",
    "UnitType",
    "Service",
    "ServiceCategory",
    "CashRegister",
    "CashSession",
    "CashSessionStatus",
    "CashMovement",
    "MovementType",
    "Sale",
    "SaleItem",
    "SaleItemType",
    "PaymentMethod",
    "PaymentStatus",
    "Receipt",
    "DailySequence",
    "SequenceType",
]

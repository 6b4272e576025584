"""
Cuadre de caja — cálculo del saldo esperado al cierre.

    esperado = fondo inicial + Σ ventas + Σ movimientos (IN suma, el resto resta)
    diferencia = contado - esperado

El movimiento IN de "Apertura de caja" también entra en la suma de
movimientos, así que el fondo inicial se cuenta dos veces en el esperado.
"""

import enum
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from app.models.cash_register import MovementType

CENT = Decimal("0.01")

# Límites de columnas: Numeric(12, 2) e Integer (int4)
MAX_AMOUNT = Decimal("9999999999.99")
MAX_QUANTITY = 2_147_483_647


class SettlementOutcome(str, enum.Enum):
    BALANCED = "BALANCED"
    SURPLUS = "SURPLUS"
    SHORTAGE = "SHORTAGE"


@dataclass(frozen=True)
class Settlement:
    expected: Decimal
    actual: Decimal
    difference: Decimal

    @property
    def outcome(self) -> SettlementOutcome:
        return classify_difference(self.difference)


def to_money(value: Decimal | int | str) -> Decimal:
    """Normaliza un monto a 2 decimales."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def signed_amount(movement_type: MovementType, amount: Decimal) -> Decimal:
    """Monto con signo según el tipo de movimiento."""
    return amount if movement_type == MovementType.IN else -amount


def movements_net(movements: Iterable[tuple[MovementType, Decimal]]) -> Decimal:
    return sum(
        (signed_amount(movement_type, amount) for movement_type, amount in movements),
        Decimal("0"),
    )


def expected_balance(
    initial_cash: Decimal,
    sale_totals: Iterable[Decimal],
    movements: Iterable[tuple[MovementType, Decimal]],
) -> Decimal:
    total_sales = sum(sale_totals, Decimal("0"))
    return to_money(initial_cash + total_sales + movements_net(movements))


def classify_difference(difference: Decimal) -> SettlementOutcome:
    if difference > 0:
        return SettlementOutcome.SURPLUS
    if difference < 0:
        return SettlementOutcome.SHORTAGE
    return SettlementOutcome.BALANCED


def settle(
    initial_cash: Decimal,
    sale_totals: Iterable[Decimal],
    movements: Iterable[tuple[MovementType, Decimal]],
    actual: Decimal,
) -> Settlement:
    expected = expected_balance(initial_cash, sale_totals, movements)
    actual = to_money(actual)
    return Settlement(expected=expected, actual=actual, difference=actual - expected)

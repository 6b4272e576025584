"""
Tests de movimientos manuales de caja.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.models.cash_register import CashRegister
from app.models.user import User
from conftest import close_session, open_session


def _movement(session_id: str, operator: User, **overrides) -> dict:
    payload = {
        "session_id": session_id,
        "movement_type": "OUT",
        "amount": "5000.00",
        "reason": "Compra de insumos",
        "performed_by": str(operator.id),
    }
    payload.update(overrides)
    return payload


async def test_create_movement(client: AsyncClient, register: CashRegister, cashier: User):
    session = await open_session(client, register, cashier, "0")

    response = await client.post(
        "/api/v1/cash-movements", json=_movement(session["id"], cashier)
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["movement_type"] == "OUT"
    assert Decimal(data["amount"]) == Decimal("5000.00")
    assert data["reason"] == "Compra de insumos"
    assert data["cash_session"]["session_number"] == session["session_number"]
    assert data["performer"]["full_name"] == "Rosa Cajera"


async def test_movement_reason_is_trimmed(
    client: AsyncClient, register: CashRegister, cashier: User
):
    session = await open_session(client, register, cashier, "0")

    response = await client.post(
        "/api/v1/cash-movements",
        json=_movement(session["id"], cashier, reason="  Vuelto  "),
    )
    assert response.json()["reason"] == "Vuelto"


@pytest.mark.parametrize(
    "overrides",
    [
        {"movement_type": "REFUND"},
        {"amount": "0"},
        {"amount": "-10.00"},
        {"reason": "   "},
        {"reason": ""},
    ],
)
async def test_invalid_movement_is_rejected(
    client: AsyncClient, register: CashRegister, cashier: User, overrides: dict
):
    session = await open_session(client, register, cashier, "0")

    response = await client.post(
        "/api/v1/cash-movements", json=_movement(session["id"], cashier, **overrides)
    )

    assert response.status_code == 400
    field = next(iter(overrides))
    assert field in response.json()["detail"]


async def test_movement_on_unknown_session(client: AsyncClient, cashier: User):
    response = await client.post(
        "/api/v1/cash-movements", json=_movement(str(uuid4()), cashier)
    )
    assert response.status_code == 400


async def test_movement_on_closed_session(
    client: AsyncClient, register: CashRegister, cashier: User
):
    session = await open_session(client, register, cashier, "0")
    await close_session(client, session["id"], cashier, "0")

    response = await client.post(
        "/api/v1/cash-movements", json=_movement(session["id"], cashier)
    )
    assert response.status_code == 400


async def test_list_movements_filters(
    client: AsyncClient, db_session, register: CashRegister, cashier: User
):
    other = CashRegister(name="Caja 2", location="Farmacia")
    db_session.add(other)
    await db_session.commit()

    first = await open_session(client, register, cashier, "100.00")
    second = await open_session(client, other, cashier, "0")
    await client.post("/api/v1/cash-movements", json=_movement(first["id"], cashier))
    await client.post(
        "/api/v1/cash-movements",
        json=_movement(second["id"], cashier, movement_type="LOST", reason="Billete roto"),
    )

    everything = await client.get("/api/v1/cash-movements")
    assert everything.json()["total"] == 3

    by_session = await client.get(
        "/api/v1/cash-movements", params={"session_id": first["id"]}
    )
    assert by_session.json()["total"] == 2
    assert {m["movement_type"] for m in by_session.json()["items"]} == {"IN", "OUT"}

    lost = await client.get("/api/v1/cash-movements", params={"movement_type": "LOST"})
    assert lost.json()["total"] == 1
    assert lost.json()["items"][0]["reason"] == "Billete roto"

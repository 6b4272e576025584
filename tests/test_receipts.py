"""
Tests de emisión y consulta de recibos.
"""

from decimal import Decimal
from uuid import UUID, uuid4

import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.cash_register import CashRegister
from app.models.owner import Owner, Pet
from app.models.sale import PaymentMethod, PaymentStatus, Sale
from app.models.service import Service
from app.models.user import User
from conftest import create_sale, open_session


@pytest_asyncio.fixture
async def unreceipted_sale(
    client: AsyncClient,
    db_session: AsyncSession,
    register: CashRegister,
    cashier: User,
) -> Sale:
    """Venta cargada directamente, sin recibo (p. ej. migrada de otro sistema)."""
    session = await open_session(client, register, cashier, "0")
    sale = Sale(
        sale_number="VTA20260101001",
        cash_session_id=UUID(session["id"]),
        sold_by=cashier.id,
        payment_method=PaymentMethod.TRANSFER,
        payment_status=PaymentStatus.PENDING,
        subtotal=Decimal("320.00"),
        total=Decimal("320.00"),
        notes="Pago diferido",
    )
    db_session.add(sale)
    await db_session.commit()
    await db_session.refresh(sale)
    return sale


async def test_sale_issues_receipt(
    client: AsyncClient, service: Service, register: CashRegister, cashier: User
):
    session = await open_session(client, register, cashier, "0")
    sale = (
        await create_sale(
            client,
            session["id"],
            cashier,
            [{"type": "SERVICE", "service_id": str(service.id), "quantity": 1}],
            payment_method="CARD",
        )
    ).json()

    response = await client.get(f"/api/v1/receipts/{sale['receipt']['id']}")

    assert response.status_code == 200
    data = response.json()
    assert data["sale_id"] == sale["id"]
    assert data["payment_method"] == "CARD"
    assert data["payment_status"] == "PAID"
    assert Decimal(data["total_amount"]) == Decimal("40000.00")
    assert Decimal(data["tax_amount"]) == Decimal("0")
    assert Decimal(data["discount_amount"]) == Decimal("0")
    assert Decimal(data["subtotal"]) == Decimal("40000.00")
    assert data["sale"]["items"][0]["description"] == "Consulta general"
    assert data["creator"]["id"] == str(cashier.id)


async def test_manual_receipt(
    client: AsyncClient,
    unreceipted_sale: Sale,
    owner: Owner,
    pet: Pet,
    veterinarian: User,
    cashier: User,
):
    response = await client.post(
        "/api/v1/receipts",
        json={
            "sale_id": str(unreceipted_sale.id),
            "pet_id": str(pet.id),
            "owner_id": str(owner.id),
            "veterinarian_id": str(veterinarian.id),
            "created_by": str(cashier.id),
        },
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["receipt_number"].startswith("REC")
    assert len(data["receipt_number"]) == 15
    assert Decimal(data["total_amount"]) == Decimal("320.00")
    assert data["payment_method"] == "TRANSFER"
    assert data["payment_status"] == "PENDING"
    assert data["notes"] == "Pago diferido"
    assert data["pet"]["name"] == "Firulais"
    assert data["owner"]["name"] == "Ana Propietaria"
    assert data["veterinarian"]["full_name"] == "Luis Veterinario"


async def test_duplicate_receipt_is_rejected(
    client: AsyncClient, unreceipted_sale: Sale, cashier: User
):
    payload = {"sale_id": str(unreceipted_sale.id), "created_by": str(cashier.id)}

    first = await client.post("/api/v1/receipts", json=payload)
    second = await client.post("/api/v1/receipts", json=payload)

    assert first.status_code == 201
    assert second.status_code == 400
    assert "Ya existe un recibo" in second.json()["detail"]

    listed = await client.get("/api/v1/receipts")
    assert listed.json()["total"] == 1


async def test_receipt_for_unknown_sale(client: AsyncClient, cashier: User):
    response = await client.post(
        "/api/v1/receipts",
        json={"sale_id": str(uuid4()), "created_by": str(cashier.id)},
    )
    assert response.status_code == 400


async def test_receipt_veterinarian_must_have_role(
    client: AsyncClient, unreceipted_sale: Sale, cashier: User
):
    response = await client.post(
        "/api/v1/receipts",
        json={
            "sale_id": str(unreceipted_sale.id),
            "veterinarian_id": str(cashier.id),
            "created_by": str(cashier.id),
        },
    )
    assert response.status_code == 400


async def test_receipt_missing_fields(client: AsyncClient):
    response = await client.post("/api/v1/receipts", json={})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "sale_id" in detail
    assert "created_by" in detail


async def test_get_receipt_not_found(client: AsyncClient):
    response = await client.get(f"/api/v1/receipts/{uuid4()}")
    assert response.status_code == 404

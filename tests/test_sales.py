"""
Tests de registro de ventas: stock, acumulados de sesión y atomicidad.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InsufficientStockException
from app.models.cash_register import CashRegister
from app.models.owner import Owner
from app.models.product import Product
from app.models.receipt import Receipt
from app.models.sale import Sale, SaleItem, SaleItemType
from app.models.service import Service
from app.models.user import User
from app.services.sale_service import _PricedLine, _decrement_stock
from conftest import close_session, create_sale, open_session


async def _count(db: AsyncSession, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


async def test_cash_sale_updates_stock_totals_and_receipt(
    client: AsyncClient,
    db_session: AsyncSession,
    product: Product,
    register: CashRegister,
    cashier: User,
):
    session = await open_session(client, register, cashier, "50000.00")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [
            {
                "type": "PRODUCT",
                "product_id": str(product.id),
                "quantity": 10,
                "unit_price": "1500.00",
            }
        ],
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["sale_number"].startswith("VTA")
    assert data["payment_method"] == "CASH"
    assert data["payment_status"] == "PAID"
    assert Decimal(data["subtotal"]) == Decimal("15000.00")
    assert Decimal(data["total"]) == Decimal("15000.00")
    assert len(data["items"]) == 1
    item = data["items"][0]
    assert item["description"] == "Antiparasitario X"
    assert Decimal(item["unit_price"]) == Decimal("1500.00")
    assert Decimal(item["total"]) == Decimal("15000.00")
    assert data["receipt"]["receipt_number"].startswith("REC")

    await db_session.refresh(product)
    assert product.current_stock == 0

    current = await client.get(f"/api/v1/cash-sessions/{session['id']}")
    totals = current.json()
    assert Decimal(totals["total_sales"]) == Decimal("15000.00")
    assert Decimal(totals["total_cash"]) == Decimal("15000.00")
    assert Decimal(totals["total_card"]) == Decimal("0")

    receipt = (await db_session.execute(select(Receipt))).scalar_one()
    assert receipt.total_amount == Decimal("15000.00")
    assert receipt.payment_status.value == "PAID"
    assert str(receipt.sale_id) == data["id"]


async def test_catalog_price_is_used_without_override(
    client: AsyncClient, product: Product, register: CashRegister, cashier: User
):
    session = await open_session(client, register, cashier, "0")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [{"type": "PRODUCT", "product_id": str(product.id), "quantity": 2}],
    )

    assert Decimal(response.json()["total"]) == Decimal("50000.00")


async def test_zero_price_override_is_kept(
    client: AsyncClient, product: Product, register: CashRegister, cashier: User
):
    session = await open_session(client, register, cashier, "0")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [
            {
                "type": "PRODUCT",
                "product_id": str(product.id),
                "quantity": 1,
                "unit_price": "0",
            }
        ],
    )

    assert response.status_code == 201
    assert Decimal(response.json()["total"]) == Decimal("0")


async def test_second_sale_cannot_oversell(
    client: AsyncClient,
    db_session: AsyncSession,
    register: CashRegister,
    cashier: User,
):
    product = Product(name="Collar", unit_price=Decimal("10.00"), current_stock=5)
    db_session.add(product)
    await db_session.commit()
    session = await open_session(client, register, cashier, "0")
    line = {"type": "PRODUCT", "product_id": str(product.id)}

    first = await create_sale(client, session["id"], cashier, [{**line, "quantity": 5}])
    second = await create_sale(client, session["id"], cashier, [{**line, "quantity": 1}])

    assert first.status_code == 201
    assert second.status_code == 400
    assert "Stock insuficiente para Collar" in second.json()["detail"]
    await db_session.refresh(product)
    assert product.current_stock == 0
    assert await _count(db_session, Sale) == 1


async def test_repeated_product_lines_share_stock(
    client: AsyncClient,
    db_session: AsyncSession,
    product: Product,
    register: CashRegister,
    cashier: User,
):
    session = await open_session(client, register, cashier, "0")
    line = {"type": "PRODUCT", "product_id": str(product.id), "quantity": 6}

    response = await create_sale(client, session["id"], cashier, [line, line])

    assert response.status_code == 400
    await db_session.refresh(product)
    assert product.current_stock == 10


async def test_failed_line_leaves_no_trace(
    client: AsyncClient,
    db_session: AsyncSession,
    product: Product,
    register: CashRegister,
    cashier: User,
):
    session = await open_session(client, register, cashier, "0")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [
            {"type": "PRODUCT", "product_id": str(product.id), "quantity": 3},
            {"type": "PRODUCT", "product_id": str(uuid4()), "quantity": 1},
        ],
    )

    assert response.status_code == 400
    assert "Producto no encontrado" in response.json()["detail"]
    await db_session.refresh(product)
    assert product.current_stock == 10
    assert await _count(db_session, Sale) == 0
    assert await _count(db_session, SaleItem) == 0
    assert await _count(db_session, Receipt) == 0

    current = await client.get(f"/api/v1/cash-sessions/{session['id']}")
    assert Decimal(current.json()["total_sales"]) == Decimal("0")


async def test_inactive_service_is_rejected(
    client: AsyncClient,
    db_session: AsyncSession,
    service: Service,
    register: CashRegister,
    cashier: User,
):
    service.is_active = False
    await db_session.commit()
    session = await open_session(client, register, cashier, "0")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [{"type": "SERVICE", "service_id": str(service.id), "quantity": 1}],
    )

    assert response.status_code == 400
    assert "Servicio no encontrado" in response.json()["detail"]


async def test_mixed_sale_with_owner(
    client: AsyncClient,
    db_session: AsyncSession,
    product: Product,
    service: Service,
    owner: Owner,
    register: CashRegister,
    cashier: User,
):
    session = await open_session(client, register, cashier, "0")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [
            {"type": "SERVICE", "service_id": str(service.id), "quantity": 1},
            {"type": "PRODUCT", "product_id": str(product.id), "quantity": 2},
        ],
        owner_id=str(owner.id),
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert Decimal(data["total"]) == Decimal("90000.00")
    assert data["owner"]["name"] == "Ana Propietaria"
    assert {i["item_type"] for i in data["items"]} == {"PRODUCT", "SERVICE"}

    receipt = (await db_session.execute(select(Receipt))).scalar_one()
    assert receipt.owner_id == owner.id


@pytest.mark.parametrize(
    "method, counter",
    [("CARD", "total_card"), ("TRANSFER", "total_transfer"), ("CREDIT", None)],
)
async def test_payment_method_counters(
    client: AsyncClient,
    service: Service,
    register: CashRegister,
    cashier: User,
    method: str,
    counter: str | None,
):
    session = await open_session(client, register, cashier, "0")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [{"type": "SERVICE", "service_id": str(service.id), "quantity": 1}],
        payment_method=method,
    )
    assert response.status_code == 201

    totals = (await client.get(f"/api/v1/cash-sessions/{session['id']}")).json()
    assert Decimal(totals["total_sales"]) == Decimal("40000.00")
    assert Decimal(totals["total_cash"]) == Decimal("0")
    for field in ("total_card", "total_transfer"):
        expected = Decimal("40000.00") if field == counter else Decimal("0")
        assert Decimal(totals[field]) == expected


async def test_sale_on_closed_session(
    client: AsyncClient, service: Service, register: CashRegister, cashier: User
):
    session = await open_session(client, register, cashier, "0")
    await close_session(client, session["id"], cashier, "0")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [{"type": "SERVICE", "service_id": str(service.id), "quantity": 1}],
    )
    assert response.status_code == 400


@pytest.mark.parametrize(
    "items",
    [
        [],
        [{"type": "PRODUCT", "quantity": 1}],
        [{"type": "SERVICE", "product_id": str(uuid4()), "quantity": 1}],
        [{"type": "PRODUCT", "product_id": str(uuid4()), "quantity": 0}],
    ],
)
async def test_malformed_items_are_rejected(
    client: AsyncClient, register: CashRegister, cashier: User, items: list
):
    session = await open_session(client, register, cashier, "0")

    response = await create_sale(client, session["id"], cashier, items)

    assert response.status_code == 400
    assert "items" in response.json()["detail"]


async def test_list_and_get_sales(
    client: AsyncClient, service: Service, register: CashRegister, cashier: User
):
    session = await open_session(client, register, cashier, "0")
    line = [{"type": "SERVICE", "service_id": str(service.id), "quantity": 1}]
    first = (await create_sale(client, session["id"], cashier, line)).json()
    second = (await create_sale(client, session["id"], cashier, line)).json()

    assert first["sale_number"][:11] == second["sale_number"][:11]
    assert int(second["sale_number"][11:]) == int(first["sale_number"][11:]) + 1

    listed = await client.get("/api/v1/sales", params={"cash_session_id": session["id"]})
    assert listed.json()["total"] == 2

    fetched = await client.get(f"/api/v1/sales/{first['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["sale_number"] == first["sale_number"]

    missing = await client.get(f"/api/v1/sales/{uuid4()}")
    assert missing.status_code == 404


async def test_huge_quantity_is_rejected(
    client: AsyncClient,
    db_session: AsyncSession,
    service: Service,
    register: CashRegister,
    cashier: User,
):
    session = await open_session(client, register, cashier, "0")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [{"type": "SERVICE", "service_id": str(service.id), "quantity": 10**20}],
    )

    assert response.status_code == 400
    assert "quantity" in response.json()["detail"]
    assert await _count(db_session, Sale) == 0


async def test_total_over_money_limit_is_rejected(
    client: AsyncClient,
    db_session: AsyncSession,
    service: Service,
    register: CashRegister,
    cashier: User,
):
    """40000 x 1.000.000 no cabe en Numeric(12, 2)."""
    session = await open_session(client, register, cashier, "0")

    response = await create_sale(
        client,
        session["id"],
        cashier,
        [{"type": "SERVICE", "service_id": str(service.id), "quantity": 1_000_000}],
    )

    assert response.status_code == 400
    assert "excede el máximo" in response.json()["detail"]
    assert await _count(db_session, Sale) == 0


async def test_sale_total_over_money_limit_is_rejected(
    client: AsyncClient,
    db_session: AsyncSession,
    service: Service,
    register: CashRegister,
    cashier: User,
):
    session = await open_session(client, register, cashier, "0")
    line = {
        "type": "SERVICE",
        "service_id": str(service.id),
        "quantity": 1,
        "unit_price": "6000000000.00",
    }

    response = await create_sale(client, session["id"], cashier, [line, line])

    assert response.status_code == 400
    assert "El total de la venta" in response.json()["detail"]
    assert await _count(db_session, Sale) == 0


async def test_conditional_decrement_rejects_missing_stock(
    db_session: AsyncSession, product: Product
):
    """Otra venta consumió el stock después de la validación."""
    line = _PricedLine(
        item_type=SaleItemType.PRODUCT,
        product_id=product.id,
        description=product.name,
        quantity=11,
        unit_price=Decimal("25000.00"),
    )

    with pytest.raises(InsufficientStockException) as exc_info:
        await _decrement_stock(db_session, line)

    assert exc_info.value.available == 10
    await db_session.rollback()
    await db_session.refresh(product)
    assert product.current_stock == 10


async def test_conditional_decrement_takes_exact_stock(
    db_session: AsyncSession, product: Product
):
    line = _PricedLine(
        item_type=SaleItemType.PRODUCT,
        product_id=product.id,
        description=product.name,
        quantity=10,
        unit_price=Decimal("25000.00"),
    )

    await _decrement_stock(db_session, line)
    await db_session.commit()

    await db_session.refresh(product)
    assert product.current_stock == 0

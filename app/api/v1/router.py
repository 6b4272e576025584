"""
Router principal de la API v1.
Agrupa todos los sub-routers de la versión 1.
"""

from fastapi import APIRouter

from app.api.v1.cash_registers import router as cash_registers_router
from app.api.v1.cash_sessions import router as cash_sessions_router
from app.api.v1.cash_movements import router as cash_movements_router
from app.api.v1.sales import router as sales_router
from app.api.v1.receipts import router as receipts_router

api_v1_router = APIRouter()

api_v1_router.include_router(
    cash_registers_router,
    prefix="/cash-registers",
    tags=["Cajas"],
)

api_v1_router.include_router(
    cash_sessions_router,
    prefix="/cash-sessions",
    tags=["Sesiones de Caja"],
)

api_v1_router.include_router(
    cash_movements_router,
    prefix="/cash-movements",
    tags=["Movimientos de Caja"],
)

api_v1_router.include_router(
    sales_router,
    prefix="/sales",
    tags=["Ventas"],
)

api_v1_router.include_router(
    receipts_router,
    prefix="/receipts",
    tags=["Recibos"],
)

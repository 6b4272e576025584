"""
Excepciones HTTP personalizadas para la API.

Los errores de negocio del módulo de caja se reportan con 400; solo las
consultas por id responden 404.
"""

from fastapi import HTTPException, status


class NotFoundException(HTTPException):
    """Recurso no encontrado (404)."""

    def __init__(self, resource: str = "Recurso", detail: str | None = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource} no encontrado",
        )


class ConflictException(HTTPException):
    """Conflicto de datos (400) — ej: caja ya abierta, recibo duplicado."""

    def __init__(self, detail: str = "El recurso ya existe"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class ValidationException(HTTPException):
    """Error de validación de negocio o de estado (400)."""

    def __init__(self, detail: str = "Error de validación"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class InsufficientStockException(ValidationException):
    """Stock menor a la cantidad solicitada (400)."""

    def __init__(self, product_name: str, available: int):
        self.product_name = product_name
        self.available = available
        super().__init__(
            f"Stock insuficiente para {product_name}. Disponible: {available}"
        )

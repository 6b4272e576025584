"""
Validación del personal que firma operaciones de caja.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationException
from app.models.user import User, UserRole


async def get_active_user(
    db: AsyncSession, user_id: UUID, role: UserRole | None = None
) -> User:
    """Retorna el usuario activo o falla con 400; opcionalmente exige un rol."""
    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise ValidationException(f"Usuario no encontrado o inactivo: {user_id}")
    if role is not None and user.role != role:
        raise ValidationException(f"El usuario {user.full_name} no tiene el rol {role.value}")
    return user

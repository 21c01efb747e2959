"""
Dependencias de autenticación para FastAPI.

Soporta dos métodos de autenticación:
1. HttpOnly Cookies (panel de administración)
2. Bearer Token (Authorization header)
"""
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from core.database import get_db
from core.security import decode_token
from core.redis_service import TokenBlacklistService
from core.cookie_auth import get_access_token_from_request
from core.exceptions import UnauthorizedError, ForbiddenError
from models.user import User


# No falla si no hay header: get_current_user también revisa cookies
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Obtener el usuario actual desde la cookie 'access_token' o el header Bearer.

    Uso:
        @router.get("/me")
        async def get_me(current_user: User = Depends(get_current_user)):
            return current_user
    """
    token = get_access_token_from_request(request)
    if not token and credentials:
        token = credentials.credentials

    if not token:
        raise UnauthorizedError("Token de autenticación requerido")

    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        raise UnauthorizedError("Token inválido o expirado")

    # Verificar si el token está revocado (logout)
    token_jti = payload.get("jti")
    if token_jti and TokenBlacklistService.is_token_revoked(token_jti):
        raise UnauthorizedError("Token revocado. Por favor, inicia sesión nuevamente.")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Token inválido")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UnauthorizedError("Usuario no encontrado")

    return user


async def get_current_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Verificar que el usuario autenticado sea administrador.
    """
    if not current_user.is_admin:
        raise ForbiddenError("No tienes permisos de administrador")
    return current_user

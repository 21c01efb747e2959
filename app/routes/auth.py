"""
Endpoints de autenticación del panel: login, refresh, logout y perfil.

Seguridad de sesiones:
- Cookies HttpOnly para access_token y refresh_token
- Token CSRF en cookie legible por JS (se valida si CSRF_ENABLED)
- Soporte dual: cookies HttpOnly + Bearer token
"""
import logging
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
from core.database import get_db
from core.security import create_access_token, create_refresh_token, decode_token, seconds_until_expiration
from core.config import settings
from core.dependencies import get_current_user
from core.cookie_auth import (
    set_auth_cookies,
    clear_auth_cookies,
    get_refresh_token_from_request,
    get_access_token_from_request
)
from core.csrf_protection import generate_csrf_token
from core.exceptions import UnauthorizedError
from core.redis_service import TokenBlacklistService
from core.user_service import authenticate_user
from models.user import User
from schemas.auth import UserLogin

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "role": user.role,
    }


def _issue_tokens(response: Response, user: User) -> dict:
    """Crear tokens, fijar cookies y devolver el bloque data de la respuesta"""
    access_token = create_access_token(
        data={
            "sub": str(user.id),
            "username": user.username,
            "role": user.role
        }
    )
    refresh_token = create_refresh_token(data={"sub": str(user.id)})

    set_auth_cookies(response, access_token, refresh_token, generate_csrf_token())

    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": _user_to_dict(user)
    }


def _revoke(payload: dict) -> None:
    if payload and payload.get("jti"):
        TokenBlacklistService.revoke_token(payload["jti"], seconds_until_expiration(payload))


# ==================== LOGIN ====================

@router.post("/login")
async def login(
    credentials: UserLogin,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Iniciar sesión con usuario y contraseña.

    Cookies establecidas (HttpOnly, SameSite=Lax):
    - access_token: JWT de acceso
    - refresh_token: JWT de refresh (larga duración)
    - csrf_token: Token para protección CSRF (NO HttpOnly)
    """
    user = authenticate_user(db, credentials.username, credentials.password)

    if not user:
        logger.warning(f"Login fallido para {credentials.username}")
        raise UnauthorizedError("Credenciales inválidas")

    logger.info(f"Login de {user.username}")
    return {
        "success": True,
        "status_code": 200,
        "message": "Login exitoso",
        "data": _issue_tokens(response, user)
    }


# ==================== PERFIL ====================

@router.get("/me")
async def get_me(
    current_user: User = Depends(get_current_user)
):
    """
    Obtener información del usuario autenticado.
    """
    return {
        "success": True,
        "status_code": 200,
        "message": "Usuario autenticado",
        "data": _user_to_dict(current_user)
    }


# ==================== REFRESH TOKEN ====================

@router.post("/refresh")
async def refresh_token_endpoint(
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Refrescar el access token usando el refresh token (cookie o body).

    El refresh token usado queda revocado (rotación).
    """
    refresh_token = get_refresh_token_from_request(request)

    if not refresh_token:
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            refresh_token = body.get("refresh_token")

    if not refresh_token:
        raise UnauthorizedError("Refresh token requerido")

    payload = decode_token(refresh_token)
    if not payload or payload.get("type") != "refresh":
        raise UnauthorizedError("Refresh token inválido o expirado")

    if payload.get("jti") and TokenBlacklistService.is_token_revoked(payload["jti"]):
        raise UnauthorizedError("Refresh token revocado")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Token inválido")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UnauthorizedError("Usuario no encontrado")

    _revoke(payload)

    return {
        "success": True,
        "status_code": 200,
        "message": "Tokens actualizados exitosamente",
        "data": _issue_tokens(response, user)
    }


# ==================== LOGOUT ====================

@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user)
):
    """
    Cerrar sesión: revoca access y refresh token y borra las cookies.
    """
    access_token = get_access_token_from_request(request)
    if access_token:
        _revoke(decode_token(access_token))

    refresh_token = get_refresh_token_from_request(request)
    if refresh_token:
        _revoke(decode_token(refresh_token))

    clear_auth_cookies(response)
    logger.info(f"Logout de {current_user.username}")

    return {
        "success": True,
        "status_code": 200,
        "message": "Sesión cerrada exitosamente"
    }

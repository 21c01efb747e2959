"""
Cookies HttpOnly de sesión para el panel de administración.

- access_token: JWT de acceso (ACCESS_TOKEN_EXPIRE_MINUTES)
- refresh_token: JWT de refresh (REFRESH_TOKEN_EXPIRE_DAYS)
- csrf_token: legible por JS, se reenvía en el header X-CSRF-Token
"""
from fastapi import Response, Request
from typing import Optional
from core.config import settings


# Nombres de cookies
ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
CSRF_TOKEN_COOKIE = "csrf_token"


def _base_cookie_params() -> dict:
    # Fuera de desarrollo las cookies solo viajan por HTTPS
    secure = not settings.is_development
    return {
        "secure": secure,
        "samesite": "lax",
        "path": "/",
        "domain": settings.COOKIE_DOMAIN if secure else None,
    }


def get_cookie_settings(is_refresh: bool = False) -> dict:
    """
    Configuración de la cookie de un token.

    Args:
        is_refresh: True para el refresh token (duración en días)
    """
    if is_refresh:
        max_age = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
    else:
        max_age = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    return {"httponly": True, "max_age": max_age, **_base_cookie_params()}


def set_auth_cookies(
    response: Response,
    access_token: str,
    refresh_token: str,
    csrf_token: Optional[str] = None
) -> None:
    """
    Establecer las cookies de sesión en la respuesta.
    """
    access_settings = get_cookie_settings(is_refresh=False)
    response.set_cookie(key=ACCESS_TOKEN_COOKIE, value=access_token, **access_settings)
    response.set_cookie(key=REFRESH_TOKEN_COOKIE, value=refresh_token, **get_cookie_settings(is_refresh=True))

    if csrf_token:
        response.set_cookie(
            key=CSRF_TOKEN_COOKIE,
            value=csrf_token,
            httponly=False,
            max_age=access_settings["max_age"],
            **_base_cookie_params()
        )


def clear_auth_cookies(response: Response) -> None:
    """Eliminar las cookies de sesión"""
    params = _base_cookie_params()
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, CSRF_TOKEN_COOKIE):
        response.delete_cookie(key=name, path=params["path"], domain=params["domain"])


def get_access_token_from_request(request: Request) -> Optional[str]:
    """
    Obtener el access token: primero la cookie, luego el header Authorization.
    """
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):]

    return None


def get_refresh_token_from_request(request: Request) -> Optional[str]:
    """Obtener el refresh token (solo desde cookies)"""
    return request.cookies.get(REFRESH_TOKEN_COOKIE)

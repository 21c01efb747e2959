"""
Protección CSRF por doble envío (cookie + header).

Se activa con CSRF_ENABLED=true. Solo aplica a peticiones mutantes que se
autentican con la cookie de sesión; las que usan Bearer token no la necesitan.
"""
import hmac
import logging
import secrets
from typing import Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from core.cookie_auth import ACCESS_TOKEN_COOKIE, CSRF_TOKEN_COOKIE

logger = logging.getLogger(__name__)

CSRF_HEADER_NAME = "X-CSRF-Token"
CSRF_PROTECTED_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# Login y refresh emiten el token, no pueden exigirlo
CSRF_EXEMPT_PATHS = {
    "/api/auth/login",
    "/api/auth/refresh",
}


def generate_csrf_token() -> str:
    """Token CSRF de 32 bytes en hexadecimal"""
    return secrets.token_hex(32)


def validate_csrf_token(cookie_token: Optional[str], header_token: Optional[str]) -> bool:
    """
    Validar que el token del header coincida con el de la cookie
    (comparación en tiempo constante).
    """
    if not cookie_token or not header_token:
        return False
    return hmac.compare_digest(cookie_token, header_token)


class CSRFMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        if request.method not in CSRF_PROTECTED_METHODS:
            return await call_next(request)

        if request.url.path in CSRF_EXEMPT_PATHS:
            return await call_next(request)

        if request.headers.get("Authorization", "").startswith("Bearer "):
            return await call_next(request)

        if request.cookies.get(ACCESS_TOKEN_COOKIE):
            csrf_cookie = request.cookies.get(CSRF_TOKEN_COOKIE)
            csrf_header = request.headers.get(CSRF_HEADER_NAME)

            if not validate_csrf_token(csrf_cookie, csrf_header):
                logger.warning(f"CSRF inválido en {request.method} {request.url.path}")
                return JSONResponse(
                    status_code=status.HTTP_403_FORBIDDEN,
                    content={
                        "success": False,
                        "status_code": 403,
                        "error": {"message": "Token CSRF inválido o faltante"}
                    }
                )

        return await call_next(request)

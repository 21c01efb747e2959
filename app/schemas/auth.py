"""
Schemas de autenticación.
"""
from pydantic import BaseModel, Field
from typing import Optional


class UserLogin(BaseModel):
    """Schema para login del panel"""
    username: str = Field(..., min_length=1, max_length=50, description="Nombre de usuario")
    password: str = Field(..., min_length=1, max_length=128, description="Contraseña")


class RefreshTokenRequest(BaseModel):
    """Refresh token enviado en el body (clientes sin cookies)"""
    refresh_token: Optional[str] = None

"""
Utilidades para seguridad: contraseñas y JWT
"""
import uuid
import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from core.config import settings


# ==================== PASSWORD HASHING ====================

def hash_password(password: str) -> str:
    """
    Hash password usando bcrypt.
    Genera un hash de 60 caracteres.
    """
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verificar si una contraseña coincide con su hash.
    """
    if not hashed_password:
        return False
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def password_strength_error(password: str) -> Optional[str]:
    """
    Revisar la fortaleza de una contraseña de administrador.

    Returns:
        Mensaje de error o None si la contraseña es válida
    """
    if len(password) < 8:
        return 'La contraseña debe tener al menos 8 caracteres'
    if not any(char.isdigit() for char in password):
        return 'La contraseña debe contener al menos un número'
    if not any(char.isupper() for char in password):
        return 'La contraseña debe contener al menos una mayúscula'
    if not any(char.islower() for char in password):
        return 'La contraseña debe contener al menos una minúscula'
    return None


# ==================== JWT TOKEN MANAGEMENT ====================

def _encode(data: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update({
        "exp": now + expires_delta,
        "iat": now,
        "type": token_type,
        "jti": str(uuid.uuid4())  # JWT ID único para poder revocarlo
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Crear un token JWT de acceso.

    Args:
        data: Datos a incluir en el token (payload)
        expires_delta: Tiempo de expiración personalizado (opcional)

    Returns:
        str: Token JWT codificado
    """
    return _encode(
        data,
        "access",
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )


def create_refresh_token(data: Dict[str, Any]) -> str:
    """
    Crear un token JWT de refresh (larga duración).
    """
    return _encode(data, "refresh", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decodificar y validar un token JWT.

    Args:
        token: Token JWT a decodificar

    Returns:
        Dict con el payload del token o None si es inválido
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
        return payload
    except JWTError:
        return None


def seconds_until_expiration(payload: Dict[str, Any]) -> int:
    """Segundos que le quedan a un token antes de expirar (0 si ya expiró)"""
    exp_timestamp = payload.get("exp", 0)
    now_timestamp = datetime.now(timezone.utc).timestamp()
    return max(int(exp_timestamp - now_timestamp), 0)

"""
Servicios sobre Redis.
Redis guarda los tokens revocados (logout y rotación de refresh) hasta
que expiran de forma natural.
"""
import logging
import redis
from core.config import settings

logger = logging.getLogger(__name__)

# Conexión a Redis (perezosa: no conecta hasta el primer comando)
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


class TokenBlacklistService:
    """Blacklist de JWT identificados por su jti"""

    @staticmethod
    def _get_key(token_jti: str) -> str:
        return f"blacklist:{token_jti}"

    @staticmethod
    def revoke_token(token_jti: str, expires_in_seconds: int) -> None:
        """Revocar un token durante el tiempo que le queda de vida"""
        if expires_in_seconds <= 0:
            return
        redis_client.setex(TokenBlacklistService._get_key(token_jti), expires_in_seconds, "1")
        logger.info(f"Token {token_jti} revocado por {expires_in_seconds}s")

    @staticmethod
    def is_token_revoked(token_jti: str) -> bool:
        return bool(redis_client.exists(TokenBlacklistService._get_key(token_jti)))

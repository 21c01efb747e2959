import os
from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # API Config
    API_TITLE: str = "Barbería API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "API de reservas y punto de venta para la barbería"

    # Entorno
    ENV: str = os.getenv("ENV", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "postgresql://user:pass@db:5432/barberia")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))

    # Redis (blacklist de tokens)
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # Security & JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-change-in-production-PLEASE")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
    REFRESH_TOKEN_EXPIRE_DAYS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))

    # CORS / CSRF
    CORS_ALLOW_ORIGINS: str = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:5173")
    CSRF_ENABLED: bool = os.getenv("CSRF_ENABLED", "false").lower() == "true"
    COOKIE_DOMAIN: Optional[str] = os.getenv("COOKIE_DOMAIN") or None

    @property
    def is_development(self) -> bool:
        return self.ENV == "development"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from core.database import Base


class Setting(Base):
    """
    Configuración clave/valor del negocio (horarios, teléfono, redes...).
    """
    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Setting(key={self.key})>"

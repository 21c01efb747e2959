from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base

class Barber(Base):
    __tablename__ = "barbers"
    
    id = Column(String(10), primary_key=True)
    name = Column(String(100), nullable=False)
    specialty = Column(String(150))
    experience = Column(Integer, default=0)  # Años de experiencia
    image_url = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    # Relaciones
    reservations = relationship("Reservation", back_populates="barber", passive_deletes=True)

from sqlalchemy import Column, String, Numeric, Boolean, DateTime, Text
from sqlalchemy.sql import func
from core.database import Base

class Offer(Base):
    """Oferta o paquete promocional reservable desde el carrito"""
    __tablename__ = "offers"
    
    id = Column(String(10), primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    discount_percentage = Column(Numeric(5, 2))
    discount_amount = Column(Numeric(10, 2))
    original_price = Column(Numeric(10, 2))
    final_price = Column(Numeric(10, 2), nullable=False, default=0)
    image_url = Column(Text)
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

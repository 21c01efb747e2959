from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Text
from sqlalchemy.sql import func
from core.database import Base

class Product(Base):
    __tablename__ = "products"
    
    id = Column(String(10), primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    type = Column(String(50))  # Categoría libre (cera, shampoo, aceite...)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    image_url = Column(Text)
    stock = Column(Integer, nullable=True)  # NULL = stock ilimitado
    min_stock = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    is_active_page = Column(Boolean, default=False)  # Visible en la página pública
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

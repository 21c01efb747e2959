from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from core.database import Base
import enum

class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

class DiscountCode(Base):
    __tablename__ = "discount_codes"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    code = Column(String(50), unique=True, nullable=False, index=True)  # Siempre en mayúsculas
    description = Column(Text)
    discount_type = Column(
        SQLEnum(DiscountType, name="discount_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    discount_value = Column(Numeric(10, 2), nullable=False)
    min_purchase = Column(Numeric(10, 2), nullable=False, default=0)
    max_discount = Column(Numeric(10, 2), nullable=True)  # Tope para porcentajes
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    usage_limit = Column(Integer, nullable=True)  # NULL = ilimitado
    usage_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

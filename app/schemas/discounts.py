"""
Schemas para códigos de descuento.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from models.discounts import DiscountType


class DiscountValidateRequest(BaseModel):
    """Validación pública de un código contra el total del carrito"""
    code: str = Field(..., min_length=1, max_length=50)
    total_amount: float = Field(..., alias="totalAmount")

    class Config:
        populate_by_name = True


class DiscountCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    discount_type: DiscountType
    discount_value: float = Field(..., le=999999.99)
    min_purchase: float = Field(0, ge=0, le=999999.99)
    max_discount: Optional[float] = Field(None, ge=0, le=999999.99)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, ge=1)
    is_active: bool = True


class DiscountUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, le=999999.99)
    min_purchase: Optional[float] = Field(None, ge=0, le=999999.99)
    max_discount: Optional[float] = Field(None, ge=0, le=999999.99)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

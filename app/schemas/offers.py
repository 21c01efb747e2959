"""
Schemas para ofertas.
"""
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime


class OfferBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    discount_amount: Optional[float] = Field(None, ge=0, le=999999.99)
    original_price: Optional[float] = Field(None, ge=0, le=999999.99)
    final_price: float = Field(..., ge=0, le=999999.99)
    image_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True

    @validator("end_date")
    def check_dates(cls, v, values):
        start = values.get("start_date")
        if v and start and start > v:
            raise ValueError("La fecha de inicio debe ser anterior a la fecha de fin")
        return v


class OfferCreate(OfferBase):
    id: str = Field(..., min_length=1, max_length=10)


class OfferUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    discount_amount: Optional[float] = Field(None, ge=0, le=999999.99)
    original_price: Optional[float] = Field(None, ge=0, le=999999.99)
    final_price: Optional[float] = Field(None, ge=0, le=999999.99)
    image_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None

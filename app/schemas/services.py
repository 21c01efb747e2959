"""
Schemas para servicios de la barbería.
"""
from pydantic import BaseModel, Field
from typing import Optional


class ServiceCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=10)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    price: float = Field(..., ge=0, le=999999.99)
    duration: int = Field(30, gt=0, le=1440, description="Duración en minutos")
    category: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = None
    is_active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[float] = Field(None, ge=0, le=999999.99)
    duration: Optional[int] = Field(None, gt=0, le=1440)
    category: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None

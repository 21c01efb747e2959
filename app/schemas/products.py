"""
Schemas para productos.
"""
from pydantic import BaseModel, Field
from typing import Optional


class ProductCreate(BaseModel):
    """Schema para crear producto (stock vacío = ilimitado)"""
    id: str = Field(..., min_length=1, max_length=10, description="Identificador corto (ej: p1)")
    name: str = Field(..., min_length=1, max_length=100, description="Nombre del producto")
    description: Optional[str] = Field(None, max_length=5000)
    type: Optional[str] = Field(None, max_length=50, description="Tipo de producto")
    price: float = Field(..., ge=0, le=999999.99, description="Precio de venta")
    image_url: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0, description="Stock disponible (vacío = ilimitado)")
    min_stock: int = Field(0, ge=0)
    is_active: bool = True
    is_active_page: bool = False


class ProductUpdate(BaseModel):
    """Schema para actualizar producto"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    type: Optional[str] = Field(None, max_length=50)
    price: Optional[float] = Field(None, ge=0, le=999999.99)
    image_url: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    is_active_page: Optional[bool] = None

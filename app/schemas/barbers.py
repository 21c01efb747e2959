"""
Schemas para barberos.
"""
from pydantic import BaseModel, Field
from typing import Optional


class BarberCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=10, description="Identificador corto (ej: b1)")
    name: str = Field(..., min_length=1, max_length=100)
    specialty: Optional[str] = Field(None, max_length=150)
    experience: Optional[int] = Field(0, ge=0, le=80, description="Años de experiencia")
    image_url: Optional[str] = None
    is_active: bool = True


class BarberUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    specialty: Optional[str] = Field(None, max_length=150)
    experience: Optional[int] = Field(None, ge=0, le=80)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None

"""
Schemas de reservas, checkout del carrito y líneas de factura.

Los cuerpos de las peticiones usan camelCase (serviceId, customerName...)
igual que el frontend; internamente se trabaja en snake_case.
"""
from pydantic import BaseModel, Field, validator
from typing import List, Literal, Optional
from core.exceptions import ValidationError as AppValidationError
from core.validators import parse_date, validate_time, validate_phone
from models.reservations import ReservationStatus, DeliveryStatus


def _check(func, value):
    try:
        return func(value)
    except AppValidationError as exc:
        raise ValueError(exc.message)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ==================== RESERVAS ====================

class ReservationCreate(BaseModel):
    """Reserva individual (o factura creada desde el panel)"""
    service_id: str = Field(..., alias="serviceId", min_length=1, max_length=10)
    service_label: Optional[str] = Field(None, alias="serviceLabel", max_length=200)
    barber_id: Optional[str] = Field(None, alias="barberId", max_length=10)
    date: str = Field(..., description="Fecha YYYY-MM-DD")
    time: str = Field(..., description="Hora HH:MM")
    customer_name: Optional[str] = Field(None, alias="customerName", min_length=2, max_length=100)
    customer_phone: Optional[str] = Field(None, alias="customerPhone")

    @validator("barber_id", "service_label", "customer_name", "customer_phone", pre=True)
    def blank_strings(cls, v):
        return _blank_to_none(v)

    @validator("date")
    def check_date(cls, v):
        _check(parse_date, v)
        return v

    @validator("time")
    def check_time(cls, v):
        return _check(validate_time, v)

    @validator("customer_phone")
    def check_phone(cls, v):
        return _check(validate_phone, v)

    class Config:
        populate_by_name = True


class StatusUpdate(BaseModel):
    status: ReservationStatus


class DeliveryStatusUpdate(BaseModel):
    delivery_status: DeliveryStatus = Field(..., alias="deliveryStatus")

    class Config:
        populate_by_name = True


# ==================== CARRITO ====================

class BookingBarber(BaseModel):
    id: Optional[str] = Field(None, max_length=10)
    name: Optional[str] = Field(None, max_length=100)


class BookingData(BaseModel):
    """Horario elegido para un servicio/oferta del carrito"""
    barber: Optional[BookingBarber] = None
    date: str
    time: str

    @validator("date")
    def check_date(cls, v):
        _check(parse_date, v)
        return v

    @validator("time")
    def check_time(cls, v):
        return _check(validate_time, v)


class CartItem(BaseModel):
    type: Literal["service", "offer", "product"]
    id: str = Field(..., min_length=1, max_length=10)
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(0, ge=0, le=999999.99)
    quantity: int = Field(1, ge=1, le=1000)
    booking_data: Optional[BookingData] = Field(None, alias="bookingData")

    class Config:
        populate_by_name = True


class CartCheckout(BaseModel):
    cart_items: List[CartItem] = Field(..., alias="cartItems", min_length=1)
    customer_name: str = Field(..., alias="customerName", min_length=2, max_length=100)
    customer_phone: str = Field(..., alias="customerPhone")
    discount_code_id: Optional[int] = Field(None, alias="discountCodeId", ge=1)
    discount_amount: Optional[float] = Field(None, alias="discountAmount", ge=0, le=999999.99)
    subtotal: Optional[float] = Field(None, ge=0)

    @validator("customer_name")
    def strip_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("El nombre debe tener al menos 2 caracteres")
        return v

    @validator("customer_phone")
    def check_phone(cls, v):
        phone = _check(validate_phone, v)
        if not phone:
            raise ValueError("El teléfono es requerido")
        return phone

    class Config:
        populate_by_name = True


# ==================== LÍNEAS DE FACTURA ====================

class InvoiceItem(BaseModel):
    """Línea de factura editada desde el panel. Los rangos se validan en el servicio."""
    type: Literal["service", "offer", "product"]
    item_id: Optional[str] = Field(None, alias="itemId", max_length=10)
    name: str = Field(..., min_length=1, max_length=200)
    quantity: int
    price: float
    discount_amount: float = Field(0, alias="discountAmount")

    class Config:
        populate_by_name = True


class ReservationItemsUpdate(BaseModel):
    items: List[InvoiceItem]
    discount_code_id: Optional[int] = Field(None, alias="discountCodeId", ge=1)

    class Config:
        populate_by_name = True

from .user import User
from .barbers import Barber
from .services import Service
from .offers import Offer
from .products import Product
from .discounts import DiscountCode, DiscountType
from .reservations import (
    Reservation,
    ReservationItem,
    ReservationStatus,
    ReservationKind,
    DeliveryStatus,
    ItemType,
    PRODUCT_INVOICE_LABEL,
)
from .settings import Setting

__all__ = [
    "User",
    "Barber",
    "Service",
    "Offer",
    "Product",
    "DiscountCode",
    "DiscountType",
    "Reservation",
    "ReservationItem",
    "ReservationStatus",
    "ReservationKind",
    "DeliveryStatus",
    "ItemType",
    "PRODUCT_INVOICE_LABEL",
    "Setting",
]

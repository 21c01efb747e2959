from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Index, text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base
import enum

# Etiqueta visible de las facturas que solo contienen productos
PRODUCT_INVOICE_LABEL = "Factura - Solo Productos"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# Estados de la reserva
class ReservationStatus(str, enum.Enum):
    PENDIENTE = "pendiente"
    CONFIRMADA = "confirmada"
    CANCELADA = "cancelada"

# Tipo de registro: cita real o factura de productos (exenta de conflictos de horario)
class ReservationKind(str, enum.Enum):
    BOOKING = "booking"
    PRODUCT_INVOICE = "product_invoice"

# Estado de entrega (solo facturas de productos)
class DeliveryStatus(str, enum.Enum):
    PENDIENTE = "pendiente"
    ENTREGADO = "entregado"

# Tipos de línea de factura
class ItemType(str, enum.Enum):
    SERVICE = "service"
    OFFER = "offer"
    PRODUCT = "product"


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    service_id = Column(String(10), ForeignKey("services.id", ondelete="CASCADE"), nullable=True, index=True)
    barber_id = Column(String(10), ForeignKey("barbers.id", ondelete="CASCADE"), nullable=True, index=True)

    # Snapshot al momento de reservar (no cambia si luego cambia el catálogo)
    service_label = Column(String(200))
    service_price = Column(Numeric(10, 2), nullable=False, default=0)
    barber_name = Column(String(100))

    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)  # HH:MM
    status = Column(
        SQLEnum(ReservationStatus, name="reservation_status", values_callable=_enum_values),
        nullable=False,
        default=ReservationStatus.PENDIENTE,
        index=True
    )
    kind = Column(
        SQLEnum(ReservationKind, name="reservation_kind", values_callable=_enum_values),
        nullable=False,
        default=ReservationKind.BOOKING
    )
    delivery_status = Column(
        SQLEnum(DeliveryStatus, name="delivery_status", values_callable=_enum_values),
        nullable=True
    )

    customer_name = Column(String(100))
    customer_phone = Column(String(20))

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    # Relationships
    service = relationship("Service", back_populates="reservations")
    barber = relationship("Barber", back_populates="reservations")
    items = relationship(
        "ReservationItem",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationItem.id"
    )

    __table_args__ = (
        # Respaldo del chequeo de conflictos: una sola cita activa por horario y barbero
        Index(
            "uq_reservations_active_slot",
            "date", "time", "barber_id",
            unique=True,
            postgresql_where=text("status <> 'cancelada' AND kind = 'booking'"),
            sqlite_where=text("status <> 'cancelada' AND kind = 'booking'"),
        ),
    )

    @property
    def is_product_invoice(self) -> bool:
        return self.kind == ReservationKind.PRODUCT_INVOICE


class ReservationItem(Base):
    __tablename__ = "reservation_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    item_type = Column(
        SQLEnum(ItemType, name="reservation_item_type", values_callable=_enum_values),
        nullable=False
    )
    item_id = Column(String(10), nullable=True)  # Sin FK: el histórico sobrevive al borrado del producto
    item_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)
    discount_code_id = Column(Integer, ForeignKey("discount_codes.id", ondelete="SET NULL"), nullable=True)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    reservation = relationship("Reservation", back_populates="items")
    discount_code = relationship("DiscountCode")

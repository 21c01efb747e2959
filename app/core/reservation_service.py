"""
Servicio de reservas.

Cada escritura es una transacción corta en nivel SERIALIZABLE con bloqueos
de fila (SELECT ... FOR UPDATE). La exclusividad de un horario la garantiza
la base de datos: dos peticiones simultáneas por el mismo horario terminan
con una reserva creada y un error "horario ocupado" para la otra. No hay
reintentos automáticos.

Regla de conflicto (la misma para reservas individuales y carrito):
- Solo cuentan las citas activas (estado distinto de cancelada, tipo booking)
- Con barbero: choca con una cita del mismo barbero o con una cita sin barbero
- Sin barbero: choca con cualquier cita en esa fecha y hora
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy import or_
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, joinedload
from core.exceptions import AppError, ValidationError, NotFoundError
from core.validators import parse_date, validate_time, to_money, MAX_AMOUNT, MAX_SUBTOTAL
from core.product_service import reduce_product_stock, restore_product_stock
from core.discount_service import increment_usage
from models.barbers import Barber
from models.services import Service
from models.offers import Offer
from models.reservations import (
    Reservation,
    ReservationItem,
    ReservationStatus,
    ReservationKind,
    DeliveryStatus,
    ItemType,
    PRODUCT_INVOICE_LABEL,
)
from schemas.reservations import ReservationCreate, CartCheckout, InvoiceItem

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "El horario seleccionado ya está ocupado. Por favor, selecciona otro horario."
BARBER_SLOT_TAKEN_MESSAGE = (
    "El horario seleccionado ya está ocupado para este barbero. Por favor, selecciona otro horario."
)
CART_SLOT_TAKEN_MESSAGE = "El horario ya está ocupado"
PAST_DATE_MESSAGE = "No se pueden hacer reservas en fechas pasadas"
NOT_FOUND_MESSAGE = "Reserva no encontrada"

# SQLSTATE de PostgreSQL que delatan una carrera por el mismo horario:
# serialization_failure, deadlock_detected, lock_not_available, unique_violation
SLOT_RACE_SQLSTATES = {"40001", "40P01", "55P03", "23505"}


# ==================== TRANSACCIONES ====================

def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


@contextmanager
def _write_transaction(db: Session, action: str):
    """
    Ejecutar el bloque en una transacción SERIALIZABLE.

    Hace commit al salir; ante cualquier error hace rollback y relanza.
    Los fallos de serialización y bloqueos se traducen al error de
    horario ocupado.
    """
    if db.in_transaction():
        # Cierra la transacción de solo lectura abierta (p. ej. al cargar el usuario)
        db.commit()
    db.connection(execution_options={"isolation_level": "SERIALIZABLE"})

    try:
        yield
        db.commit()
    except AppError:
        db.rollback()
        raise
    except DBAPIError as exc:
        db.rollback()
        if _sqlstate(exc) in SLOT_RACE_SQLSTATES:
            logger.warning(f"{action}: conflicto concurrente en la base de datos ({_sqlstate(exc)})")
            raise ValidationError(SLOT_TAKEN_MESSAGE)
        logger.error(f"{action}: error de base de datos: {exc}")
        raise
    except Exception:
        db.rollback()
        raise


# ==================== CONFLICTOS DE HORARIO ====================

def _active_bookings_query(db: Session, reservation_date: date, barber_id: Optional[str] = None):
    query = db.query(Reservation).filter(
        Reservation.date == reservation_date,
        Reservation.status != ReservationStatus.CANCELADA,
        Reservation.kind == ReservationKind.BOOKING,
    )
    if barber_id:
        query = query.filter(
            or_(Reservation.barber_id == barber_id, Reservation.barber_id.is_(None))
        )
    return query


def find_slot_conflicts(
    db: Session,
    reservation_date: date,
    reservation_time: str,
    barber_id: Optional[str] = None
) -> List[Reservation]:
    """
    Citas activas que ocupan el horario, bloqueadas hasta el fin de la transacción.
    """
    return _active_bookings_query(db, reservation_date, barber_id).filter(
        Reservation.time == reservation_time
    ).with_for_update().all()


def ensure_slot_available(
    db: Session,
    reservation_date: date,
    reservation_time: str,
    barber_id: Optional[str] = None
) -> None:
    conflicts = find_slot_conflicts(db, reservation_date, reservation_time, barber_id)
    if not conflicts:
        return

    logger.warning(
        f"Horario ocupado: {reservation_date} {reservation_time} barbero={barber_id or '-'}"
    )
    if barber_id and any(r.barber_id == barber_id for r in conflicts):
        raise ValidationError(BARBER_SLOT_TAKEN_MESSAGE)
    raise ValidationError(SLOT_TAKEN_MESSAGE)


# ==================== SNAPSHOT ====================

def build_snapshot(
    db: Session,
    service_id: Optional[str],
    barber_id: Optional[str],
    service_label: Optional[str] = None
) -> Dict[str, Any]:
    """
    Copiar nombre de barbero y nombre/precio del servicio al momento de reservar.
    Si no existen se guardan vacíos (no es un error).
    """
    service = db.query(Service).filter(Service.id == service_id).first() if service_id else None
    barber = db.query(Barber).filter(Barber.id == barber_id).first() if barber_id else None

    return {
        "service_label": service_label or (service.name if service else None),
        "service_price": to_money(service.price) if service else Decimal("0.00"),
        "barber_name": barber.name if barber else None,
    }


def _offer_snapshot(db: Session, offer_id: str, label: str, fallback_price) -> Dict[str, Any]:
    offer = db.query(Offer).filter(Offer.id == offer_id).first()
    return {
        "service_label": label or (offer.name if offer else None),
        "service_price": to_money(offer.final_price if offer else fallback_price),
        "barber_name": None,
    }


# ==================== LÍNEAS DE FACTURA ====================

def build_line(
    item_type: str,
    item_id: Optional[str],
    name: str,
    quantity: int,
    price,
    discount_amount=0
) -> Dict[str, Any]:
    """
    Validar una línea de factura y normalizar sus importes.
    """
    if not isinstance(quantity, int) or quantity < 1 or quantity > 1000:
        raise ValidationError(f'Cantidad inválida para "{name}". Debe estar entre 1 y 1000')

    unit_price = to_money(price)
    if unit_price < 0 or unit_price > MAX_AMOUNT:
        raise ValidationError(f'Precio inválido para "{name}". Debe estar entre $0.00 y $999999.99')

    gross = unit_price * quantity
    if gross > MAX_SUBTOTAL:
        raise ValidationError(f'El subtotal de "{name}" excede el máximo permitido')

    discount = to_money(discount_amount or 0)
    if discount < 0 or discount > gross:
        raise ValidationError(f'El descuento de "{name}" debe estar entre $0.00 y el subtotal del item')

    return {
        "item_type": ItemType(item_type),
        "item_id": item_id,
        "item_name": name,
        "quantity": quantity,
        "unit_price": unit_price,
        "discount_amount": discount,
        "subtotal": to_money(gross - discount),
    }


def _distribute_discount(lines: List[Dict[str, Any]], discount_amount, subtotal) -> None:
    """Repartir el descuento del carrito proporcionalmente al importe de cada línea"""
    if not discount_amount or not subtotal:
        return

    total_discount = to_money(discount_amount)
    cart_subtotal = to_money(subtotal)
    if cart_subtotal <= 0:
        return

    for line in lines:
        gross = line["unit_price"] * line["quantity"]
        share = min(to_money(total_discount * gross / cart_subtotal), gross)
        line["discount_amount"] = share
        line["subtotal"] = to_money(gross - share)


def _insert_items(
    db: Session,
    reservation: Reservation,
    lines: List[Dict[str, Any]],
    discount_code_id: Optional[int] = None
) -> None:
    for line in lines:
        db.add(ReservationItem(
            reservation_id=reservation.id,
            discount_code_id=discount_code_id,
            **line
        ))
        if line["item_type"] == ItemType.PRODUCT and line["item_id"]:
            reduce_product_stock(db, line["item_id"], line["quantity"])
    db.flush()


# ==================== SERIALIZACIÓN ====================

def reservation_to_dict(reservation: Reservation) -> Dict[str, Any]:
    service_label = reservation.service_label
    if not service_label and reservation.service:
        service_label = reservation.service.name
    barber_name = reservation.barber_name
    if not barber_name and reservation.barber:
        barber_name = reservation.barber.name

    return {
        "id": reservation.id,
        "service_id": reservation.service_id,
        "service_label": service_label,
        "service_price": float(reservation.service_price or 0),
        "barber_id": reservation.barber_id,
        "barber_name": barber_name,
        "date": reservation.date.isoformat(),
        "time": reservation.time,
        "status": reservation.status.value,
        "kind": reservation.kind.value,
        "delivery_status": reservation.delivery_status.value if reservation.delivery_status else None,
        "customer_name": reservation.customer_name,
        "customer_phone": reservation.customer_phone,
        "created_at": reservation.created_at.isoformat() if reservation.created_at else None,
    }


def item_to_dict(item: ReservationItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "reservation_id": item.reservation_id,
        "item_type": item.item_type.value,
        "item_id": item.item_id,
        "item_name": item.item_name,
        "quantity": item.quantity,
        "unit_price": float(item.unit_price),
        "discount_code_id": item.discount_code_id,
        "discount_code": item.discount_code.code if item.discount_code else None,
        "discount_amount": float(item.discount_amount or 0),
        "subtotal": float(item.subtotal),
    }


# ==================== CONSULTAS ====================

def list_reservations(
    db: Session,
    reservation_date: Optional[date] = None,
    barber_id: Optional[str] = None,
    status: Optional[ReservationStatus] = None
) -> List[Reservation]:
    """Listado para el panel (más recientes primero)"""
    query = db.query(Reservation)
    if reservation_date:
        query = query.filter(Reservation.date == reservation_date)
    if barber_id:
        query = query.filter(Reservation.barber_id == barber_id)
    if status:
        query = query.filter(Reservation.status == status)

    return query.order_by(
        Reservation.date.desc(),
        Reservation.time.desc(),
        Reservation.id.desc()
    ).all()


def list_day_occupancy(db: Session, reservation_date: date, barber_id: Optional[str] = None) -> List[Reservation]:
    """Citas activas de un día que ocupan la agenda del barbero (o de todos)"""
    return _active_bookings_query(db, reservation_date, barber_id).order_by(
        Reservation.time.asc()
    ).all()


def get_reservation(db: Session, reservation_id: int) -> Reservation:
    reservation = db.query(Reservation).filter(Reservation.id == reservation_id).first()
    if not reservation:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return reservation


def _lock_reservation(db: Session, reservation_id: int) -> Reservation:
    reservation = db.query(Reservation).filter(
        Reservation.id == reservation_id
    ).with_for_update().first()
    if not reservation:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return reservation


def get_reservation_items(db: Session, reservation_id: int) -> List[ReservationItem]:
    get_reservation(db, reservation_id)
    return db.query(ReservationItem).options(
        joinedload(ReservationItem.discount_code)
    ).filter(
        ReservationItem.reservation_id == reservation_id
    ).order_by(ReservationItem.id.asc()).all()


# ==================== ESCRITURA ====================

def create_reservation(db: Session, data: ReservationCreate) -> Reservation:
    """
    Crear una reserva individual.

    Si la etiqueta es la de factura de productos se registra como factura:
    no participa en los conflictos de horario y admite fechas pasadas.
    """
    kind = ReservationKind.PRODUCT_INVOICE if data.service_label == PRODUCT_INVOICE_LABEL else ReservationKind.BOOKING
    reservation_date = parse_date(data.date)
    reservation_time = validate_time(data.time)

    if kind == ReservationKind.BOOKING and reservation_date < date.today():
        raise ValidationError(PAST_DATE_MESSAGE)

    with _write_transaction(db, "crear reserva"):
        if kind == ReservationKind.BOOKING:
            ensure_slot_available(db, reservation_date, reservation_time, data.barber_id)

        snapshot = build_snapshot(db, data.service_id, data.barber_id, data.service_label)

        reservation = Reservation(
            service_id=data.service_id,
            barber_id=data.barber_id,
            date=reservation_date,
            time=reservation_time,
            status=ReservationStatus.PENDIENTE,
            kind=kind,
            delivery_status=DeliveryStatus.PENDIENTE if kind == ReservationKind.PRODUCT_INVOICE else None,
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            **snapshot
        )
        db.add(reservation)
        db.flush()

    db.refresh(reservation)
    logger.info(
        f"Reserva {reservation.id} creada ({kind.value}) {reservation.date} {reservation.time} "
        f"barbero={reservation.barber_id or '-'}"
    )
    return reservation


def _product_invoice_time(now: datetime) -> str:
    # Minuto desplazado con los milisegundos para no apilar facturas en el mismo minuto
    minute = (now.minute + (now.microsecond // 1000) // 100) % 60
    return f"{now.hour:02d}:{minute:02d}"


def create_reservations_from_cart(db: Session, data: CartCheckout) -> Dict[str, Any]:
    """
    Convertir el carrito en reservas.

    - Cada servicio/oferta con horario genera una cita. Si su horario está
      ocupado se reporta en "errors" y se continúa con el resto.
    - Si ninguna cita se pudo crear, se cancela todo el checkout.
    - Un carrito solo de productos genera una factura confirmada con entrega
      pendiente.
    - Todas las líneas del carrito se guardan en la primera reserva creada y
      los productos descuentan stock (stock insuficiente cancela todo).
    """
    booking_items = [item for item in data.cart_items if item.type in ("service", "offer")]
    unscheduled = [item.name for item in booking_items if not item.booking_data]
    if unscheduled:
        raise ValidationError(
            "Selecciona fecha y hora para: " + ", ".join(unscheduled)
        )

    lines = [
        build_line(item.type, item.id, item.name, item.quantity, item.price)
        for item in data.cart_items
    ]
    _distribute_discount(lines, data.discount_amount, data.subtotal)

    created: List[Reservation] = []
    errors: List[Dict[str, str]] = []
    today = date.today()

    with _write_transaction(db, "checkout de carrito"):
        for item in booking_items:
            booking = item.booking_data
            booking_date = parse_date(booking.date)
            barber_id = booking.barber.id if booking.barber and booking.barber.id else None

            if booking_date < today:
                errors.append({"item": item.name, "error": PAST_DATE_MESSAGE})
                continue

            if find_slot_conflicts(db, booking_date, booking.time, barber_id):
                logger.warning(f"Carrito: horario ocupado para {item.name} {booking_date} {booking.time}")
                errors.append({"item": item.name, "error": CART_SLOT_TAKEN_MESSAGE})
                continue

            if item.type == "service":
                service_id = item.id
                snapshot = build_snapshot(db, item.id, barber_id, item.name)
            else:
                service_id = None
                snapshot = _offer_snapshot(db, item.id, item.name, item.price)
                if barber_id:
                    snapshot["barber_name"] = build_snapshot(db, None, barber_id)["barber_name"]

            if booking.barber and booking.barber.name:
                snapshot["barber_name"] = booking.barber.name

            reservation = Reservation(
                service_id=service_id,
                barber_id=barber_id,
                date=booking_date,
                time=booking.time,
                status=ReservationStatus.PENDIENTE,
                kind=ReservationKind.BOOKING,
                customer_name=data.customer_name,
                customer_phone=data.customer_phone,
                **snapshot
            )
            db.add(reservation)
            db.flush()
            created.append(reservation)

        if booking_items and not created:
            detail = "; ".join(f"{e['item']}: {e['error']}" for e in errors)
            raise ValidationError(f"No se pudieron crear las reservas: {detail}", errors=errors)

        if not created:
            now = datetime.now()
            invoice = Reservation(
                service_id=None,
                barber_id=None,
                service_label=PRODUCT_INVOICE_LABEL,
                service_price=Decimal("0.00"),
                date=now.date(),
                time=_product_invoice_time(now),
                status=ReservationStatus.CONFIRMADA,
                kind=ReservationKind.PRODUCT_INVOICE,
                delivery_status=DeliveryStatus.PENDIENTE,
                customer_name=data.customer_name,
                customer_phone=data.customer_phone,
            )
            db.add(invoice)
            db.flush()
            created.append(invoice)

        main_reservation = created[0]

        if data.discount_code_id:
            increment_usage(db, data.discount_code_id)

        _insert_items(db, main_reservation, lines, data.discount_code_id)

    logger.info(
        f"Checkout de carrito: {len(created)} reservas creadas, {len(errors)} fallidas "
        f"(principal {main_reservation.id})"
    )

    result = {
        "success": len(created),
        "failed": len(errors),
        "reservations": [reservation_to_dict(r) for r in created],
        "mainReservationId": main_reservation.id,
    }
    if errors:
        result["errors"] = errors
    return result


def update_reservation_status(db: Session, reservation_id: int, status: ReservationStatus) -> Reservation:
    """
    Cambiar el estado de una reserva. Reactivar una cita cancelada vuelve a
    comprobar que su horario siga libre.
    """
    status = ReservationStatus(status)

    with _write_transaction(db, "cambiar estado de reserva"):
        reservation = _lock_reservation(db, reservation_id)

        reactivating = (
            reservation.status == ReservationStatus.CANCELADA
            and status != ReservationStatus.CANCELADA
            and reservation.kind == ReservationKind.BOOKING
        )
        if reactivating:
            ensure_slot_available(db, reservation.date, reservation.time, reservation.barber_id)

        reservation.status = status

    db.refresh(reservation)
    logger.info(f"Reserva {reservation.id} -> {status.value}")
    return reservation


def update_delivery_status(db: Session, reservation_id: int, delivery_status: DeliveryStatus) -> Reservation:
    """Marcar una factura de productos como entregada o pendiente"""
    delivery_status = DeliveryStatus(delivery_status)

    with _write_transaction(db, "cambiar estado de entrega"):
        reservation = _lock_reservation(db, reservation_id)
        if not reservation.is_product_invoice:
            raise ValidationError("Solo las facturas de productos tienen estado de entrega")
        reservation.delivery_status = delivery_status

    db.refresh(reservation)
    return reservation


def update_reservation_items(
    db: Session,
    reservation_id: int,
    items: List[InvoiceItem],
    discount_code_id: Optional[int] = None
) -> List[ReservationItem]:
    """
    Reemplazar todas las líneas de la factura de una reserva.

    Dentro de la misma transacción se devuelve el stock de las líneas
    anteriores y se descuenta el de las nuevas, así que guardar la misma
    lista dos veces deja el inventario igual. Cualquier error deja la
    reserva y el inventario sin cambios.
    """
    lines = [
        build_line(item.type, item.item_id, item.name, item.quantity, item.price, item.discount_amount)
        for item in items
    ]

    with _write_transaction(db, "editar factura"):
        reservation = _lock_reservation(db, reservation_id)

        previous = db.query(ReservationItem).filter(
            ReservationItem.reservation_id == reservation.id
        ).all()
        for old in previous:
            if old.item_type == ItemType.PRODUCT and old.item_id:
                restore_product_stock(db, old.item_id, old.quantity)
            db.delete(old)
        db.flush()

        if discount_code_id:
            increment_usage(db, discount_code_id)

        _insert_items(db, reservation, lines, discount_code_id)

    logger.info(f"Factura de la reserva {reservation_id} actualizada ({len(lines)} líneas)")
    return get_reservation_items(db, reservation_id)


def delete_reservation(db: Session, reservation_id: int) -> None:
    """Borrado definitivo de la reserva y sus líneas"""
    reservation = get_reservation(db, reservation_id)
    db.delete(reservation)
    db.commit()
    logger.info(f"Reserva {reservation_id} eliminada")

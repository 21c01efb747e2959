"""
Endpoints de reservas.

Públicos: consultar ocupación del día, reservar y hacer checkout del carrito.
Admin: listado, estados, factura (líneas) y borrado.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from core.database import get_db
from core.dependencies import get_current_admin_user
from core.validators import parse_date
from core import reservation_service
from models.reservations import ReservationStatus
from models.user import User
from schemas.reservations import (
    ReservationCreate,
    CartCheckout,
    StatusUpdate,
    DeliveryStatusUpdate,
    ReservationItemsUpdate,
)

router = APIRouter(
    prefix="/reservations",
    tags=["reservations"]
)


# ==================== ENDPOINTS PÚBLICOS ====================

@router.get("")
async def get_day_occupancy(
    date: str = Query(..., description="Fecha YYYY-MM-DD"),
    barber_id: Optional[str] = Query(None, alias="barberId", description="Barbero (incluye citas sin barbero)"),
    db: Session = Depends(get_db)
):
    """
    Horarios ocupados de un día para el calendario de reservas.
    Solo expone fecha, hora y barbero (sin datos del cliente).
    """
    reservations = reservation_service.list_day_occupancy(db, parse_date(date), barber_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Horarios ocupados obtenidos exitosamente",
        "data": [
            {
                "id": r.id,
                "date": r.date.isoformat(),
                "time": r.time,
                "barber_id": r.barber_id,
                "service_id": r.service_id,
                "status": r.status.value,
            }
            for r in reservations
        ]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_reservation(
    reservation_data: ReservationCreate,
    db: Session = Depends(get_db)
):
    """
    Crear una reserva. Responde 400 si el horario ya está ocupado.
    """
    reservation = reservation_service.create_reservation(db, reservation_data)
    return {
        "success": True,
        "status_code": 201,
        "message": "Reserva creada exitosamente",
        "data": reservation_service.reservation_to_dict(reservation)
    }


@router.post("/from-cart", status_code=status.HTTP_201_CREATED)
async def create_reservations_from_cart(
    checkout: CartCheckout,
    db: Session = Depends(get_db)
):
    """
    Checkout del carrito: una cita por servicio/oferta con horario y una
    factura con todas las líneas. Los horarios ocupados se reportan en
    data.errors sin cancelar el resto.
    """
    result = reservation_service.create_reservations_from_cart(db, checkout)
    return {
        "success": True,
        "status_code": 201,
        "message": f"{result['success']} reserva(s) creada(s)",
        "data": result
    }


# ==================== ADMIN ENDPOINTS ====================

@router.get("/admin")
async def list_reservations(
    date: Optional[str] = Query(None, description="Fecha YYYY-MM-DD"),
    barber_id: Optional[str] = Query(None, alias="barberId"),
    reservation_status: Optional[ReservationStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    reservations = reservation_service.list_reservations(
        db,
        reservation_date=parse_date(date) if date else None,
        barber_id=barber_id,
        status=reservation_status
    )
    return {
        "success": True,
        "status_code": 200,
        "message": "Reservas obtenidas exitosamente",
        "data": [reservation_service.reservation_to_dict(r) for r in reservations]
    }


@router.get("/{reservation_id}/items")
async def get_reservation_items(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    items = reservation_service.get_reservation_items(db, reservation_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Items obtenidos exitosamente",
        "data": [reservation_service.item_to_dict(i) for i in items]
    }


@router.put("/{reservation_id}/status")
async def update_reservation_status(
    reservation_id: int,
    status_data: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    reservation = reservation_service.update_reservation_status(db, reservation_id, status_data.status)
    return {
        "success": True,
        "status_code": 200,
        "message": "Estado actualizado exitosamente",
        "data": reservation_service.reservation_to_dict(reservation)
    }


@router.put("/{reservation_id}/delivery-status")
async def update_delivery_status(
    reservation_id: int,
    delivery_data: DeliveryStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    reservation = reservation_service.update_delivery_status(db, reservation_id, delivery_data.delivery_status)
    return {
        "success": True,
        "status_code": 200,
        "message": "Estado de entrega actualizado exitosamente",
        "data": reservation_service.reservation_to_dict(reservation)
    }


@router.put("/{reservation_id}/items")
async def update_reservation_items(
    reservation_id: int,
    items_data: ReservationItemsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """
    Reemplazar las líneas de la factura ajustando el inventario.
    """
    items = reservation_service.update_reservation_items(
        db,
        reservation_id,
        items_data.items,
        items_data.discount_code_id
    )
    return {
        "success": True,
        "status_code": 200,
        "message": "Items actualizados exitosamente",
        "data": [reservation_service.item_to_dict(i) for i in items]
    }


@router.delete("/{reservation_id}")
async def delete_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    reservation_service.delete_reservation(db, reservation_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Reserva eliminada exitosamente"
    }

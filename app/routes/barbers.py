"""
Endpoints de barberos.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from core.database import get_db
from core.dependencies import get_current_admin_user
from core.exceptions import ValidationError, NotFoundError
from models.barbers import Barber
from models.reservations import Reservation
from models.user import User
from schemas.barbers import BarberCreate, BarberUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"]
)


def _barber_to_dict(barber: Barber) -> dict:
    return {
        "id": barber.id,
        "name": barber.name,
        "specialty": barber.specialty,
        "experience": barber.experience,
        "image_url": barber.image_url,
        "is_active": barber.is_active,
    }


def _get_barber_or_404(db: Session, barber_id: str) -> Barber:
    barber = db.query(Barber).filter(Barber.id == barber_id).first()
    if not barber:
        raise NotFoundError("Barbero no encontrado")
    return barber


# ==================== ENDPOINTS PÚBLICOS ====================

@router.get("")
async def list_barbers(db: Session = Depends(get_db)):
    """Barberos activos (selector de la reserva)"""
    barbers = db.query(Barber).filter(Barber.is_active.is_(True)).order_by(Barber.name.asc()).all()
    return {
        "success": True,
        "status_code": 200,
        "message": "Barberos obtenidos exitosamente",
        "data": [_barber_to_dict(b) for b in barbers]
    }


@router.get("/all")
async def list_all_barbers(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """Todos los barberos, activos e inactivos (solo administradores)"""
    barbers = db.query(Barber).order_by(Barber.name.asc()).all()
    return {
        "success": True,
        "status_code": 200,
        "message": "Barberos obtenidos exitosamente",
        "data": [_barber_to_dict(b) for b in barbers]
    }


@router.get("/{barber_id}")
async def get_barber(barber_id: str, db: Session = Depends(get_db)):
    barber = _get_barber_or_404(db, barber_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Barbero obtenido exitosamente",
        "data": _barber_to_dict(barber)
    }


# ==================== ADMIN ENDPOINTS ====================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_barber(
    barber_data: BarberCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    if db.query(Barber).filter(Barber.id == barber_data.id).first():
        raise ValidationError(f"Ya existe un barbero con el ID {barber_data.id}")

    barber = Barber(**barber_data.model_dump())
    db.add(barber)
    db.commit()
    db.refresh(barber)

    logger.info(f"Barbero {barber.id} creado por {current_user.username}")
    return {
        "success": True,
        "status_code": 201,
        "message": "Barbero creado exitosamente",
        "data": _barber_to_dict(barber)
    }


@router.put("/{barber_id}")
async def update_barber(
    barber_id: str,
    barber_data: BarberUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    barber = _get_barber_or_404(db, barber_id)

    for field, value in barber_data.model_dump(exclude_unset=True).items():
        setattr(barber, field, value)

    db.commit()
    db.refresh(barber)

    return {
        "success": True,
        "status_code": 200,
        "message": "Barbero actualizado exitosamente",
        "data": _barber_to_dict(barber)
    }


@router.delete("/{barber_id}")
async def delete_barber(
    barber_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """
    Eliminar barbero junto con todas sus reservas (borrado definitivo).
    """
    barber = _get_barber_or_404(db, barber_id)

    reservations = db.query(Reservation).filter(Reservation.barber_id == barber_id).all()
    for reservation in reservations:
        db.delete(reservation)
    db.delete(barber)
    db.commit()

    logger.info(f"Barbero {barber_id} eliminado con {len(reservations)} reservas")
    return {
        "success": True,
        "status_code": 200,
        "message": "Barbero eliminado exitosamente",
        "data": {"deleted_reservations": len(reservations)}
    }
